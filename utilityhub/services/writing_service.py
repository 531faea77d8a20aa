"""
UtilityHub API — Writing Tools Service
========================================

What:  Grammar check, AI humanizer, paraphraser and plagiarism check.
Why:   Each tool is a prompt plus an output contract; keeping the prompts and
       schemas here leaves the routes with HTTP concerns only.
How:   Validates the caller's fields, embeds them in a natural-language
       instruction, and asks the TextGenerationService for text or for JSON
       conforming to a strict schema.
Who:   Called by routes/writing.py.

Output contracts (returned as-is, merged into {"success": true, ...}):
    grammar     → analysis{tone, clarityScore}, corrections[{from, to, mistake, correction, type}]
    humanizer   → humanizedText
    paraphrase  → paraphrasedText
    plagiarism  → plagiarismPercentage, uniquePercentage, matchedSources[{url, title, snippet}]
"""

import logging
from typing import Any, Dict, Optional

from utilityhub.exceptions import BlockedContentError, ValidationError
from utilityhub.services.gemini_service import check_schema_shape
from utilityhub.services.llm_base import TextGenerationService

logger = logging.getLogger(__name__)


GRAMMAR_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "analysis": {
            "type": "OBJECT",
            "properties": {
                "tone": {"type": "STRING"},
                "clarityScore": {"type": "NUMBER"},
            },
            "required": ["tone", "clarityScore"],
        },
        "corrections": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "from": {"type": "NUMBER"},
                    "to": {"type": "NUMBER"},
                    "mistake": {"type": "STRING"},
                    "correction": {"type": "STRING"},
                    "type": {"type": "STRING", "enum": ["Spelling", "Grammar", "Style"]},
                },
                "required": ["from", "to", "mistake", "correction", "type"],
            },
        },
    },
    "required": ["analysis", "corrections"],
}

HUMANIZER_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "humanizedText": {
            "type": "STRING",
            "description": "The rewritten, human-sounding text.",
        },
    },
    "required": ["humanizedText"],
}

# Not sent to the vendor: JSON mode cannot be combined with the search tool,
# so the shape is described in the prompt and checked after parsing
PLAGIARISM_SHAPE: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {"matchedSources": {"type": "ARRAY"}},
    "required": ["plagiarismPercentage", "uniquePercentage", "matchedSources"],
}

SEARCH_TOOLS = [{"google_search": {}}]


def require_text(value: Optional[str], message: str, field: str) -> str:
    """Return value if it holds non-blank text, otherwise raise ValidationError."""
    if value is None or not value.strip():
        raise ValidationError(message=message, field=field)
    return value


class WritingToolsService:
    """Prompt construction and output contracts for the writing tools."""

    def __init__(self, llm: TextGenerationService):
        self.llm = llm

    async def check_grammar(self, text: Optional[str]) -> Dict[str, Any]:
        """
        Spelling, grammar and style corrections plus tone and a clarity score.

        The from/to indices are character offsets into the original text,
        so the text is embedded verbatim.
        """
        text = require_text(text, "ERROR: Input text is required.", "text")

        prompt = (
            "Analyze the following text meticulously for spelling, grammar, and style "
            "errors. Provide an overall tone (e.g., Formal, Informal, Confident) and a "
            "clarity score (0-100).\n"
            f'Text: "{text}"\n'
            "Respond ONLY with a single valid JSON object adhering strictly to the "
            "provided schema. Do not include any markdown formatting. The indices 'from' "
            "and 'to' must be precise character counts from the start of the original "
            'text. If no errors are found, return an empty "corrections" array.'
        )
        data = await self.llm.generate_json(prompt, response_schema=GRAMMAR_SCHEMA)
        logger.info("Grammar check returned %d corrections", len(data["corrections"]))
        return data

    async def humanize(self, text: Optional[str]) -> Dict[str, Any]:
        """Rewrite AI-sounding text to read as if a person wrote it."""
        text = require_text(text, "ERROR: Input text is required.", "text")

        prompt = (
            "You are a creative editor. Your task is to rewrite the following "
            "AI-generated text to sound like it was written by a human.\n"
            "Focus on:\n"
            "1. Burstiness: Vary sentence length and structure. Mix short, punchy "
            "sentences with longer, more complex ones.\n"
            "2. Vocabulary: Replace overly formal or complex words with more natural, "
            "common language.\n"
            "3. Personality: Add a more personal or slightly informal tone.\n"
            "4. Flow: Break up long, uniform paragraphs.\n\n"
            f'Original Text:\n"{text}"\n\n'
            "Rewrite the text to be more engaging and less robotic. Respond ONLY with a "
            "single valid JSON object adhering to the schema."
        )
        return await self.llm.generate_json(prompt, response_schema=HUMANIZER_SCHEMA)

    async def paraphrase(self, text: Optional[str], mode: Optional[str]) -> Dict[str, Any]:
        """Rewrite text in the requested mode (e.g. Fluent, Formal, Simple). Plain-text output."""
        message = "ERROR: Input text and mode are required."
        text = require_text(text, message, "text")
        mode = require_text(mode, message, "mode")

        prompt = (
            "You are a professional paraphrasing tool.\n"
            f"Rewrite the following text to make it {mode.strip().lower()}.\n"
            "Do not add any commentary. Respond only with the paraphrased text.\n\n"
            f'Original Text:\n"{text}"\n\n'
            "Paraphrased Text:"
        )
        paraphrased = await self.llm.generate_text(prompt)
        return {"paraphrasedText": paraphrased}

    async def check_plagiarism(self, text: Optional[str]) -> Dict[str, Any]:
        """
        Search-grounded similarity analysis.

        The model is asked for an analysis, never a restatement of the text;
        a RECITATION block therefore means the text itself closely matches a
        web source and gets a dedicated message.
        """
        text = require_text(text, "ERROR: Input text is required.", "text")

        prompt = (
            "You are a professional plagiarism detection service.\n"
            "Your task is to analyze the following user-provided text using your Google "
            "Search tool to find matching sources.\n\n"
            f'User Text:\n"{text}"\n\n'
            "Your Instructions:\n"
            "1. Search Google for snippets from the User Text.\n"
            '2. Based on the search results, determine a "plagiarismPercentage" '
            '(number, 0-100) and a "uniquePercentage" (number, 0-100).\n'
            '3. Compile a list of "matchedSources".\n'
            '4. For each source in "matchedSources", provide its "url", "title", and a '
            '"snippet".\n'
            '5. The "snippet" MUST be a short quote from the user\'s text that matches '
            "the source, NOT a quote from the source itself.\n\n"
            "IMPORTANT: Your final response MUST be a single, valid JSON object. Do NOT "
            "include markdown. Do NOT recite or output the full User Text in your "
            "response. Your response must be an analysis in the specified JSON format.\n\n"
            "JSON Schema:\n"
            '{"plagiarismPercentage": number, "uniquePercentage": number, '
            '"matchedSources": [{"url": "string", "title": "string", "snippet": "string"}]}\n\n'
            "If no matches are found, return 0 for plagiarismPercentage, 100 for "
            "uniquePercentage, and an empty matchedSources array."
        )

        try:
            data = await self.llm.generate_json(prompt, tools=SEARCH_TOOLS)
        except BlockedContentError as e:
            if e.reason != "RECITATION":
                raise
            raise BlockedContentError(
                reason=e.reason,
                message="ERROR: AI analysis was blocked. The text may be too similar to a web source.",
                context=e.context,
            ) from e

        check_schema_shape(data, PLAGIARISM_SHAPE)
        return data
