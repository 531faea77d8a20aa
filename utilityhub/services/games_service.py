"""
UtilityHub API — Game & Generator Content Service
===================================================

What:  AI-generated content for the hangman, word scramble, riddle/joke,
       name combiner and typing-test tools.
Why:   Same pattern as the writing tools: a prompt, an output schema, a
       temperature. Kept apart because these tools favor variety (higher
       temperatures) while the writing tools favor faithfulness.
Who:   Called by routes/generators.py.

Output contracts (returned as-is, merged into {"success": true, ...}):
    hangman / word scramble → word, hint
    riddle / joke           → question, answer
    name combiner           → names[]
    typing test             → text
"""

import logging
from typing import Any, Dict, Optional

from utilityhub.services.llm_base import TextGenerationService
from utilityhub.services.writing_service import require_text

logger = logging.getLogger(__name__)


WORD_HINT_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "word": {"type": "STRING", "description": "The word or phrase to guess."},
        "hint": {"type": "STRING", "description": "A one-sentence hint."},
    },
    "required": ["word", "hint"],
}

QUESTION_ANSWER_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "question": {"type": "STRING"},
        "answer": {"type": "STRING"},
    },
    "required": ["question", "answer"],
}

NAME_LIST_SCHEMA: Dict[str, Any] = {
    "type": "ARRAY",
    "items": {"type": "STRING"},
}

# Typing tests assume roughly 40 words per minute
TYPING_WORDS_PER_MINUTE = 40
DEFAULT_TYPING_WORDS = (40, 50)


def typing_word_range(duration: Optional[int]) -> tuple:
    """Word-count range for a typing test lasting duration seconds."""
    if not duration:
        return DEFAULT_TYPING_WORDS
    target = max(20, round(duration * TYPING_WORDS_PER_MINUTE / 60))
    return target - 5, target + 5


class GameContentService:
    """Prompt construction and output contracts for the game/generator tools."""

    def __init__(self, llm: TextGenerationService):
        self.llm = llm

    async def hangman_word(
        self, category: Optional[str], length_constraint: Optional[str] = None
    ) -> Dict[str, Any]:
        category = require_text(category, "ERROR: Category is required.", "category")
        constraint = (length_constraint or "").strip()

        prompt = (
            "Generate a single, family-friendly English word or short phrase for a "
            f"hangman game, related to the category '{category}'"
            f"{' ' + constraint if constraint else ''}. "
            "Also provide a one-sentence clever hint for that word or phrase."
        )
        return await self.llm.generate_json(
            prompt, response_schema=WORD_HINT_SCHEMA, temperature=1.0
        )

    async def scramble_word(self, category: Optional[str]) -> Dict[str, Any]:
        category = require_text(category, "ERROR: Category is required.", "category")

        prompt = (
            "Generate a single, moderately difficult, family-friendly English word "
            f"related to the category '{category}', between 6 and 10 letters long. "
            "Also provide a one-sentence clever hint for that word."
        )
        return await self.llm.generate_json(prompt, response_schema=WORD_HINT_SCHEMA)

    async def riddle_or_joke(self, kind: Optional[str], category: Optional[str]) -> Dict[str, Any]:
        """kind is free text from the caller, usually "riddle" or "joke"."""
        message = "ERROR: Type and category are required."
        kind = require_text(kind, message, "type")
        category = require_text(category, message, "category")

        prompt = (
            f"Generate one unique, short, family-friendly {kind} in the '{category}' "
            "category. Make sure it's different from common examples."
        )
        return await self.llm.generate_json(
            prompt, response_schema=QUESTION_ANSWER_SCHEMA, temperature=1.0
        )

    async def combine_names(
        self, name1: Optional[str], name2: Optional[str], context: Optional[str] = None
    ) -> Dict[str, Any]:
        message = "ERROR: Both names are required."
        name1 = require_text(name1, message, "name1")
        name2 = require_text(name2, message, "name2")
        context = (context or "").strip() or "a new brand name"

        prompt = (
            f"You are a creative naming expert. Given the words '{name1}' and '{name2}' "
            f"for the context of '{context}', generate a list of 10 unique and catchy "
            "combined names."
        )
        names = await self.llm.generate_json(
            prompt, response_schema=NAME_LIST_SCHEMA, temperature=0.8
        )
        logger.info("Name combiner produced %d names", len(names))
        return {"names": names}

    async def typing_text(self, category: Optional[str], duration: Optional[int] = None) -> Dict[str, Any]:
        category = require_text(category, "ERROR: Category is required.", "category")
        low, high = typing_word_range(duration)

        prompt = (
            f"Generate one single, family-friendly paragraph of about {low}-{high} words "
            f"for a typing speed test, related to the category '{category}'. The text "
            "should be interesting, contain a mix of common English words, and use "
            "standard punctuation. Only return the generated text, with no extra commentary."
        )
        text = await self.llm.generate_text(prompt)
        return {"text": text}
