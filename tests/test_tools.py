"""
UtilityHub API — Tool Service Unit Tests
==========================================

What:  Tests for WritingToolsService and GameContentService.
How:   The services are driven by CannedLLM, a TextGenerationService that
       records every call and returns scripted output, so these tests cover
       input rules, prompts and output contracts without any HTTP.

What we test:
    ✅ Required fields rejected with each tool's own message, before any call
    ✅ Schema, temperature and tools sent per tool
    ✅ Vendor output returned unchanged (wrapped only where the tool defines a key)
    ✅ Plagiarism recitation block gets its dedicated message
"""

from typing import Any, Dict, List, Optional

import pytest

from utilityhub.exceptions import BlockedContentError, MalformedResponseError, ValidationError
from utilityhub.services.games_service import (
    NAME_LIST_SCHEMA,
    QUESTION_ANSWER_SCHEMA,
    WORD_HINT_SCHEMA,
    GameContentService,
    typing_word_range,
)
from utilityhub.services.llm_base import TextGenerationService
from utilityhub.services.writing_service import (
    GRAMMAR_SCHEMA,
    HUMANIZER_SCHEMA,
    SEARCH_TOOLS,
    WritingToolsService,
)


class CannedLLM(TextGenerationService):
    """Returns `output` (or raises it) and records each call's arguments."""

    def __init__(self, output: Any = None):
        self.output = output
        self.calls: List[Dict[str, Any]] = []

    def _respond(self, **call: Any) -> Any:
        self.calls.append(call)
        if isinstance(self.output, Exception):
            raise self.output
        return self.output

    async def generate_text(self, prompt: str, *, temperature: Optional[float] = None, tools=None) -> str:
        return self._respond(kind="text", prompt=prompt, temperature=temperature, tools=tools)

    async def generate_json(
        self, prompt: str, *, response_schema=None, temperature: Optional[float] = None, tools=None
    ) -> Any:
        return self._respond(
            kind="json",
            prompt=prompt,
            response_schema=response_schema,
            temperature=temperature,
            tools=tools,
        )


class TestWritingTools:
    """Tests for grammar, humanizer, paraphrase and plagiarism."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", [None, "", "   "])
    async def test_grammar_requires_text(self, text):
        llm = CannedLLM()
        with pytest.raises(ValidationError) as exc_info:
            await WritingToolsService(llm).check_grammar(text)
        assert exc_info.value.message == "ERROR: Input text is required."
        assert llm.calls == []

    @pytest.mark.asyncio
    async def test_grammar_returns_vendor_output(self):
        output = {
            "analysis": {"tone": "Informal", "clarityScore": 72},
            "corrections": [
                {"from": 0, "to": 4, "mistake": "Thier", "correction": "Their", "type": "Spelling"},
            ],
        }
        llm = CannedLLM(output)

        result = await WritingToolsService(llm).check_grammar("Thier dog is happy.")

        assert result == output
        assert llm.calls[0]["response_schema"] is GRAMMAR_SCHEMA
        assert 'Text: "Thier dog is happy."' in llm.calls[0]["prompt"]

    @pytest.mark.asyncio
    async def test_humanize(self):
        llm = CannedLLM({"humanizedText": "Hey there."})
        result = await WritingToolsService(llm).humanize("Greetings, human.")
        assert result == {"humanizedText": "Hey there."}
        assert llm.calls[0]["response_schema"] is HUMANIZER_SCHEMA

    @pytest.mark.asyncio
    async def test_paraphrase_requires_text_and_mode(self):
        llm = CannedLLM("x")
        service = WritingToolsService(llm)
        for text, mode in [("Some text", None), (None, "Formal"), ("Some text", " ")]:
            with pytest.raises(ValidationError) as exc_info:
                await service.paraphrase(text, mode)
            assert exc_info.value.message == "ERROR: Input text and mode are required."
        assert llm.calls == []

    @pytest.mark.asyncio
    async def test_paraphrase_uses_plain_text_and_lowercased_mode(self):
        llm = CannedLLM("The feline rested upon the rug.")

        result = await WritingToolsService(llm).paraphrase("The cat sat on the mat.", "Formal")

        assert result == {"paraphrasedText": "The feline rested upon the rug."}
        assert llm.calls[0]["kind"] == "text"
        assert "make it formal." in llm.calls[0]["prompt"]

    @pytest.mark.asyncio
    async def test_plagiarism_uses_search_without_schema(self):
        output = {"plagiarismPercentage": 0, "uniquePercentage": 100, "matchedSources": []}
        llm = CannedLLM(output)

        result = await WritingToolsService(llm).check_plagiarism("An original sentence.")

        assert result == output
        assert llm.calls[0]["tools"] == SEARCH_TOOLS
        assert llm.calls[0]["response_schema"] is None

    @pytest.mark.asyncio
    async def test_plagiarism_missing_fields_is_malformed(self):
        llm = CannedLLM({"plagiarismPercentage": 10})
        with pytest.raises(MalformedResponseError):
            await WritingToolsService(llm).check_plagiarism("Some text")

    @pytest.mark.asyncio
    async def test_plagiarism_recitation_message(self):
        llm = CannedLLM(BlockedContentError(reason="RECITATION"))

        with pytest.raises(BlockedContentError) as exc_info:
            await WritingToolsService(llm).check_plagiarism("Four score and seven years ago")

        assert exc_info.value.message == (
            "ERROR: AI analysis was blocked. The text may be too similar to a web source."
        )

    @pytest.mark.asyncio
    async def test_plagiarism_safety_block_unchanged(self):
        llm = CannedLLM(BlockedContentError(reason="SAFETY"))
        with pytest.raises(BlockedContentError) as exc_info:
            await WritingToolsService(llm).check_plagiarism("Some text")
        assert exc_info.value.message == "ERROR: AI response blocked due to safety settings."


class TestGameContent:
    """Tests for the word games and generators."""

    @pytest.mark.asyncio
    async def test_hangman(self):
        llm = CannedLLM({"word": "giraffe", "hint": "Tallest animal"})

        result = await GameContentService(llm).hangman_word("Animals", "with at most 7 letters")

        assert result == {"word": "giraffe", "hint": "Tallest animal"}
        call = llm.calls[0]
        assert call["response_schema"] is WORD_HINT_SCHEMA
        assert call["temperature"] == 1.0
        assert "'Animals' with at most 7 letters." in call["prompt"]

    @pytest.mark.asyncio
    async def test_hangman_without_constraint(self):
        llm = CannedLLM({"word": "x", "hint": "y"})
        await GameContentService(llm).hangman_word("Food")
        assert "category 'Food'. Also" in llm.calls[0]["prompt"]

    @pytest.mark.asyncio
    async def test_category_required(self):
        llm = CannedLLM()
        service = GameContentService(llm)
        for call in (
            service.hangman_word(None),
            service.scramble_word(""),
            service.typing_text("  "),
        ):
            with pytest.raises(ValidationError) as exc_info:
                await call
            assert exc_info.value.message == "ERROR: Category is required."
        assert llm.calls == []

    @pytest.mark.asyncio
    async def test_scramble_word(self):
        llm = CannedLLM({"word": "planets", "hint": "They orbit stars"})
        result = await GameContentService(llm).scramble_word("Space")
        assert result["word"] == "planets"
        assert "between 6 and 10 letters" in llm.calls[0]["prompt"]
        assert llm.calls[0]["temperature"] is None

    @pytest.mark.asyncio
    async def test_riddle_requires_type_and_category(self):
        llm = CannedLLM()
        with pytest.raises(ValidationError) as exc_info:
            await GameContentService(llm).riddle_or_joke(None, "Science")
        assert exc_info.value.message == "ERROR: Type and category are required."

    @pytest.mark.asyncio
    async def test_riddle(self):
        output = {"question": "What has keys but no locks?", "answer": "A piano"}
        llm = CannedLLM(output)

        result = await GameContentService(llm).riddle_or_joke("riddle", "Music")

        assert result == output
        assert llm.calls[0]["response_schema"] is QUESTION_ANSWER_SCHEMA
        assert llm.calls[0]["temperature"] == 1.0
        assert "family-friendly riddle in the 'Music' category" in llm.calls[0]["prompt"]

    @pytest.mark.asyncio
    async def test_name_combiner(self):
        names = ["Sunbeam", "Moonrise"]
        llm = CannedLLM(names)

        result = await GameContentService(llm).combine_names("Sun", "Moon")

        assert result == {"names": names}
        call = llm.calls[0]
        assert call["response_schema"] is NAME_LIST_SCHEMA
        assert call["temperature"] == 0.8
        assert "context of 'a new brand name'" in call["prompt"]

    @pytest.mark.asyncio
    async def test_name_combiner_requires_both_names(self):
        with pytest.raises(ValidationError) as exc_info:
            await GameContentService(CannedLLM()).combine_names("Sun", None)
        assert exc_info.value.message == "ERROR: Both names are required."

    @pytest.mark.asyncio
    async def test_typing_text(self):
        llm = CannedLLM("The quick brown fox jumps over the lazy dog.")
        result = await GameContentService(llm).typing_text("Nature")
        assert result == {"text": "The quick brown fox jumps over the lazy dog."}
        assert llm.calls[0]["kind"] == "text"
        assert "about 40-50 words" in llm.calls[0]["prompt"]

    def test_typing_word_range(self):
        assert typing_word_range(None) == (40, 50)
        assert typing_word_range(60) == (35, 45)
        assert typing_word_range(15) == (15, 25)
        assert typing_word_range(180) == (115, 125)
