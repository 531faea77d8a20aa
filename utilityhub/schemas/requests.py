"""
UtilityHub API — Tool Request Schemas
=======================================

What:  Pydantic models for the JSON bodies of the text tools.
Why:   FastAPI parses the body into these models, so a body that is not a JSON
       object is rejected before any tool code runs.
How:   Every field is Optional. Presence is checked by the tool services, which
       raise ValidationError with the tool's own message (e.g. "ERROR: Input
       text is required."), so a missing field and a blank field look the same
       to the caller.

Field names follow the browser clients' camelCase (lengthConstraint) through
aliases; snake_case names are accepted too (populate_by_name).
"""

from typing import Optional

from pydantic import BaseModel, Field


class TextRequest(BaseModel):
    """Body for /api/grammar, /api/humanizer and /api/plagiarism."""

    text: Optional[str] = Field(default=None, description="Text to analyze or rewrite")


class ParaphraseRequest(BaseModel):
    text: Optional[str] = Field(default=None, description="Text to paraphrase")
    mode: Optional[str] = Field(
        default=None,
        description="Rewrite style, e.g. Fluent, Formal, Simple, Creative",
    )


class CategoryRequest(BaseModel):
    """Body for /api/word-scramble-ai."""

    category: Optional[str] = Field(default=None, description="Topic for the generated word")


class HangmanRequest(BaseModel):
    category: Optional[str] = Field(default=None, description="Topic for the generated word")
    length_constraint: Optional[str] = Field(
        default=None,
        alias="lengthConstraint",
        description="Free-text constraint appended to the prompt, e.g. 'with at most 8 letters'",
    )

    model_config = {"populate_by_name": True}


class RiddleJokeRequest(BaseModel):
    kind: Optional[str] = Field(
        default=None,
        alias="type",
        description="What to generate, usually 'riddle' or 'joke'",
    )
    category: Optional[str] = Field(default=None, description="Topic of the riddle or joke")

    model_config = {"populate_by_name": True}


class NameCombinerRequest(BaseModel):
    name1: Optional[str] = Field(default=None, description="First word to combine")
    name2: Optional[str] = Field(default=None, description="Second word to combine")
    context: Optional[str] = Field(
        default=None,
        description="What the names are for; defaults to 'a new brand name'",
    )


class TypingTestRequest(BaseModel):
    category: Optional[str] = Field(default=None, description="Topic of the passage")
    duration: Optional[int] = Field(
        default=None,
        ge=15,
        le=600,
        description="Test length in seconds; scales the passage length",
    )
