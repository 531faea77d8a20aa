"""
UtilityHub API — Abstract Text Generation Interface
=====================================================

What:  Abstract base class defining the contract the text tools depend on.
Why:   The tool services (grammar, humanizer, word games, ...) only need
       "send a prompt, get text or JSON back". Keeping them behind this
       interface lets tests drive them with a canned implementation and keeps
       every Gemini-specific detail inside GeminiService.
How:   Concrete implementations inherit from TextGenerationService and
       implement generate_text() and generate_json().
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


class TextGenerationService(ABC):
    """
    Abstract interface for prompt-in, content-out generative vendors.

    Contract:
        - Implementations perform exactly one logical vendor call per method
          invocation (internally retried per their RetryPolicy)
        - All vendor-specific failures surface as UpstreamError subclasses
        - Results are returned as produced; shape checks are loose and a
          malformed result raises MalformedResponseError instead of being repaired
    """

    @abstractmethod
    async def generate_text(
        self,
        prompt: str,
        *,
        temperature: Optional[float] = None,
        tools: Optional[List[Dict[str, Any]]] = None,
    ) -> str:
        """
        Generate free-form text for a prompt.

        Returns:
            The generated text, stripped of surrounding whitespace.

        Raises:
            BlockedContentError: The vendor withheld the output.
            MalformedResponseError: The response carried no usable text.
            UpstreamError: Any other vendor failure.
        """
        ...

    @abstractmethod
    async def generate_json(
        self,
        prompt: str,
        *,
        response_schema: Optional[Dict[str, Any]] = None,
        temperature: Optional[float] = None,
        tools: Optional[List[Dict[str, Any]]] = None,
    ) -> Any:
        """
        Generate a JSON value for a prompt, optionally constrained by a schema.

        Args:
            response_schema: Vendor schema (OBJECT / ARRAY / STRING type tags,
                properties, required list). When given, the result is checked
                loosely against it (top-level kind and required keys).

        Raises:
            MalformedResponseError: Output was not JSON or missed required keys.
            BlockedContentError / UpstreamError: As for generate_text().
        """
        ...
