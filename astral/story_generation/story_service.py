"""
Service layer for requesting structured stories via LiteLLM-compatible models.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Sequence

from astral.ai_generation import InlineImagePart
from astral.common import ChatResult, CompletionCallable, call_chat_completion

from .document import Document
from .prompting import StoryPrompt
from .schema import build_response_format, parse_story

DEFAULT_STORY_MODEL = "gemini/gemini-2.5-flash"

logger = logging.getLogger(__name__)


class StoryGenerator:
    """
    Sends one story prompt (plus optional seed images) and parses the structured reply.
    """

    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str | None = None,
        completion_fn: CompletionCallable | None = None,
    ) -> None:
        self._api_key = api_key or os.getenv("GEMINI_API_KEY") or os.getenv("LITELLM_API_KEY")
        self._model = (
            model
            or os.getenv("ASTRAL_STORY_MODEL")
            or os.getenv("LITELLM_STORY_MODEL")
            or os.getenv("LITELLM_MODEL")
            or DEFAULT_STORY_MODEL
        )
        self._completion_fn: CompletionCallable = completion_fn or call_chat_completion

    @property
    def model(self) -> str:
        """Return the model identifier in use."""
        return self._model

    async def request_story(
        self,
        prompt: StoryPrompt,
        image_parts: Sequence[InlineImagePart] = (),
        *,
        temperature: float = 0.9,
        max_output_tokens: int | None = None,
        **response_kwargs: Any,
    ) -> Document:
        """
        Invoke the configured LLM and return the parsed story document.

        Raises ``NetworkError``, ``StoryParseError`` or ``EmptyStoryError``.
        """
        user_content: list[dict[str, Any]] = [{"type": "text", "text": prompt.user}]
        user_content.extend(part.as_message_part() for part in image_parts)

        messages = [
            {"role": "system", "content": prompt.system},
            {"role": "user", "content": user_content},
        ]

        logger.debug(
            "Requesting story from %s with %d seed image(s).", self._model, len(image_parts)
        )
        result: ChatResult = await self._completion_fn(
            model=self._model,
            messages=messages,
            temperature=temperature,
            max_tokens=max_output_tokens,
            api_key=self._api_key,
            response_format=build_response_format(),
            **response_kwargs,
        )

        document = parse_story(result.text)
        logger.debug(
            "Parsed story with %d chapter(s) and %d illustration slot(s).",
            len(document),
            len(document.image_blocks()),
        )
        return document
