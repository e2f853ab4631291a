"""
LiteLLM-powered async chat completion helper utilities.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, MutableMapping, Sequence

import httpx
import openai
from litellm import acompletion

from .errors import NetworkError

ChatMessage = Mapping[str, Any]

# LiteLLM provider errors derive from the OpenAI SDK error hierarchy.
_SERVICE_ERRORS: tuple[type[Exception], ...] = (
    openai.OpenAIError,
    httpx.HTTPError,
)


@dataclass
class ChatResult:
    """
    Structured response returned from an LLM chat completion.
    """

    text: str
    raw: Any


CompletionCallable = Callable[..., Awaitable[ChatResult]]


async def call_chat_completion(
    *,
    model: str,
    messages: Sequence[ChatMessage],
    temperature: float | None = None,
    max_tokens: int | None = None,
    api_key: str | None = None,
    response_format: Mapping[str, Any] | None = None,
    **extra_kwargs: Any,
) -> ChatResult:
    """
    Await LiteLLM's `acompletion` API and return the consolidated text.

    Provider and transport failures are re-raised as :class:`NetworkError`.
    """
    payload: MutableMapping[str, Any] = {
        "model": model,
        "messages": list(messages),
    }

    if temperature is not None:
        payload["temperature"] = temperature

    if max_tokens is not None:
        payload["max_tokens"] = max_tokens

    if api_key is not None:
        payload["api_key"] = api_key

    if response_format is not None:
        payload["response_format"] = dict(response_format)

    payload.update(extra_kwargs)

    try:
        response = await acompletion(**payload)
    except _SERVICE_ERRORS as exc:
        raise NetworkError(f"Story service request failed: {exc}") from exc

    try:
        message = response["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise NetworkError("Unexpected LiteLLM response format.") from exc

    text = str(message).strip() if message is not None else ""
    return ChatResult(text=text, raw=response)
