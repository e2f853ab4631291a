"""
Common utilities shared across ASTRAL modules.
"""

from .errors import (
    AstralError,
    EmptyStoryError,
    ImageGenerationError,
    ImageReadError,
    NetworkError,
    StoryParseError,
)
from .llm import ChatResult, CompletionCallable, call_chat_completion

__all__ = [
    "AstralError",
    "ChatResult",
    "CompletionCallable",
    "EmptyStoryError",
    "ImageGenerationError",
    "ImageReadError",
    "NetworkError",
    "StoryParseError",
    "call_chat_completion",
]
