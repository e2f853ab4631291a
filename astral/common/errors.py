"""
Error taxonomy shared by the ASTRAL generation pipeline.

Story-level errors (everything except :class:`ImageGenerationError`) abort a
whole generation cycle. Image errors are scoped to a single illustration slot.
"""

from __future__ import annotations


class AstralError(Exception):
    """Base class for every error raised by the ASTRAL pipeline."""


class ImageReadError(AstralError, OSError):
    """The user-supplied seed image could not be read."""


class NetworkError(AstralError):
    """The generation service was unreachable or answered with an error."""


class StoryParseError(AstralError, ValueError):
    """The story response does not match the structured-output contract."""


class EmptyStoryError(AstralError, ValueError):
    """The story response was well-formed but contained no chapters."""


class ImageGenerationError(AstralError):
    """A single illustration request failed."""
