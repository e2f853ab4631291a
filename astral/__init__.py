"""
ASTRAL package exposing illustrated story generation and mutation.
"""

from .ai_generation import InlineImagePart, ReplicateImageGenerator, encode_image
from .common import (
    AstralError,
    EmptyStoryError,
    ImageGenerationError,
    ImageReadError,
    NetworkError,
    StoryParseError,
)
from .pipeline import AstralOrchestrator, DocumentStore, Illustrator
from .story_generation import (
    BlockId,
    BlockKind,
    BlockStatus,
    Chapter,
    ContentBlock,
    Document,
    MutationRequest,
    StoryGenerator,
    parse_story,
)

__all__ = [
    "AstralError",
    "AstralOrchestrator",
    "BlockId",
    "BlockKind",
    "BlockStatus",
    "Chapter",
    "ContentBlock",
    "Document",
    "DocumentStore",
    "EmptyStoryError",
    "Illustrator",
    "ImageGenerationError",
    "ImageReadError",
    "InlineImagePart",
    "MutationRequest",
    "NetworkError",
    "ReplicateImageGenerator",
    "StoryGenerator",
    "StoryParseError",
    "encode_image",
    "parse_story",
]
