"""
Story generation utilities: document model, response contract, prompts, and service.
"""

from .document import (
    BlockId,
    BlockKind,
    BlockStatus,
    Chapter,
    ContentBlock,
    Document,
    MutationRequest,
)
from .prompting import (
    MUTATION_PRESETS,
    StoryPrompt,
    build_mutation_prompt,
    build_story_prompt,
)
from .schema import STORY_RESPONSE_SCHEMA, build_response_format, parse_story
from .story_service import StoryGenerator

__all__ = [
    "BlockId",
    "BlockKind",
    "BlockStatus",
    "Chapter",
    "ContentBlock",
    "Document",
    "MUTATION_PRESETS",
    "MutationRequest",
    "STORY_RESPONSE_SCHEMA",
    "StoryGenerator",
    "StoryPrompt",
    "build_mutation_prompt",
    "build_response_format",
    "build_story_prompt",
    "parse_story",
]
