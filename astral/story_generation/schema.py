"""
Structured-output contract for the story request and its validating parser.
"""

from __future__ import annotations

import json
from typing import Any, Mapping, Sequence

from astral.common import EmptyStoryError, StoryParseError

from .document import BlockId, Chapter, ContentBlock, Document

PARAGRAPH_TYPE = "paragraph"
IMAGE_PROMPT_TYPE = "image_prompt"
BLOCK_TYPES = (PARAGRAPH_TYPE, IMAGE_PROMPT_TYPE)

STORY_RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "story": {
            "type": "array",
            "description": "An array of story chapters.",
            "items": {
                "type": "object",
                "properties": {
                    "chapter_title": {
                        "type": "string",
                        "description": "The title of the chapter.",
                    },
                    "content_blocks": {
                        "type": "array",
                        "description": (
                            "An array of paragraphs and image prompts for the chapter. "
                            "Each paragraph must be followed by an image_prompt."
                        ),
                        "items": {
                            "type": "object",
                            "properties": {
                                "type": {
                                    "type": "string",
                                    "enum": list(BLOCK_TYPES),
                                },
                                "content": {
                                    "type": "string",
                                    "description": (
                                        "The text of the paragraph or the detailed "
                                        "image generation prompt."
                                    ),
                                },
                            },
                            "required": ["type", "content"],
                            "additionalProperties": False,
                        },
                    },
                },
                "required": ["chapter_title", "content_blocks"],
                "additionalProperties": False,
            },
        },
    },
    "required": ["story"],
    "additionalProperties": False,
}


def build_response_format() -> dict[str, Any]:
    """
    Wrap the story schema as a LiteLLM ``response_format`` argument.
    """
    return {
        "type": "json_schema",
        "json_schema": {
            "name": "astral_story",
            "schema": STORY_RESPONSE_SCHEMA,
            "strict": True,
        },
    }


def parse_story(raw_json: str | bytes) -> Document:
    """
    Validate a story response and convert it into a :class:`Document`.

    Paragraphs become loaded blocks; image prompts become pending image blocks
    whose payload is the prompt. Chapter and block order is kept as given.

    Raises
    ------
    StoryParseError
        If the text is not JSON or does not match :data:`STORY_RESPONSE_SCHEMA`.
    EmptyStoryError
        If the ``story`` array is empty.
    """
    try:
        parsed = json.loads(raw_json)
    except (json.JSONDecodeError, TypeError, UnicodeDecodeError) as exc:
        raise StoryParseError("Failed to parse story response as JSON.") from exc

    if not isinstance(parsed, Mapping):
        raise StoryParseError("Story response must be a JSON object.")

    chapters_data = parsed.get("story")
    if not isinstance(chapters_data, list):
        raise StoryParseError("Story response must contain a 'story' list.")

    if not chapters_data:
        raise EmptyStoryError(
            "The AI could not weave a story from this concept. Please try a different seed."
        )

    chapters = tuple(
        _convert_chapter(chapter_index, item) for chapter_index, item in enumerate(chapters_data)
    )
    return Document(chapters=chapters)


def _convert_chapter(chapter_index: int, item: Any) -> Chapter:
    if not isinstance(item, Mapping):
        raise StoryParseError(f"Chapter {chapter_index} must be an object, got {item!r}.")

    title = item.get("chapter_title")
    if not isinstance(title, str):
        raise StoryParseError(f"Chapter {chapter_index} is missing a 'chapter_title' string.")

    blocks_data = item.get("content_blocks")
    if not isinstance(blocks_data, Sequence) or isinstance(blocks_data, (str, bytes)):
        raise StoryParseError(f"Chapter {chapter_index} is missing a 'content_blocks' list.")

    blocks = tuple(
        _convert_block(BlockId(chapter_index, block_index), block)
        for block_index, block in enumerate(blocks_data)
    )
    return Chapter(title=title, blocks=blocks)


def _convert_block(block_id: BlockId, item: Any) -> ContentBlock:
    if not isinstance(item, Mapping):
        raise StoryParseError(f"Content block {block_id} must be an object, got {item!r}.")

    block_type = item.get("type")
    content = item.get("content")
    if not isinstance(content, str):
        raise StoryParseError(f"Content block {block_id} is missing a 'content' string.")

    if block_type == PARAGRAPH_TYPE:
        return ContentBlock.paragraph(block_id, content)
    if block_type == IMAGE_PROMPT_TYPE:
        return ContentBlock.image(block_id, content)

    raise StoryParseError(
        f"Content block {block_id} has unsupported type {block_type!r}; "
        f"expected one of {', '.join(BLOCK_TYPES)}."
    )
