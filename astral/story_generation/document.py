"""
Immutable document tree for one generated ASTRAL story.

Every update returns a new :class:`Document` that shares all untouched chapters
and blocks with its predecessor, so a reader holding the old value never sees
a half-applied change.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from typing import Any, Iterator

import yaml


class BlockKind(str, enum.Enum):
    PARAGRAPH = "paragraph"
    IMAGE = "image"


class BlockStatus(str, enum.Enum):
    PENDING = "pending"
    LOADED = "loaded"


@dataclass(frozen=True, order=True)
class BlockId:
    """
    Position of a block inside one document version.
    """

    chapter: int
    block: int

    def __str__(self) -> str:
        return f"{self.chapter}-{self.block}"


@dataclass(frozen=True)
class ContentBlock:
    """
    Smallest addressable unit of story content.

    ``payload`` is what the presentation layer shows: paragraph text, the
    pending image prompt, or the resolved image reference. ``source_text``
    keeps the text the story service produced and never changes.
    """

    id: BlockId
    kind: BlockKind
    payload: str
    status: BlockStatus
    source_text: str = ""
    failed: bool = False

    @classmethod
    def paragraph(cls, block_id: BlockId, text: str) -> "ContentBlock":
        return cls(
            id=block_id,
            kind=BlockKind.PARAGRAPH,
            payload=text,
            status=BlockStatus.LOADED,
            source_text=text,
        )

    @classmethod
    def image(cls, block_id: BlockId, prompt: str) -> "ContentBlock":
        return cls(
            id=block_id,
            kind=BlockKind.IMAGE,
            payload=prompt,
            status=BlockStatus.PENDING,
            source_text=prompt,
        )

    @property
    def is_pending(self) -> bool:
        return self.status is BlockStatus.PENDING

    def resolve(self, payload: str, *, failed: bool = False) -> "ContentBlock":
        """Return the loaded version of a pending image block."""
        if self.kind is not BlockKind.IMAGE:
            raise ValueError(f"Block {self.id} is not an image block.")
        if not self.is_pending:
            raise ValueError(f"Block {self.id} has already been resolved.")
        return replace(self, payload=payload, status=BlockStatus.LOADED, failed=failed)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "kind": self.kind.value,
            "status": self.status.value,
            "payload": self.payload,
            "source_text": self.source_text,
            "failed": self.failed,
        }


@dataclass(frozen=True)
class Chapter:
    title: str
    blocks: tuple[ContentBlock, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "blocks": [block.to_dict() for block in self.blocks],
        }


@dataclass(frozen=True)
class Document:
    """
    Ordered chapters produced by one generation cycle.
    """

    chapters: tuple[Chapter, ...] = field(default_factory=tuple)

    def __iter__(self) -> Iterator[Chapter]:
        return iter(self.chapters)

    def __len__(self) -> int:
        return len(self.chapters)

    def iter_blocks(self) -> Iterator[ContentBlock]:
        for chapter in self.chapters:
            yield from chapter.blocks

    def image_blocks(self) -> list[ContentBlock]:
        """Image blocks in chapter-then-block order."""
        return [block for block in self.iter_blocks() if block.kind is BlockKind.IMAGE]

    def pending_blocks(self) -> list[ContentBlock]:
        return [block for block in self.iter_blocks() if block.is_pending]

    @property
    def is_complete(self) -> bool:
        return not self.pending_blocks()

    def find_block(self, block_id: BlockId) -> ContentBlock | None:
        if not 0 <= block_id.chapter < len(self.chapters):
            return None
        blocks = self.chapters[block_id.chapter].blocks
        if not 0 <= block_id.block < len(blocks):
            return None
        return blocks[block_id.block]

    def replace_block(self, block_id: BlockId, block: ContentBlock) -> "Document":
        """
        Return a new document with the block at ``block_id`` swapped for ``block``.
        """
        if self.find_block(block_id) is None:
            raise KeyError(f"No block {block_id} in document.")
        if block.id != block_id:
            raise ValueError(f"Replacement block id {block.id} does not match {block_id}.")

        chapter = self.chapters[block_id.chapter]
        blocks = list(chapter.blocks)
        blocks[block_id.block] = block
        chapters = list(self.chapters)
        chapters[block_id.chapter] = replace(chapter, blocks=tuple(blocks))
        return Document(chapters=tuple(chapters))

    def to_plain_text(self) -> str:
        """
        Flatten the story into the text snapshot used as mutation context.
        """
        rendered: list[str] = []
        for chapter in self.chapters:
            lines = [f"Chapter: {chapter.title}"]
            lines.extend(block.source_text for block in chapter.blocks)
            rendered.append("\n".join(lines))
        return "\n\n".join(rendered)

    def to_dict(self) -> dict[str, Any]:
        return {"chapters": [chapter.to_dict() for chapter in self.chapters]}

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.to_dict(), sort_keys=False, allow_unicode=True)


@dataclass(frozen=True)
class MutationRequest:
    """
    A directive plus the text snapshot of the document it rewrites.
    """

    directive: str
    previous_text: str

    @classmethod
    def from_document(cls, directive: str, document: Document) -> "MutationRequest":
        return cls(directive=directive, previous_text=document.to_plain_text())
