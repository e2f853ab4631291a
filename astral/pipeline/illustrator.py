"""
Resolves pending illustration slots, one image request per block.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Protocol, Sequence

from astral.ai_generation import DEFAULT_STYLE_SUFFIX, build_illustration_prompt
from astral.story_generation import BlockId

from .store import DocumentStore

IMAGE_ERROR_MARKER = "Error: Image could not be generated."

logger = logging.getLogger(__name__)


class ImageGenerator(Protocol):
    def generate_image(self, prompt: str, **kwargs: Any) -> Awaitable[str]: ...


class Illustrator:
    """
    Turns an image prompt into an image and writes it into the live document.

    Failures resolve the block to :data:`IMAGE_ERROR_MARKER`; nothing is retried.
    """

    def __init__(
        self,
        *,
        image_generator: ImageGenerator,
        store: DocumentStore,
        style_suffix: str | Sequence[str] | None = DEFAULT_STYLE_SUFFIX,
        image_kwargs: dict[str, Any] | None = None,
    ) -> None:
        self._image_generator = image_generator
        self._store = store
        self._style_suffix = style_suffix
        self._image_kwargs = dict(image_kwargs or {})

    async def illustrate(self, epoch: int, block_id: BlockId, prompt_text: str) -> bool:
        """
        Generate the image for ``block_id`` and apply it if ``epoch`` is still live.

        Returns whether the live document was updated.
        """
        try:
            prompt = build_illustration_prompt(prompt_text, style_suffix=self._style_suffix)
            image_reference = await self._image_generator.generate_image(prompt, **self._image_kwargs)
        except Exception:
            # Failures are scoped to this one block.
            logger.exception("Failed to generate image for block %s.", block_id)
            return self._store.resolve_block(epoch, block_id, IMAGE_ERROR_MARKER, failed=True)

        return self._store.resolve_block(epoch, block_id, image_reference)
