"""
Orchestrates ASTRAL generation cycles: story request, live document, illustrations.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, BinaryIO, Sequence

from astral.ai_generation import (
    DEFAULT_STYLE_SUFFIX,
    InlineImagePart,
    ReplicateImageGenerator,
    encode_image,
)
from astral.common import CompletionCallable
from astral.story_generation import (
    Document,
    MutationRequest,
    StoryGenerator,
    StoryPrompt,
    build_mutation_prompt,
    build_story_prompt,
)

from .illustrator import ImageGenerator, Illustrator
from .store import DocumentListener, DocumentStore

SeedImage = InlineImagePart | str | Path | BinaryIO | bytes

logger = logging.getLogger(__name__)


class AstralOrchestrator:
    """
    High-level coordinator for generate and mutate cycles.

    Each cycle opens a new epoch on the :class:`DocumentStore`, requests one
    structured story, publishes it with every illustration pending, and then
    spawns one independent :class:`Illustrator` task per image block.
    """

    def __init__(
        self,
        *,
        story_generator: StoryGenerator | None = None,
        image_generator: ImageGenerator | None = None,
        store: DocumentStore | None = None,
        story_model: str | None = None,
        story_api_key: str | None = None,
        completion_fn: CompletionCallable | None = None,
        style_suffix: str | Sequence[str] | None = DEFAULT_STYLE_SUFFIX,
        image_kwargs: dict[str, Any] | None = None,
        listener: DocumentListener | None = None,
    ) -> None:
        self._story_generator = story_generator or StoryGenerator(
            api_key=story_api_key,
            model=story_model,
            completion_fn=completion_fn,
        )
        self._store = store or DocumentStore()
        self._illustrator = Illustrator(
            image_generator=image_generator or ReplicateImageGenerator(),
            store=self._store,
            style_suffix=style_suffix,
            image_kwargs=image_kwargs,
        )
        self._tasks: set[asyncio.Task[bool]] = set()
        if listener is not None:
            self._store.subscribe(listener)

    @property
    def store(self) -> DocumentStore:
        return self._store

    @property
    def pending_illustrations(self) -> int:
        return len(self._tasks)

    async def generate(
        self,
        seed_prompt: str | None,
        image: SeedImage | None = None,
    ) -> Document:
        """
        Start a fresh story from a text seed, an image seed, or both.
        """
        if not (seed_prompt and seed_prompt.strip()) and image is None:
            raise ValueError("A seed prompt or a seed image is required.")

        prompt = build_story_prompt(seed_prompt, has_seed_image=image is not None)
        return await self._run_cycle(prompt, image=image)

    async def mutate(self, directive: str, previous_text: str | None = None) -> Document:
        """
        Regenerate the whole story under ``directive``.

        ``previous_text`` defaults to the snapshot of the live document.
        """
        if previous_text is None:
            live = self._store.document
            if live is None:
                raise ValueError("There is no story to mutate yet.")
            request = MutationRequest.from_document(directive, live)
        else:
            request = MutationRequest(directive=directive, previous_text=previous_text)

        prompt = build_mutation_prompt(request)
        return await self.request_story(prompt)

    async def request_story(
        self,
        prompt: StoryPrompt,
        image_parts: Sequence[InlineImagePart] = (),
    ) -> Document:
        """
        Shared path for generate and mutate with already-encoded image parts.
        """
        return await self._run_cycle(prompt, image_parts=image_parts)

    async def wait_for_illustrations(self) -> None:
        """Wait until every outstanding illustration task has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _run_cycle(
        self,
        prompt: StoryPrompt,
        *,
        image: SeedImage | None = None,
        image_parts: Sequence[InlineImagePart] = (),
    ) -> Document:
        epoch = self._store.begin_cycle()
        logger.info("Starting generation cycle %d.", epoch)

        try:
            parts = list(image_parts)
            if image is not None:
                parts.append(image if isinstance(image, InlineImagePart) else encode_image(image))
            document = await self._story_generator.request_story(prompt, parts)
        except Exception as exc:
            logger.exception("Generation cycle %d failed.", epoch)
            self._store.fail(epoch, str(exc) or "An unknown error occurred during transmission.")
            raise

        if not self._store.publish(epoch, document):
            logger.info("Cycle %d was superseded before its story arrived.", epoch)
            return document

        logger.info(
            "Cycle %d published %d chapter(s); dispatching %d illustration(s).",
            epoch,
            len(document),
            len(document.image_blocks()),
        )
        self._dispatch_illustrations(epoch, document)
        return document

    def _dispatch_illustrations(self, epoch: int, document: Document) -> None:
        for block in document.image_blocks():
            task = asyncio.create_task(
                self._illustrator.illustrate(epoch, block.id, block.payload),
                name=f"illustrate-{epoch}-{block.id}",
            )
            self._tasks.add(task)
            task.add_done_callback(self._on_illustration_done)

    def _on_illustration_done(self, task: asyncio.Task[bool]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Illustration task %s crashed.", task.get_name(), exc_info=exc)
