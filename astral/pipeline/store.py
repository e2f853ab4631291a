"""
Versioned container for the single live ASTRAL document.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from astral.story_generation import BlockId, Document

DocumentListener = Callable[[str, dict[str, Any]], None]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoreSnapshot:
    """Consistent view of the store at one moment."""

    epoch: int
    document: Document | None
    error: str | None
    is_loading: bool


class DocumentStore:
    """
    Holds the live document together with the epoch of the cycle that produced it.

    Each generation cycle opens a new epoch. Writes tagged with any other epoch
    are ignored, which is how results of discarded cycles are dropped without
    aborting the requests that produce them.
    """

    def __init__(self) -> None:
        self._epoch = 0
        self._document: Document | None = None
        self._error: str | None = None
        self._is_loading = False
        self._listeners: list[DocumentListener] = []

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def document(self) -> Document | None:
        return self._document

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    def snapshot(self) -> StoreSnapshot:
        return StoreSnapshot(
            epoch=self._epoch,
            document=self._document,
            error=self._error,
            is_loading=self._is_loading,
        )

    def subscribe(self, listener: DocumentListener) -> Callable[[], None]:
        """
        Register a presentation callback and return a function that removes it.
        """
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def begin_cycle(self) -> int:
        """Discard the live document and error, and open a new epoch."""
        self._epoch += 1
        self._document = None
        self._error = None
        self._is_loading = True
        logger.debug("Opened generation epoch %d.", self._epoch)
        self._notify("cycle:started", epoch=self._epoch)
        return self._epoch

    def publish(self, epoch: int, document: Document) -> bool:
        """Make ``document`` the live document if ``epoch`` is still current."""
        if epoch != self._epoch:
            logger.debug("Dropping document from stale epoch %d (live %d).", epoch, self._epoch)
            return False
        self._document = document
        self._error = None
        self._is_loading = False
        self._notify("document:ready", epoch=epoch, document=document)
        return True

    def fail(self, epoch: int, message: str) -> bool:
        """Replace all content with an error state if ``epoch`` is still current."""
        if epoch != self._epoch:
            logger.debug("Dropping failure from stale epoch %d (live %d).", epoch, self._epoch)
            return False
        self._document = None
        self._error = message
        self._is_loading = False
        self._notify("cycle:failed", epoch=epoch, error=message)
        return True

    def resolve_block(
        self,
        epoch: int,
        block_id: BlockId,
        payload: str,
        *,
        failed: bool = False,
    ) -> bool:
        """
        Move one pending image block to loaded, if it belongs to the live epoch.

        The first resolution of a block wins; later ones are ignored.
        Returns ``True`` only when the live document changed.
        """
        if epoch != self._epoch or self._document is None:
            logger.debug("Dropping block %s from stale epoch %d (live %d).", block_id, epoch, self._epoch)
            return False

        block = self._document.find_block(block_id)
        if block is None:
            logger.warning("Block %s does not exist in epoch %d.", block_id, epoch)
            return False
        if not block.is_pending:
            logger.warning("Block %s was already resolved; ignoring duplicate result.", block_id)
            return False

        self._document = self._document.replace_block(block_id, block.resolve(payload, failed=failed))
        self._notify(
            "block:resolved",
            epoch=epoch,
            block_id=block_id,
            failed=failed,
            document=self._document,
        )
        return True

    def _notify(self, event: str, **payload: Any) -> None:
        for listener in list(self._listeners):
            listener(event, payload)
