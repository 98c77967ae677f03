"""Gesture and button handling for the shelf board.

Input devices are not modelled here: whatever recognises pointer or keyboard
gestures calls ``grab``/``hover``/``release`` on a ShelfInteraction, which
turns a completed gesture into exactly one reconciler call.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

from shelfsync.errors import ValidationError
from shelfsync.sync.entities import BookMetadata, ShelfEntry, ShelfStatus, adjacent_of
from shelfsync.sync.metadata_cache import MetadataCache
from shelfsync.sync.reconciler import ShelfReconciler

logger = logging.getLogger(__name__)


class Phase(StrEnum):
    IDLE = "idle"
    DRAGGING = "dragging"
    HOVERING = "hovering"
    CONFIRMING_REMOVE = "confirming-remove"


class DropOutcome(StrEnum):
    REORDERED = "reordered"
    MOVED = "moved"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class DropTarget:
    """A shelf container, optionally narrowed to the entry under the pointer."""

    status: ShelfStatus
    book_id: str | None = None


DIRECTIONS = ("up", "down")


class ShelfInteraction:
    def __init__(self, reconciler: ShelfReconciler, metadata: MetadataCache) -> None:
        self._reconciler = reconciler
        self._metadata = metadata
        self.phase = Phase.IDLE
        self.dragged: ShelfEntry | None = None
        self.target: DropTarget | None = None
        self.preview: BookMetadata | None = None
        self.pending_removal: ShelfEntry | None = None

    # -- drag and drop -----------------------------------------------------

    def grab(self, entry: ShelfEntry) -> None:
        if self.phase is not Phase.IDLE:
            raise ValidationError(f"Cannot start a drag while {self.phase}")
        self.phase = Phase.DRAGGING
        self.dragged = entry
        self.target = None
        self.preview = self._metadata.get(entry.book_id, callback=self._preview_loaded(entry))

    def _preview_loaded(self, entry: ShelfEntry) -> Callable[[BookMetadata | None], None]:
        def deliver(metadata: BookMetadata | None) -> None:
            if self.dragged is not None and self.dragged.book_id == entry.book_id:
                self.preview = metadata

        return deliver

    def hover(self, target: DropTarget | None) -> None:
        if self.phase not in (Phase.DRAGGING, Phase.HOVERING):
            return
        self.target = target
        self.phase = Phase.DRAGGING if target is None else Phase.HOVERING

    def cancel(self) -> None:
        self._reset()

    async def release(self) -> DropOutcome:
        """Finish the gesture over the current target."""
        if self.phase not in (Phase.DRAGGING, Phase.HOVERING):
            return DropOutcome.CANCELLED
        entry, target = self.dragged, self.target
        self._reset()
        if target is None:
            return DropOutcome.CANCELLED

        current = self._reconciler.find(entry.book_id)
        if current is None:
            logger.debug("Dropped entry %s is no longer shelved", entry.book_id)
            return DropOutcome.CANCELLED

        if target.book_id is not None and target.status == current.status:
            shelf = self._reconciler.entries(current.status)
            from_index = self._index_of(shelf, current.book_id)
            to_index = self._index_of(shelf, target.book_id)
            if to_index is None:
                return DropOutcome.CANCELLED
            self._reconciler.reorder_within_shelf(current.status, from_index, to_index)
            return DropOutcome.REORDERED

        await self._reconciler.move_to_shelf(current, target.status)
        return DropOutcome.MOVED

    @staticmethod
    def _index_of(entries: list[ShelfEntry], book_id: str) -> int | None:
        for index, entry in enumerate(entries):
            if entry.book_id == book_id:
                return index
        return None

    def _reset(self) -> None:
        self.phase = Phase.IDLE
        self.dragged = None
        self.target = None
        self.preview = None

    # -- directional buttons -----------------------------------------------

    def directions(self, entry: ShelfEntry) -> dict[str, ShelfStatus]:
        """Buttons to offer for ``entry``; a missing neighbour means no button."""
        above, below = adjacent_of(entry.status)
        offered = {}
        if above is not None:
            offered["up"] = above
        if below is not None:
            offered["down"] = below
        return offered

    async def move(self, entry: ShelfEntry, direction: str) -> ShelfEntry:
        if direction not in DIRECTIONS:
            raise ValidationError(f"Unknown direction: {direction!r}")
        current = self._reconciler.find(entry.book_id) or entry
        target = self.directions(current).get(direction)
        if target is None:
            raise ValidationError(f"No shelf {direction} of {current.status}")
        return await self._reconciler.move_to_shelf(current, target)

    # -- removal -----------------------------------------------------------

    def request_remove(self, entry: ShelfEntry) -> None:
        if self.phase is not Phase.IDLE:
            raise ValidationError(f"Cannot ask to remove while {self.phase}")
        self.phase = Phase.CONFIRMING_REMOVE
        self.pending_removal = entry

    def dismiss_remove(self) -> None:
        if self.phase is Phase.CONFIRMING_REMOVE:
            self.phase = Phase.IDLE
            self.pending_removal = None

    async def confirm_remove(self) -> None:
        if self.phase is not Phase.CONFIRMING_REMOVE or self.pending_removal is None:
            raise ValidationError("No removal awaiting confirmation")
        entry = self.pending_removal
        self.phase = Phase.IDLE
        self.pending_removal = None
        await self._reconciler.remove(entry)
