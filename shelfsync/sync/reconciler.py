"""Optimistic shelf state for the user currently on screen.

Every mutation is applied to the local shelves before the remote write is
awaited. Each optimistic mutation is journaled together with the snapshot taken
just before it; when a remote write fails, the shelves are rebuilt from that
snapshot and every later mutation that has not itself failed is replayed on
top. Remote confirmations never write positions or statuses.
"""

import asyncio
import itertools
import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import UTC, datetime

from shelfsync.errors import NotFound, ShelfSyncError, Unauthorized, ValidationError
from shelfsync.sync.entities import (
    SHELF_ORDER,
    ShelfEntry,
    ShelfStatus,
    adjacent_of,
    parse_status,
)
from shelfsync.sync.events import ShelfChange, ShelfChangeFeed, Unsubscribe
from shelfsync.sync.stores import ShelfStore

logger = logging.getLogger(__name__)

Shelves = dict[ShelfStatus, list[ShelfEntry]]
Effect = Callable[[Shelves], None]


def empty_shelves() -> Shelves:
    return {status: [] for status in SHELF_ORDER}


def copy_shelves(shelves: Shelves) -> Shelves:
    return {status: list(entries) for status, entries in shelves.items()}


def locate(shelves: Shelves, book_id: str) -> tuple[ShelfStatus, int] | None:
    for status, entries in shelves.items():
        for index, entry in enumerate(entries):
            if entry.book_id == book_id:
                return status, index
    return None


def merge_change(shelves: Shelves, change: ShelfChange) -> None:
    """Fold a committed remote change into ``shelves`` in place.

    An entry that keeps its status keeps its position; a status change moves
    it to the end of the new shelf.
    """
    found = locate(shelves, change.book_id)
    if change.entry is None:
        if found is not None:
            shelves[found[0]].pop(found[1])
        return
    entry = change.entry
    if found is None:
        shelves[entry.status].append(entry)
    elif found[0] == entry.status:
        shelves[found[0]][found[1]] = entry
    else:
        shelves[found[0]].pop(found[1])
        shelves[entry.status].append(entry)


def _move_effect(book_id: str, target: ShelfStatus, now: datetime) -> Effect:
    def apply(shelves: Shelves) -> None:
        found = locate(shelves, book_id)
        if found is None:
            return
        entry = shelves[found[0]].pop(found[1])
        shelves[target].append(entry.moved_to(target, now))

    return apply


def _add_effect(entry: ShelfEntry) -> Effect:
    """Upsert ``entry``; a copy already on some shelf moves to the end of ``entry.status``."""

    def apply(shelves: Shelves) -> None:
        found = locate(shelves, entry.book_id)
        if found is None:
            shelves[entry.status].append(entry)
            return
        current = shelves[found[0]].pop(found[1])
        moved = current.moved_to(entry.status, entry.date_added or datetime.now(UTC))
        shelves[entry.status].append(replace(moved, id=entry.id))

    return apply


def _remove_effect(book_id: str) -> Effect:
    def apply(shelves: Shelves) -> None:
        found = locate(shelves, book_id)
        if found is not None:
            shelves[found[0]].pop(found[1])

    return apply


def _reorder_effect(status: ShelfStatus, book_id: str, to_index: int) -> Effect:
    def apply(shelves: Shelves) -> None:
        entries = shelves[status]
        for index, entry in enumerate(entries):
            if entry.book_id == book_id:
                entries.insert(to_index, entries.pop(index))
                return

    return apply


@dataclass(frozen=True)
class ShelfView:
    """What listeners see after every state change."""

    user_id: str | None
    shelves: Shelves
    pending: int
    error: ShelfSyncError | None

    def counts(self) -> dict[ShelfStatus, int]:
        return {status: len(entries) for status, entries in self.shelves.items()}


@dataclass
class _Mutation:
    seq: int
    book_id: str
    effect: Effect
    snapshot: Shelves
    pending: bool = True
    failed: bool = False


class ShelfReconciler:
    """Owns the three ordered shelves of one user and keeps them in step with a ShelfStore."""

    def __init__(
        self,
        store: ShelfStore,
        viewer_id: str | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self.viewer_id = viewer_id
        self._clock = clock or (lambda: datetime.now(UTC))
        self.user_id: str | None = None
        self.loaded = False
        self.last_error: ShelfSyncError | None = None
        self._shelves: Shelves = empty_shelves()
        self._journal: list[_Mutation] = []
        self._seq = itertools.count(1)
        self._epoch = 0
        self._listeners: list[Callable[[ShelfView], None]] = []
        self._feed: ShelfChangeFeed | None = None
        self._feed_unsubscribe: Unsubscribe | None = None

    # -- observation -------------------------------------------------------

    @property
    def shelves(self) -> Shelves:
        return copy_shelves(self._shelves)

    @property
    def pending(self) -> int:
        return sum(1 for mutation in self._journal if mutation.pending)

    def entries(self, status: str | ShelfStatus) -> list[ShelfEntry]:
        return list(self._shelves[parse_status(status)])

    def find(self, book_id: str) -> ShelfEntry | None:
        found = locate(self._shelves, book_id)
        if found is None:
            return None
        return self._shelves[found[0]][found[1]]

    def view(self) -> ShelfView:
        return ShelfView(self.user_id, self.shelves, self.pending, self.last_error)

    def subscribe(self, callback: Callable[[ShelfView], None]) -> Unsubscribe:
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _emit(self) -> None:
        view = self.view()
        for callback in list(self._listeners):
            callback(view)

    @staticmethod
    def adjacent_of(status: str | ShelfStatus) -> tuple[ShelfStatus | None, ShelfStatus | None]:
        return adjacent_of(status)

    # -- loading and remote changes ----------------------------------------

    async def load(self, user_id: str) -> Shelves:
        self._epoch += 1
        epoch = self._epoch
        self.user_id = user_id
        self.loaded = False
        self._journal.clear()
        self._resubscribe()
        try:
            groups = await asyncio.gather(
                *(self._store.list_memberships(user_id, status) for status in SHELF_ORDER)
            )
        except ShelfSyncError as exc:
            if epoch == self._epoch:
                logger.warning("Could not load shelves for %s: %s", user_id, exc)
                self._shelves = empty_shelves()
                self.last_error = exc
                self._emit()
            raise
        if epoch != self._epoch:
            logger.debug("Discarding superseded shelf load for %s", user_id)
            return self.shelves
        self._shelves = {status: list(entries) for status, entries in zip(SHELF_ORDER, groups)}
        self.loaded = True
        self.last_error = None
        self._emit()
        return self.shelves

    def attach(self, feed: ShelfChangeFeed) -> None:
        """Follow externally originated changes for whichever user is loaded."""
        self._feed = feed
        self._resubscribe()

    def detach(self) -> None:
        if self._feed_unsubscribe is not None:
            self._feed_unsubscribe()
        self._feed_unsubscribe = None
        self._feed = None

    def _resubscribe(self) -> None:
        if self._feed_unsubscribe is not None:
            self._feed_unsubscribe()
            self._feed_unsubscribe = None
        if self._feed is not None and self.user_id is not None:
            self._feed_unsubscribe = self._feed.subscribe(self.user_id, self.apply_remote_change)

    def apply_remote_change(self, change: ShelfChange) -> None:
        if change.user_id != self.user_id:
            return
        for mutation in self._journal:
            if not mutation.failed:
                merge_change(mutation.snapshot, change)
        # a pending local write for this book is the newer intent
        if not any(m.pending and m.book_id == change.book_id for m in self._journal):
            merge_change(self._shelves, change)
        self._emit()

    # -- mutations ---------------------------------------------------------

    def _require_owner(self) -> None:
        if self.user_id is None:
            raise ValidationError("No shelves loaded")
        if self.viewer_id is not None and self.viewer_id != self.user_id:
            raise Unauthorized(f"{self.viewer_id} cannot modify shelves of {self.user_id}")

    def _require_entry(self, book_id: str) -> tuple[ShelfStatus, int]:
        found = locate(self._shelves, book_id)
        if found is None:
            raise ValidationError(f"Book {book_id} is not on a local shelf")
        return found

    def _apply(self, book_id: str, effect: Effect) -> _Mutation:
        mutation = _Mutation(next(self._seq), book_id, effect, copy_shelves(self._shelves))
        effect(self._shelves)
        self._journal.append(mutation)
        self.last_error = None
        self._emit()
        return mutation

    def _settle(self, mutation: _Mutation) -> None:
        mutation.pending = False
        self._prune()
        self._emit()

    def _revert(self, mutation: _Mutation, base: Shelves, epoch: int) -> None:
        mutation.pending = False
        mutation.failed = True
        if epoch != self._epoch:
            return
        for later in self._journal:
            if later.seq <= mutation.seq or later.failed:
                continue
            later.snapshot = copy_shelves(base)
            later.effect(base)
        self._shelves = base
        self._prune()

    def _prune(self) -> None:
        while self._journal and not self._journal[0].pending:
            self._journal.pop(0)

    def _fail(self, exc: ShelfSyncError | None, epoch: int) -> None:
        if epoch != self._epoch:
            return
        if exc is not None:
            self.last_error = exc
        self._emit()

    async def move_to_shelf(self, entry: ShelfEntry, target: str | ShelfStatus) -> ShelfEntry:
        """Move ``entry`` to the end of ``target``, then persist the new status.

        The local move is visible to listeners before the store is called. If
        the store fails, all three shelves return to how they were before the
        call and the error is raised.
        """
        target = parse_status(target)
        self._require_owner()
        self._require_entry(entry.book_id)
        epoch = self._epoch
        mutation = self._apply(entry.book_id, _move_effect(entry.book_id, target, self._clock()))
        try:
            await self._store.upsert_membership(self.user_id, entry.book_id, target)
        except ShelfSyncError as exc:
            logger.warning("Move of %s to %s failed, rolling back: %s", entry.book_id, target, exc)
            self._revert(mutation, copy_shelves(mutation.snapshot), epoch)
            self._fail(exc, epoch)
            raise
        except asyncio.CancelledError:
            self._revert(mutation, copy_shelves(mutation.snapshot), epoch)
            self._fail(None, epoch)
            raise
        self._settle(mutation)
        return self.find(entry.book_id) or entry.moved_to(target, self._clock())

    async def add_to_shelf(self, book_id: str, status: str | ShelfStatus) -> ShelfEntry:
        """First assignment of a book; an already shelved book is moved instead."""
        status = parse_status(status)
        existing = self.find(book_id)
        if existing is not None:
            return await self.move_to_shelf(existing, status)
        self._require_owner()
        now = self._clock()
        provisional = ShelfEntry(
            id=f"local-{uuid.uuid4().hex}",
            user_id=self.user_id,
            book_id=book_id,
            status=ShelfStatus.WANT_TO_READ,
            date_added=now,
        ).moved_to(status, now)
        epoch = self._epoch
        mutation = self._apply(book_id, _add_effect(provisional))
        try:
            entry_id = await self._store.upsert_membership(self.user_id, book_id, status)
        except ShelfSyncError as exc:
            logger.warning("Adding %s to %s failed, rolling back: %s", book_id, status, exc)
            self._revert(mutation, copy_shelves(mutation.snapshot), epoch)
            self._fail(exc, epoch)
            raise
        except asyncio.CancelledError:
            self._revert(mutation, copy_shelves(mutation.snapshot), epoch)
            self._fail(None, epoch)
            raise
        if epoch == self._epoch:
            mutation.effect = _add_effect(replace(provisional, id=entry_id))
            self._adopt_id(book_id, entry_id)
        self._settle(mutation)
        return self.find(book_id) or replace(provisional, id=entry_id)

    def _adopt_id(self, book_id: str, entry_id: str) -> None:
        def adopt(shelves: Shelves) -> None:
            found = locate(shelves, book_id)
            if found is None:
                return
            entry = shelves[found[0]][found[1]]
            if entry.id != entry_id:
                shelves[found[0]][found[1]] = replace(entry, id=entry_id)

        adopt(self._shelves)
        for mutation in self._journal:
            adopt(mutation.snapshot)

    def reorder_within_shelf(self, status: str | ShelfStatus, from_index: int, to_index: int) -> None:
        """Local-only reordering; positions are never sent to the store."""
        status = parse_status(status)
        if from_index == to_index:
            return
        entries = self._shelves[status]
        if not (0 <= from_index < len(entries) and 0 <= to_index < len(entries)):
            raise ValidationError(
                f"Cannot move position {from_index} to {to_index} on a shelf of {len(entries)}"
            )
        book_id = entries[from_index].book_id
        effect = _reorder_effect(status, book_id, to_index)
        if self.pending:
            mutation = _Mutation(next(self._seq), book_id, effect, copy_shelves(self._shelves), pending=False)
            self._journal.append(mutation)
        effect(self._shelves)
        self._emit()

    async def remove(self, entry: ShelfEntry) -> None:
        """Remove ``entry`` locally, then delete it remotely.

        If the delete fails the entry comes back at the end of its former
        shelf rather than at its old position, and the error is raised.
        """
        self._require_owner()
        status, index = self._require_entry(entry.book_id)
        removed = self._shelves[status][index]
        epoch = self._epoch
        mutation = self._apply(entry.book_id, _remove_effect(entry.book_id))
        try:
            await self._store.delete_membership(self.user_id, entry.book_id)
        except NotFound:
            logger.debug("Book %s was already off the remote shelf", entry.book_id)
        except ShelfSyncError as exc:
            logger.warning("Removal of %s failed, restoring: %s", entry.book_id, exc)
            self._revert(mutation, self._reinstated(mutation.snapshot, status, removed), epoch)
            self._fail(exc, epoch)
            raise
        except asyncio.CancelledError:
            self._revert(mutation, self._reinstated(mutation.snapshot, status, removed), epoch)
            self._fail(None, epoch)
            raise
        self._settle(mutation)

    @staticmethod
    def _reinstated(snapshot: Shelves, status: ShelfStatus, entry: ShelfEntry) -> Shelves:
        base = copy_shelves(snapshot)
        found = locate(base, entry.book_id)
        if found is not None:
            base[found[0]].pop(found[1])
        base[status].append(entry)
        return base
