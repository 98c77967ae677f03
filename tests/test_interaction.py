import asyncio

import pytest

from shelfsync.errors import RemoteUnavailable, ValidationError
from shelfsync.sync.entities import ShelfStatus
from shelfsync.sync.interaction import DropOutcome, DropTarget, Phase, ShelfInteraction
from shelfsync.sync.metadata_cache import MetadataCache
from shelfsync.sync.reconciler import ShelfReconciler

WTR = ShelfStatus.WANT_TO_READ
CR = ShelfStatus.CURRENTLY_READING
READ = ShelfStatus.READ


def book_ids(reconciler, status):
    return [entry.book_id for entry in reconciler.entries(status)]


@pytest.fixture
async def reconciler(shelf_store):
    for book_id in ("b1", "b2", "b3"):
        shelf_store.seed("alice", book_id, WTR)
    shelf_store.seed("alice", "b4", READ)
    reconciler = ShelfReconciler(shelf_store, viewer_id="alice")
    await reconciler.load("alice")
    shelf_store.calls.clear()
    return reconciler


@pytest.fixture
async def interaction(reconciler, book_store):
    async with MetadataCache(book_store) as metadata:
        yield ShelfInteraction(reconciler, metadata)


async def test_drop_on_other_shelf_is_optimistic_then_rolls_back(reconciler, interaction, shelf_store):
    gate = shelf_store.hold("b1")
    shelf_store.failures["b1"] = RemoteUnavailable("offline")

    interaction.grab(reconciler.find("b1"))
    interaction.hover(DropTarget(READ))
    release = asyncio.create_task(interaction.release())
    await asyncio.sleep(0)

    assert len(reconciler.entries(WTR)) == 2
    assert len(reconciler.entries(READ)) == 2
    assert interaction.phase is Phase.IDLE

    gate.set()
    with pytest.raises(RemoteUnavailable):
        await release
    assert book_ids(reconciler, WTR) == ["b1", "b2", "b3"]
    assert book_ids(reconciler, READ) == ["b4"]
    assert isinstance(reconciler.last_error, RemoteUnavailable)


async def test_drop_on_entry_in_same_shelf_reorders(reconciler, interaction, shelf_store):
    interaction.grab(reconciler.find("b3"))
    interaction.hover(DropTarget(WTR, "b1"))
    outcome = await interaction.release()

    assert outcome is DropOutcome.REORDERED
    assert book_ids(reconciler, WTR) == ["b3", "b1", "b2"]
    assert shelf_store.mutations() == []


async def test_drop_on_entry_in_other_shelf_moves(reconciler, interaction, shelf_store):
    interaction.grab(reconciler.find("b2"))
    interaction.hover(DropTarget(READ, "b4"))
    outcome = await interaction.release()

    assert outcome is DropOutcome.MOVED
    assert book_ids(reconciler, READ) == ["b4", "b2"]
    assert shelf_store.mutations() == [("upsert", "alice", "b2", READ)]


async def test_drop_on_empty_shelf_moves(reconciler, interaction):
    interaction.grab(reconciler.find("b1"))
    interaction.hover(DropTarget(CR))
    assert interaction.phase is Phase.HOVERING
    assert await interaction.release() is DropOutcome.MOVED
    assert book_ids(reconciler, CR) == ["b1"]


async def test_drop_outside_any_shelf_cancels(reconciler, interaction, shelf_store):
    interaction.grab(reconciler.find("b1"))
    interaction.hover(DropTarget(READ))
    interaction.hover(None)
    assert interaction.phase is Phase.DRAGGING

    assert await interaction.release() is DropOutcome.CANCELLED
    assert book_ids(reconciler, WTR) == ["b1", "b2", "b3"]
    assert shelf_store.mutations() == []


async def test_cancel_returns_to_idle(reconciler, interaction):
    interaction.grab(reconciler.find("b1"))
    interaction.cancel()
    assert interaction.phase is Phase.IDLE
    assert interaction.dragged is None
    assert await interaction.release() is DropOutcome.CANCELLED


async def test_grab_while_dragging_rejected(reconciler, interaction):
    interaction.grab(reconciler.find("b1"))
    with pytest.raises(ValidationError):
        interaction.grab(reconciler.find("b2"))


async def test_grab_preview_arrives_via_callback(reconciler, interaction):
    interaction.grab(reconciler.find("b1"))
    assert interaction.preview is None

    await asyncio.sleep(0.01)
    assert interaction.preview.title == "Title b1"

    interaction.cancel()
    interaction.grab(reconciler.find("b1"))
    assert interaction.preview.title == "Title b1"


async def test_directions_at_the_ends(reconciler, interaction):
    assert interaction.directions(reconciler.find("b1")) == {"down": CR}
    assert interaction.directions(reconciler.find("b4")) == {"up": CR}


async def test_move_buttons(reconciler, interaction, shelf_store):
    moved = await interaction.move(reconciler.find("b4"), "up")
    assert moved.status is CR
    assert book_ids(reconciler, CR) == ["b4"]

    with pytest.raises(ValidationError):
        await interaction.move(reconciler.find("b1"), "up")
    with pytest.raises(ValidationError):
        await interaction.move(reconciler.find("b1"), "sideways")


async def test_remove_needs_confirmation(reconciler, interaction, shelf_store):
    interaction.request_remove(reconciler.find("b2"))
    assert interaction.phase is Phase.CONFIRMING_REMOVE
    interaction.dismiss_remove()
    assert interaction.phase is Phase.IDLE
    assert shelf_store.mutations() == []

    interaction.request_remove(reconciler.find("b2"))
    await interaction.confirm_remove()
    assert book_ids(reconciler, WTR) == ["b1", "b3"]
    assert shelf_store.mutations() == [("delete", "alice", "b2")]


async def test_confirm_without_request_rejected(interaction):
    with pytest.raises(ValidationError):
        await interaction.confirm_remove()
