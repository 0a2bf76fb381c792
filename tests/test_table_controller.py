"""Tests for the table controller."""

import asyncio

import pytest

from usergrid.core.config import Settings
from usergrid.core.errors import InvariantViolation, RemoteError, ValidationError
from usergrid.models.row import Action, DraftState, Row, RowCreate
from usergrid.models.table_state import TableEventType, TableState
from usergrid.services.draft_editor import DRAFT_ALREADY_OPEN_MESSAGE
from usergrid.services.remote_store.memory_store import InMemoryRemoteStore
from usergrid.services.table_controller import (
    DELETE_FAILED_MESSAGE,
    DUPLICATE_EMAIL_MESSAGE,
    LOAD_FAILED_MESSAGE,
    RELOAD_BLOCKED_MESSAGE,
    TableController,
)

ALICE = {"name": "Alice Smith", "age": 30, "email": "a@x.com"}
BOB = RowCreate(name="Bob Jones", age=40, email="b@x.com")


@pytest.fixture
def store():
    """Create an empty in-memory store."""
    return InMemoryRemoteStore()


@pytest.fixture
def controller(store):
    """Create a table controller over the store."""
    return TableController(store)


async def add_row(controller, fields=None):
    controller.open_draft()
    controller.update_draft(fields or ALICE)
    return await controller.submit_draft()


def depths(controller):
    view = controller.snapshot()
    return view.undo_depth, view.redo_depth


@pytest.mark.asyncio
async def test_load_populates_rows():
    store = InMemoryRemoteStore([BOB])
    controller = TableController(store)

    rows = await controller.load()

    assert [row.email for row in rows] == ["b@x.com"]
    view = controller.snapshot()
    assert view.is_loading is False
    assert view.load_error is None


@pytest.mark.asyncio
async def test_load_failure_blocks_further_progress(controller, store):
    store.fail_next("list")

    with pytest.raises(RemoteError) as exc_info:
        await controller.load()

    assert exc_info.value.message == LOAD_FAILED_MESSAGE
    assert controller.snapshot().load_error == LOAD_FAILED_MESSAGE
    with pytest.raises(InvariantViolation):
        controller.open_draft()

    await controller.load()
    assert controller.snapshot().load_error is None
    controller.open_draft()


@pytest.mark.asyncio
async def test_add_undo_redo_scenario(controller, store):
    await controller.load()

    row = await add_row(controller)
    assert row.id == 1
    assert controller.state.rows == [row]
    assert depths(controller) == (1, 0)

    await controller.undo()
    assert store.calls[-1] == ("remove", 1)
    assert controller.state.rows == []
    assert depths(controller) == (0, 1)
    assert controller.snapshot().notice == "Add action undone!"

    await controller.redo()
    assert store.calls[-1][0] == "create"
    assert len(controller.state.rows) == 1
    restored = controller.state.rows[0]
    assert restored.id == 2
    assert restored.to_payload() == row.to_payload()
    assert depths(controller) == (1, 0)
    assert controller.snapshot().notice == "Add action redone!"


@pytest.mark.asyncio
async def test_new_rows_are_prepended():
    store = InMemoryRemoteStore([BOB])
    controller = TableController(store)
    await controller.load()

    row = await add_row(controller)

    assert [r.id for r in controller.state.rows] == [row.id, 1]
    assert controller.snapshot().notice == "User added successfully!"


@pytest.mark.asyncio
async def test_invalid_draft_changes_nothing(controller, store):
    await controller.load()
    await add_row(controller)
    await controller.undo()
    rows_before = list(controller.state.rows)
    calls_before = list(store.calls)

    controller.open_draft()
    controller.update_draft({"name": "Al", "age": 30, "email": "a@x.com"})
    with pytest.raises(ValidationError):
        await controller.submit_draft()

    view = controller.snapshot()
    assert view.error == "Please enter a valid name (at least 3 characters)"
    assert view.rows == rows_before
    assert depths(controller) == (0, 1)
    assert store.calls == calls_before
    assert view.draft_state == DraftState.EDITING
    assert view.draft.name == "Al"
    assert view.draft.age == "30"


@pytest.mark.asyncio
async def test_duplicate_email_is_rejected_without_remote_call():
    store = InMemoryRemoteStore([RowCreate(name="Bob Jones", age=40, email="a@x.com")])
    controller = TableController(store)
    await controller.load()

    controller.open_draft()
    controller.update_draft({**ALICE, "email": "  a@x.com "})
    with pytest.raises(InvariantViolation) as exc_info:
        await controller.submit_draft()

    assert exc_info.value.message == DUPLICATE_EMAIL_MESSAGE
    assert controller.snapshot().error == DUPLICATE_EMAIL_MESSAGE
    assert store.calls == [("list", None)]
    assert controller.snapshot().draft_state == DraftState.EDITING


@pytest.mark.asyncio
async def test_duplicate_email_check_can_be_disabled():
    store = InMemoryRemoteStore([RowCreate(name="Bob Jones", age=40, email="a@x.com")])
    controller = TableController.from_settings(
        store, Settings(duplicate_email_check=False, name_min_length=5)
    )
    await controller.load()

    row = await add_row(controller)

    assert row.email == "a@x.com"
    assert len(controller.state.rows) == 2


@pytest.mark.asyncio
async def test_second_open_reports_and_keeps_draft(controller):
    await controller.load()
    controller.open_draft()
    controller.update_draft_field("name", "Alice")

    with pytest.raises(InvariantViolation):
        controller.open_draft()

    view = controller.snapshot()
    assert view.error == DRAFT_ALREADY_OPEN_MESSAGE
    assert view.draft.name == "Alice"


@pytest.mark.asyncio
async def test_save_failure_keeps_draft_and_history(controller, store):
    await controller.load()
    controller.open_draft()
    controller.update_draft(ALICE)
    store.fail_next("create")

    with pytest.raises(RemoteError):
        await controller.submit_draft()

    view = controller.snapshot()
    assert view.error == "Failed to save user. Please try again."
    assert view.rows == []
    assert view.draft.email == "a@x.com"
    assert depths(controller) == (0, 0)

    await controller.submit_draft()
    assert len(controller.state.rows) == 1
    assert controller.snapshot().error is None


@pytest.mark.asyncio
async def test_delete_is_two_phase():
    store = InMemoryRemoteStore([BOB])
    controller = TableController(store)
    await controller.load()
    events = []
    controller.subscribe(events.append)

    row = controller.request_delete("1")

    assert controller.snapshot().pending_delete == row
    assert events[-1].type == TableEventType.DELETE_REQUESTED
    assert events[-1].row == row
    assert store.calls == [("list", None)]

    controller.dismiss_delete()
    assert controller.snapshot().pending_delete is None
    assert len(controller.state.rows) == 1

    controller.request_delete(1)
    await controller.confirm_delete(1)

    view = controller.snapshot()
    assert view.rows == []
    assert view.pending_delete is None
    assert view.undo_stack == [Action.delete(row)]
    assert view.notice == "User deleted successfully!"


@pytest.mark.asyncio
async def test_delete_then_undo_then_redo():
    store = InMemoryRemoteStore([BOB])
    controller = TableController(store)
    await controller.load()

    await controller.confirm_delete(1)
    await controller.undo()

    restored = controller.state.rows[0]
    assert restored.id == 2
    assert restored.to_payload() == BOB
    assert controller.snapshot().notice == "Delete action undone!"

    await controller.redo()
    assert controller.state.rows == []
    assert store.calls[-1] == ("remove", 2)
    assert depths(controller) == (1, 0)


@pytest.mark.asyncio
async def test_direct_mutation_clears_redo(controller):
    await controller.load()
    await add_row(controller)
    await controller.undo()
    assert depths(controller) == (0, 1)

    await add_row(controller, {"name": "Carol King", "age": 25, "email": "c@x.com"})

    assert depths(controller) == (1, 0)
    assert controller.snapshot().can_redo is False


@pytest.mark.asyncio
async def test_failed_delete_changes_nothing():
    store = InMemoryRemoteStore([BOB])
    controller = TableController(store)
    await controller.load()
    store.fail_next("remove")

    with pytest.raises(RemoteError) as exc_info:
        await controller.confirm_delete(1)

    assert exc_info.value.message == DELETE_FAILED_MESSAGE
    assert len(controller.state.rows) == 1
    assert depths(controller) == (0, 0)


@pytest.mark.asyncio
async def test_delete_unknown_row_is_rejected(controller):
    await controller.load()

    with pytest.raises(InvariantViolation):
        controller.request_delete(42)
    with pytest.raises(InvariantViolation):
        await controller.confirm_delete(42)


@pytest.mark.asyncio
async def test_confirm_delete_twice_in_flight_is_rejected():
    store = InMemoryRemoteStore([BOB])
    controller = TableController(store)
    await controller.load()
    gate = asyncio.Event()
    remove = store.remove

    async def slow_remove(row_id):
        await gate.wait()
        await remove(row_id)

    store.remove = slow_remove
    task = asyncio.create_task(controller.confirm_delete(1))
    await asyncio.sleep(0)

    with pytest.raises(InvariantViolation):
        await controller.confirm_delete(1)

    gate.set()
    await task
    assert controller.state.rows == []


@pytest.mark.asyncio
async def test_failed_undo_keeps_rows_and_stacks(controller, store):
    await controller.load()
    row = await add_row(controller)
    store.fail_next("remove")

    with pytest.raises(RemoteError):
        await controller.undo()

    view = controller.snapshot()
    assert view.rows == [row]
    assert depths(controller) == (1, 0)
    assert view.error == "Failed to undo action. Please try again."
    assert view.can_undo is True


@pytest.mark.asyncio
async def test_undo_redo_on_empty_history_are_silent(controller, store):
    await controller.load()

    assert await controller.undo() is None
    assert await controller.redo() is None

    assert store.calls == [("list", None)]
    assert controller.snapshot().error is None


@pytest.mark.asyncio
async def test_controls_disabled_while_replaying(controller, store):
    await controller.load()
    await add_row(controller)
    gate = asyncio.Event()
    remove = store.remove

    async def slow_remove(row_id):
        await gate.wait()
        await remove(row_id)

    store.remove = slow_remove
    task = asyncio.create_task(controller.undo())
    await asyncio.sleep(0)

    view = controller.snapshot()
    assert view.is_replaying is True
    assert view.can_undo is False
    with pytest.raises(InvariantViolation):
        await controller.undo()

    gate.set()
    await task
    assert controller.snapshot().can_redo is True


@pytest.mark.asyncio
async def test_unsubscribe_stops_events(controller):
    await controller.load()
    events = []
    unsubscribe = controller.subscribe(events.append)

    controller.open_draft()
    unsubscribe()
    controller.cancel_draft()
    with pytest.raises(InvariantViolation):
        controller.update_draft({"name": "x"})

    assert events == []


@pytest.mark.asyncio
async def test_failed_replays_of_delete_keep_rows_and_stacks():
    store = InMemoryRemoteStore([BOB])
    controller = TableController(store)
    await controller.load()
    await controller.confirm_delete(1)

    store.fail_next("create")
    with pytest.raises(RemoteError):
        await controller.undo()

    assert controller.state.rows == []
    assert depths(controller) == (1, 0)
    assert controller.snapshot().is_replaying is False

    await controller.undo()
    restored = list(controller.state.rows)
    assert len(restored) == 1
    store.fail_next("remove")
    with pytest.raises(RemoteError):
        await controller.redo()

    assert controller.state.rows == restored
    assert depths(controller) == (0, 1)
    assert controller.snapshot().is_replaying is False
    assert controller.snapshot().error == "Failed to redo action. Please try again."


@pytest.mark.asyncio
async def test_reload_rejected_while_save_pending(controller, store):
    await controller.load()
    gate = asyncio.Event()
    create = store.create

    async def slow_create(payload):
        row = await create(payload)
        await gate.wait()
        return row

    store.create = slow_create
    controller.open_draft()
    controller.update_draft(ALICE)
    task = asyncio.create_task(controller.submit_draft())
    await asyncio.sleep(0)

    with pytest.raises(InvariantViolation) as exc_info:
        await controller.load()

    assert exc_info.value.message == RELOAD_BLOCKED_MESSAGE
    gate.set()
    row = await task
    assert controller.state.rows == [row]

    await controller.load()
    assert controller.state.rows == [row]


@pytest.mark.asyncio
async def test_reload_rejected_while_undo_pending(controller, store):
    await controller.load()
    await add_row(controller)
    gate = asyncio.Event()
    remove = store.remove

    async def slow_remove(row_id):
        await gate.wait()
        await remove(row_id)

    store.remove = slow_remove
    task = asyncio.create_task(controller.undo())
    await asyncio.sleep(0)

    with pytest.raises(InvariantViolation):
        await controller.load()

    gate.set()
    await task
    assert controller.state.rows == []


def test_prepend_replaces_row_with_same_id():
    state = TableState()
    first = Row(id=1, name="Alice Smith", age=30, email="a@x.com")
    other = Row(id=2, name="Bob Jones", age=40, email="b@x.com")
    state.prepend(first)
    state.prepend(other)

    state.prepend(first)

    assert [row.id for row in state.rows] == [1, 2]


@pytest.mark.asyncio
async def test_duplicate_email_ignores_case():
    store = InMemoryRemoteStore([RowCreate(name="Bob Jones", age=40, email="a@x.com")])
    controller = TableController(store)
    await controller.load()

    controller.open_draft()
    controller.update_draft({**ALICE, "email": "A@X.com"})
    with pytest.raises(InvariantViolation) as exc_info:
        await controller.submit_draft()

    assert exc_info.value.message == DUPLICATE_EMAIL_MESSAGE
    assert store.calls == [("list", None)]
