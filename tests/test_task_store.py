# tests/test_task_store.py

from __future__ import annotations

import json
from datetime import date, datetime, timezone

import pytest

from big_frogs.tasks.reminder_scheduler import ReminderScheduler
from big_frogs.tasks.task_codec import decode_state, encode_state
from big_frogs.tasks.task_models import DailyTask, FrogTask, PersistedState
from big_frogs.tasks.task_store import BIG_FROGS_KEY, DAILY_TASKS_KEY, BigFrogStore, DailyTaskStore

from .fakes import FakeClock, FakeNotifier, MemoryStorage

TODAY = date(2024, 5, 1)
YESTERDAY = date(2024, 4, 30)


def _seed(storage: MemoryStorage, key: str, state: PersistedState) -> None:
    storage.data[key] = encode_state(state)


def _stored(storage: MemoryStorage, key: str, task_type) -> PersistedState:
    return decode_state(storage.data[key], task_type)


# ---- load / rollover ----


@pytest.mark.asyncio
async def test_first_load_persists_empty_state_for_today(storage: MemoryStorage, clock: FakeClock) -> None:
    store = BigFrogStore(storage, clock=clock)

    result = await store.load()

    assert result.ok
    assert result.rolled_over
    assert result.tasks == ()
    assert _stored(storage, BIG_FROGS_KEY, FrogTask) == PersistedState(last_date=TODAY, tasks=())


@pytest.mark.asyncio
async def test_second_load_same_day_does_not_write(storage: MemoryStorage, clock: FakeClock) -> None:
    store = BigFrogStore(storage, clock=clock)
    await store.load()
    writes = len(storage.set_calls)

    result = await BigFrogStore(storage, clock=clock).load()

    assert result.ok
    assert not result.rolled_over
    assert len(storage.set_calls) == writes


@pytest.mark.asyncio
async def test_load_carries_unfinished_frogs_into_today(storage: MemoryStorage, clock: FakeClock) -> None:
    _seed(
        storage,
        BIG_FROGS_KEY,
        PersistedState(
            last_date=YESTERDAY,
            tasks=(
                FrogTask(id="a", text="A", priority=3),
                FrogTask(id="b", text="B", priority=1, completed=True),
                FrogTask(id="c", text="C", priority=5),
            ),
        ),
    )

    result = await BigFrogStore(storage, clock=clock).load()

    assert result.ok and result.rolled_over
    assert [(t.id, t.priority, t.completed) for t in result.tasks] == [("a", 1, False), ("c", 1, False)]
    assert _stored(storage, BIG_FROGS_KEY, FrogTask).tasks == result.tasks
    assert _stored(storage, BIG_FROGS_KEY, FrogTask).last_date == TODAY


@pytest.mark.asyncio
async def test_malformed_stored_date_forces_rollover(storage: MemoryStorage, clock: FakeClock) -> None:
    storage.data[BIG_FROGS_KEY] = json.dumps(
        {
            "lastDate": "05/01/2024",
            "tasks": [
                {"id": "a", "text": "A", "priority": 4, "completed": False},
                {"id": "b", "text": "B", "priority": 2, "completed": True},
            ],
        }
    ).encode("utf-8")

    result = await BigFrogStore(storage, clock=clock).load()

    assert result.rolled_over
    assert result.tasks == (FrogTask(id="a", text="A", priority=1),)


@pytest.mark.asyncio
async def test_read_failure_starts_from_empty_state(storage: MemoryStorage, clock: FakeClock) -> None:
    storage.fail_get = True

    result = await DailyTaskStore(storage, clock=clock).load()

    assert result.ok
    assert result.tasks == ()


@pytest.mark.asyncio
async def test_unreadable_document_starts_from_empty_state(storage: MemoryStorage, clock: FakeClock) -> None:
    storage.data[DAILY_TASKS_KEY] = b"{definitely not json"

    result = await DailyTaskStore(storage, clock=clock).load()

    assert result.ok
    assert result.tasks == ()


@pytest.mark.asyncio
async def test_failed_rollover_write_presents_nothing(storage: MemoryStorage, clock: FakeClock) -> None:
    _seed(storage, BIG_FROGS_KEY, PersistedState(last_date=YESTERDAY, tasks=(FrogTask(id="a", text="A"),)))
    storage.fail_set = True
    store = BigFrogStore(storage, clock=clock)

    result = await store.load()

    assert not result.ok
    assert result.error
    assert result.tasks == ()
    assert not store.loaded
    # Stored state is untouched and will roll over on the next successful load.
    assert _stored(storage, BIG_FROGS_KEY, FrogTask).last_date == YESTERDAY


@pytest.mark.asyncio
async def test_load_after_midnight_rolls_over_again(storage: MemoryStorage, clock: FakeClock) -> None:
    store = BigFrogStore(storage, clock=clock)
    await store.load()
    await store.add("Finish slides", priority=3)
    done = await store.add("Book flights", priority=2)
    await store.toggle(done.tasks[0].id)

    clock.advance(days=1)
    result = await store.load()

    assert result.rolled_over
    assert [(t.text, t.priority) for t in result.tasks] == [("Finish slides", 1)]


# ---- add / toggle / present ----


@pytest.mark.asyncio
async def test_frogs_present_in_stable_priority_order(storage: MemoryStorage, clock: FakeClock) -> None:
    _seed(
        storage,
        BIG_FROGS_KEY,
        PersistedState(
            last_date=TODAY,
            tasks=(
                FrogTask(id="A", text="A", priority=2),
                FrogTask(id="B", text="B", priority=1),
                FrogTask(id="C", text="C", priority=1),
            ),
        ),
    )

    result = await BigFrogStore(storage, clock=clock).load()

    assert [t.id for t in result.tasks] == ["B", "C", "A"]


@pytest.mark.asyncio
async def test_add_blank_text_is_a_no_op(storage: MemoryStorage, clock: FakeClock) -> None:
    store = BigFrogStore(storage, clock=clock)
    await store.load()
    writes = len(storage.set_calls)

    result = await store.add("   ")

    assert result.ok
    assert result.tasks == ()
    assert len(storage.set_calls) == writes


@pytest.mark.asyncio
async def test_add_builds_task_with_defaults(storage: MemoryStorage, clock: FakeClock) -> None:
    store = BigFrogStore(storage, clock=clock)

    first = await store.add("  Write the report  ")
    second = await store.add("Call the bank", priority="not a number")
    third = await store.add("Plan the week", priority=0)

    assert first.ok and second.ok and third.ok
    tasks = third.tasks
    assert [t.text for t in tasks] == ["Write the report", "Call the bank", "Plan the week"]
    assert all(t.priority == 1 and not t.completed for t in tasks)
    assert len({t.id for t in tasks}) == 3


@pytest.mark.asyncio
async def test_add_keeps_explicit_priority_and_persists(storage: MemoryStorage, clock: FakeClock) -> None:
    store = BigFrogStore(storage, clock=clock)
    await store.add("Low", priority=5)
    result = await store.add("High", priority=1)

    assert [t.text for t in result.tasks] == ["High", "Low"]
    stored = _stored(storage, BIG_FROGS_KEY, FrogTask)
    assert stored.last_date == TODAY
    assert sorted(stored.tasks, key=lambda t: t.priority) == list(result.tasks)


@pytest.mark.asyncio
async def test_toggle_flips_and_survives_reload(storage: MemoryStorage, clock: FakeClock) -> None:
    store = DailyTaskStore(storage, clock=clock)
    added = await store.add("Stretch")
    task_id = added.tasks[0].id

    toggled = await store.toggle(task_id)
    assert toggled.tasks[0].completed is True

    reloaded = await DailyTaskStore(storage, clock=clock).load()
    assert reloaded.tasks == toggled.tasks


@pytest.mark.asyncio
async def test_toggle_unknown_id_leaves_tasks_unchanged(storage: MemoryStorage, clock: FakeClock) -> None:
    store = BigFrogStore(storage, clock=clock)
    before = await store.add("Only frog", priority=2)

    result = await store.toggle("does-not-exist")

    assert result.ok
    assert result.tasks == before.tasks


@pytest.mark.asyncio
async def test_write_failure_keeps_previous_view(storage: MemoryStorage, clock: FakeClock) -> None:
    store = BigFrogStore(storage, clock=clock)
    before = await store.add("Persisted frog")
    snapshot = dict(storage.data)

    storage.fail_set = True
    result = await store.add("Lost frog")

    assert not result.ok
    assert "disk full" in (result.error or "")
    assert result.tasks == before.tasks
    assert store.tasks == before.tasks
    assert storage.data == snapshot


@pytest.mark.asyncio
async def test_rejected_write_keeps_previous_view(storage: MemoryStorage, clock: FakeClock) -> None:
    store = DailyTaskStore(storage, clock=clock)
    before = await store.add("Water plants")

    storage.reject_set = True
    result = await store.toggle(before.tasks[0].id)

    assert not result.ok
    assert result.tasks == before.tasks
    assert result.tasks[0].completed is False


@pytest.mark.asyncio
async def test_mutation_before_load_loads_first(storage: MemoryStorage, clock: FakeClock) -> None:
    _seed(storage, DAILY_TASKS_KEY, PersistedState(last_date=YESTERDAY, tasks=(DailyTask(id="a", text="A", completed=True),)))
    store = DailyTaskStore(storage, clock=clock)

    result = await store.add("B")

    assert [(t.text, t.completed) for t in result.tasks] == [("A", False), ("B", False)]


@pytest.mark.asyncio
async def test_add_after_failed_load_does_not_overwrite_stored_tasks(storage: MemoryStorage, clock: FakeClock) -> None:
    _seed(storage, BIG_FROGS_KEY, PersistedState(last_date=YESTERDAY, tasks=(FrogTask(id="k", text="Keep me"),)))
    # Both rollover write-backs fail (initial load, reload inside add); later writes would succeed.
    storage.fail_next_sets = 2
    store = BigFrogStore(storage, clock=clock)
    assert not (await store.load()).ok

    result = await store.add("new")

    assert not result.ok
    assert result.error == "state not loaded"
    assert result.tasks == ()
    stored = _stored(storage, BIG_FROGS_KEY, FrogTask)
    assert stored.last_date == YESTERDAY
    assert [t.text for t in stored.tasks] == ["Keep me"]


@pytest.mark.asyncio
async def test_toggle_after_failed_load_writes_nothing(storage: MemoryStorage, clock: FakeClock) -> None:
    _seed(storage, DAILY_TASKS_KEY, PersistedState(last_date=YESTERDAY, tasks=(DailyTask(id="a", text="A", completed=True),)))
    storage.fail_next_sets = 1
    store = DailyTaskStore(storage, clock=clock)

    result = await store.toggle("a")

    assert not result.ok
    assert storage.set_calls == [DAILY_TASKS_KEY]
    assert _stored(storage, DAILY_TASKS_KEY, DailyTask).tasks == (DailyTask(id="a", text="A", completed=True),)


@pytest.mark.asyncio
async def test_mutation_on_a_new_day_rolls_over_first(storage: MemoryStorage, clock: FakeClock) -> None:
    store = DailyTaskStore(storage, clock=clock)
    added = await store.add("Stretch")
    await store.toggle(added.tasks[0].id)

    clock.advance(days=1)
    result = await store.add("Read")

    assert result.ok
    assert [(t.text, t.completed) for t in result.tasks] == [("Stretch", False), ("Read", False)]
    assert _stored(storage, DAILY_TASKS_KEY, DailyTask).last_date == date(2024, 5, 2)


@pytest.mark.asyncio
async def test_toggle_on_a_new_day_drops_yesterdays_finished_frogs(storage: MemoryStorage, clock: FakeClock) -> None:
    store = BigFrogStore(storage, clock=clock)
    await store.add("Done yesterday")
    open_frog = await store.add("Still open", priority=4)
    done_id = next(t.id for t in open_frog.tasks if t.text == "Done yesterday")
    open_id = next(t.id for t in open_frog.tasks if t.text == "Still open")
    await store.toggle(done_id)

    clock.advance(days=1)
    result = await store.toggle(open_id)

    assert [(t.text, t.priority, t.completed) for t in result.tasks] == [("Still open", 1, True)]


# ---- daily reminder integration ----


@pytest.mark.asyncio
async def test_daily_store_drives_reminder(storage: MemoryStorage, clock: FakeClock, notifier: FakeNotifier) -> None:
    store = DailyTaskStore(storage, reminders=ReminderScheduler(notifier, clock=clock), clock=clock)
    await store.load()
    assert notifier.scheduled == []
    assert store.next_reminder is None

    added = await store.add("Meditate")
    assert len(notifier.scheduled) == 1
    assert notifier.scheduled[0].fire_at == datetime(2024, 5, 1, 21, 0, tzinfo=timezone.utc)
    assert store.next_reminder == notifier.scheduled[0].fire_at

    await store.toggle(added.tasks[0].id)
    assert notifier.scheduled == []
    assert store.next_reminder is None

    await store.toggle(added.tasks[0].id)
    assert len(notifier.scheduled) == 1


@pytest.mark.asyncio
async def test_daily_rollover_brings_reminder_back(storage: MemoryStorage, clock: FakeClock, notifier: FakeNotifier) -> None:
    _seed(storage, DAILY_TASKS_KEY, PersistedState(last_date=YESTERDAY, tasks=(DailyTask(id="a", text="A", completed=True),)))
    clock.now = datetime(2024, 5, 1, 22, 30, tzinfo=timezone.utc)
    store = DailyTaskStore(storage, reminders=ReminderScheduler(notifier, clock=clock), clock=clock)

    result = await store.load()

    assert result.rolled_over
    assert len(notifier.scheduled) == 1
    assert notifier.scheduled[0].fire_at == datetime(2024, 5, 2, 21, 0, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_blank_daily_add_still_reschedules_reminder(
    storage: MemoryStorage, clock: FakeClock, notifier: FakeNotifier
) -> None:
    _seed(storage, DAILY_TASKS_KEY, PersistedState(last_date=TODAY, tasks=(DailyTask(id="a", text="A"),)))
    store = DailyTaskStore(storage, reminders=ReminderScheduler(notifier, clock=clock), clock=clock)
    await store.load()
    notifier.scheduled.clear()
    cancels = notifier.cancel_calls

    result = await store.add("   ")

    assert result.ok
    assert notifier.cancel_calls == cancels + 1
    assert len(notifier.scheduled) == 1
    assert store.next_reminder == notifier.scheduled[0].fire_at
