# tests/test_task_scheduler.py

from __future__ import annotations

import asyncio
from datetime import UTC, datetime

import pytest

from lockin.core import ports
from lockin.core.state import AppState
from lockin.tasks import task_scheduler
from lockin.tasks.task_models import Task
from lockin.tasks.task_scheduler import PermissionState, ReminderScheduler, build_alert, is_due

from .fakes import FakeClock, FakeNotificationSink


class FakeTaskSource:
    """
    In-memory TaskSource used for scheduler unit tests.

    The list can be swapped between ticks to check that the scheduler always
    reads the latest one.
    """

    def __init__(self, tasks: list[Task]) -> None:
        self.tasks = tasks


def _task(clock: FakeClock, *, offset: float = 0.0, **overrides) -> Task:
    fields = dict(
        id="t1",
        text="ping",
        completed=False,
        reminder=datetime.fromtimestamp(clock.now + offset, tz=UTC),
        notify_enabled=True,
    )
    fields.update(overrides)
    return Task(**fields)


def test_modules_carry_their_docstrings() -> None:
    assert task_scheduler.__doc__ and task_scheduler.__doc__.strip().startswith("Reminder scheduler.")
    assert ports.__doc__ and ports.__doc__.strip().startswith("Ports")


def test_is_due_window_is_half_open() -> None:
    assert is_due(1000, 1000, 60_000)
    assert is_due(1000, 60_999, 60_000)
    assert not is_due(1000, 61_000, 60_000)
    assert not is_due(1001, 1000, 60_000)


def test_build_alert_skips_ineligible_tasks() -> None:
    clock = FakeClock()
    assert build_alert(_task(clock, completed=True)) is None
    assert build_alert(_task(clock, notify_enabled=False)) is None
    assert build_alert(_task(clock, reminder=None)) is None

    alert = build_alert(_task(clock, text="Buy milk"))
    assert alert is not None
    assert alert.title == "Lock in bro"
    assert alert.body == "Don't forget to complete: Buy milk"


def test_permission_state_on_startup() -> None:
    source = FakeTaskSource([])
    assert ReminderScheduler(source, FakeNotificationSink(supported=False)).permission_state is PermissionState.UNSUPPORTED
    assert ReminderScheduler(source, FakeNotificationSink(permission="denied")).permission_state is PermissionState.DENIED
    assert ReminderScheduler(source, FakeNotificationSink(permission="weird")).permission_state is PermissionState.DEFAULT


def test_fires_once_within_window_and_not_after() -> None:
    clock = FakeClock()
    sink = FakeNotificationSink(permission="granted")
    scheduler = ReminderScheduler(FakeTaskSource([_task(clock)]), sink, clock=clock)

    assert len(scheduler.check_reminders()) == 1
    clock.advance(10)
    assert scheduler.check_reminders() == []
    clock.advance(40)
    assert scheduler.check_reminders() == []
    clock.advance(30)  # window closed
    assert scheduler.check_reminders() == []

    assert len(sink.shown) == 1
    assert sink.shown[0].body == "Don't forget to complete: ping"


def test_future_and_stale_reminders_do_not_fire() -> None:
    clock = FakeClock()
    sink = FakeNotificationSink(permission="granted")
    source = FakeTaskSource(
        [
            _task(clock, id="future", offset=5),
            _task(clock, id="stale", offset=-60),
            _task(clock, id="done", completed=True),
            _task(clock, id="quiet", notify_enabled=False),
        ]
    )
    scheduler = ReminderScheduler(source, sink, clock=clock)

    assert scheduler.check_reminders() == []
    clock.advance(5)
    assert [t.id for t in scheduler.check_reminders()] == ["future"]


def test_rescheduled_reminder_fires_again() -> None:
    clock = FakeClock()
    sink = FakeNotificationSink(permission="granted")
    source = FakeTaskSource([_task(clock)])
    scheduler = ReminderScheduler(source, sink, clock=clock)

    scheduler.check_reminders()
    clock.advance(120)
    source.tasks = [_task(clock)]  # same id, new reminder instant
    scheduler.check_reminders()

    assert len(sink.shown) == 2
    assert len(scheduler.notified) == 2


def test_failed_alert_is_retried_next_tick() -> None:
    clock = FakeClock()
    sink = FakeNotificationSink(permission="granted", fail_notify=True)
    scheduler = ReminderScheduler(FakeTaskSource([_task(clock)]), sink, clock=clock)

    assert scheduler.check_reminders() == []
    sink.fail_notify = False
    clock.advance(10)
    assert len(scheduler.check_reminders()) == 1


def test_string_reminder_fires_once() -> None:
    clock = FakeClock()
    sink = FakeNotificationSink(permission="granted")
    iso = datetime.fromtimestamp(clock.now, tz=UTC).isoformat()
    scheduler = ReminderScheduler(FakeTaskSource([_task(clock, reminder=iso)]), sink, clock=clock)

    assert [t.id for t in scheduler.check_reminders()] == ["t1"]
    clock.advance(10)
    assert scheduler.check_reminders() == []
    assert scheduler.notified == {("t1", int(clock.now - 10) * 1000)}


def test_unreadable_reminder_does_not_block_other_tasks() -> None:
    clock = FakeClock()
    sink = FakeNotificationSink(permission="granted")
    source = FakeTaskSource([_task(clock, id="broken", reminder="not a date"), _task(clock, id="ok")])
    scheduler = ReminderScheduler(source, sink, clock=clock)

    assert [t.id for t in scheduler.check_reminders()] == ["ok"]
    assert len(sink.shown) == 1


@pytest.mark.asyncio
async def test_request_permission_unsupported_is_a_no_op() -> None:
    sink = FakeNotificationSink(supported=False)
    scheduler = ReminderScheduler(FakeTaskSource([]), sink)

    assert await scheduler.request_permission() is False
    assert sink.requests == 0
    assert scheduler.permission_state is PermissionState.UNSUPPORTED


@pytest.mark.asyncio
async def test_denied_permission_keeps_loop_idle() -> None:
    clock = FakeClock()
    sink = FakeNotificationSink(answer="denied")
    scheduler = ReminderScheduler(FakeTaskSource([_task(clock)]), sink, clock=clock, interval_seconds=0.01)

    assert scheduler.start() is None
    assert await scheduler.request_permission() is False
    assert scheduler.permission_state is PermissionState.DENIED
    await asyncio.sleep(0.03)
    assert not scheduler.running
    assert sink.shown == []


@pytest.mark.asyncio
async def test_granting_permission_starts_loop_with_immediate_check() -> None:
    clock = FakeClock()
    sink = FakeNotificationSink(answer="granted")
    scheduler = ReminderScheduler(FakeTaskSource([_task(clock)]), sink, clock=clock, interval_seconds=0.01)

    assert await scheduler.request_permission() is True
    await asyncio.sleep(0.05)

    assert scheduler.running
    assert len(sink.shown) == 1  # many ticks, one alert
    await scheduler.stop()
    assert not scheduler.running


@pytest.mark.asyncio
async def test_loop_sees_latest_task_list_and_stops_on_revoke() -> None:
    clock = FakeClock()
    sink = FakeNotificationSink(permission="granted")
    source = FakeTaskSource([])
    scheduler = ReminderScheduler(source, sink, clock=clock, interval_seconds=0.01)

    runner = scheduler.start()
    assert runner is not None
    await asyncio.sleep(0.02)
    assert sink.shown == []

    source.tasks = [_task(clock, text="late addition")]
    await asyncio.sleep(0.03)
    assert [a.body for a in sink.shown] == ["Don't forget to complete: late addition"]

    sink.permission = "denied"
    scheduler.refresh_permission()
    await asyncio.sleep(0.02)
    assert runner.done()
    assert not scheduler.running


@pytest.mark.asyncio
async def test_run_can_be_cancelled() -> None:
    scheduler = ReminderScheduler(
        FakeTaskSource([]), FakeNotificationSink(permission="granted"), interval_seconds=0.01
    )
    runner = asyncio.create_task(scheduler.run())
    await asyncio.sleep(0.03)
    runner.cancel()
    with pytest.raises(asyncio.CancelledError):
        await runner
    # the loop started automatically on construction (permission was already granted)
    await scheduler.stop()


@pytest.mark.asyncio
async def test_loop_keeps_running_past_a_malformed_task() -> None:
    clock = FakeClock()
    sink = FakeNotificationSink(permission="granted")
    source = FakeTaskSource([_task(clock, id="broken", reminder="garbage")])
    scheduler = ReminderScheduler(source, sink, clock=clock, interval_seconds=0.01)

    runner = scheduler.start()
    assert runner is not None
    await asyncio.sleep(0.03)
    assert scheduler.running

    source.tasks = [*source.tasks, _task(clock, id="ok", text="still alive")]
    await asyncio.sleep(0.03)
    assert [a.body for a in sink.shown] == ["Don't forget to complete: still alive"]
    await scheduler.stop()


def test_string_reminder_written_through_store_is_alerted(state: AppState) -> None:
    clock = FakeClock()
    sink = FakeNotificationSink(permission="granted")
    task = state.tasks.add_task("from a string", None, False)
    assert task is not None
    iso = datetime.fromtimestamp(clock.now, tz=UTC).strftime("%Y-%m-%dT%H:%M:%S.000Z")
    state.tasks.update_task(task.id, reminder=iso, notify_enabled=True)

    scheduler = ReminderScheduler(state.tasks, sink, clock=clock)
    assert [t.id for t in scheduler.check_reminders()] == [task.id]
