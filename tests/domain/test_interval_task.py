import pytest
from datetime import datetime, timedelta, timezone
from pydantic import ValidationError

from update_scheduler.domain.interval import IntervalTask
from update_scheduler.domain.time_span import TimeSpan, TimeUnit
from update_scheduler.errors import MalformedTaskData


@pytest.fixture(scope="function")
def hourly() -> TimeSpan:
    return TimeSpan(count=1, unit=TimeUnit.HOURS)


def test_three_repetitions(frozen_clock, hourly: TimeSpan) -> None:
    task = IntervalTask(loop_delta=hourly, repeat_count=3)

    assert task.has_tasks() is True
    assert task.current_task() == frozen_clock.now() + timedelta(hours=1)
    assert task.repetitions_left == 3

    assert task.next_task() is True
    assert task.next_task() is True
    assert task.next_task() is False
    assert task.repetitions_left == 0
    assert task.has_tasks() is False


def test_endless_repetitions(frozen_clock, hourly: TimeSpan) -> None:
    task = IntervalTask(loop_delta=hourly)
    assert task.has_tasks() is True
    for _ in range(100):
        assert task.next_task() is True
    assert task.repetitions_left == -1


def test_endless_task_keeps_next_point(frozen_clock, hourly: TimeSpan) -> None:
    task = IntervalTask(loop_delta=hourly, repeat_count=-1)
    task.has_tasks()
    first = task.current_task()
    frozen_clock.advance(minutes=30)
    assert task.next_task() is True
    assert task.current_task() == first


def test_next_point_recomputed_from_now(frozen_clock, hourly: TimeSpan) -> None:
    task = IntervalTask(loop_delta=hourly, repeat_count=5)
    task.has_tasks()
    frozen_clock.advance(minutes=59)
    assert task.next_task() is True
    assert task.current_task() == frozen_clock.now() + timedelta(hours=1)


def test_overdue_occurrence_is_not_pending(frozen_clock, hourly: TimeSpan) -> None:
    task = IntervalTask(loop_delta=hourly, repeat_count=2)
    assert task.has_tasks() is True
    frozen_clock.advance(hours=1)
    assert task.has_tasks() is False
    assert task.repetitions_left == 2


def test_fire_overdue(frozen_clock, hourly: TimeSpan) -> None:
    task = IntervalTask(loop_delta=hourly, repeat_count=2, fire_overdue=True)
    assert task.has_tasks() is True
    frozen_clock.advance(hours=3)
    assert task.has_tasks() is True
    assert task.current_task() < frozen_clock.now()


def test_zero_repetitions(frozen_clock, hourly: TimeSpan) -> None:
    task = IntervalTask(loop_delta=hourly, repeat_count=0)
    assert task.has_tasks() is False
    assert task.next_task() is False


def test_invalid_repeat_count(hourly: TimeSpan) -> None:
    with pytest.raises(ValidationError):
        IntervalTask(loop_delta=hourly, repeat_count=-2)


def test_store_persists_remaining_repetitions(frozen_clock, hourly: TimeSpan) -> None:
    task = IntervalTask(loop_delta=hourly, repeat_count=3)
    task.has_tasks()
    task.next_task()

    restored = IntervalTask.from_bytes(task.store())
    assert restored.loop_delta == hourly
    assert restored.repetitions_left == 2
    assert restored.has_tasks() is True
    assert restored.next_task() is True
    assert restored.next_task() is False


def test_store_before_first_poll(hourly: TimeSpan) -> None:
    task = IntervalTask(loop_delta=hourly, repeat_count=4)
    restored = IntervalTask.from_bytes(task.store())
    assert restored.repeat_count() == 4


def test_start_delay_used_for_first_occurrence(frozen_clock, hourly: TimeSpan) -> None:
    class DelayedIntervalTask(IntervalTask):
        def start_delay(self) -> TimeSpan:
            return TimeSpan(count=5, unit=TimeUnit.MINUTES)

    task = DelayedIntervalTask(loop_delta=hourly, repeat_count=3)
    task.has_tasks()
    assert task.current_task() == frozen_clock.now() + timedelta(minutes=5)
    task.next_task()
    assert task.current_task() == frozen_clock.now() + timedelta(hours=1)


def test_unrepresentable_pause_exhausts_task(frozen_clock) -> None:
    task = IntervalTask(loop_delta=TimeSpan(count=2 ** 40, unit=TimeUnit.HOURS), repeat_count=3)
    assert task.has_tasks() is False
    assert task.repetitions_left == 0
    assert task.next_task() is False


def test_unrepresentable_months_from_bytes(frozen_clock) -> None:
    data = IntervalTask(loop_delta=TimeSpan(count=2 ** 40, unit=TimeUnit.MONTHS), repeat_count=-1).store()
    task = IntervalTask.from_bytes(data)
    assert task.has_tasks() is False


def test_advancing_past_datetime_max_exhausts_task(frozen_clock, hourly: TimeSpan) -> None:
    frozen_clock.current = datetime(9999, 12, 31, 10, 0, tzinfo=timezone.utc)
    task = IntervalTask(loop_delta=hourly, repeat_count=3)
    assert task.has_tasks() is True
    frozen_clock.advance(hours=13, minutes=30)
    assert task.next_task() is False
    assert task.repetitions_left == 0
    assert task.has_tasks() is False


def test_trailing_bytes_rejected(hourly: TimeSpan) -> None:
    data = IntervalTask(loop_delta=hourly, repeat_count=2).store()
    with pytest.raises(MalformedTaskData, match="trailing"):
        IntervalTask.from_bytes(data + b"\x00\x00")
