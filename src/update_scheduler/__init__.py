"""
Update Task Scheduling

This module decides *when* an update check should run next. It never performs
the check itself and never touches storage: tasks are polled by the caller and
persisted as opaque byte buffers.

Core Concepts:

TimeSpan:
    A count of one calendar unit (milliseconds up to years) that can be added
    to a timestamp with calendar-correct month and year arithmetic.

UpdateTask:
    A scheduling policy. The caller asks ``has_tasks()`` whether an occurrence
    is pending, reads its due time from ``current_task()`` and moves on with
    ``next_task()`` once it has fired. ``store()`` turns the remaining schedule
    into bytes.

TaskList:
    An ordered composite of tasks that always follows its first task and drops
    exhausted tasks from the front. Its persisted form tags every entry with a
    type tag resolved through a TaskRegistry.

Typical driver: wait for the due time, fire, advance.

    schedule = TaskList(tasks=[IntervalTask(loop_delta=TimeSpan(count=1, unit=TimeUnit.DAYS), repeat_count=7)])
    while schedule.has_tasks():
        wait_until(schedule.current_task())
        check_for_updates()
        schedule.next_task()
"""

from .domain import *
from .errors import SchedulerError, MalformedTaskData, ScheduleOverflow
from .registry import TaskRegistry, default_registry

__all__ = [
    "TimeSpan",
    "TimeUnit",
    "UpdateTask",
    "LoopTask",
    "IntervalTask",
    "AnchoredTask",
    "CronTask",
    "TaskList",
    "TaskRegistry",
    "default_registry",
    "SchedulerError",
    "MalformedTaskData",
    "ScheduleOverflow",
]
