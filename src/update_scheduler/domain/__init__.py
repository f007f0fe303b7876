from .time_span import TimeSpan, TimeUnit
from .task import UpdateTask, LoopTask
from .interval import IntervalTask
from .anchored import AnchoredTask
from .cron import CronTask
from .task_list import TaskList

__all__ = ["TimeSpan", "TimeUnit", "UpdateTask", "LoopTask", "IntervalTask", "AnchoredTask", "CronTask", "TaskList"]
