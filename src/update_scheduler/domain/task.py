import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import ClassVar, Optional

from pydantic import BaseModel, Field, PrivateAttr

from update_scheduler import clock
from update_scheduler.config import get_settings
from update_scheduler.domain.time_span import TimeSpan
from update_scheduler.errors import ScheduleOverflow

logger = logging.getLogger(__name__)


def ensure_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        logger.warning("Datetime %s does not include a timezone. Interpreting it as UTC.", value.isoformat())
        return value.replace(tzinfo=timezone.utc)
    return value


class UpdateTask(BaseModel, ABC):
    """
    Common contract of every scheduling policy.

    A caller polls ``has_tasks()``; when it returns True, ``current_task()`` is
    the due time of the pending occurrence. Once that occurrence has fired the
    caller calls ``next_task()`` to move on. Exhaustion is reported through
    False return values, never through exceptions.
    """
    TYPE_TAG: ClassVar[str]
    NESTS_TASKS: ClassVar[bool] = False

    @classmethod
    def type_tag(cls) -> str:
        return cls.TYPE_TAG

    @abstractmethod
    def has_tasks(self) -> bool:
        """
        Return True if at least one more occurrence remains to fire.
        """
        pass

    @abstractmethod
    def current_task(self) -> Optional[datetime]:
        """
        Return the due time of the occurrence ``has_tasks()`` last confirmed.
        """
        pass

    @abstractmethod
    def next_task(self) -> bool:
        """
        Advance to the following occurrence. Return False once exhausted.
        """
        pass

    @abstractmethod
    def store(self) -> bytes:
        """
        Serialize enough state to rebuild the remaining schedule with ``from_bytes``.
        """
        pass

    @classmethod
    @abstractmethod
    def from_bytes(cls, data: bytes) -> "UpdateTask":
        """
        Rebuild a task from the output of ``store()``.

        Raises:
            MalformedTaskData: If the buffer is truncated or invalid.
        """
        pass


class LoopTask(UpdateTask, ABC):
    """
    Repetition bookkeeping shared by tasks that fire a fixed pause after "now".

    ``repetitions_left`` is -1 for an endless task, 0 once exhausted and
    otherwise the number of occurrences still to fire, the current one included.
    A pause that cannot be added to the current time exhausts the task.
    """
    fire_overdue: bool = Field(
        default_factory=lambda: get_settings().fire_overdue,
        description="Report an occurrence whose due time has passed as pending",
        exclude=True,
    )

    _initialized: bool = PrivateAttr(default=False)
    _next_point: Optional[datetime] = PrivateAttr(default=None)
    _repetitions_left: int = PrivateAttr(default=0)

    @abstractmethod
    def repeat_count(self) -> int:
        pass

    @abstractmethod
    def pause_interval(self) -> TimeSpan:
        pass

    def start_delay(self) -> TimeSpan:
        return self.pause_interval()

    @property
    def repetitions_left(self) -> int:
        if not self._initialized:
            return self.repeat_count()
        return self._repetitions_left

    def _initialize(self) -> None:
        self._initialized = True
        try:
            self._next_point = self.start_delay().add_to_datetime(clock.now())
        except ScheduleOverflow as e:
            logger.warning("%s has no representable occurrence, treating it as exhausted: %s", self.type_tag(), e)
            self._repetitions_left = 0
            return
        self._repetitions_left = self.repeat_count()
        logger.debug("%s first due at %s (%d repetitions)", self.type_tag(), self._next_point, self._repetitions_left)

    def has_tasks(self) -> bool:
        if not self._initialized:
            self._initialize()

        if self._repetitions_left == 0:
            return False
        if self.fire_overdue:
            return True
        return self._next_point > clock.now()

    def current_task(self) -> Optional[datetime]:
        return self._next_point

    def next_task(self) -> bool:
        if not self._initialized:
            self._initialize()

        if self._repetitions_left > 0:
            self._repetitions_left -= 1
            if self._repetitions_left > 0:
                try:
                    self._next_point = self.pause_interval().add_to_datetime(clock.now())
                except ScheduleOverflow as e:
                    logger.warning("%s cannot advance, treating it as exhausted: %s", self.type_tag(), e)
                    self._repetitions_left = 0
                    return False
                return True
            logger.debug("%s exhausted", self.type_tag())
        elif self._repetitions_left < 0:
            return True

        return False
