import logging
from datetime import datetime
from typing import Any, ClassVar, Optional

from pydantic import Field, PrivateAttr, field_validator

from update_scheduler import clock
from update_scheduler.codec import StreamReader, StreamWriter
from update_scheduler.config import get_settings
from update_scheduler.domain.task import UpdateTask, ensure_aware
from update_scheduler.domain.time_span import TimeSpan, TimeUnit, read_unit
from update_scheduler.errors import ScheduleOverflow

logger = logging.getLogger(__name__)


class AnchoredTask(UpdateTask):
    """
    Fires at ``time_point`` and then once per ``focus_unit`` for ever.

    With ``focus_unit == MILLISECONDS`` the task fires exactly once and never repeats.
    A repeating task is exhausted once its next occurrence would leave the range of ``datetime``.
    """
    TYPE_TAG: ClassVar[str] = "AnchoredTask"

    time_point: datetime = Field(..., description="First occurrence, the anchor of the repetition")
    focus_unit: TimeUnit = Field(default=TimeUnit.MILLISECONDS, description="Calendar unit between two occurrences")
    resume: bool = Field(
        default_factory=lambda: get_settings().anchor_resume,
        description="Persist the current occurrence instead of the anchor",
        exclude=True,
    )

    _next_point: datetime = PrivateAttr()
    _exhausted: bool = PrivateAttr(default=False)

    @field_validator("time_point")
    @classmethod
    def check_timezone(cls, v: datetime) -> datetime:
        return ensure_aware(v)

    def model_post_init(self, __context: Any) -> None:
        self._next_point = self.time_point

    @property
    def is_repeating(self) -> bool:
        return self.focus_unit != TimeUnit.MILLISECONDS

    def has_tasks(self) -> bool:
        if not self.is_repeating:
            return self.time_point > clock.now()
        return not self._exhausted

    def current_task(self) -> Optional[datetime]:
        return self._next_point

    def next_task(self) -> bool:
        if not self.is_repeating or self._exhausted:
            return False
        try:
            self._next_point = TimeSpan(count=1, unit=self.focus_unit).add_to_datetime(self._next_point)
        except ScheduleOverflow as e:
            logger.warning("Anchored task cannot advance past %s: %s", self._next_point, e)
            self._exhausted = True
            return False
        return True

    def store(self) -> bytes:
        writer = StreamWriter()
        writer.write_datetime(self._next_point if self.resume else self.time_point)
        writer.write_u64(int(self.focus_unit))
        return writer.getvalue()

    @classmethod
    def from_bytes(cls, data: bytes) -> "AnchoredTask":
        reader = StreamReader(data)
        time_point = reader.read_datetime()
        focus_unit = read_unit(reader)
        reader.expect_end()
        return cls(time_point=time_point, focus_unit=focus_unit)
