import logging
from datetime import datetime
from typing import ClassVar, Optional

from croniter import croniter
from pydantic import Field, PrivateAttr, field_validator

from update_scheduler import clock
from update_scheduler.codec import StreamReader, StreamWriter
from update_scheduler.domain.task import UpdateTask

logger = logging.getLogger(__name__)

SPECIAL_EXPRESSIONS = {
    "@yearly": "0 0 1 1 *",
    "@annually": "0 0 1 1 *",
    "@monthly": "0 0 1 * *",
    "@weekly": "0 0 * * 0",
    "@daily": "0 0 * * *",
    "@midnight": "0 0 * * *",
    "@hourly": "0 * * * *",
}


class CronTask(UpdateTask):
    """
    Fires at the times matched by a cron expression.

    Occurrences are computed from the previous occurrence, not from the moment
    ``next_task()`` is called, so the task stays aligned with the expression.
    """
    TYPE_TAG: ClassVar[str] = "CronTask"

    cron_expression: str = Field(..., description="Cron expression defining the recurring execution pattern")
    repeats: int = Field(default=-1, ge=-1, alias="repeat_count", description="Total number of occurrences, -1 for endless")

    model_config = {"populate_by_name": True}

    _initialized: bool = PrivateAttr(default=False)
    _next_point: Optional[datetime] = PrivateAttr(default=None)
    _repetitions_left: int = PrivateAttr(default=0)

    @field_validator("cron_expression")
    @classmethod
    def validate_cron(cls, v: str) -> str:
        v = v.strip()
        if not croniter.is_valid(SPECIAL_EXPRESSIONS.get(v, v)):
            raise ValueError(f"Invalid cron expression: {v}")
        return v

    @property
    def repetitions_left(self) -> int:
        if not self._initialized:
            return self.repeats
        return self._repetitions_left

    def _following(self, base: datetime) -> datetime:
        expression = SPECIAL_EXPRESSIONS.get(self.cron_expression, self.cron_expression)
        return croniter(expression, base).get_next(datetime)

    def _initialize(self) -> None:
        self._next_point = self._following(clock.now())
        self._repetitions_left = self.repeats
        self._initialized = True
        logger.debug("Cron task '%s' first due at %s", self.cron_expression, self._next_point)

    def has_tasks(self) -> bool:
        if not self._initialized:
            self._initialize()
        return self._repetitions_left != 0

    def current_task(self) -> Optional[datetime]:
        return self._next_point

    def next_task(self) -> bool:
        if not self._initialized:
            self._initialize()

        if self._repetitions_left == 0:
            return False
        if self._repetitions_left > 0:
            self._repetitions_left -= 1
            if self._repetitions_left == 0:
                logger.debug("Cron task '%s' exhausted", self.cron_expression)
                return False
        self._next_point = self._following(self._next_point)
        return True

    def store(self) -> bytes:
        writer = StreamWriter()
        writer.write_string(self.cron_expression)
        writer.write_i64(self.repetitions_left)
        return writer.getvalue()

    @classmethod
    def from_bytes(cls, data: bytes) -> "CronTask":
        reader = StreamReader(data)
        expression = reader.read_string()
        repeats = reader.read_i64()
        reader.expect_end()
        return cls(cron_expression=expression, repeat_count=repeats)
