from datetime import datetime, timedelta, timezone
from enum import IntEnum

from dateutil.relativedelta import relativedelta
from pydantic import BaseModel, ConfigDict, Field

from update_scheduler.codec import StreamReader, StreamWriter
from update_scheduler.errors import MalformedTaskData, ScheduleOverflow


class TimeUnit(IntEnum):
    MILLISECONDS = 0
    SECONDS = 1
    MINUTES = 2
    HOURS = 3
    DAYS = 4
    WEEKS = 5
    MONTHS = 6
    YEARS = 7


_MSECS_PER_UNIT = {
    TimeUnit.MILLISECONDS: 1,
    TimeUnit.SECONDS: 1000,
    TimeUnit.MINUTES: 60 * 1000,
    TimeUnit.HOURS: 60 * 60 * 1000,
    TimeUnit.DAYS: 24 * 60 * 60 * 1000,
    TimeUnit.WEEKS: 7 * 24 * 60 * 60 * 1000,
}


class TimeSpan(BaseModel):
    """
    A duration expressed as a count of one calendar unit.
    """
    model_config = ConfigDict(frozen=True)

    count: int = Field(default=0, ge=0, lt=2 ** 64, description="Number of units")
    unit: TimeUnit = Field(default=TimeUnit.MILLISECONDS, description="Unit the count is expressed in")

    def msecs(self) -> int:
        """
        Flatten to milliseconds. Months and years have no fixed length and raise ValueError.
        """
        factor = _MSECS_PER_UNIT.get(self.unit)
        if factor is None:
            raise ValueError(f"{self.unit.name.lower()} have no fixed millisecond length")
        return self.count * factor

    def add_to_datetime(self, base: datetime) -> datetime:
        """
        Advance ``base`` by this span using calendar arithmetic.

        Sub-day units are elapsed time, days and weeks keep the wall-clock time,
        months and years clamp to the last valid day of the target month.

        Raises:
            ScheduleOverflow: If the result lies outside the range of ``datetime``.
        """
        try:
            return self._add(base)
        except (OverflowError, ValueError) as e:
            raise ScheduleOverflow(f"Cannot add {self} to {base.isoformat()}: {e}") from e

    def _add(self, base: datetime) -> datetime:
        if self.unit <= TimeUnit.HOURS:
            delta = timedelta(milliseconds=self.msecs())
            if base.tzinfo is None:
                return base + delta
            return (base.astimezone(timezone.utc) + delta).astimezone(base.tzinfo)
        if self.unit == TimeUnit.DAYS:
            return base + timedelta(days=self.count)
        if self.unit == TimeUnit.WEEKS:
            return base + timedelta(weeks=self.count)
        if self.unit == TimeUnit.MONTHS:
            return base + relativedelta(months=self.count)
        return base + relativedelta(years=self.count)

    def write_to(self, writer: StreamWriter) -> None:
        writer.write_u64(self.count)
        writer.write_u64(int(self.unit))

    @classmethod
    def read_from(cls, reader: StreamReader) -> "TimeSpan":
        count = reader.read_u64()
        return cls(count=count, unit=read_unit(reader))

    def __str__(self) -> str:
        return f"{self.count} {self.unit.name.lower()}"


def read_unit(reader: StreamReader) -> TimeUnit:
    ordinal = reader.read_u64()
    try:
        return TimeUnit(ordinal)
    except ValueError:
        raise MalformedTaskData(f"Unknown time unit ordinal {ordinal}")
