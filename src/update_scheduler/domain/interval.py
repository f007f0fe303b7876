from typing import ClassVar

from pydantic import Field

from update_scheduler.codec import StreamReader, StreamWriter
from update_scheduler.domain.task import LoopTask
from update_scheduler.domain.time_span import TimeSpan


class IntervalTask(LoopTask):
    """
    Fires every ``loop_delta``, ``repeat_count`` times in total (-1 for ever).
    """
    TYPE_TAG: ClassVar[str] = "IntervalTask"

    loop_delta: TimeSpan = Field(..., description="Pause between two occurrences")
    repeats: int = Field(default=-1, ge=-1, alias="repeat_count", description="Total number of occurrences, -1 for endless")

    model_config = {"populate_by_name": True}

    def repeat_count(self) -> int:
        return self.repeats

    def pause_interval(self) -> TimeSpan:
        return self.loop_delta

    def store(self) -> bytes:
        writer = StreamWriter()
        self.loop_delta.write_to(writer)
        writer.write_i64(self.repetitions_left)
        return writer.getvalue()

    @classmethod
    def from_bytes(cls, data: bytes) -> "IntervalTask":
        reader = StreamReader(data)
        loop_delta = TimeSpan.read_from(reader)
        repeats = reader.read_i64()
        reader.expect_end()
        return cls(loop_delta=loop_delta, repeat_count=repeats)
