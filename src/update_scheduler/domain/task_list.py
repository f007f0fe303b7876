import logging
from datetime import datetime
from typing import ClassVar, List, Optional

from pydantic import Field, PrivateAttr

from update_scheduler.codec import StreamReader, StreamWriter
from update_scheduler.domain.task import UpdateTask
from update_scheduler.errors import MalformedTaskData
from update_scheduler.registry import TaskRegistry, default_registry

logger = logging.getLogger(__name__)


class TaskList(UpdateTask):
    """
    Ordered composite of tasks. Every operation is delegated to the first task;
    tasks that run out of occurrences are dropped from the front as they are met.
    """
    TYPE_TAG: ClassVar[str] = "TaskList"
    NESTS_TASKS: ClassVar[bool] = True

    tasks: List[UpdateTask] = Field(default_factory=list, description="Owned tasks in firing priority order")

    _registry: Optional[TaskRegistry] = PrivateAttr(default=None)

    @property
    def registry(self) -> TaskRegistry:
        return self._registry or default_registry()

    def use_registry(self, registry: TaskRegistry) -> None:
        self._registry = registry

    @property
    def first(self) -> Optional[UpdateTask]:
        return self.tasks[0] if self.tasks else None

    def __len__(self) -> int:
        return len(self.tasks)

    def append(self, task: UpdateTask) -> None:
        self.tasks.append(task)

    def has_tasks(self) -> bool:
        if not self.tasks:
            return False
        if self.tasks[0].has_tasks():
            return True
        return self.next_task()

    def current_task(self) -> Optional[datetime]:
        if not self.tasks:
            return None
        return self.tasks[0].current_task()

    def next_task(self) -> bool:
        if not self.tasks:
            return False

        if self.tasks[0].next_task():
            return True

        while self.tasks:
            if self.tasks[0].has_tasks():
                return True
            dropped = self.tasks.pop(0)
            logger.debug("Dropping exhausted %s, %d task(s) left", dropped.type_tag(), len(self.tasks))
        return False

    def store(self) -> bytes:
        return self._encode(self.registry)

    def _encode(self, registry: TaskRegistry) -> bytes:
        # nested lists are written with the tags of the outermost list
        writer = StreamWriter()
        writer.write_i32(len(self.tasks))
        for task in self.tasks:
            writer.write_string(registry.tag_for_type(type(task)))
            payload = task._encode(registry) if isinstance(task, TaskList) else task.store()
            writer.write_i32(len(payload))
            writer.write_raw(payload)
        return writer.getvalue()

    @classmethod
    def from_bytes(cls, data: bytes, registry: Optional[TaskRegistry] = None) -> "TaskList":
        """
        Rebuild a list from the output of ``store()``.

        Entries the registry cannot rebuild are skipped. Entries with an empty
        payload carry no task and are skipped as well. Nested lists are rebuilt
        through the same registry.

        Raises:
            MalformedTaskData: If the buffer holds less or more data than its counts and lengths
                declare, or a negative count.
        """
        registry = registry or default_registry()
        reader = StreamReader(data)
        tasks: List[UpdateTask] = []

        size = reader.read_i32()
        if size < 0:
            raise MalformedTaskData(f"Negative task count {size} in task list")
        for index in range(size):
            tag = reader.read_string()
            payload = reader.read_raw(reader.read_i32())
            if not payload:
                continue
            task = registry.build_task(tag, payload)
            if task is None:
                logger.warning("Skipping entry %d of %d: could not rebuild task '%s'", index + 1, size, tag)
                continue
            tasks.append(task)
        reader.expect_end()

        task_list = cls(tasks=tasks)
        task_list.use_registry(registry)
        return task_list
