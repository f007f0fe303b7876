import logging
from typing import TYPE_CHECKING, Dict, Optional, Type

from pydantic import ValidationError

from update_scheduler.errors import MalformedTaskData

if TYPE_CHECKING:
    from update_scheduler.domain.task import UpdateTask

logger = logging.getLogger(__name__)


class TaskRegistry:
    """
    Maps the stable type tags written into persisted task lists to task classes.
    """
    def __init__(self):
        self._tasks: Dict[str, Type["UpdateTask"]] = {}

    @property
    def registered_tags(self) -> Dict[str, Type["UpdateTask"]]:
        return dict(self._tasks)

    def register(self, task_class: Type["UpdateTask"]) -> None:
        """
        Register a task class under its type tag.

        Args:
            task_class (Type[UpdateTask]): The task class to register.

        Raises:
            ValueError: If another class is already registered for the same tag.
        """
        tag: str = task_class.type_tag()
        if tag in self._tasks:
            raise ValueError(f"A task type is already registered for tag '{tag}'")
        self._tasks[tag] = task_class

    def tag_for_type(self, task_class: Type["UpdateTask"]) -> str:
        """
        Return the tag written into the stream for ``task_class``.

        Raises:
            KeyError: If the class is not registered.
        """
        tag: str = task_class.type_tag()
        if self._tasks.get(tag) is not task_class:
            raise KeyError(f"Task type '{task_class.__name__}' is not registered")
        return tag

    def build_task(self, tag: str, payload: bytes) -> Optional["UpdateTask"]:
        """
        Rebuild a task from its tag and the bytes its ``store()`` produced.

        Returns:
            Optional[UpdateTask]: The task, or None if the tag is unknown or the payload is invalid.
        """
        task_class = self._tasks.get(tag)
        if task_class is None:
            logger.warning("No task type registered for tag '%s'", tag)
            return None

        try:
            if task_class.NESTS_TASKS:
                return task_class.from_bytes(payload, registry=self)
            return task_class.from_bytes(payload)
        except (MalformedTaskData, ValidationError, ValueError, OverflowError) as e:
            logger.warning("Invalid payload for task tag '%s': %s", tag, e)
            return None


_default_registry: Optional[TaskRegistry] = None


def default_registry() -> TaskRegistry:
    """
    Process-wide registry with the built-in task types registered.
    """
    global _default_registry
    if _default_registry is None:
        from update_scheduler.domain.anchored import AnchoredTask
        from update_scheduler.domain.cron import CronTask
        from update_scheduler.domain.interval import IntervalTask
        from update_scheduler.domain.task_list import TaskList

        registry = TaskRegistry()
        for task_class in (IntervalTask, AnchoredTask, CronTask, TaskList):
            registry.register(task_class)
        _default_registry = registry
    return _default_registry
