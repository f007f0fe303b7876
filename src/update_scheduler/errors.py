class SchedulerError(Exception):
    """
    Base class for all errors raised by the scheduling core.
    """


class MalformedTaskData(SchedulerError, ValueError):
    """
    Raised when a serialized task buffer is truncated or structurally invalid.
    """


class ScheduleOverflow(SchedulerError, OverflowError):
    """
    Raised when advancing a timestamp leaves the range ``datetime`` can represent.
    """
