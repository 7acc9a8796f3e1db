"""TaskIQ error types."""

from __future__ import annotations


class TaskIQError(Exception):
    """Base exception for TaskIQ infrastructure errors.

    Attributes:
        transient: Whether retrying may succeed.
    """

    transient: bool = False


class TaskIQBrokerError(TaskIQError):
    """Raised when the broker cannot be started.

    Typically transient: Redis may come back.
    """

    transient: bool = True
