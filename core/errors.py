"""Error taxonomy shared by the storage layer, the facade and the HTTP handlers."""


class PlannerError(Exception):
    """Base class for errors reported back to the caller."""


class ValidationError(PlannerError):
    """Malformed or incomplete input. The caller must fix it; never retried."""


class NotFoundError(PlannerError):
    """No task matches the requested id."""

    def __init__(self, task_id):
        self.task_id = task_id
        super().__init__(f"Task {task_id} not found")


class StoreConnectionError(PlannerError, ConnectionError):
    """The task store could not be reached. Safe to retry with backoff."""


class DataQualityWarning(UserWarning):
    """A stored task could not be interpreted and was skipped."""
