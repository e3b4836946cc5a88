"""Core domain modules for the study planner task service.

This package provides:
- Task types, statuses and validated request shapes (task.py)
- The error taxonomy (errors.py)
- Storage operations over an injected store handle (storage.py)
- Time-relative views: status classification and notifications (timeline.py)
"""

from .errors import (
    PlannerError, ValidationError, NotFoundError, StoreConnectionError, DataQualityWarning,
)
from .task import TaskType, TaskStatus

__all__ = [
    'PlannerError', 'ValidationError', 'NotFoundError', 'StoreConnectionError',
    'DataQualityWarning', 'TaskType', 'TaskStatus',
]
