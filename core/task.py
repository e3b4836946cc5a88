"""Task types, derived statuses and the validated input shapes for create/update.

Request bodies arrive as camelCase JSON objects. ``TaskDraft`` and
``TaskUpdate`` turn them into explicit structures keyed by ORM column names so
nothing outside the recognized fields reaches the store.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from .errors import ValidationError


DEFAULT_NOTIFICATION_MINUTES = 10

# wire name -> column name
WRITABLE_FIELDS = {
    'title': 'title',
    'type': 'type',
    'date': 'date',
    'startTime': 'start_time',
    'endTime': 'end_time',
    'notificationTime': 'notification_time',
}

# Clients echo whole documents back; these never overwrite stored values.
READ_ONLY_FIELDS = {'id', '_id', 'createdAt', 'updatedAt', '__v'}

REQUIRED_FIELDS = ('title', 'date', 'startTime', 'endTime')


class TaskType(str, Enum):
    """Known task tags. Stored values are not restricted to these."""
    TASK = "Task"
    MEETING = "Meeting"

    def __str__(self):
        return self.value


class TaskStatus(str, Enum):
    """Display status of a task relative to the current time."""
    COMPLETED = "Completed"
    ONGOING = "Ongoing"
    UPCOMING = "Upcoming"

    def __str__(self):
        return self.value


def _require_mapping(payload) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object.")
    return payload


def _check_known_fields(payload: Dict[str, Any]):
    unknown = sorted(k for k in payload if k not in WRITABLE_FIELDS and k not in READ_ONLY_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown field(s): {', '.join(unknown)}")


def _clean_text(name: str, value) -> str:
    if value is None:
        return ''
    if not isinstance(value, str):
        raise ValidationError(f"{name} must be a string.")
    return value.strip()


def _clean_notification_time(value) -> int:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError("notificationTime must be a whole number of minutes.")
    if value < 0:
        raise ValidationError("notificationTime cannot be negative.")
    return value


@dataclass
class TaskDraft:
    """A validated candidate task, ready to be persisted."""
    title: str
    date: str
    start_time: str
    end_time: str
    type: str = TaskType.TASK.value
    notification_time: int = DEFAULT_NOTIFICATION_MINUTES

    @classmethod
    def from_payload(cls, payload) -> 'TaskDraft':
        payload = _require_mapping(payload)
        _check_known_fields(payload)

        values = {name: _clean_text(name, payload.get(name)) for name in REQUIRED_FIELDS}
        missing = [name for name in REQUIRED_FIELDS if not values[name]]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

        task_type = _clean_text('type', payload.get('type')) or TaskType.TASK.value

        notification_time = DEFAULT_NOTIFICATION_MINUTES
        if payload.get('notificationTime') is not None:
            notification_time = _clean_notification_time(payload['notificationTime'])

        return cls(
            title=values['title'],
            date=values['date'],
            start_time=values['startTime'],
            end_time=values['endTime'],
            type=task_type,
            notification_time=notification_time,
        )

    def to_columns(self) -> Dict[str, Any]:
        return {
            'title': self.title,
            'type': self.type,
            'date': self.date,
            'start_time': self.start_time,
            'end_time': self.end_time,
            'notification_time': self.notification_time,
        }


@dataclass
class TaskUpdate:
    """A validated partial update. Only fields present in the request are set."""
    changes: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload) -> 'TaskUpdate':
        payload = _require_mapping(payload)
        _check_known_fields(payload)

        changes = {}
        for wire_name, column in WRITABLE_FIELDS.items():
            if wire_name not in payload:
                continue
            value = payload[wire_name]
            if wire_name == 'notificationTime':
                changes[column] = _clean_notification_time(value)
                continue
            text = _clean_text(wire_name, value)
            if not text and wire_name == 'type':
                # same default as on create
                text = TaskType.TASK.value
            elif not text:
                raise ValidationError(f"{wire_name} cannot be empty.")
            changes[column] = text
        return cls(changes=changes)

    def is_empty(self) -> bool:
        return not self.changes


def extract_task_id(payload) -> str:
    """Pull the task id out of a request body (``id`` or ``_id``)."""
    payload = _require_mapping(payload)
    task_id: Optional[Any] = payload.get('id') or payload.get('_id')
    if not task_id:
        raise ValidationError("Task ID is required.")
    return str(task_id)
