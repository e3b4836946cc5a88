"""Planner API facade for task operations.

Provides JSON-ready functions that combine the storage layer and the timeline
views for the HTTP handlers and the admin script: listing, creating, updating
and deleting tasks, plus the notification, upcoming-work and calendar views.
Every function takes the store handle explicitly; time-dependent views take
``now`` so callers decide which clock to use.
"""

import logging
from typing import List, Dict, Any, Optional
from datetime import datetime, timedelta

from db import StoreHandle, Task
from core import storage
from core.task import extract_task_id
from core.timeline import (
    MEETING_LEAD, notification_tasks, upcoming_tasks, calendar_events,
)

logger = logging.getLogger(__name__)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def task_to_dict(task: Task) -> Dict[str, Any]:
    """Serialize a task to its wire shape (camelCase keys)."""
    return {
        'id': task.id,
        'title': task.title,
        'type': task.type,
        'date': task.date,
        'startTime': task.start_time,
        'endTime': task.end_time,
        'notificationTime': task.notification_time,
        'createdAt': _iso(task.created_at),
        'updatedAt': _iso(task.updated_at),
    }


# ===== Task CRUD =====

def list_tasks(store: StoreHandle) -> List[Dict[str, Any]]:
    return [task_to_dict(t) for t in storage.list_tasks(store)]


def get_task(store: StoreHandle, task_id: str) -> Dict[str, Any]:
    return task_to_dict(storage.get_task_by_id(store, task_id))


def add_task(store: StoreHandle, payload: Any) -> Dict[str, Any]:
    """Create a task from a request body.

    Args:
        store: Store handle
        payload: Object with title, date, startTime, endTime and optional
            type/notificationTime

    Returns:
        The stored task including its generated id
    """
    return task_to_dict(storage.create_task(store, payload))


def update_task(store: StoreHandle, payload: Any, task_id: Optional[str] = None) -> Dict[str, Any]:
    """Apply a partial update.

    The id is taken from ``task_id`` when given (path parameter), otherwise
    from the body's ``id``.
    """
    if task_id is None:
        task_id = extract_task_id(payload)
    return task_to_dict(storage.update_task(store, task_id, payload))


def delete_task(store: StoreHandle, payload: Any = None, task_id: Optional[str] = None) -> Dict[str, Any]:
    if task_id is None:
        task_id = extract_task_id(payload)
    storage.delete_task(store, task_id)
    return {'id': task_id, 'deleted': True, 'message': "Task deleted successfully."}


# ===== Time-relative views =====

def get_notifications(store: StoreHandle, now: Optional[datetime] = None,
                      meeting_lead: timedelta = MEETING_LEAD) -> List[Dict[str, Any]]:
    """Tasks dated today or later plus meetings starting within ``meeting_lead``."""
    now = now or datetime.now()
    tasks = notification_tasks(storage.list_tasks(store), now, meeting_lead=meeting_lead)
    logger.debug(f"{len(tasks)} notification task(s) at {now:%Y-%m-%d %H:%M}")
    return [task_to_dict(t) for t in tasks]


def get_upcoming_works(store: StoreHandle, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """Ongoing and upcoming tasks, each carrying its derived ``status``."""
    now = now or datetime.now()
    result = []
    for task, status in upcoming_tasks(storage.list_tasks(store), now):
        data = task_to_dict(task)
        data['status'] = str(status)
        result.append(data)
    return result


def get_calendar_events(store: StoreHandle) -> List[Dict[str, Any]]:
    return calendar_events(storage.list_tasks(store))


def check_connection(store: StoreHandle) -> Dict[str, Any]:
    """Round-trip the store. Raises StoreConnectionError when unreachable."""
    store.ping()
    return {'connected': True, 'message': "Task store connected!"}
