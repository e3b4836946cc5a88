"""Storage layer: task CRUD over an injected store handle.

Every function takes the ``StoreHandle`` as its first argument and returns
detached ``Task`` objects that remain readable after the session closes.
"""

import logging
from typing import Any, List, Mapping

from db import (
    StoreHandle, Task,
    get_all_tasks as db_get_all_tasks,
    get_task as db_get_task,
    create_task as db_create_task,
    update_task as db_update_task,
    delete_task as db_delete_task,
)
from .errors import NotFoundError
from .task import TaskDraft, TaskUpdate

logger = logging.getLogger(__name__)


def list_tasks(store: StoreHandle) -> List[Task]:
    """Return every task ordered by date, then start time."""
    with store.session() as session:
        return db_get_all_tasks(session)


def get_task_by_id(store: StoreHandle, task_id: str) -> Task:
    with store.session() as session:
        task = db_get_task(session, task_id)
    if task is None:
        raise NotFoundError(task_id)
    return task


def create_task(store: StoreHandle, payload: Mapping[str, Any]) -> Task:
    """Validate a request body and persist it as a new task.

    Raises:
        ValidationError: a required field is missing/empty or a field is unknown
    """
    draft = TaskDraft.from_payload(payload)
    with store.session() as session:
        task = db_create_task(session, **draft.to_columns())
    logger.info(f"Created task {task.id} ({task.type}) on {task.date} {task.start_time}")
    return task


def update_task(store: StoreHandle, task_id: str, payload: Mapping[str, Any]) -> Task:
    """Merge the recognized fields of ``payload`` into an existing task.

    Read-only fields in the payload are ignored. An update carrying no
    writable fields returns the task unchanged.

    Raises:
        ValidationError: payload is not an object, or holds unknown/invalid fields
        NotFoundError: no task has ``task_id``
    """
    update = TaskUpdate.from_payload(payload)
    with store.session() as session:
        if update.is_empty():
            task = db_get_task(session, task_id)
        else:
            task = db_update_task(session, task_id, update.changes)
    if task is None:
        raise NotFoundError(task_id)
    logger.info(f"Updated task {task_id}: {sorted(update.changes)}")
    return task


def delete_task(store: StoreHandle, task_id: str) -> Task:
    """Permanently remove a task and return the removed record."""
    with store.session() as session:
        task = db_delete_task(session, task_id)
    if task is None:
        raise NotFoundError(task_id)
    logger.info(f"Deleted task {task_id}")
    return task
