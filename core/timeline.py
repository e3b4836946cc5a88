"""Time-relative views over tasks: status classification and the notification set.

Dates and times are wall-clock values in the viewer's frame; nothing here
converts timezones. ``now`` is always passed in. Comparisons are made at
minute granularity.

A task whose ``date`` or ``start_time`` cannot be parsed is left out of every
view; a ``DataQualityWarning`` is issued for it and the rest of the batch is
still processed.
"""

import logging
import warnings
from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Optional, Tuple

from .errors import DataQualityWarning
from .task import TaskStatus, TaskType

logger = logging.getLogger(__name__)

DATE_FORMAT = '%Y-%m-%d'
TIME_FORMAT = '%H:%M'
MEETING_LEAD = timedelta(minutes=10)


def parse_task_date(value) -> date:
    return datetime.strptime(value, DATE_FORMAT).date()


def parse_task_time(value) -> time:
    return datetime.strptime(value, TIME_FORMAT).time()


def _wall_clock(now: datetime) -> datetime:
    """Drop tzinfo and seconds so comparisons happen on local minutes."""
    return now.replace(tzinfo=None, second=0, microsecond=0)


def _parse_schedule(task) -> Optional[Tuple[date, time]]:
    try:
        return parse_task_date(task.date), parse_task_time(task.start_time)
    except (TypeError, ValueError) as e:
        task_id = getattr(task, 'id', None)
        message = (f"Skipping task {task_id}: unreadable date/startTime "
                   f"({task.date!r}, {task.start_time!r}): {e}")
        logger.warning(message)
        warnings.warn(message, DataQualityWarning, stacklevel=3)
        return None


def status_at(task_date: date, start: time, now: datetime) -> TaskStatus:
    now = _wall_clock(now)
    today, current = now.date(), now.time()
    if task_date < today or (task_date == today and start < current):
        return TaskStatus.COMPLETED
    if task_date == today and start == current:
        return TaskStatus.ONGOING
    return TaskStatus.UPCOMING


def classify_status(task, now: datetime) -> Optional[TaskStatus]:
    """Status of one task at ``now``, or None when the task is malformed."""
    schedule = _parse_schedule(task)
    if schedule is None:
        return None
    return status_at(schedule[0], schedule[1], now)


def classify_tasks(tasks: Iterable, now: datetime) -> List[Tuple[object, TaskStatus]]:
    """Pair every well-formed task with its status, preserving input order."""
    result = []
    for task in tasks:
        status = classify_status(task, now)
        if status is not None:
            result.append((task, status))
    return result


def upcoming_tasks(tasks: Iterable, now: datetime) -> List[Tuple[object, TaskStatus]]:
    """Ongoing and upcoming tasks only; completed ones are dropped."""
    return [(task, status) for task, status in classify_tasks(tasks, now)
            if status != TaskStatus.COMPLETED]


def notification_tasks(tasks: Iterable, now: datetime,
                       meeting_lead: timedelta = MEETING_LEAD) -> List[object]:
    """Tasks worth alerting about at ``now``.

    Includes tasks of type Task dated today or later (any time of day), then
    meetings starting no later than ``now + meeting_lead``. Meetings have no
    lower bound, so ones that already started stay in the set.
    """
    now = _wall_clock(now)
    today = now.date()
    cutoff = now + meeting_lead

    daily, meetings = [], []
    for task in tasks:
        schedule = _parse_schedule(task)
        if schedule is None:
            continue
        task_date, start = schedule
        if task.type == TaskType.TASK.value:
            if task_date >= today:
                daily.append(task)
        elif task.type == TaskType.MEETING.value:
            if datetime.combine(task_date, start) <= cutoff:
                meetings.append(task)
    return daily + meetings


def calendar_events(tasks: Iterable) -> List[dict]:
    """Project tasks onto start/end timestamps for a calendar view."""
    events = []
    for task in tasks:
        if _parse_schedule(task) is None:
            continue
        events.append({
            'id': task.id,
            'title': task.title,
            'type': task.type,
            'start': f"{task.date}T{task.start_time}",
            'end': f"{task.date}T{task.end_time}",
        })
    return events
