#!/usr/bin/env python3
"""
Database management helper for the study planner.

Usage:
  # create the schema (no-op if it exists) and check connectivity
  ./scripts/manage_db.py init

  # round-trip a trivial query
  ./scripts/manage_db.py check

  # list stored tasks with their current status
  ./scripts/manage_db.py list

  # show what the notification view would return right now
  ./scripts/manage_db.py notifications

Reads DATABASE_URL (or DATABASE_PATH) like the web service; --url overrides it.
"""

import argparse
import logging
import os
import sys
from datetime import datetime

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import config  # noqa: E402
import planner_api  # noqa: E402
from core import storage  # noqa: E402
from core.errors import StoreConnectionError  # noqa: E402
from core.timeline import classify_status  # noqa: E402
from db import StoreHandle  # noqa: E402


def init_database(store):
    """Create the schema by forcing the store to connect."""
    print(f"Initializing task store at {store.url}...")
    store.ping()
    print("✓ Schema ready")
    return True


def check_connection(store):
    result = planner_api.check_connection(store)
    print(f"✓ {result['message']}")
    return True


def list_tasks(store, now=None):
    now = now or datetime.now()
    tasks = storage.list_tasks(store)
    if not tasks:
        print("No tasks stored.")
        return True
    for task in tasks:
        status = classify_status(task, now)
        label = str(status) if status else "Unreadable"
        print(f"{task.date} {task.start_time}-{task.end_time}  {task.type:<8} {label:<10} {task.title}  [{task.id}]")
    print(f"\n{len(tasks)} task(s)")
    return True


def show_notifications(store, now=None):
    tasks = planner_api.get_notifications(store, now=now)
    if not tasks:
        print("Nothing to notify about.")
        return True
    for task in tasks:
        print(f"{task['date']} {task['startTime']}  {task['type']:<8} {task['title']}")
    return True


COMMANDS = {
    'init': init_database,
    'check': check_connection,
    'list': list_tasks,
    'notifications': show_notifications,
}


def main(argv=None):
    p = argparse.ArgumentParser(description="Manage the study planner task store.")
    p.add_argument('command', choices=sorted(COMMANDS))
    p.add_argument('--url', default=config.DATABASE_URL, help="SQLAlchemy database URL")
    p.add_argument('-v', '--verbose', action='store_true')
    args = p.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(message)s',
    )

    store = StoreHandle(args.url)
    try:
        ok = COMMANDS[args.command](store)
    except StoreConnectionError as e:
        print(f"✗ {e}")
        return 1
    finally:
        store.close()
    return 0 if ok else 1


if __name__ == '__main__':
    sys.exit(main())
