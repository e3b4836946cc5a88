from datetime import datetime
from types import SimpleNamespace

import pytest

from db import StoreHandle
from server import create_app


@pytest.fixture()
def store(tmp_path):
    """A store handle backed by a throwaway SQLite file."""
    handle = StoreHandle(f"sqlite:///{tmp_path / 'tasks.db'}")
    yield handle
    handle.close()


@pytest.fixture()
def client(store):
    app = create_app(store)
    app.config['TESTING'] = True
    return app.test_client()


@pytest.fixture()
def now():
    return datetime(2025, 6, 1, 10, 0)


def make_task(date, start_time, type='Task', end_time='23:59', title='Study', id=None):
    """Lightweight stand-in for a stored task, for timeline tests."""
    return SimpleNamespace(
        id=id or f"{type}-{date}-{start_time}",
        title=title,
        type=type,
        date=date,
        start_time=start_time,
        end_time=end_time,
    )
