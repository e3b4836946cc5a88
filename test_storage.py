"""Tests for the storage layer and the store handle lifecycle."""

import threading

import pytest
from sqlalchemy.exc import ArgumentError

from core import storage
from core.errors import NotFoundError, StoreConnectionError, ValidationError
from db import StoreHandle


def _payload(**overrides):
    data = {'title': 'Read chapter 4', 'date': '2025-06-01', 'startTime': '09:00', 'endTime': '10:00'}
    data.update(overrides)
    return data


def test_create_then_list_returns_created_task(store):
    created = storage.create_task(store, _payload(type='Meeting', notificationTime=15))

    assert created.id
    tasks = storage.list_tasks(store)
    assert [t.id for t in tasks] == [created.id]
    stored = tasks[0]
    assert stored.title == 'Read chapter 4'
    assert stored.type == 'Meeting'
    assert stored.date == '2025-06-01'
    assert stored.start_time == '09:00'
    assert stored.end_time == '10:00'
    assert stored.notification_time == 15
    assert stored.created_at is not None
    assert stored.updated_at is not None


def test_create_applies_defaults_and_trims_title(store):
    created = storage.create_task(store, _payload(title='  Revise  ', type=''))
    assert created.title == 'Revise'
    assert created.type == 'Task'
    assert created.notification_time == 10


@pytest.mark.parametrize("field", ['title', 'date', 'startTime', 'endTime'])
def test_create_rejects_missing_required_field(store, field):
    payload = _payload()
    del payload[field]
    with pytest.raises(ValidationError):
        storage.create_task(store, payload)
    assert storage.list_tasks(store) == []


@pytest.mark.parametrize("field, value", [
    ('title', '   '), ('date', ''), ('startTime', ''), ('endTime', None),
])
def test_create_rejects_empty_required_field(store, field, value):
    with pytest.raises(ValidationError):
        storage.create_task(store, _payload(**{field: value}))
    assert storage.list_tasks(store) == []


@pytest.mark.parametrize("payload", [
    None, [], "title", _payload(priority='High'), _payload(notificationTime=-5),
    _payload(notificationTime='ten'), _payload(notificationTime=True), _payload(title=42),
])
def test_create_rejects_malformed_payload(store, payload):
    with pytest.raises(ValidationError):
        storage.create_task(store, payload)


def test_list_orders_by_date_then_start_time(store):
    for date, start in [('2025-01-02', '08:00'), ('2025-01-01', '14:00'),
                        ('2025-01-02', '07:30'), ('2025-01-01', '09:15')]:
        storage.create_task(store, _payload(date=date, startTime=start))

    ordered = [(t.date, t.start_time) for t in storage.list_tasks(store)]
    assert ordered == [
        ('2025-01-01', '09:15'),
        ('2025-01-01', '14:00'),
        ('2025-01-02', '07:30'),
        ('2025-01-02', '08:00'),
    ]


def test_update_merges_supplied_fields(store):
    created = storage.create_task(store, _payload())

    updated = storage.update_task(store, created.id, {'startTime': '11:00', 'endTime': '12:00'})

    assert updated.id == created.id
    assert updated.start_time == '11:00'
    assert updated.end_time == '12:00'
    assert updated.title == created.title
    assert updated.updated_at >= created.updated_at
    assert storage.get_task_by_id(store, created.id).start_time == '11:00'


def test_update_ignores_read_only_fields(store):
    created = storage.create_task(store, _payload())
    payload = {'id': 'other', '_id': 'other', 'createdAt': '1999-01-01', 'title': 'Renamed'}

    updated = storage.update_task(store, created.id, payload)

    assert updated.id == created.id
    assert updated.title == 'Renamed'
    assert updated.created_at == created.created_at


def test_update_rejects_unknown_and_empty_fields(store):
    created = storage.create_task(store, _payload())
    with pytest.raises(ValidationError):
        storage.update_task(store, created.id, {'colour': 'red'})
    with pytest.raises(ValidationError):
        storage.update_task(store, created.id, {'title': '  '})
    with pytest.raises(ValidationError):
        storage.update_task(store, created.id, 'not an object')
    assert storage.get_task_by_id(store, created.id).title == 'Read chapter 4'


def test_update_unknown_id_leaves_store_unchanged(store):
    created = storage.create_task(store, _payload())
    with pytest.raises(NotFoundError):
        storage.update_task(store, 'missing', {'title': 'Nope'})
    tasks = storage.list_tasks(store)
    assert [(t.id, t.title) for t in tasks] == [(created.id, 'Read chapter 4')]


def test_update_with_no_writable_fields_returns_task(store):
    created = storage.create_task(store, _payload())
    assert storage.update_task(store, created.id, {'id': created.id}).title == 'Read chapter 4'
    with pytest.raises(NotFoundError):
        storage.update_task(store, 'missing', {})


def test_delete_twice_succeeds_then_not_found(store):
    created = storage.create_task(store, _payload())

    deleted = storage.delete_task(store, created.id)
    assert deleted.id == created.id
    assert storage.list_tasks(store) == []

    with pytest.raises(NotFoundError):
        storage.delete_task(store, created.id)


def test_get_unknown_task_raises(store):
    with pytest.raises(NotFoundError):
        storage.get_task_by_id(store, 'nope')


# ===== Store handle =====

def test_handle_connects_lazily_and_once(store):
    assert not store.initialized
    storage.list_tasks(store)
    engine = store.engine
    storage.create_task(store, _payload())
    assert store.engine is engine


def test_concurrent_first_use_builds_single_engine(store):
    engines = []

    def worker():
        engines.append(store.engine)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(engines) == 8
    assert len({id(e) for e in engines}) == 1


def test_close_releases_engine_and_reconnects_on_demand(store):
    storage.create_task(store, _payload())
    store.close()
    assert not store.initialized
    assert len(storage.list_tasks(store)) == 1


def test_unreachable_store_raises_connection_error(tmp_path):
    handle = StoreHandle(f"sqlite:///{tmp_path / 'missing' / 'dir' / 'tasks.db'}")
    with pytest.raises(StoreConnectionError):
        storage.list_tasks(handle)
    with pytest.raises(ConnectionError):
        handle.ping()
    assert not handle.initialized


def test_close_between_connect_and_session_does_not_break_caller(store, monkeypatch):
    storage.create_task(store, _payload())
    connect = store._connect

    def connect_then_close():
        factory = connect()
        store.close()
        return factory

    monkeypatch.setattr(store, '_connect', connect_then_close)

    assert [t.title for t in storage.list_tasks(store)] == ['Read chapter 4']


def test_malformed_database_url_is_not_a_connection_error():
    handle = StoreHandle("notadialect://x")
    with pytest.raises(ArgumentError) as excinfo:
        handle.ping()
    assert not isinstance(excinfo.value, StoreConnectionError)
    assert not handle.initialized


def test_empty_type_means_default_on_create_and_update(store):
    created = storage.create_task(store, _payload(type='Meeting'))
    assert storage.update_task(store, created.id, {'type': ''}).type == 'Task'
    assert storage.update_task(store, created.id, {'type': 'Meeting'}).type == 'Meeting'
    assert storage.update_task(store, created.id, {'type': None}).type == 'Task'
    assert storage.create_task(store, _payload(type=None)).type == 'Task'
