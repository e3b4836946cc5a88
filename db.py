"""Task persistence: ORM model, store handle and session-level CRUD helpers."""

import logging
import threading
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Generator, Optional

from sqlalchemy import create_engine, text, Column, Integer, String, DateTime
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.orm import declarative_base, sessionmaker

from core.errors import StoreConnectionError

logger = logging.getLogger(__name__)

Base = declarative_base()


def _utcnow():
    return datetime.now(timezone.utc)


def _new_id():
    return uuid.uuid4().hex


class Task(Base):
    __tablename__ = 'tasks'
    id = Column(String(32), primary_key=True, default=_new_id)
    title = Column(String, nullable=False)
    type = Column(String, nullable=False, default='Task')  # Task, Meeting, ...
    date = Column(String, nullable=False, index=True)  # YYYY-MM-DD
    start_time = Column(String, nullable=False)  # HH:mm
    end_time = Column(String, nullable=False)  # HH:mm
    notification_time = Column(Integer, nullable=False, default=10)  # minutes
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    def __repr__(self):
        return f"<Task {self.id} {self.type} {self.date} {self.start_time} {self.title!r}>"


class StoreHandle:
    """Long-lived owner of the database engine.

    The engine is created on first use and reused until ``close()``. The engine
    pools connections, so one handle can be shared by concurrent requests; the
    lock only guards the one-time initialization.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.echo = echo
        self._engine = None
        self._session_factory = None
        self._lock = threading.Lock()

    @property
    def initialized(self) -> bool:
        return self._engine is not None

    def _connect(self):
        """Return the session factory, building the engine on first use.

        Callers keep the returned factory so a concurrent ``close()`` cannot
        pull it out from under them.
        """
        factory = self._session_factory
        if factory is not None:
            return factory
        with self._lock:
            if self._session_factory is not None:
                return self._session_factory
            engine = create_engine(self.url, echo=self.echo, pool_pre_ping=True)
            try:
                Base.metadata.create_all(bind=engine)
            except (OperationalError, InterfaceError) as e:
                engine.dispose()
                logger.error(f"Could not connect to task store: {e}")
                raise StoreConnectionError(f"Could not connect to task store: {e}") from e
            except Exception:
                engine.dispose()
                raise
            factory = sessionmaker(bind=engine, expire_on_commit=False)
            self._engine = engine
            self._session_factory = factory
            logger.info(f"Task store connected ({engine.url.render_as_string(hide_password=True)})")
            return factory

    @property
    def engine(self):
        return self._connect().kw['bind']

    @contextmanager
    def session(self) -> Generator:
        """Yield a session; driver-level connectivity failures become StoreConnectionError.

        Objects loaded in the session are expunged before it closes so they can
        be read by the caller afterwards.
        """
        session = self._connect()()
        try:
            yield session
            session.expunge_all()
        except (OperationalError, InterfaceError) as e:
            session.rollback()
            logger.error(f"Task store operation failed: {e}")
            raise StoreConnectionError(f"Task store unavailable: {e}") from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def ping(self) -> bool:
        """Round-trip a trivial query through the pool."""
        with self.session() as session:
            session.execute(text('SELECT 1'))
        return True

    def close(self):
        with self._lock:
            if self._engine is not None:
                self._engine.dispose()
                logger.info("Task store connection closed")
            self._engine = None
            self._session_factory = None


# CRUD functions


def get_all_tasks(db):
    return db.query(Task).order_by(
        Task.date.asc(), Task.start_time.asc(), Task.created_at.asc()
    ).all()


def get_task(db, task_id) -> Optional[Task]:
    return db.query(Task).filter(Task.id == task_id).first()


def create_task(db, title, date, start_time, end_time, type='Task', notification_time=10):
    task = Task(
        title=title,
        type=type,
        date=date,
        start_time=start_time,
        end_time=end_time,
        notification_time=notification_time,
    )
    db.add(task)
    db.commit()
    db.refresh(task)
    return task


def update_task(db, task_id, fields):
    task = get_task(db, task_id)
    if task:
        for name, value in fields.items():
            setattr(task, name, value)
        task.updated_at = _utcnow()
        db.commit()
        db.refresh(task)
    return task


def delete_task(db, task_id):
    task = get_task(db, task_id)
    if task:
        db.delete(task)
        db.commit()
    return task
