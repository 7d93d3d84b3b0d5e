# todo/store.py
"""Task persistence over SQLModel.

Each public method uses its own session and commits before returning, so
a completed write is visible to the next snapshot.
"""

import logging
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import func
from sqlalchemy.engine import Engine
from sqlmodel import Session, col, select

from todo.models import Item, TaskCreate, TaskRecord, TaskUpdate
from todo.normalize import ensure_created_at, normalize_is_completed, normalize_record

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _update_data(changes: TaskUpdate) -> dict[str, Any]:
    """Explicitly set fields of *changes*.

    An explicit None only clears the due date; for other fields it means
    "leave unchanged".
    """
    data = changes.model_dump(exclude_unset=True)
    return {k: v for k, v in data.items() if v is not None or k == "due_date"}


def _to_column(key: str, value: Any) -> Any:
    if key == "priority" and value is not None:
        return int(value)
    # SQLite keeps wall time only; store everything as UTC.
    if isinstance(value, datetime) and value.tzinfo is not None:
        return value.astimezone(timezone.utc)
    return value


class TaskDraft:
    """A new task being edited before its first save.

    Nothing is written until :meth:`TaskStore.save_draft`; a draft that was
    never changed is dropped there.
    """

    def __init__(self, fields: TaskCreate) -> None:
        self.fields = fields
        self._pristine = fields.model_dump()

    def apply(self, changes: TaskUpdate) -> None:
        self.fields = self.fields.model_copy(update=_update_data(changes))

    @property
    def has_changes(self) -> bool:
        return self.fields.model_dump() != self._pristine


class TaskStore:
    """Create, read, update and delete task rows."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    # -- reads ---------------------------------------------------------------

    def snapshot(self) -> list[TaskRecord]:
        """Return every task, normalized, newest first.

        Rows that predate the ``created_at`` column get stamped here and
        the stamp is committed.
        """
        with Session(self._engine) as session:
            items = session.exec(select(Item).order_by(col(Item.created_at).desc())).all()
            now = _utcnow()
            stamped = [item for item in items if ensure_created_at(item, now)]
            records = [normalize_record(item) for item in items]
            if stamped:
                for item in stamped:
                    session.add(item)
                session.commit()
                logger.info("Assigned created_at to %d task(s)", len(stamped))
        return records

    def get(self, task_id: str) -> TaskRecord:
        with Session(self._engine) as session:
            return normalize_record(self._get_item(session, task_id))

    def resolve_id(self, prefix: str) -> str:
        """Return the full id of the single task whose id starts with *prefix*.

        Raises
        ------
        KeyError
            If no task matches.
        ValueError
            If more than one task matches.
        """
        prefix = prefix.strip()
        if not prefix:
            raise KeyError(prefix)
        with Session(self._engine) as session:
            if session.get(Item, prefix) is not None:
                return prefix
            matches = session.exec(
                select(Item.id).where(col(Item.id).startswith(prefix, autoescape=True)).limit(2)
            ).all()
        if not matches:
            raise KeyError(prefix)
        if len(matches) > 1:
            raise ValueError(f"Ambiguous task id prefix '{prefix}'")
        return matches[0]

    def count(self) -> int:
        with Session(self._engine) as session:
            return int(session.exec(select(func.count()).select_from(Item)).one())

    # -- writes --------------------------------------------------------------

    def new_draft(self, active_category: str) -> TaskDraft:
        """Start a new task with the defaults for the active category filter."""
        return TaskDraft(TaskCreate.for_category(active_category))

    def save_draft(self, draft: TaskDraft) -> Optional[TaskRecord]:
        """Persist *draft*, or drop it if it was never changed."""
        if not draft.has_changes:
            logger.debug("Discarding untouched draft")
            return None
        return self.create(draft.fields)

    def create(self, fields: TaskCreate) -> TaskRecord:
        now = _utcnow()
        item = Item(
            **{k: _to_column(k, v) for k, v in fields.model_dump().items()},
            created_at=now,
            updated_at=now,
        )
        with Session(self._engine) as session:
            session.add(item)
            session.commit()
            session.refresh(item)
            logger.info("Created task %s", item.id)
            return normalize_record(item)

    def update(self, task_id: str, changes: TaskUpdate) -> TaskRecord:
        """Write the explicitly set fields of *changes*."""
        with Session(self._engine) as session:
            item = self._get_item(session, task_id)
            for key, value in _update_data(changes).items():
                setattr(item, key, _to_column(key, value))
            item.updated_at = _utcnow()
            session.add(item)
            session.commit()
            session.refresh(item)
            logger.info("Updated task %s", item.id)
            return normalize_record(item)

    def toggle_completed(self, task_id: str) -> TaskRecord:
        with Session(self._engine) as session:
            item = self._get_item(session, task_id)
            item.is_completed = not normalize_is_completed(item.is_completed)
            item.updated_at = _utcnow()
            session.add(item)
            session.commit()
            session.refresh(item)
            logger.info("Task %s completed=%s", item.id, item.is_completed)
            return normalize_record(item)

    def delete(self, task_id: str) -> None:
        with Session(self._engine) as session:
            session.delete(self._get_item(session, task_id))
            session.commit()
        logger.info("Deleted task %s", task_id)

    def delete_many(self, task_ids: Iterable[str]) -> int:
        """Delete the given tasks; unknown ids are skipped. Returns the count deleted."""
        deleted = 0
        with Session(self._engine) as session:
            for task_id in task_ids:
                item = session.get(Item, task_id)
                if item is None:
                    continue
                session.delete(item)
                deleted += 1
            session.commit()
        logger.info("Deleted %d task(s)", deleted)
        return deleted

    # -- private helpers -----------------------------------------------------

    @staticmethod
    def _get_item(session: Session, task_id: str) -> Item:
        item = session.get(Item, task_id)
        if item is None:
            raise KeyError(task_id)
        return item
