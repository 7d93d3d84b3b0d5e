# todo/normalize.py
"""Map raw stored task values to their logical values.

Every reader here is total: missing, blank or mistyped values degrade to
a default instead of raising, so rows written by older schemas still
render. ``ensure_created_at`` is the one step with a write side effect and
is only called by the store.
"""

import uuid
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Optional

from todo.models import (
    DEFAULT_CATEGORY,
    PLACEHOLDER_TITLE,
    TaskPriority,
    TaskRecord,
    as_utc,
    is_overdue,  # noqa: F401  re-exported with the other readers
)

# Snake-case column name -> alternate key accepted in plain mappings.
_ALIASES = {
    "due_date": "dueDate",
    "is_completed": "isCompleted",
    "created_at": "createdAt",
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _non_blank(raw: Any, placeholder: str) -> str:
    if isinstance(raw, str) and raw.strip():
        return raw
    return placeholder


def normalize_title(raw: Any) -> str:
    """Stored title, or the placeholder when it is missing or blank.

    The stored value is returned untrimmed.
    """
    return _non_blank(raw, PLACEHOLDER_TITLE)


def normalize_category(raw: Any) -> str:
    return _non_blank(raw, DEFAULT_CATEGORY)


def normalize_notes(raw: Any) -> str:
    return raw if isinstance(raw, str) else ""


def normalize_priority(raw: Any) -> TaskPriority:
    """Decode the stored integer; anything unrecognised is medium."""
    if isinstance(raw, TaskPriority):
        return raw
    # bool is an int subclass but never a valid encoding
    if isinstance(raw, int) and not isinstance(raw, bool):
        try:
            return TaskPriority(raw)
        except ValueError:
            return TaskPriority.medium
    return TaskPriority.medium


def normalize_is_completed(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, int):
        return raw != 0
    return False


def normalize_due_date(raw: Any) -> Optional[datetime]:
    """Stored due date as an aware UTC datetime, or None.

    ISO-8601 strings (from imported data) are parsed; unparseable values
    read as "no due date".
    """
    if isinstance(raw, datetime):
        return as_utc(raw)
    if isinstance(raw, str) and raw.strip():
        try:
            return as_utc(datetime.fromisoformat(raw.strip()))
        except ValueError:
            return None
    return None


def normalize_id(raw: Any) -> str:
    if isinstance(raw, uuid.UUID):
        return str(raw)
    if isinstance(raw, str) and raw.strip():
        return raw
    return str(uuid.uuid4())


def ensure_created_at(item: Any, now: Optional[datetime] = None) -> bool:
    """Stamp ``item.created_at`` with the current time if it is unset.

    Mutates *item*; the caller is responsible for persisting it. Returns
    True when a stamp was assigned.
    """
    if getattr(item, "created_at", None) is not None:
        return False
    item.created_at = now or _utcnow()
    return True


def _read(raw: Any, key: str) -> Any:
    if isinstance(raw, Mapping):
        if key in raw:
            return raw[key]
        alias = _ALIASES.get(key)
        return raw.get(alias) if alias else None
    return getattr(raw, key, None)


def normalize_record(raw: Any, now: Optional[datetime] = None) -> TaskRecord:
    """Build a :class:`TaskRecord` from a stored row or a plain mapping.

    A missing ``created_at`` reads as *now* (or the current time) but is
    not written back; use :func:`ensure_created_at` for that.
    """
    created_at = _read(raw, "created_at")
    if isinstance(created_at, datetime):
        created_at = as_utc(created_at)
    else:
        created_at = now or _utcnow()

    return TaskRecord(
        id=normalize_id(_read(raw, "id")),
        title=normalize_title(_read(raw, "title")),
        notes=normalize_notes(_read(raw, "notes")),
        category=normalize_category(_read(raw, "category")),
        priority=normalize_priority(_read(raw, "priority")),
        due_date=normalize_due_date(_read(raw, "due_date")),
        is_completed=normalize_is_completed(_read(raw, "is_completed")),
        created_at=created_at,
    )
