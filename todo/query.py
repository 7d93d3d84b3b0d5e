# todo/query.py
"""Derive the displayed task list from a snapshot and a query.

Pure functions only: callers pass a snapshot of normalized records and
get back new sequences. Nothing here touches the database.
"""

import locale
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field

from todo.models import ALL_CATEGORY, TaskRecord, TaskSortOption


class QuerySpec(BaseModel):
    """User-controlled parameters of the task list."""

    model_config = ConfigDict(frozen=True)

    search_text: str = Field("", description="Case-insensitive substring of title or notes")
    active_category: str = Field(ALL_CATEGORY, description="Category label, or 'All'")
    show_completed: bool = True
    sort_option: TaskSortOption = TaskSortOption.due_date


@dataclass(frozen=True)
class TaskView:
    """Filtered and sorted records, plus their open/completed split."""

    items: tuple[TaskRecord, ...]
    open_items: tuple[TaskRecord, ...]
    completed_items: tuple[TaskRecord, ...]
    show_completed: bool

    @property
    def is_empty(self) -> bool:
        return not self.items

    @property
    def show_completed_section(self) -> bool:
        """Whether a separate "Completed" group should be rendered."""
        return self.show_completed and bool(self.completed_items)


# -- filtering ---------------------------------------------------------------

def matches_completion(record: TaskRecord, show_completed: bool) -> bool:
    return show_completed or not record.is_completed


def matches_category(record: TaskRecord, active_category: str) -> bool:
    """Exact, case-sensitive match unless the filter is "All"."""
    return active_category == ALL_CATEGORY or record.category == active_category


def matches_search(record: TaskRecord, search_text: str) -> bool:
    if not search_text:
        return True
    token = search_text.lower()
    return token in record.title.lower() or token in record.notes.lower()


def filter_records(records: Iterable[TaskRecord], spec: QuerySpec) -> list[TaskRecord]:
    """Apply the completion, category and search filters, keeping input order."""
    return [
        r for r in records
        if matches_completion(r, spec.show_completed)
        and matches_category(r, spec.active_category)
        and matches_search(r, spec.search_text)
    ]


# -- sorting -----------------------------------------------------------------

def _title_key(title: str) -> str:
    folded = title.casefold()
    try:
        return locale.strxfrm(folded)
    except ValueError:
        # strxfrm rejects embedded NUL characters
        return folded


def _due_date_key(record: TaskRecord) -> tuple:
    # Dated tasks first, by date; undated tasks after, oldest created first.
    if record.due_date is not None:
        return (0, record.due_date)
    return (1, record.created_at)


def sort_records(records: Iterable[TaskRecord], option: TaskSortOption) -> list[TaskRecord]:
    """Return *records* ordered by *option*.

    All orders are stable: records that compare equal keep their input
    order.
    """
    option = TaskSortOption(option)
    if option is TaskSortOption.due_date:
        return sorted(records, key=_due_date_key)
    if option is TaskSortOption.priority:
        return sorted(records, key=lambda r: (-r.priority.value, r.created_at))
    if option is TaskSortOption.title:
        return sorted(records, key=lambda r: _title_key(r.title))
    return sorted(records, key=lambda r: r.created_at, reverse=True)


# -- partition ---------------------------------------------------------------

def partition(records: Sequence[TaskRecord]) -> tuple[tuple[TaskRecord, ...], tuple[TaskRecord, ...]]:
    """Split into (open, completed), each preserving relative order."""
    open_items = tuple(r for r in records if not r.is_completed)
    completed_items = tuple(r for r in records if r.is_completed)
    return open_items, completed_items


def run_query(records: Iterable[TaskRecord], spec: QuerySpec) -> TaskView:
    """Filter, sort and partition a snapshot for display."""
    items = sort_records(filter_records(records, spec), spec.sort_option)
    open_items, completed_items = partition(items)
    return TaskView(
        items=tuple(items),
        open_items=open_items,
        completed_items=completed_items,
        show_completed=spec.show_completed,
    )
