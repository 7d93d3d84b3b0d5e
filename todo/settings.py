# todo/settings.py
"""Persisted user preferences and the list query they start from."""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.engine import Engine
from sqlmodel import Field, Session, SQLModel, select

from todo.models import ALL_CATEGORY, CATEGORIES, TaskSortOption
from todo.query import QuerySpec

logger = logging.getLogger(__name__)

SORT_OPTION_KEY = "taskSortOption"
DEFAULT_CATEGORY_KEY = "taskDefaultCategory"
HAPTICS_KEY = "taskHapticsEnabled"


class AppSetting(SQLModel, table=True):
    """One stored preference."""
    key: str = Field(primary_key=True)
    value: Optional[str] = Field(default=None)


@dataclass(frozen=True)
class Preferences:
    sort_option: TaskSortOption = TaskSortOption.due_date
    default_category: str = ALL_CATEGORY
    haptics_enabled: bool = True

    def initial_query(self) -> QuerySpec:
        """Query the task list opens with."""
        return QuerySpec(
            sort_option=self.sort_option,
            active_category=self.default_category,
        )


def parse_sort_option(raw: Optional[str]) -> TaskSortOption:
    try:
        return TaskSortOption(raw)
    except ValueError:
        return TaskSortOption.due_date


def parse_category(raw: Optional[str]) -> str:
    return raw if raw in CATEGORIES else ALL_CATEGORY


def parse_flag(raw: Optional[str], default: bool = True) -> bool:
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in {"1", "true", "yes", "on"}:
        return True
    if value in {"0", "false", "no", "off"}:
        return False
    return default


class SettingsStore:
    """Key/value preference storage in the task database."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def load(self) -> Preferences:
        """Read preferences; missing or unrecognised values fall back to defaults."""
        with Session(self._engine) as session:
            rows = {row.key: row.value for row in session.exec(select(AppSetting)).all()}
        return Preferences(
            sort_option=parse_sort_option(rows.get(SORT_OPTION_KEY)),
            default_category=parse_category(rows.get(DEFAULT_CATEGORY_KEY)),
            haptics_enabled=parse_flag(rows.get(HAPTICS_KEY)),
        )

    def save(self, prefs: Preferences) -> None:
        values = {
            SORT_OPTION_KEY: prefs.sort_option.value,
            DEFAULT_CATEGORY_KEY: prefs.default_category,
            HAPTICS_KEY: "1" if prefs.haptics_enabled else "0",
        }
        with Session(self._engine) as session:
            for key, value in values.items():
                row = session.get(AppSetting, key)
                if row is None:
                    row = AppSetting(key=key)
                row.value = value
                session.add(row)
            session.commit()
        logger.info("Saved preferences %s", values)
