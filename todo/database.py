# todo/database.py
"""SQLite engine, table creation, and additive schema migration using SQLModel."""

import logging
from pathlib import Path
from typing import Optional

from sqlalchemy import Column, inspect, text
from sqlalchemy.dialects.sqlite import dialect as sqlite_dialect
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine

from todo.config import get_database_url

logger = logging.getLogger(__name__)


def make_engine(url: Optional[str] = None) -> Engine:
    """Create an engine for *url* (default: the configured database).

    The parent directory of a file-backed SQLite database is created.
    """
    url = url or get_database_url()
    engine = create_engine(url, echo=False)
    database = engine.url.database
    if engine.url.get_backend_name() == "sqlite" and database and database != ":memory:":
        Path(database).expanduser().parent.mkdir(parents=True, exist_ok=True)
    return engine


def _compile_column_type(column: Column) -> str:
    """Compile a SQLAlchemy column type to a SQLite-compatible DDL string."""
    return column.type.compile(dialect=sqlite_dialect())


def auto_migrate(engine: Engine) -> list[str]:
    """Bring existing tables up to the SQLModel metadata, additively.

    - New columns -> ALTER TABLE ADD COLUMN; every non-key column is
      nullable, so existing rows read them as NULL
    - Removed columns or type changes -> logged and left in place; rows
      are still readable because every read is normalized.

    Returns the ``table.column`` names that were added.
    """
    inspector = inspect(engine)
    existing_tables = set(inspector.get_table_names())
    added_columns: list[str] = []

    for table_name, table in SQLModel.metadata.tables.items():
        if table_name not in existing_tables:
            continue

        db_columns = {col["name"]: col for col in inspector.get_columns(table_name)}
        model_columns = {col.name: col for col in table.columns}

        added = sorted(set(model_columns) - set(db_columns))
        removed = sorted(set(db_columns) - set(model_columns))

        type_changed = []
        for col_name in set(db_columns) & set(model_columns):
            db_type = str(db_columns[col_name]["type"]).upper()
            model_type = _compile_column_type(model_columns[col_name]).upper()
            if db_type != model_type:
                type_changed.append(col_name)

        if removed or type_changed:
            logger.warning(
                "Schema drift on '%s' left in place (removed=%s, type_changed=%s)",
                table_name, removed, sorted(type_changed),
            )

        if not added:
            continue

        logger.info("Adding columns to '%s': %s", table_name, added)
        with engine.begin() as conn:
            for col_name in added:
                col_type = _compile_column_type(model_columns[col_name])
                stmt = f'ALTER TABLE "{table_name}" ADD COLUMN "{col_name}" {col_type}'
                logger.info("  %s", stmt)
                conn.execute(text(stmt))
                added_columns.append(f"{table_name}.{col_name}")

    return added_columns


def create_db_and_tables(engine: Engine) -> None:
    """Create all tables from SQLModel metadata, then auto-migrate schema diffs."""
    # Import for the side effect of registering every table on the metadata.
    import todo.models  # noqa: F401
    import todo.settings  # noqa: F401

    SQLModel.metadata.create_all(engine)
    auto_migrate(engine)

