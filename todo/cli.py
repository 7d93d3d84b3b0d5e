# todo/cli.py
"""Terminal front end: list, add, edit, toggle and delete tasks.

Examples:
  todo list --search milk --sort priority
  todo add "Buy milk" --category Errands --priority high --due 2026-10-20T17:00
  todo toggle 3f2a
  todo settings --sort title --default-category Work --no-haptics
"""

import argparse
import locale
import logging
import sys
from datetime import datetime, timezone
from typing import Optional, TextIO

from sqlalchemy.exc import SQLAlchemyError

from todo.config import get_log_level
from todo.database import create_db_and_tables, make_engine
from todo.models import CATEGORIES, TaskPriority, TaskRecord, TaskSortOption, TaskUpdate
from todo.query import QuerySpec, TaskView, run_query
from todo.settings import Preferences, SettingsStore
from todo.store import TaskStore

logger = logging.getLogger(__name__)

SHORT_ID_LENGTH = 8
EMPTY_TITLE = "Stay on top of your day"
EMPTY_HINT = (
    "Create your first task to get started. You can organize tasks by "
    "category, set priorities, and add due dates."
)


def _parse_due(value: str) -> datetime:
    """ISO-8601 date/time; naive values are local time."""
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date/time: '{value}'") from None
    return parsed.astimezone(timezone.utc)


def _parse_priority(value: str) -> TaskPriority:
    try:
        return TaskPriority[value.lower()]
    except KeyError:
        raise argparse.ArgumentTypeError(f"invalid priority: '{value}'") from None


def format_due(due: datetime) -> str:
    return due.astimezone().strftime("%b %d, %Y %I:%M %p")


def format_row(record: TaskRecord, now: Optional[datetime] = None) -> str:
    mark = "[x]" if record.is_completed else "[ ]"
    parts = [f"{record.id[:SHORT_ID_LENGTH]}  {mark} {record.title}",
             record.category, record.priority.title]
    if record.due_date is not None:
        parts.append(f"due {format_due(record.due_date)}")
    line = " · ".join(parts)
    if record.is_overdue(now):
        line += "  OVERDUE"
    return line


def render_view(view: TaskView, out: TextIO, now: Optional[datetime] = None) -> None:
    if view.is_empty:
        print(EMPTY_TITLE, file=out)
        print(EMPTY_HINT, file=out)
        return
    if view.open_items:
        print("Upcoming", file=out)
        for record in view.open_items:
            print(f"  {format_row(record, now)}", file=out)
    if view.show_completed_section:
        print("Completed", file=out)
        for record in view.completed_items:
            print(f"  {format_row(record, now)}", file=out)


def _changes_from_args(args: argparse.Namespace) -> dict:
    changes: dict = {}
    for name in ("title", "notes", "category", "priority"):
        value = getattr(args, name, None)
        if value is not None:
            changes[name] = value
    if getattr(args, "due", None) is not None:
        changes["due_date"] = args.due
    if getattr(args, "no_due", False):
        changes["due_date"] = None
    if getattr(args, "completed", None) is not None:
        changes["is_completed"] = args.completed
    return changes


def apply_user_locale() -> str:
    """Collate titles by the environment's locale (LC_ALL / LC_COLLATE / LANG).

    Returns the active collation locale; an unavailable locale leaves "C".
    """
    try:
        return locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error as exc:
        logger.warning("Could not apply user locale for sorting: %s", exc)
        return locale.setlocale(locale.LC_COLLATE)


def _saved(prefs: Preferences, out: TextIO) -> None:
    if prefs.haptics_enabled:
        out.write("\a")


# -- commands ----------------------------------------------------------------

def cmd_list(args, store: TaskStore, settings: SettingsStore, out: TextIO) -> int:
    initial = settings.load().initial_query()
    spec = QuerySpec(
        search_text=args.search,
        active_category=args.category or initial.active_category,
        show_completed=not args.hide_completed,
        sort_option=args.sort or initial.sort_option,
    )
    render_view(run_query(store.snapshot(), spec), out)
    return 0


def cmd_add(args, store: TaskStore, settings: SettingsStore, out: TextIO) -> int:
    prefs = settings.load()
    draft = store.new_draft(prefs.default_category)
    draft.apply(TaskUpdate(**_changes_from_args(args)))
    record = store.save_draft(draft)
    if record is None:
        print("Nothing entered; task discarded.", file=out)
        return 0
    print(f"Added {format_row(record)}", file=out)
    _saved(prefs, out)
    return 0


def cmd_edit(args, store: TaskStore, settings: SettingsStore, out: TextIO) -> int:
    changes = _changes_from_args(args)
    task_id = store.resolve_id(args.id)
    if not changes:
        print("Nothing to change.", file=out)
        return 0
    record = store.update(task_id, TaskUpdate(**changes))
    print(f"Updated {format_row(record)}", file=out)
    _saved(settings.load(), out)
    return 0


def cmd_toggle(args, store: TaskStore, settings: SettingsStore, out: TextIO) -> int:
    record = store.toggle_completed(store.resolve_id(args.id))
    state = "completed" if record.is_completed else "reopened"
    print(f"Marked {state}: {format_row(record)}", file=out)
    _saved(settings.load(), out)
    return 0


def cmd_delete(args, store: TaskStore, settings: SettingsStore, out: TextIO) -> int:
    task_ids = [store.resolve_id(prefix) for prefix in args.ids]
    deleted = store.delete_many(task_ids)
    print(f"Deleted {deleted} task(s).", file=out)
    return 0


def cmd_settings(args, store: TaskStore, settings: SettingsStore, out: TextIO) -> int:
    prefs = settings.load()
    updated = Preferences(
        sort_option=args.sort or prefs.sort_option,
        default_category=args.default_category or prefs.default_category,
        haptics_enabled=prefs.haptics_enabled if args.haptics is None else args.haptics,
    )
    if updated != prefs:
        settings.save(updated)
    print(f"Sort by: {updated.sort_option.label}", file=out)
    print(f"Default category: {updated.default_category}", file=out)
    print(f"Haptics: {'on' if updated.haptics_enabled else 'off'}", file=out)
    return 0


# -- parser ------------------------------------------------------------------

def _add_field_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--notes", help="Free-form notes")
    parser.add_argument("--category", help="Category label")
    parser.add_argument(
        "--priority",
        type=_parse_priority,
        help="low, medium or high",
    )
    parser.add_argument("--due", type=_parse_due, help="Due date/time, ISO-8601")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="todo",
        description="Single-user task list",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--db", default=None, help="SQLAlchemy database URL")
    sub = parser.add_subparsers(dest="command", required=True)

    sort_choices = [option.value for option in TaskSortOption]

    p_list = sub.add_parser("list", help="Show tasks")
    p_list.add_argument("--search", default="", help="Match title or notes")
    p_list.add_argument("--category", choices=CATEGORIES, default=None)
    p_list.add_argument("--hide-completed", action="store_true")
    p_list.add_argument("--sort", type=TaskSortOption, choices=list(TaskSortOption),
                        metavar="{" + ",".join(sort_choices) + "}", default=None)
    p_list.set_defaults(func=cmd_list)

    p_add = sub.add_parser("add", help="Add a task")
    p_add.add_argument("title", nargs="?", default=None)
    _add_field_arguments(p_add)
    p_add.add_argument("--done", dest="completed", action="store_const", const=True, default=None)
    p_add.set_defaults(func=cmd_add)

    p_edit = sub.add_parser("edit", help="Edit a task")
    p_edit.add_argument("id", help="Task id or unique prefix")
    p_edit.add_argument("--title")
    _add_field_arguments(p_edit)
    p_edit.add_argument("--no-due", action="store_true", help="Clear the due date")
    p_edit.add_argument("--done", dest="completed", action=argparse.BooleanOptionalAction,
                        default=None)
    p_edit.set_defaults(func=cmd_edit)

    p_toggle = sub.add_parser("toggle", help="Mark a task completed or open")
    p_toggle.add_argument("id", help="Task id or unique prefix")
    p_toggle.set_defaults(func=cmd_toggle)

    p_delete = sub.add_parser("delete", help="Delete tasks")
    p_delete.add_argument("ids", nargs="+", help="Task ids or unique prefixes")
    p_delete.set_defaults(func=cmd_delete)

    p_settings = sub.add_parser("settings", help="Show or change preferences")
    p_settings.add_argument("--sort", type=TaskSortOption, choices=list(TaskSortOption),
                            metavar="{" + ",".join(sort_choices) + "}", default=None)
    p_settings.add_argument("--default-category", choices=CATEGORIES, default=None)
    p_settings.add_argument("--haptics", action=argparse.BooleanOptionalAction, default=None)
    p_settings.set_defaults(func=cmd_settings)

    return parser


def main(argv: Optional[list[str]] = None, out: Optional[TextIO] = None) -> int:
    out = out or sys.stdout
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=get_log_level(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    apply_user_locale()

    engine = make_engine(args.db)
    try:
        create_db_and_tables(engine)
        return args.func(args, TaskStore(engine), SettingsStore(engine), out)
    except KeyError as exc:
        logger.debug("Unknown task id %r", exc.args[0])
        print(f"No task matches '{exc.args[0]}'", file=sys.stderr)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
    except SQLAlchemyError:
        logger.exception("Database error running '%s'", args.command)
        raise
    finally:
        engine.dispose()
    return 1
