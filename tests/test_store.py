"""Tests for task persistence: drafts, edits, toggles and deletes."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError
from sqlmodel import Session

from todo.models import Item, TaskCreate, TaskPriority, TaskUpdate
from todo.store import TaskStore


class TestDrafts:
    def test_new_draft_defaults(self, store: TaskStore):
        draft = store.new_draft("All")
        assert draft.fields.title == "New Task"
        assert draft.fields.notes == ""
        assert draft.fields.category == "General"
        assert draft.fields.priority is TaskPriority.medium
        assert draft.fields.due_date is None
        assert draft.fields.is_completed is False
        assert not draft.has_changes

    def test_new_draft_uses_active_category(self, store: TaskStore):
        assert store.new_draft("Work").fields.category == "Work"

    def test_untouched_draft_is_discarded(self, store: TaskStore):
        draft = store.new_draft("All")
        assert store.save_draft(draft) is None
        assert store.count() == 0

    def test_draft_with_same_values_is_discarded(self, store: TaskStore):
        draft = store.new_draft("All")
        draft.apply(TaskUpdate(title="New Task"))
        assert not draft.has_changes
        assert store.save_draft(draft) is None

    def test_changed_draft_is_saved(self, store: TaskStore):
        draft = store.new_draft("Errands")
        draft.apply(TaskUpdate(title="  Buy milk  ", priority=TaskPriority.high))
        record = store.save_draft(draft)
        assert record is not None
        assert record.title == "Buy milk"
        assert record.category == "Errands"
        assert record.priority is TaskPriority.high
        assert store.count() == 1


class TestCreateAndRead:
    def test_create_then_snapshot(self, store: TaskStore):
        created = store.create(TaskCreate(title="Read book", notes="chapter 3"))
        snapshot = store.snapshot()
        assert [r.id for r in snapshot] == [created.id]
        assert snapshot[0].notes == "chapter 3"
        assert snapshot[0].created_at.tzinfo is not None

    def test_get_unknown_raises(self, store: TaskStore):
        with pytest.raises(KeyError):
            store.get("missing")

    def test_due_date_round_trips_in_utc(self, store: TaskStore):
        due = datetime(2026, 10, 20, 17, 0, tzinfo=timezone(timedelta(hours=2)))
        record = store.create(TaskCreate(title="Dentist", due_date=due))
        assert store.get(record.id).due_date == due

    def test_snapshot_stamps_legacy_rows(self, engine, store: TaskStore):
        with Session(engine) as session:
            session.add(Item(id="legacy", title=None, priority=7))
            session.commit()

        [record] = store.snapshot()
        assert record.title == "New Task"
        assert record.priority is TaskPriority.medium

        with Session(engine) as session:
            stored = session.get(Item, "legacy")
            assert stored.created_at is not None
            assert stored.title is None
        assert store.get("legacy").created_at == record.created_at


class TestUpdate:
    def test_only_set_fields_change(self, store: TaskStore):
        record = store.create(TaskCreate(title="Plan trip", notes="beach", category="Personal"))
        updated = store.update(record.id, TaskUpdate(notes="mountains"))
        assert updated.title == "Plan trip"
        assert updated.notes == "mountains"
        assert updated.category == "Personal"
        assert updated.created_at == record.created_at

    def test_clear_due_date(self, store: TaskStore):
        record = store.create(TaskCreate(title="Call", due_date=datetime.now(timezone.utc)))
        updated = store.update(record.id, TaskUpdate(due_date=None))
        assert updated.due_date is None

    def test_blank_title_rejected(self):
        with pytest.raises(ValidationError):
            TaskUpdate(title="   ")

    def test_update_unknown_raises(self, store: TaskStore):
        with pytest.raises(KeyError):
            store.update("missing", TaskUpdate(notes="x"))


class TestToggle:
    def test_toggle_flips_completion(self, store: TaskStore):
        record = store.create(TaskCreate(title="Laundry"))
        assert store.toggle_completed(record.id).is_completed is True
        assert store.toggle_completed(record.id).is_completed is False

    def test_toggle_row_with_missing_flag(self, engine, store: TaskStore):
        with Session(engine) as session:
            session.add(Item(id="partial", title="Partial"))
            session.commit()
        assert store.toggle_completed("partial").is_completed is True


class TestDelete:
    def test_delete(self, store: TaskStore):
        record = store.create(TaskCreate(title="Temp"))
        store.delete(record.id)
        assert store.count() == 0
        with pytest.raises(KeyError):
            store.delete(record.id)

    def test_delete_many_skips_unknown(self, store: TaskStore):
        a = store.create(TaskCreate(title="A"))
        b = store.create(TaskCreate(title="B"))
        store.create(TaskCreate(title="C"))
        assert store.delete_many([a.id, "missing", b.id]) == 2
        assert [r.title for r in store.snapshot()] == ["C"]


class TestResolveId:
    def test_unique_prefix(self, store: TaskStore):
        record = store.create(TaskCreate(title="Prefix"))
        assert store.resolve_id(record.id[:6]) == record.id
        assert store.resolve_id(record.id) == record.id

    def test_no_match(self, store: TaskStore):
        with pytest.raises(KeyError):
            store.resolve_id("zzzz")

    def test_empty_prefix(self, store: TaskStore):
        with pytest.raises(KeyError):
            store.resolve_id("  ")

    def test_ambiguous_prefix(self, engine, store: TaskStore):
        with Session(engine) as session:
            session.add(Item(id="abc-1", title="One"))
            session.add(Item(id="abc-2", title="Two"))
            session.commit()
        with pytest.raises(ValueError):
            store.resolve_id("abc")

    def test_like_wildcards_are_literal(self, engine, store: TaskStore):
        with Session(engine) as session:
            session.add(Item(id="ab_1", title="Underscore"))
            session.add(Item(id="abz1", title="Letter"))
            session.commit()
        assert store.resolve_id("ab_") == "ab_1"
        with pytest.raises(KeyError):
            store.resolve_id("____")
        with pytest.raises(KeyError):
            store.resolve_id("%")
