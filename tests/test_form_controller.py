# tests/test_form_controller.py - 작성/수정 폼 상태 테스트

import pytest

from facility_log.business.form_controller import (
    FIELD_MISSING, CreateForm, EditForm, draft_to_dict
)
from facility_log.database.models import RawTime, TwelveHourTime

from conftest import legacy_entry, make_entry


@pytest.fixture
def committed():
    return []


@pytest.fixture
def create_form(scheduler, committed):
    return CreateForm(scheduler, on_commit=committed.append, submitted_display=2.5)


def _fill(form, content="점검"):
    form.set_field('date', "2024-05-01")
    form.set_field('job', "전기")
    form.set_field('writer', "임상식")
    first = form.draft.work_items[0]
    form.update_work_item(first.id, 'content', content)
    return first.id


# ============================================================================
# 업무 항목 편집
# ============================================================================

def test_new_draft_defaults(create_form):
    draft = create_form.draft
    assert draft.job == "" and draft.writer == ""
    assert len(draft.work_items) == 1
    assert draft.status == "완료"
    assert draft.urgency == "일반"
    assert draft.has_issue is False


def test_cannot_remove_last_work_item(create_form):
    only = create_form.draft.work_items[0]
    assert create_form.remove_work_item(only.id) is False
    assert create_form.draft.work_items == [only]


def test_add_and_remove_work_items(create_form):
    first = create_form.draft.work_items[0]
    second = create_form.add_work_item()
    third = create_form.add_work_item()
    assert [w.id for w in create_form.draft.work_items] == [first.id, second.id, third.id]

    assert create_form.remove_work_item(second.id) is True
    assert [w.id for w in create_form.draft.work_items] == [first.id, third.id]
    assert create_form.remove_work_item("unknown") is False


def test_update_work_item_in_place(create_form):
    first = create_form.draft.work_items[0]
    second = create_form.add_work_item()
    create_form.update_work_item(first.id, 'ampm', "오후")
    create_form.update_work_item(first.id, 'hour', "03")
    create_form.update_work_item(first.id, 'min', "20")
    create_form.update_work_item(second.id, 'content', "순찰")

    items = create_form.draft.work_items
    assert [w.id for w in items] == [first.id, second.id]
    assert items[0].time == TwelveHourTime("오후", "03", "20")
    assert items[1].content == "순찰"


def test_unknown_field_rejected(create_form):
    with pytest.raises(ValueError):
        create_form.set_field('id', "hack")


# ============================================================================
# 작성 폼 제출
# ============================================================================

def test_submit_invalid_keeps_draft(create_form, committed):
    create_form.set_field('job', "전기")
    assert create_form.submit() is None
    assert create_form.errors == {'writer', 'work'}
    assert committed == []
    assert create_form.draft.job == "전기"


def test_submit_commits_and_resets_after_delay(create_form, committed, scheduler):
    _fill(create_form)
    create_form.add_work_item()
    entry = create_form.submit()

    assert committed == [entry]
    assert len(entry.work_items) == 1
    assert create_form.submitted is True
    assert create_form.errors == set()

    scheduler.advance(2.0)
    assert create_form.draft.job == "전기"
    scheduler.advance(0.5)
    assert create_form.submitted is False
    assert create_form.draft.job == ""
    assert len(create_form.draft.work_items) == 1


def test_double_submit_ignored(create_form, committed):
    _fill(create_form)
    create_form.submit()
    assert create_form.submit() is None
    assert len(committed) == 1


def test_editing_during_banner_starts_fresh_draft(create_form, scheduler):
    _fill(create_form)
    create_form.submit()
    scheduler.advance(1.0)

    create_form.set_field('writer', "김병삼")
    assert create_form.submitted is False
    assert create_form.draft.writer == "김병삼"
    assert create_form.draft.job == ""

    scheduler.advance(5)
    assert create_form.draft.writer == "김병삼"


def test_submit_propagates_commit_failure(scheduler):
    def refuse(entry):
        raise RuntimeError("not ready")

    form = CreateForm(scheduler, on_commit=refuse, submitted_display=2.5)
    _fill(form)
    with pytest.raises(RuntimeError):
        form.submit()
    assert form.submitted is False
    assert scheduler.active_timers() == []


# ============================================================================
# 수정 폼
# ============================================================================

class FakeCollection:
    def __init__(self, entries):
        self.entries = list(entries)
        self.deleted = []

    def save(self, entry):
        for i, e in enumerate(self.entries):
            if e.id == entry.id:
                self.entries[i] = entry
                return entry
        return None

    def delete(self, log_id):
        self.deleted.append(log_id)
        self.entries = [e for e in self.entries if e.id != log_id]


@pytest.fixture
def collection():
    return FakeCollection([make_entry("a"), legacy_entry("b")])


@pytest.fixture
def edit_form(scheduler, collection):
    return EditForm(scheduler, on_save=collection.save, on_delete=collection.delete,
                    edit_saved_display=2.0)


def test_read_mode_rejects_changes(edit_form, collection):
    edit_form.open(collection.entries[0])
    with pytest.raises(RuntimeError):
        edit_form.set_field('job', "소방")


def test_cancel_edit_discards_changes(edit_form, collection):
    original = collection.entries[1]
    edit_form.open(original)
    edit_form.begin_edit()
    edit_form.set_field('job', "소방")
    edit_form.add_work_item()
    edit_form.cancel_edit()

    assert edit_form.draft.job == "전기"
    assert len(edit_form.draft.work_items) == 2
    assert edit_form.edit_mode is False
    assert collection.entries[1] is original


def test_edit_keeps_legacy_time_until_touched(edit_form, collection):
    edit_form.open(collection.entries[1])
    edit_form.begin_edit()
    legacy_id = edit_form.draft.work_items[0].id
    edit_form.update_work_item(legacy_id, 'content', "펌프 점검")
    assert edit_form.draft.work_items[0].time == RawTime("14:30")

    edit_form.update_work_item(legacy_id, 'hour', "04")
    assert edit_form.draft.work_items[0].time == TwelveHourTime("오후", "04", "30")


def test_save_edit_stays_open_in_read_mode(edit_form, collection, scheduler):
    edit_form.open(collection.entries[0])
    edit_form.begin_edit()
    edit_form.set_field('action', "차단기 교체")
    stored = edit_form.save()

    assert stored is not None
    assert collection.entries[0].action == "차단기 교체"
    assert edit_form.is_open
    assert edit_form.edit_mode is False
    assert edit_form.saved is True
    assert edit_form.current is stored

    scheduler.advance(2.0)
    assert edit_form.saved is False
    assert edit_form.is_open


def test_save_edit_validation_error(edit_form, collection):
    edit_form.open(collection.entries[0])
    edit_form.begin_edit()
    only = edit_form.draft.work_items[0]
    edit_form.update_work_item(only.id, 'content', "  ")
    assert edit_form.save() is None
    assert edit_form.errors == {'work'}
    assert edit_form.edit_mode is True
    assert collection.entries[0].work_items[0].content == "점검"


def test_save_edit_of_removed_entry(edit_form, collection):
    edit_form.open(collection.entries[0])
    edit_form.begin_edit()
    collection.entries = []
    assert edit_form.save() is None
    assert edit_form.errors == {FIELD_MISSING}


def test_saved_banner_cleared_when_editing_again(edit_form, collection, scheduler):
    edit_form.open(collection.entries[0])
    edit_form.begin_edit()
    edit_form.save()
    scheduler.advance(1.0)

    edit_form.begin_edit()
    assert edit_form.saved is False
    edit_form.save()
    scheduler.advance(1.5)
    assert edit_form.saved is True
    scheduler.advance(0.5)
    assert edit_form.saved is False


def test_delete_requires_confirmation(edit_form, collection):
    edit_form.open(collection.entries[0])
    assert edit_form.delete(lambda: False) is False
    assert edit_form.is_open
    assert len(collection.entries) == 2

    assert edit_form.delete(lambda: True) is True
    assert collection.deleted == ["a"]
    assert not edit_form.is_open


def test_delete_without_open_entry(edit_form):
    asked = []
    assert edit_form.delete(lambda: asked.append(True) or True) is False
    assert asked == []


def test_draft_to_dict_includes_display_time(collection):
    from facility_log.database.models import LogDraft
    data = draft_to_dict(LogDraft.from_entry(collection.entries[1]))
    assert data['workItems'][0]['time'] == "14:30"
    assert data['workItems'][0]['display'] == "오후 2:30"
    assert data['workItems'][1]['display'] == "오후 3:10"
