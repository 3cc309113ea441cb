# facility_log/business/form_controller.py - 작성/수정 폼 상태 관리

import threading
from typing import Callable, Optional, Sequence, Set

from ..database.models import (
    JOBS, WRITERS, LogDraft, LogEntry, default_work_item, update_work_item_field
)
from ..utils.config import config
from ..utils.logger import logger
from ..utils.scheduler import Scheduler
from .log_service import (
    DraftValidationError, commit_draft, commit_edit, validate_draft
)

FIELD_MISSING = 'missing'


class DraftForm:
    """
    일지 초안 공통 동작

    필드 수정, 업무 항목 추가/삭제/수정, 검증.
    알림 배너 타이머는 call_later 핸들로 관리하고 상태가 바뀌면 취소한다.
    """

    def __init__(self, scheduler: Scheduler, lock: threading.RLock = None,
                 jobs: Sequence[str] = JOBS, writers: Sequence[str] = WRITERS):
        self.scheduler = scheduler
        self.lock = lock or threading.RLock()
        self.jobs = tuple(jobs)
        self.writers = tuple(writers)
        self.draft: Optional[LogDraft] = None
        self.errors: Set[str] = set()
        self._ack_handle = None

    def _require_draft(self) -> LogDraft:
        self._before_change()
        if self.draft is None:
            raise RuntimeError("편집 중인 일지가 없습니다.")
        return self.draft

    def _before_change(self):
        """초안을 바꾸기 직전 호출"""

    def cancel_ack(self):
        if self._ack_handle is not None:
            self._ack_handle.cancel()
            self._ack_handle = None

    def set_field(self, name: str, value):
        if name not in LogDraft.EDITABLE_FIELDS:
            raise ValueError(f"수정할 수 없는 필드: {name}")
        with self.lock:
            draft = self._require_draft()
            if name in ('has_issue', 'need_report'):
                value = bool(value)
            setattr(draft, name, value)

    def add_work_item(self):
        """현재 시각, 빈 내용의 항목을 끝에 추가"""
        with self.lock:
            draft = self._require_draft()
            item = default_work_item()
            draft.work_items = draft.work_items + [item]
            return item

    def remove_work_item(self, item_id: str) -> bool:
        """항목 삭제 (마지막 한 줄은 남김)"""
        with self.lock:
            draft = self._require_draft()
            if len(draft.work_items) <= 1:
                return False
            remaining = [w for w in draft.work_items if w.id != item_id]
            changed = len(remaining) != len(draft.work_items)
            draft.work_items = remaining
            return changed

    def update_work_item(self, item_id: str, field_name: str, value: str) -> bool:
        """id가 같은 항목의 필드를 바꿔 같은 자리에 교체"""
        with self.lock:
            draft = self._require_draft()
            changed = False
            items = []
            for w in draft.work_items:
                if w.id == item_id:
                    w = update_work_item_field(w, field_name, value)
                    changed = True
                items.append(w)
            draft.work_items = items
            return changed

    def validate(self) -> Set[str]:
        with self.lock:
            if self.draft is None:
                return set()
            return validate_draft(self.draft, self.jobs, self.writers)


class CreateForm(DraftForm):
    """
    새 일지 작성 폼

    제출 성공 시 submitted 배너를 띄우고 submitted_display초 뒤
    빈 초안으로 초기화한다. 그 전에 사용자가 초안을 다시 만지면
    타이머를 취소하고 바로 초기화한 뒤 수정 내용을 반영한다.
    """

    def __init__(self, scheduler: Scheduler, on_commit: Callable[[LogEntry], None],
                 submitted_display: float = None, **kwargs):
        super().__init__(scheduler, **kwargs)
        self.on_commit = on_commit
        self.submitted_display = (submitted_display if submitted_display is not None
                                  else config.get_float('form.submitted_display', 2.5))
        self.submitted = False
        self.draft = LogDraft()

    def _before_change(self):
        if self.submitted:
            self.reset()

    def reset(self):
        """빈 초안으로 초기화"""
        with self.lock:
            self.cancel_ack()
            self.draft = LogDraft()
            self.errors = set()
            self.submitted = False

    def submit(self) -> Optional[LogEntry]:
        """
        검증 후 일지 목록에 추가

        Returns:
            추가된 일지 (검증 실패 시 None, errors에 필드 목록)
        """
        with self.lock:
            if self.submitted:
                return None
            try:
                entry = commit_draft(self.draft, self.jobs, self.writers)
            except DraftValidationError as e:
                self.errors = e.errors
                return None

            self.on_commit(entry)
            logger.info(f"일지 제출: {entry.date} {entry.job} {entry.writer} ({len(entry.work_items)}건)")
            self.errors = set()
            self.submitted = True
            self.cancel_ack()
            self._ack_handle = self.scheduler.call_later(self.submitted_display, self._finish_submit)
            return entry

    def _finish_submit(self):
        with self.lock:
            if self.submitted:
                self._ack_handle = None
                self.reset()

    def to_dict(self) -> dict:
        with self.lock:
            return {
                'draft': draft_to_dict(self.draft),
                'errors': sorted(self.errors),
                'submitted': self.submitted,
            }


class EditForm(DraftForm):
    """
    일지 상세/수정 화면

    open()으로 일지를 열면 복사본 초안을 만든다 (취소하면 원본 그대로).
    저장 성공 시 saved 배너를 잠시 띄우고 읽기 모드로 돌아가되 화면은 닫지 않는다.
    """

    def __init__(self, scheduler: Scheduler, on_save: Callable[[LogEntry], Optional[LogEntry]],
                 on_delete: Callable[[str], None], edit_saved_display: float = None, **kwargs):
        super().__init__(scheduler, **kwargs)
        self.on_save = on_save
        self.on_delete = on_delete
        self.edit_saved_display = (edit_saved_display if edit_saved_display is not None
                                   else config.get_float('form.edit_saved_display', 2.0))
        self.current: Optional[LogEntry] = None
        self.edit_mode = False
        self.saved = False

    @property
    def is_open(self) -> bool:
        return self.current is not None

    def _clear_saved(self):
        self.cancel_ack()
        self.saved = False

    def open(self, entry: LogEntry):
        with self.lock:
            self._clear_saved()
            self.current = entry
            self.draft = LogDraft.from_entry(entry)
            self.edit_mode = False
            self.errors = set()

    def close(self):
        with self.lock:
            self._clear_saved()
            self.current = None
            self.draft = None
            self.edit_mode = False
            self.errors = set()

    def begin_edit(self):
        with self.lock:
            if self.current is None:
                raise RuntimeError("열린 일지가 없습니다.")
            self._clear_saved()
            self.draft = LogDraft.from_entry(self.current)
            self.edit_mode = True
            self.errors = set()

    def cancel_edit(self):
        """수정 내용 버리고 읽기 모드로"""
        with self.lock:
            if self.current is None:
                return
            self.draft = LogDraft.from_entry(self.current)
            self.edit_mode = False
            self.errors = set()

    def _before_change(self):
        if not self.edit_mode:
            raise RuntimeError("수정 모드가 아닙니다.")

    def save(self) -> Optional[LogEntry]:
        """
        검증 후 목록의 같은 자리에 교체

        Returns:
            저장된 일지 (검증 실패 또는 이미 삭제된 일지면 None)
        """
        with self.lock:
            if self.current is None or not self.edit_mode:
                return None
            try:
                updated = commit_edit(self.draft, self.jobs, self.writers)
            except DraftValidationError as e:
                self.errors = e.errors
                return None

            stored = self.on_save(updated)
            if stored is None:
                logger.warning(f"수정할 일지를 찾을 수 없음 (다른 사용자가 삭제): {updated.id}")
                self.errors = {FIELD_MISSING}
                return None

            logger.info(f"일지 수정: {stored.id}")
            self.current = stored
            self.draft = LogDraft.from_entry(stored)
            self.edit_mode = False
            self.errors = set()
            self._clear_saved()
            self.saved = True
            self._ack_handle = self.scheduler.call_later(
                self.edit_saved_display, self._finish_save, stored
            )
            return stored

    def _finish_save(self, stored: LogEntry):
        with self.lock:
            # 그 사이 다른 일지를 열었거나 다시 저장했으면 무시
            if self.saved and self.current is stored:
                self.saved = False
            self._ack_handle = None

    def delete(self, confirm: Callable[[], bool]) -> bool:
        """
        사용자 확인 후 삭제하고 화면 닫기

        Args:
            confirm: 예/아니오를 반환하는 확인 함수
        """
        with self.lock:
            if self.current is None:
                return False
            if not confirm():
                return False
            log_id = self.current.id
            self.on_delete(log_id)
            logger.info(f"일지 삭제: {log_id}")
            self.close()
            return True

    def to_dict(self) -> dict:
        with self.lock:
            return {
                'open': self.is_open,
                'entry': self.current.to_dict() if self.current else None,
                'draft': draft_to_dict(self.draft) if self.draft else None,
                'editMode': self.edit_mode,
                'errors': sorted(self.errors),
                'saved': self.saved,
            }


def draft_to_dict(draft: LogDraft) -> dict:
    """화면 전달용 초안 딕셔너리 (작업 항목은 12시간제로 펼침)"""
    items = []
    for w in draft.work_items:
        item = w.to_dict()
        item['display'] = w.display_time()
        items.append(item)
    return {
        'id': draft.id,
        'date': draft.date,
        'job': draft.job,
        'writer': draft.writer,
        'workItems': items,
        'hasIssue': draft.has_issue,
        'issue': draft.issue,
        'action': draft.action,
        'status': draft.status,
        'urgency': draft.urgency,
        'needReport': draft.need_report,
    }
