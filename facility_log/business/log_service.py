# facility_log/business/log_service.py - 일지 목록 비즈니스 로직 (I/O 없음)

from dataclasses import dataclass, replace
from datetime import timedelta
from typing import Iterable, List, Optional, Sequence, Set, Tuple

from ..database.models import (
    JOBS, STATUSES, URGENCIES, WRITERS, LogDraft, LogEntry
)
from ..utils.formatting import gen_id, now_iso, parse_date, today

ALL = "전체"

FIELD_DATE = 'date'
FIELD_JOB = 'job'
FIELD_WRITER = 'writer'
FIELD_WORK = 'work'
FIELD_ISSUE = 'issue'
FIELD_STATUS = 'status'
FIELD_URGENCY = 'urgency'

ERROR_MESSAGES = {
    FIELD_DATE: "날짜를 선택해주세요",
    FIELD_JOB: "직무를 선택해주세요",
    FIELD_WRITER: "작성자를 선택해주세요",
    FIELD_WORK: "업무 내용을 최소 1건 입력해주세요",
    FIELD_ISSUE: "특이사항 내용을 입력해주세요",
    FIELD_STATUS: "처리 상태를 선택해주세요",
    FIELD_URGENCY: "긴급도를 선택해주세요",
}


class DraftValidationError(Exception):
    """제출할 수 없는 일지 (필드별 오류 집합 포함)"""

    def __init__(self, errors: Set[str]):
        self.errors = set(errors)
        super().__init__(", ".join(sorted(self.errors)))


def validate_draft(draft: LogDraft, jobs: Sequence[str] = JOBS,
                   writers: Sequence[str] = WRITERS) -> Set[str]:
    """
    작성 중인 일지 검증

    Returns:
        오류가 있는 필드 이름 집합 (비어 있으면 제출 가능)
    """
    errors = set()
    if not draft.date or parse_date(draft.date) is None:
        errors.add(FIELD_DATE)
    if not draft.job or draft.job not in jobs:
        errors.add(FIELD_JOB)
    if not draft.writer or draft.writer not in writers:
        errors.add(FIELD_WRITER)
    if not any(not w.is_blank for w in draft.work_items):
        errors.add(FIELD_WORK)
    if draft.has_issue:
        if not (draft.issue or "").strip():
            errors.add(FIELD_ISSUE)
        if draft.status not in STATUSES:
            errors.add(FIELD_STATUS)
        if draft.urgency not in URGENCIES:
            errors.add(FIELD_URGENCY)
    return errors


def _clean_items(draft: LogDraft):
    # 빈 항목은 작성 화면의 자리표시일 뿐이므로 제외
    return tuple(w for w in draft.work_items if not w.is_blank)


def commit_draft(draft: LogDraft, jobs: Sequence[str] = JOBS,
                 writers: Sequence[str] = WRITERS, now: str = None) -> LogEntry:
    """새 일지 확정 (ID, 작성 시각 부여)"""
    errors = validate_draft(draft, jobs, writers)
    if errors:
        raise DraftValidationError(errors)
    return draft.to_entry(_clean_items(draft), id=gen_id(), created_at=now or now_iso())


def commit_edit(draft: LogDraft, jobs: Sequence[str] = JOBS,
                writers: Sequence[str] = WRITERS) -> LogEntry:
    """수정 중인 일지 확정 (ID, 작성 시각 유지)"""
    if draft.id is None:
        raise ValueError("수정 대상 일지 ID가 없습니다.")
    errors = validate_draft(draft, jobs, writers)
    if errors:
        raise DraftValidationError(errors)
    return draft.to_entry(_clean_items(draft), id=draft.id,
                          created_at=draft.created_at or "", updated_at=draft.updated_at)


def add_entry(entries: Sequence[LogEntry], entry: LogEntry) -> List[LogEntry]:
    """새 일지는 맨 앞에 추가 (최신순)"""
    return [entry] + list(entries)


def apply_edit(entries: Sequence[LogEntry], updated: LogEntry,
               now: str = None) -> Tuple[List[LogEntry], Optional[LogEntry]]:
    """
    같은 ID의 일지를 제자리에서 교체하고 수정 시각 기록

    Returns:
        (새 목록, 기록된 일지). 목록에 해당 ID가 없으면 (원래 목록 복사본, None)
    """
    stamped = replace(updated, updated_at=now or now_iso())
    result = []
    found = None
    for entry in entries:
        if entry.id == updated.id and found is None:
            result.append(stamped)
            found = stamped
        else:
            result.append(entry)
    return result, found


def remove_entry(entries: Sequence[LogEntry], log_id: str) -> List[LogEntry]:
    """ID로 삭제 (없으면 변경 없음)"""
    return [e for e in entries if e.id != log_id]


def find_entry(entries: Iterable[LogEntry], log_id: str) -> Optional[LogEntry]:
    return next((e for e in entries if e.id == log_id), None)


def _is_wildcard(value: Optional[str]) -> bool:
    return value is None or value == "" or value == ALL


def filter_entries(entries: Iterable[LogEntry], date: str = None, job: str = None,
                   writer: str = None) -> List[LogEntry]:
    """날짜/직무/작성자 필터 (None, 빈 값, '전체'는 전체 허용, 조건은 AND)"""
    return [
        e for e in entries
        if (_is_wildcard(date) or e.date == date)
        and (_is_wildcard(job) or e.job == job)
        and (_is_wildcard(writer) or e.writer == writer)
    ]


# ============================================================================
# 현황 집계 (매번 현재 목록에서 다시 계산)
# ============================================================================

def today_entries(entries: Iterable[LogEntry], on: str = None) -> List[LogEntry]:
    on = on or today()
    return [e for e in entries if e.date == on]


def submitted_writers(entries: Iterable[LogEntry], on: str = None) -> Set[str]:
    return {e.writer for e in today_entries(entries, on)}


def pending_count(entries: Iterable[LogEntry]) -> int:
    """미결 특이사항 건수"""
    return sum(1 for e in entries if e.is_pending)


def urgent_count(entries: Iterable[LogEntry]) -> int:
    return sum(1 for e in entries if e.is_urgent)


def recent_issues(entries: Iterable[LogEntry], limit: int = 5) -> List[LogEntry]:
    """특이사항이 있는 최근 일지 (목록 순서 유지)"""
    return [e for e in entries if e.has_issue][:limit]


def week_issue_count(entries: Iterable[LogEntry], on: str = None) -> int:
    """최근 7일(오늘 포함, 달력 날짜 기준) 특이사항 건수"""
    end = parse_date(on) if on else None
    if end is None:
        end = parse_date(today())
    start = end - timedelta(days=6)
    count = 0
    for e in entries:
        if not e.has_issue:
            continue
        entry_date = parse_date(e.date)
        if entry_date is not None and start <= entry_date <= end:
            count += 1
    return count


@dataclass(frozen=True)
class LogSummary:
    """현황 요약"""

    today: str
    today_entries: Tuple[LogEntry, ...]
    submitted_writers: frozenset
    writer_board: Tuple[Tuple[str, bool], ...]
    pending_count: int
    urgent_count: int
    recent_issues: Tuple[LogEntry, ...]
    week_issue_count: int

    def to_dict(self) -> dict:
        return {
            'today': self.today,
            'todayCount': len(self.today_entries),
            'submittedWriters': sorted(self.submitted_writers),
            'writerBoard': [{'writer': w, 'submitted': done} for w, done in self.writer_board],
            'pendingCount': self.pending_count,
            'urgentCount': self.urgent_count,
            'recentIssues': [e.to_dict() for e in self.recent_issues],
            'weekIssueCount': self.week_issue_count,
        }


def summarize(entries: Sequence[LogEntry], writers: Sequence[str] = WRITERS,
              on: str = None) -> LogSummary:
    """현황 요약 계산 (캐시하지 않음)"""
    on = on or today()
    todays = today_entries(entries, on)
    done = {e.writer for e in todays}
    return LogSummary(
        today=on,
        today_entries=tuple(todays),
        submitted_writers=frozenset(done),
        writer_board=tuple((w, w in done) for w in writers),
        pending_count=pending_count(entries),
        urgent_count=urgent_count(entries),
        recent_issues=tuple(recent_issues(entries)),
        week_issue_count=week_issue_count(entries, on),
    )
