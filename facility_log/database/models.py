# facility_log/database/models.py - 데이터 모델

from dataclasses import dataclass, field, replace
from typing import List, Optional, Tuple, Union

from ..utils.formatting import (
    AM, PM, build_time, fmt_time_display, gen_id, now_time_parts, split_time, today
)

WRITERS = ("임상식", "김병삼", "한승조", "김동철")
JOBS = ("전기", "소방", "기계/공조", "냉난방", "급배수", "승강기", "통신", "보안/경비", "기타")

STATUS_DONE = "완료"
STATUS_IN_PROGRESS = "진행중"
STATUS_OPEN = "미결"
STATUSES = (STATUS_DONE, STATUS_IN_PROGRESS, STATUS_OPEN)

URGENCY_NORMAL = "일반"
URGENCY_CAUTION = "주의"
URGENCY_URGENT = "긴급"
URGENCIES = (URGENCY_NORMAL, URGENCY_CAUTION, URGENCY_URGENT)

MERIDIEMS = (AM, PM)
HOURS = tuple(f"{h:02d}" for h in range(1, 13))
MINUTES = ("00", "10", "20", "30", "40", "50")

# 과거 데이터/외부 입력 호환용
_MERIDIEM_ALIASES = {"AM": AM, "PM": PM, AM: AM, PM: PM}


@dataclass(frozen=True)
class TwelveHourTime:
    """12시간제 시간 (시간 선택기로 입력한 항목)"""

    ampm: str = AM
    hour: str = "09"
    min: str = "00"

    def to_24h(self) -> str:
        return build_time(self.ampm, self.hour, self.min)

    def display(self) -> str:
        return fmt_time_display(self.ampm, self.hour, self.min)

    def to_twelve_hour(self) -> 'TwelveHourTime':
        return self


@dataclass(frozen=True)
class RawTime:
    """24시간제 'HH:MM' 문자열 (선택기 도입 이전 항목)"""

    time: str = ""

    def to_24h(self) -> str:
        return self.time

    def display(self) -> str:
        if not self.time:
            return ""
        return fmt_time_display(*split_time(self.time))

    def to_twelve_hour(self) -> TwelveHourTime:
        if not self.time:
            return TwelveHourTime()
        return TwelveHourTime(*split_time(self.time))


TimeSpec = Union[TwelveHourTime, RawTime]


def normalize_time(spec: Optional[TimeSpec]) -> str:
    """비교/정렬용 표준 24시간제 값 (시간 없음은 빈 문자열)"""
    return spec.to_24h() if spec is not None else ""


@dataclass(frozen=True)
class WorkItem:
    """근무일지 안의 시간별 업무 항목"""

    id: str = ""
    time: Optional[TimeSpec] = None
    content: str = ""
    # 12시간제 항목에 함께 남아 있던 예전 'time' 값 (저장 시 그대로 기록)
    legacy_time: Optional[str] = None

    @property
    def is_blank(self) -> bool:
        return not (self.content or "").strip()

    def display_time(self) -> str:
        return self.time.display() if self.time is not None else ""

    def to_dict(self) -> dict:
        """직렬화용 딕셔너리 (시간 표기 방식 유지)"""
        data = {'id': self.id}
        if isinstance(self.time, TwelveHourTime):
            data.update(ampm=self.time.ampm, hour=self.time.hour, min=self.time.min)
            if self.legacy_time is not None:
                data['time'] = self.legacy_time
        elif isinstance(self.time, RawTime):
            data['time'] = self.time.time
        data['content'] = self.content
        return data

    @classmethod
    def from_dict(cls, data: dict, fallback_id: str = None) -> 'WorkItem':
        """
        저장된 항목 복원

        ampm이 있으면 12시간제가 우선이고 'time'은 legacy_time으로 보존한다.
        id가 없는 항목은 fallback_id(없으면 새 id)를 쓴다.
        """
        time_spec: Optional[TimeSpec] = None
        legacy_time = None
        if data.get('ampm'):
            time_spec = TwelveHourTime(
                ampm=_MERIDIEM_ALIASES.get(data['ampm'], data['ampm']),
                hour=str(data.get('hour') or "09"),
                min=str(data.get('min') or "00"),
            )
            if data.get('time') is not None:
                legacy_time = str(data['time'])
        elif data.get('time') is not None:
            time_spec = RawTime(str(data['time']))
        return cls(id=str(data.get('id') or fallback_id or gen_id()), time=time_spec,
                   content=data.get('content') or "", legacy_time=legacy_time)


def default_work_item() -> WorkItem:
    """현재 시각, 빈 내용의 업무 항목"""
    return WorkItem(id=gen_id(), time=TwelveHourTime(*now_time_parts()), content="")


@dataclass(frozen=True)
class LogEntry:
    """제출된 근무일지 레코드"""

    id: str
    created_at: str
    date: str
    job: str
    writer: str
    work_items: Tuple[WorkItem, ...] = ()
    has_issue: bool = False
    issue: str = ""
    action: str = ""
    status: str = STATUS_DONE
    urgency: str = URGENCY_NORMAL
    need_report: bool = False
    updated_at: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return self.has_issue and self.status == STATUS_OPEN

    @property
    def is_urgent(self) -> bool:
        return self.has_issue and self.urgency == URGENCY_URGENT

    def to_dict(self) -> dict:
        data = {
            'id': self.id,
            'createdAt': self.created_at,
            'date': self.date,
            'job': self.job,
            'writer': self.writer,
            'workItems': [w.to_dict() for w in self.work_items],
            'hasIssue': self.has_issue,
            'issue': self.issue,
            'action': self.action,
            'status': self.status,
            'urgency': self.urgency,
            'needReport': self.need_report,
        }
        if self.updated_at is not None:
            data['updatedAt'] = self.updated_at
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'LogEntry':
        return cls(
            id=str(data['id']),
            created_at=data.get('createdAt') or "",
            updated_at=data.get('updatedAt'),
            date=data.get('date') or "",
            job=data.get('job') or "",
            writer=data.get('writer') or "",
            # id 없는 항목은 일지 id와 순번으로 고정 (폴링마다 바뀌지 않도록)
            work_items=tuple(WorkItem.from_dict(w, fallback_id=f"{data['id']}-{i}")
                             for i, w in enumerate(data.get('workItems') or [])),
            has_issue=bool(data.get('hasIssue', False)),
            issue=data.get('issue') or "",
            action=data.get('action') or "",
            status=data.get('status') or STATUS_DONE,
            urgency=data.get('urgency') or URGENCY_NORMAL,
            need_report=bool(data.get('needReport', False)),
        )


@dataclass
class LogDraft:
    """작성/수정 중인 일지 (커밋 전 가변 상태)"""

    date: str = field(default_factory=today)
    job: str = ""
    writer: str = ""
    work_items: List[WorkItem] = field(default_factory=lambda: [default_work_item()])
    has_issue: bool = False
    issue: str = ""
    action: str = ""
    status: str = STATUS_DONE
    urgency: str = URGENCY_NORMAL
    need_report: bool = False
    # 수정 흐름에서만 채워짐
    id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    EDITABLE_FIELDS = (
        'date', 'job', 'writer', 'has_issue', 'issue', 'action',
        'status', 'urgency', 'need_report',
    )

    @classmethod
    def from_entry(cls, entry: LogEntry) -> 'LogDraft':
        """기존 일지의 복사본 (취소 시 원본에 영향 없음)"""
        return cls(
            date=entry.date,
            job=entry.job,
            writer=entry.writer,
            work_items=list(entry.work_items),
            has_issue=entry.has_issue,
            issue=entry.issue,
            action=entry.action,
            status=entry.status,
            urgency=entry.urgency,
            need_report=entry.need_report,
            id=entry.id,
            created_at=entry.created_at,
            updated_at=entry.updated_at,
        )

    def to_entry(self, work_items: Tuple[WorkItem, ...], id: str, created_at: str,
                 updated_at: Optional[str] = None) -> LogEntry:
        return LogEntry(
            id=id,
            created_at=created_at,
            updated_at=updated_at,
            date=self.date,
            job=self.job,
            writer=self.writer,
            work_items=work_items,
            has_issue=self.has_issue,
            issue=self.issue,
            action=self.action,
            status=self.status,
            urgency=self.urgency,
            need_report=self.need_report,
        )


def update_work_item_field(item: WorkItem, field_name: str, value: str) -> WorkItem:
    """
    업무 항목의 한 필드를 바꾼 새 항목 반환

    시간 필드를 수정하면 24시간제 항목도 12시간제로 바뀐다.
    """
    if field_name == 'content':
        return replace(item, content=value)
    if field_name in ('ampm', 'hour', 'min'):
        current = item.time.to_twelve_hour() if item.time is not None else TwelveHourTime()
        if field_name == 'ampm':
            value = _MERIDIEM_ALIASES.get(value, value)
        allowed = {'ampm': MERIDIEMS, 'hour': HOURS, 'min': MINUTES}[field_name]
        if value not in allowed:
            raise ValueError(f"허용되지 않는 {field_name} 값: {value}")
        return replace(item, time=replace(current, **{field_name: value}), legacy_time=None)
    raise ValueError(f"알 수 없는 업무 항목 필드: {field_name}")
