# facility_log/business/session.py - 근무일지 세션 (목록 + 동기화 + 폼)

import threading
from typing import Callable, List, Optional, Sequence

from ..database.models import LogEntry
from ..database.remote_store import RemoteStore, create_store
from ..sync.remote_sync import RemoteSync
from ..utils.config import config
from ..utils.logger import logger
from ..utils.scheduler import Scheduler, ThreadScheduler
from . import log_service
from .form_controller import CreateForm, EditForm


class SessionNotReadyError(RuntimeError):
    """초기 불러오기 전에 목록을 바꾸려 함"""


class LogbookSession:
    """
    화면 하나가 소유하는 세션 상태

    메모리 일지 목록의 유일한 소유자. 목록은 항상 통째로 교체하며
    (사용자 변경, 불러오기, 폴링 모두), 사용자 변경만 저장소에 기록한다.

    init()으로 시작, dispose()로 폴링 타이머까지 정리.
    """

    def __init__(self, store: RemoteStore = None, scheduler: Scheduler = None,
                 writers: Sequence[str] = None, jobs: Sequence[str] = None,
                 key: str = None, poll_interval: float = None, saved_display: float = None,
                 submitted_display: float = None, edit_saved_display: float = None):
        self.store = store if store is not None else create_store()
        self.scheduler = scheduler or ThreadScheduler()
        self.writers = tuple(writers or config.writers)
        self.jobs = tuple(jobs or config.jobs)

        self._lock = threading.RLock()
        self._entries: List[LogEntry] = []
        self._disposed = False
        self._listeners: List[Callable[[], None]] = []

        self.sync = RemoteSync(
            self.store, self.scheduler,
            on_collection=self._replace_entries,
            key=key,
            poll_interval=poll_interval,
            saved_display=saved_display,
        )
        form_kwargs = dict(lock=self._lock, jobs=self.jobs, writers=self.writers)
        self.create_form = CreateForm(
            self.scheduler, on_commit=self.add_entry,
            submitted_display=submitted_display, **form_kwargs
        )
        self.edit_form = EditForm(
            self.scheduler, on_save=self.save_entry, on_delete=self.delete_entry,
            edit_saved_display=edit_saved_display, **form_kwargs
        )

    # =========================================================================
    # 수명 주기
    # =========================================================================

    def init(self):
        """공유 저장소 불러오기 시작 (완료 후 폴링 시작)"""
        logger.info("근무일지 세션 시작")
        self.sync.start()

    def dispose(self):
        """폴링/배너 타이머 정리"""
        with self._lock:
            if self._disposed:
                return
            self._disposed = True
            self.create_form.cancel_ack()
            self.edit_form.cancel_ack()
        self.sync.stop()
        logger.info("근무일지 세션 종료")

    @property
    def ready(self) -> bool:
        return self.sync.ready

    @property
    def sync_status(self) -> str:
        return self.sync.status

    def add_listener(self, callback: Callable[[], None]):
        """목록이 바뀔 때마다 호출할 콜백 등록"""
        self._listeners.append(callback)

    def _notify(self):
        for callback in list(self._listeners):
            try:
                callback()
            except Exception as e:
                logger.error(f"목록 변경 알림 오류: {e}")

    # =========================================================================
    # 목록 교체
    # =========================================================================

    @property
    def entries(self) -> List[LogEntry]:
        with self._lock:
            return list(self._entries)

    def _replace_entries(self, entries: List[LogEntry]):
        """불러오기/폴링 결과로 교체 (병합 없음, 저장하지 않음)"""
        with self._lock:
            if self._disposed:
                return
            self._entries = list(entries)
        self._notify()

    def _mutate(self, entries: List[LogEntry]):
        """사용자 변경으로 교체하고 전체 목록 저장"""
        with self._lock:
            if not self.ready:
                raise SessionNotReadyError("일지를 불러오는 중입니다.")
            self._entries = entries
            self.sync.persist(entries)
        self._notify()

    def add_entry(self, entry: LogEntry):
        with self._lock:
            self._mutate(log_service.add_entry(self._entries, entry))

    def save_entry(self, entry: LogEntry) -> Optional[LogEntry]:
        """같은 자리에 교체 (목록에 없으면 None, 목록 변경 없음)"""
        with self._lock:
            updated, stored = log_service.apply_edit(self._entries, entry)
            if stored is None:
                return None
            self._mutate(updated)
            return stored

    def delete_entry(self, log_id: str):
        with self._lock:
            if log_service.find_entry(self._entries, log_id) is None:
                return
            self._mutate(log_service.remove_entry(self._entries, log_id))

    def refresh(self) -> bool:
        """즉시 새로고침 (폴링과 같은 동작)"""
        return self.sync.refresh()

    # =========================================================================
    # 조회
    # =========================================================================

    def find(self, log_id: str) -> Optional[LogEntry]:
        return log_service.find_entry(self.entries, log_id)

    def filtered(self, date: str = None, job: str = None, writer: str = None) -> List[LogEntry]:
        return log_service.filter_entries(self.entries, date=date, job=job, writer=writer)

    def summary(self, on: str = None) -> log_service.LogSummary:
        return log_service.summarize(self.entries, writers=self.writers, on=on)

    # =========================================================================
    # 상세/수정 화면
    # =========================================================================

    def open_entry(self, log_id: str) -> bool:
        entry = self.find(log_id)
        if entry is None:
            return False
        self.edit_form.open(entry)
        return True

    def delete_open_entry(self, confirm: Callable[[], bool]) -> bool:
        return self.edit_form.delete(confirm)
