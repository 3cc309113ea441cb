# facility_log/sync/remote_sync.py - 공유 저장소 동기화
#
# 흐름:
# 1. 시작 시 한 번 불러오기 (실패하면 빈 목록) -> 준비 완료
# 2. 준비 후 poll_interval마다 다시 불러와 로컬 목록을 통째로 교체
# 3. 로컬 변경마다 전체 목록을 저장 (idle -> saving -> saved -> idle / error)
#
# 병합/버전/잠금 없음: 가장 나중에 도착한 쓰기/조회가 이긴다.

import threading
from typing import Callable, List, Optional, Sequence

from ..database.models import LogEntry
from ..database.remote_store import RemoteStore, StoreError
from ..database.serialization import CollectionFormatError, decode_collection, encode_collection
from ..utils.config import config
from ..utils.logger import logger
from ..utils.scheduler import Scheduler

STATUS_IDLE = "idle"
STATUS_SAVING = "saving"
STATUS_SAVED = "saved"
STATUS_ERROR = "error"


class SyncError(Exception):
    """동기화 실패 기본 클래스"""


class LoadError(SyncError):
    """시작 시 불러오기 실패"""


class PollError(SyncError):
    """주기적 새로고침 실패"""


class SaveError(SyncError):
    """저장 실패"""


class RemoteSync:
    """
    로컬 일지 목록과 공유 저장소 동기화

    on_collection: 불러오기/새로고침 결과로 로컬 목록을 교체하는 콜백
    on_status: 저장 상태가 바뀔 때 호출되는 콜백 (선택)
    """

    def __init__(self, store: RemoteStore, scheduler: Scheduler,
                 on_collection: Callable[[List[LogEntry]], None],
                 on_status: Callable[[str], None] = None,
                 key: str = None, poll_interval: float = None, saved_display: float = None):
        self.store = store
        self.scheduler = scheduler
        self.on_collection = on_collection
        self.on_status = on_status
        self.key = key or config.storage_key
        self.poll_interval = poll_interval if poll_interval is not None else config.poll_interval
        self.saved_display = (saved_display if saved_display is not None
                              else config.get_float('sync.saved_display', 1.5))

        self.status = STATUS_IDLE
        self.ready = False
        self.last_error: Optional[SyncError] = None

        self._lock = threading.RLock()
        self._running = False
        self._poll_handle = None
        self._revert_handle = None
        self._save_seq = 0

    # =========================================================================
    # 저장소 기본 연산
    # =========================================================================

    def _fetch(self, error_cls) -> List[LogEntry]:
        try:
            payload = self.store.get(self.key)
        except StoreError as e:
            raise error_cls(f"저장소 조회 실패: {e}") from e
        if payload is None:
            return []
        try:
            return decode_collection(payload)
        except CollectionFormatError as e:
            raise error_cls(f"저장소 데이터 형식 오류: {e}") from e

    def load(self) -> List[LogEntry]:
        """공유 저장소에서 전체 목록 불러오기 (실패 시 LoadError)"""
        return self._fetch(LoadError)

    def fetch(self) -> List[LogEntry]:
        """새로고침용 불러오기 (실패 시 PollError)"""
        return self._fetch(PollError)

    def save(self, entries: Sequence[LogEntry]) -> None:
        """전체 목록 저장 (실패 시 SaveError)"""
        try:
            self.store.set(self.key, encode_collection(entries))
        except StoreError as e:
            raise SaveError(f"저장소 저장 실패: {e}") from e

    # =========================================================================
    # 시작 / 종료
    # =========================================================================

    def start(self):
        """시작 시 불러오기를 백그라운드로 실행"""
        with self._lock:
            self._running = True
        self.scheduler.spawn(self._initial_load)

    def _initial_load(self):
        try:
            entries = self.load()
            logger.info(f"공유 저장소에서 일지 {len(entries)}건 불러옴")
        except LoadError as e:
            # 불러오기 실패는 빈 목록으로 대체 (화면을 막지 않음)
            logger.warning(f"일지 불러오기 실패, 빈 목록으로 시작: {e}")
            self.last_error = e
            entries = []

        if not self._running:
            return
        # 콜백은 엔진 잠금 밖에서 호출
        self.on_collection(entries)
        with self._lock:
            if not self._running:
                return
            self.ready = True
            self._schedule_poll()
        logger.info("공유 저장소 폴링 시작")

    def stop(self):
        """폴링 타이머와 상태 타이머 취소"""
        with self._lock:
            self._running = False
            if self._poll_handle is not None:
                self._poll_handle.cancel()
                self._poll_handle = None
            if self._revert_handle is not None:
                self._revert_handle.cancel()
                self._revert_handle = None
        logger.info("공유 저장소 폴링 중단")

    # =========================================================================
    # 주기적 새로고침
    # =========================================================================

    def _schedule_poll(self):
        if self._running and self.poll_interval > 0:
            self._poll_handle = self.scheduler.call_later(self.poll_interval, self._poll_tick)

    def _poll_tick(self):
        with self._lock:
            if not self._running:
                return
            # 다음 폴링을 먼저 예약 (조회가 늦어져도 다음 폴링은 예정대로)
            self._schedule_poll()
        self.refresh()

    def refresh(self) -> bool:
        """
        공유 저장소 목록으로 로컬 목록 교체

        실패는 조용히 무시하고 로컬 목록을 유지한다.
        """
        if not self.ready:
            return False
        try:
            entries = self.fetch()
        except PollError as e:
            logger.warning(f"일지 새로고침 실패 (다음 폴링에서 재시도): {e}")
            self.last_error = e
            return False

        if not self._running:
            return False
        self.on_collection(entries)
        logger.debug(f"일지 새로고침: {len(entries)}건")
        return True

    # =========================================================================
    # 저장
    # =========================================================================

    def _set_status(self, status: str):
        self.status = status
        if self.on_status:
            self.on_status(status)

    def persist(self, entries: Sequence[LogEntry]) -> bool:
        """로컬 변경 후 전체 목록 저장 시작 (준비 전에는 무시)"""
        with self._lock:
            if not self.ready or not self._running:
                return False
            self._save_seq += 1
            seq = self._save_seq
            if self._revert_handle is not None:
                self._revert_handle.cancel()
                self._revert_handle = None
            self._set_status(STATUS_SAVING)
        self.scheduler.spawn(self._save_task, list(entries), seq)
        return True

    def _save_task(self, entries: List[LogEntry], seq: int):
        try:
            self.save(entries)
        except SaveError as e:
            logger.error(f"일지 저장 실패: {e}")
            with self._lock:
                self.last_error = e
                # 저장 상태는 가장 최근 저장 시도의 결과만 반영
                if seq != self._save_seq or not self._running:
                    return
                self._set_status(STATUS_ERROR)
            return

        logger.debug(f"일지 {len(entries)}건 저장 완료")
        with self._lock:
            if seq != self._save_seq or not self._running:
                return
            self._set_status(STATUS_SAVED)
            self._revert_handle = self.scheduler.call_later(
                self.saved_display, self._revert_saved, seq
            )

    def _revert_saved(self, seq: int):
        with self._lock:
            # 그 사이 새 저장이 시작됐으면 상태를 건드리지 않음
            if self.status == STATUS_SAVED and seq == self._save_seq:
                self._set_status(STATUS_IDLE)
            self._revert_handle = None

    def get_sync_status(self) -> dict:
        """동기화 상태 조회"""
        return {
            'ready': self.ready,
            'status': self.status,
            'polling': self._running and self._poll_handle is not None,
            'lastError': str(self.last_error) if self.last_error else None,
        }
