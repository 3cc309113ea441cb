# tests/conftest.py - 공용 픽스처

import pytest

from facility_log.business.session import LogbookSession
from facility_log.database.models import LogEntry, TwelveHourTime, RawTime, WorkItem
from facility_log.database.remote_store import MemoryStore, StoreError
from facility_log.database.serialization import encode_collection

KEY = "facility_logs"


class _Handle:
    def __init__(self, when, fn, args):
        self.when = when
        self.fn = fn
        self.args = args
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class ManualScheduler:
    """
    테스트용 스케줄러

    defer=False: spawn 즉시 실행
    defer=True: spawn 작업을 쌓아두고 run_pending()으로 원하는 순서대로 실행
    타이머는 advance(초)로 진행
    """

    def __init__(self, defer=False):
        self.defer = defer
        self.now = 0.0
        self.pending = []
        self.timers = []

    def spawn(self, fn, *args):
        if self.defer:
            self.pending.append((fn, args))
        else:
            fn(*args)

    def call_later(self, delay, fn, *args):
        handle = _Handle(self.now + delay, fn, args)
        self.timers.append(handle)
        return handle

    def run_pending(self, index=0):
        fn, args = self.pending.pop(index)
        fn(*args)

    def run_all_pending(self):
        while self.pending:
            self.run_pending()

    def active_timers(self):
        return [t for t in self.timers if not t.cancelled]

    def advance(self, seconds):
        target = self.now + seconds
        while True:
            due = [t for t in self.active_timers() if t.when <= target]
            if not due:
                break
            handle = min(due, key=lambda t: t.when)
            self.timers.remove(handle)
            self.now = handle.when
            handle.fn(*handle.args)
        self.now = target


class FlakyStore(MemoryStore):
    """fail_get / fail_set 플래그로 통신 실패를 흉내내는 저장소"""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.fail_get = False
        self.fail_set = False
        self.get_calls = 0
        self.set_calls = 0

    def get(self, key):
        self.get_calls += 1
        if self.fail_get:
            raise StoreError("connection refused")
        return super().get(key)

    def set(self, key, value):
        self.set_calls += 1
        if self.fail_set:
            raise StoreError("connection reset")
        super().set(key, value)


def make_entry(id="log1", date="2024-05-01", job="전기", writer="임상식", **kwargs):
    kwargs.setdefault('created_at', "2024-05-01T00:00:00.000Z")
    kwargs.setdefault('work_items', (
        WorkItem(id="w1", time=TwelveHourTime("오전", "09", "00"), content="점검"),
    ))
    return LogEntry(id=id, date=date, job=job, writer=writer, **kwargs)


def make_issue(id, status="미결", urgency="일반", date="2024-05-01", **kwargs):
    return make_entry(id=id, date=date, has_issue=True, issue="누수 발생",
                      status=status, urgency=urgency, **kwargs)


def legacy_entry(id="legacy1"):
    return make_entry(id=id, work_items=(
        WorkItem(id="w1", time=RawTime("14:30"), content="펌프 교체"),
        WorkItem(id="w2", time=TwelveHourTime("오후", "03", "10"), content="시운전"),
    ))


def seed(store, entries):
    store.set(KEY, encode_collection(entries))


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def store():
    return FlakyStore()


@pytest.fixture
def make_session(store, scheduler):
    sessions = []

    def _make(**kwargs):
        kwargs.setdefault('store', store)
        kwargs.setdefault('scheduler', scheduler)
        s = LogbookSession(
            key=KEY, poll_interval=10, saved_display=1.5,
            submitted_display=2.5, edit_saved_display=2.0,
            writers=("임상식", "김병삼", "한승조", "김동철"),
            jobs=("전기", "소방", "기계/공조", "냉난방", "급배수", "승강기", "통신", "보안/경비", "기타"),
            **kwargs
        )
        sessions.append(s)
        return s

    yield _make
    for s in sessions:
        s.dispose()
