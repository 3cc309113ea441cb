# tests/test_remote_store.py - 공유 저장소 구현 테스트

import pytest
import requests

from facility_log.database.remote_store import (
    FileStore, HttpStore, MemoryStore, StoreError, create_store
)


def test_memory_store_get_set():
    store = MemoryStore({'k': 'v'})
    assert store.get('k') == 'v'
    assert store.get('missing') is None
    store.set('k', 'w')
    assert store.get('k') == 'w'


def test_file_store_round_trip(tmp_path):
    store = FileStore(tmp_path / "shared")
    assert store.get('facility_logs') is None
    store.set('facility_logs', '[{"writer": "임상식"}]')
    assert store.get('facility_logs') == '[{"writer": "임상식"}]'
    assert (tmp_path / "shared" / "facility_logs.json").exists()
    assert not list((tmp_path / "shared").glob("*.tmp"))


def test_file_store_daily_backup(tmp_path):
    store = FileStore(tmp_path)
    store.set('logs', '[1]')
    store.set('logs', '[2]')
    store.set('logs', '[3]')
    backups = list(tmp_path.glob('logs_backup_*.json'))
    assert len(backups) == 1
    assert backups[0].read_text(encoding='utf-8') == '[1]'
    assert store.get('logs') == '[3]'


def test_file_store_keeps_recent_backups(tmp_path):
    store = FileStore(tmp_path, keep_backups=2)
    for stamp in ("20240101", "20240102", "20240103"):
        (tmp_path / f"logs_backup_{stamp}.json").write_text("[]", encoding='utf-8')
    store.set('logs', '[]')
    store.set('logs', '[1]')
    names = sorted(p.name for p in tmp_path.glob('logs_backup_*.json'))
    assert len(names) == 2
    assert "logs_backup_20240101.json" not in names


def test_file_store_read_error(tmp_path):
    store = FileStore(tmp_path)
    (tmp_path / "logs.json").mkdir()
    with pytest.raises(StoreError):
        store.get('logs')


def test_file_store_undecodable_bytes(tmp_path):
    store = FileStore(tmp_path)
    (tmp_path / "logs.json").write_bytes(b'\xff\xfe[]')
    with pytest.raises(StoreError):
        store.get('logs')


class FakeResponse:
    def __init__(self, status_code, text=""):
        self.status_code = status_code
        self.text = text
        self.encoding = None


class FakeSession:
    def __init__(self):
        self.data = {}
        self.fail = False
        self.put_status = 204
        self.requests = []

    def get(self, url, headers=None, timeout=None):
        self.requests.append(('GET', url, headers, timeout))
        if self.fail:
            raise requests.ConnectionError("down")
        if url not in self.data:
            return FakeResponse(404)
        return FakeResponse(200, self.data[url])

    def put(self, url, data=None, headers=None, timeout=None):
        self.requests.append(('PUT', url, headers, timeout))
        if self.fail:
            raise requests.Timeout("slow")
        if self.put_status < 300:
            self.data[url] = data.decode('utf-8')
        return FakeResponse(self.put_status, "err")


@pytest.fixture
def http():
    session = FakeSession()
    store = HttpStore("https://kv.example.com/store/", token="secret", timeout=3, session=session)
    return store, session


def test_http_store_get_set(http):
    store, session = http
    assert store.get('facility_logs') is None
    store.set('facility_logs', '["점검"]')
    assert store.get('facility_logs') == '["점검"]'

    method, url, headers, timeout = session.requests[-1]
    assert url == "https://kv.example.com/store/facility_logs"
    assert headers['Authorization'] == "Bearer secret"
    assert timeout == 3


def test_http_store_transport_errors(http):
    store, session = http
    session.fail = True
    with pytest.raises(StoreError):
        store.get('k')
    with pytest.raises(StoreError):
        store.set('k', 'v')


def test_http_store_bad_status(http):
    store, session = http
    session.put_status = 500
    with pytest.raises(StoreError):
        store.set('k', 'v')


def test_http_store_requires_url():
    with pytest.raises(ValueError):
        HttpStore("", session=FakeSession())


def test_create_store(monkeypatch, tmp_path):
    from facility_log.utils.config import config
    assert isinstance(create_store('memory'), MemoryStore)

    monkeypatch.setitem(config._config, 'storage', {'path': str(tmp_path)})
    store = create_store('file')
    assert isinstance(store, FileStore)
    assert store.folder == tmp_path

    with pytest.raises(ValueError):
        create_store('ftp')
