# facility_log/database/remote_store.py - 공유 키-값 저장소
#
# 코어는 get(key) / set(key, value) 두 가지만 사용한다.
# 트랜잭션/잠금 없음: 모든 작성자가 키 하나에 전체 목록을 덮어쓴다.

import os
import shutil
import tempfile
import threading
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

import requests

from ..utils.config import config
from ..utils.logger import logger


class StoreError(Exception):
    """저장소 통신 실패"""


class RemoteStore:
    """공유 키-값 저장소 인터페이스"""

    def get(self, key: str) -> Optional[str]:
        """키의 값 반환 (없으면 None)"""
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError


class MemoryStore(RemoteStore):
    """프로세스 내부 저장소 (테스트/데모용)"""

    def __init__(self, initial: Dict[str, str] = None):
        self._data: Dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value


class FileStore(RemoteStore):
    """
    공유 폴더 저장소

    Google Drive, OneDrive, Dropbox 등의 동기화 폴더에
    키마다 JSON 파일 하나(<key>.json)를 둔다.
    """

    def __init__(self, folder: Path = None, keep_backups: int = 10):
        self.folder = Path(folder) if folder else self._get_shared_folder()
        self.keep_backups = keep_backups
        self.folder.mkdir(parents=True, exist_ok=True)
        logger.info(f"공유 폴더 저장소: {self.folder}")

    def _get_shared_folder(self) -> Path:
        """
        공유 폴더 경로 가져오기

        설정값이 없으면 클라우드 동기화 폴더를 자동 감지하고,
        그것도 없으면 홈 디렉토리 아래 로컬 폴더를 사용한다.
        """
        shared_path = config.get('storage.path')
        if shared_path:
            return Path(shared_path)

        home = Path.home()
        candidates = [
            home / "Google Drive",
            home / "GoogleDrive",
            home / "G드라이브",
            home / "OneDrive",
            home / "OneDrive - Personal",
            home / "Dropbox",
        ]
        for path in candidates:
            if path.exists():
                folder = path / "FacilityLog"
                logger.info(f"클라우드 폴더 자동 감지: {folder}")
                return folder

        return home / "FacilityLog"

    def _path_for(self, key: str) -> Path:
        return self.folder / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        try:
            return path.read_text(encoding='utf-8')
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StoreError(f"파일 읽기 실패: {path}: {e}") from e
        except UnicodeDecodeError as e:
            raise StoreError(f"파일 인코딩 오류 (UTF-8 아님): {path}: {e}") from e

    def set(self, key: str, value: str) -> None:
        path = self._path_for(key)
        try:
            if path.exists():
                self._backup_daily(key, path)

            # 임시 파일에 쓴 뒤 교체 (읽는 쪽이 반쯤 쓴 파일을 보지 않도록)
            fd, tmp_name = tempfile.mkstemp(dir=self.folder, prefix=f".{key}_", suffix=".tmp")
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    f.write(value)
                os.replace(tmp_name, path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise StoreError(f"파일 쓰기 실패: {path}: {e}") from e

    def _backup_daily(self, key: str, path: Path):
        """덮어쓰기 전 하루 한 번 백업"""
        stamp = datetime.now().strftime('%Y%m%d')
        backup_path = self.folder / f"{key}_backup_{stamp}.json"
        if backup_path.exists():
            return
        shutil.copy2(path, backup_path)
        logger.info(f"공유 저장소 백업 생성: {backup_path.name}")
        self._cleanup_old_backups(key)

    def _cleanup_old_backups(self, key: str):
        """오래된 백업 파일 삭제 (최근 N개만 유지)"""
        try:
            backup_files = sorted(self.folder.glob(f'{key}_backup_*.json'), reverse=True)
            for old_backup in backup_files[self.keep_backups:]:
                old_backup.unlink()
                logger.info(f"오래된 백업 삭제: {old_backup.name}")
        except OSError as e:
            logger.error(f"백업 정리 오류: {e}")


class HttpStore(RemoteStore):
    """
    HTTP 키-값 저장소

    GET {url}/{key} -> 200 본문이 값, 404는 값 없음
    PUT {url}/{key} -> 본문으로 값 저장
    """

    def __init__(self, base_url: str = None, token: str = None, timeout: float = None,
                 session: requests.Session = None):
        self.base_url = (base_url or config.get('storage.url', '')).rstrip('/')
        self.token = token if token is not None else config.get('storage.token', '')
        self.timeout = timeout if timeout is not None else config.get('storage.timeout', 10)
        self.session = session or requests.Session()
        if not self.base_url:
            raise ValueError("HTTP 저장소 URL(storage.url)이 설정되지 않았습니다.")

    def _get_headers(self) -> Dict[str, str]:
        headers = {
            'Content-Type': 'text/plain; charset=utf-8',
            'User-Agent': 'FacilityLog-Sync'
        }
        if self.token:
            headers['Authorization'] = f'Bearer {self.token}'
        return headers

    def _url(self, key: str) -> str:
        return f"{self.base_url}/{key}"

    def get(self, key: str) -> Optional[str]:
        try:
            resp = self.session.get(self._url(key), headers=self._get_headers(), timeout=self.timeout)
        except requests.RequestException as e:
            raise StoreError(f"저장소 조회 실패: {e}") from e

        if resp.status_code == 404:
            return None
        if resp.status_code != 200:
            raise StoreError(f"저장소 조회 HTTP 오류: {resp.status_code} - {resp.text[:200]}")
        resp.encoding = 'utf-8'
        return resp.text

    def set(self, key: str, value: str) -> None:
        try:
            resp = self.session.put(
                self._url(key),
                data=value.encode('utf-8'),
                headers=self._get_headers(),
                timeout=self.timeout
            )
        except requests.RequestException as e:
            raise StoreError(f"저장소 저장 실패: {e}") from e

        if resp.status_code not in (200, 201, 204):
            raise StoreError(f"저장소 저장 HTTP 오류: {resp.status_code} - {resp.text[:200]}")


def create_store(backend: str = None) -> RemoteStore:
    """설정(storage.backend)에 맞는 저장소 생성"""
    backend = backend or config.get('storage.backend', 'file')
    if backend == 'file':
        return FileStore()
    if backend == 'http':
        return HttpStore()
    if backend == 'memory':
        return MemoryStore()
    raise ValueError(f"알 수 없는 저장소 종류: {backend}")
