# facility_log/utils/config.py - 설정 관리

import json
import os
import shutil
import threading
from pathlib import Path
from typing import Any, Dict, List

CONFIG_DIR = Path(__file__).parent.parent.parent / "config"

# settings.json이 없을 때 사용
DEFAULTS: Dict[str, Any] = {
    "app": {"name": "일일 근무일지", "version": "1.0.0"},
    "storage": {"backend": "file", "key": "facility_logs", "path": ""},
    "sync": {"poll_interval": 10, "saved_display": 1.5},
    "form": {"submitted_display": 2.5, "edit_saved_display": 2.0},
    "ui": {"mode": "chrome", "port": 8687, "window_width": 900, "window_height": 900},
}


class Config:
    """애플리케이션 설정 (config/settings.json, 점 표기법 조회)"""

    _instance = None
    _config: Dict[str, Any] = {}
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        with self._lock:
            if not self._config:
                self.load_config()

    @staticmethod
    def _config_path(config_path=None) -> Path:
        # FACILITY_LOG_CONFIG 로 다른 설정 파일 지정 가능
        return Path(config_path or os.environ.get('FACILITY_LOG_CONFIG')
                    or CONFIG_DIR / "settings.json")

    def load_config(self, config_path: str = None):
        """설정 파일 로드 (없으면 예제 복사, 그것도 없거나 깨졌으면 기본값)"""
        path = self._config_path(config_path)
        example_path = path.parent / "settings.example.json"

        if not path.exists() and example_path.exists():
            shutil.copy2(example_path, path)
            print(f"[설정] settings.json이 없어 settings.example.json을 복사했습니다: {path}")

        try:
            with open(path, 'r', encoding='utf-8') as f:
                self._config = json.load(f)
        except FileNotFoundError:
            print(f"[설정] 설정 파일을 찾을 수 없어 기본값 사용: {path}")
            self._config = json.loads(json.dumps(DEFAULTS))
        except json.JSONDecodeError as e:
            print(f"[설정] 설정 파일 파싱 오류, 기본값 사용: {e}")
            self._config = json.loads(json.dumps(DEFAULTS))

    def get(self, key: str, default: Any = None) -> Any:
        """설정 값 가져오기 (예: config.get('sync.poll_interval'))"""
        value = self._config
        for k in key.split('.'):
            if not isinstance(value, dict):
                return default
            value = value.get(k)
            if value is None:
                return default
        return value

    def get_float(self, key: str, default: float) -> float:
        """숫자 설정 (형식이 틀리면 기본값)"""
        try:
            return float(self.get(key, default))
        except (TypeError, ValueError):
            return default

    def get_list(self, key: str, default) -> List[str]:
        value = self.get(key)
        if isinstance(value, list) and value:
            return [str(v) for v in value]
        return list(default)

    def set(self, key: str, value: Any):
        """설정 값 변경 (저장은 save())"""
        keys = key.split('.')
        section = self._config
        for k in keys[:-1]:
            section = section.setdefault(k, {})
        section[keys[-1]] = value

    def save(self, config_path: str = None):
        """설정 파일 저장"""
        path = self._config_path(config_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(self._config, f, indent=2, ensure_ascii=False)

    @property
    def app_name(self) -> str:
        return self.get('app.name', '일일 근무일지')

    @property
    def version(self) -> str:
        return self.get('app.version', '1.0.0')

    @property
    def storage_key(self) -> str:
        """공유 저장소에서 전체 일지 목록을 담는 키"""
        return self.get('storage.key', 'facility_logs')

    @property
    def poll_interval(self) -> float:
        return self.get_float('sync.poll_interval', 10.0)

    @property
    def writers(self) -> List[str]:
        from ..database.models import WRITERS
        return self.get_list('catalog.writers', WRITERS)

    @property
    def jobs(self) -> List[str]:
        from ..database.models import JOBS
        return self.get_list('catalog.jobs', JOBS)


# 싱글톤 인스턴스
config = Config()
