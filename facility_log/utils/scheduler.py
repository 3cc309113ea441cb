# facility_log/utils/scheduler.py - 백그라운드 실행 및 취소 가능한 타이머

import threading
from typing import Callable

from .logger import logger


class Scheduler:
    """백그라운드 작업/타이머 인터페이스"""

    def spawn(self, fn: Callable, *args) -> None:
        """fn(*args)를 호출자와 독립적으로 실행"""
        raise NotImplementedError

    def call_later(self, delay: float, fn: Callable, *args):
        """delay초 뒤 fn(*args) 실행. cancel()을 가진 핸들 반환"""
        raise NotImplementedError


class ThreadScheduler(Scheduler):
    """daemon 스레드 기반 스케줄러"""

    def __init__(self, name: str = "facility-log"):
        self.name = name

    def spawn(self, fn: Callable, *args) -> None:
        thread = threading.Thread(
            target=self._run,
            args=(fn,) + args,
            name=f"{self.name}-worker",
            daemon=True
        )
        thread.start()

    def call_later(self, delay: float, fn: Callable, *args) -> threading.Timer:
        timer = threading.Timer(delay, self._run, args=(fn,) + args)
        timer.name = f"{self.name}-timer"
        timer.daemon = True
        timer.start()
        return timer

    @staticmethod
    def _run(fn: Callable, *args):
        try:
            fn(*args)
        except Exception as e:
            logger.error(f"백그라운드 작업 오류 ({getattr(fn, '__name__', fn)}): {e}")
