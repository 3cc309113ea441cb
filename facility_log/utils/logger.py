# facility_log/utils/logger.py - 로깅 시스템

import logging
import os
from logging.handlers import RotatingFileHandler
from .config import config

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(threadName)s - %(message)s'


def _level(key: str, default: str) -> int:
    return getattr(logging, str(config.get(key, default)).upper(), logging.INFO)


def _file_handler(log_file: str) -> RotatingFileHandler:
    log_dir = os.path.dirname(log_file)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
    handler = RotatingFileHandler(
        log_file,
        maxBytes=config.get('logging.max_bytes', 5242880),  # 5MB
        backupCount=config.get('logging.backup_count', 5),
        encoding='utf-8'
    )
    handler.setLevel(logging.DEBUG)
    return handler


def setup_logger(name: str = "facility_log") -> logging.Logger:
    """
    로거 설정 및 반환

    파일(로테이션, DEBUG 이상)과 콘솔(logging.console_level, 기본 INFO)에 기록.
    동기화/폴링 스레드에서 남긴 로그를 구분하도록 스레드 이름을 포함한다.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    logger.setLevel(_level('logging.level', 'INFO'))
    logger.propagate = False

    console_handler = logging.StreamHandler()
    console_handler.setLevel(_level('logging.console_level', 'INFO'))

    handlers = [console_handler]
    log_file = config.get('logging.file', 'logs/facility_log.log')
    if log_file:
        handlers.append(_file_handler(log_file))

    formatter = logging.Formatter(LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


# 전역 로거
logger = setup_logger()
