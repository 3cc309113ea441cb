# facility_log/utils/formatting.py - 날짜/시간 포맷 및 ID 생성

import secrets
import string
import time
from datetime import date, datetime, timezone
from typing import Optional, Tuple

_BASE36 = string.digits + string.ascii_lowercase

AM = "오전"
PM = "오후"


def today() -> str:
    """오늘 날짜 (YYYY-MM-DD, 로컬 기준)"""
    return date.today().isoformat()


def now_iso() -> str:
    """현재 시각 ISO 문자열 (UTC, 밀리초, 'Z' 접미사)"""
    stamp = datetime.now(timezone.utc).isoformat(timespec='milliseconds')
    return stamp.replace('+00:00', 'Z')


def fmt_date(value: Optional[str]) -> str:
    """'2024-05-01' -> '2024.05.01'"""
    return value.replace('-', '.') if value else ""


def parse_date(value: str) -> Optional[date]:
    """YYYY-MM-DD 문자열을 date로 변환 (형식 오류면 None)"""
    try:
        return datetime.strptime(value, '%Y-%m-%d').date()
    except (TypeError, ValueError):
        return None


def _to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(_BASE36[rem])
    return ''.join(reversed(digits))


def gen_id() -> str:
    """
    클라이언트 측 고유 ID 생성

    밀리초 타임스탬프(base36) 뒤에 난수(base36)를 붙인다.
    """
    millis = int(time.time() * 1000)
    return _to_base36(millis) + _to_base36(secrets.randbits(52))


def now_time_parts(now: datetime = None) -> Tuple[str, str, str]:
    """현재 시각을 (오전/오후, 시 2자리, 분 10분 단위 내림) 으로 반환"""
    now = now or datetime.now()
    ampm = AM if now.hour < 12 else PM
    hour = now.hour % 12 or 12
    minute = (now.minute // 10) * 10
    return ampm, f"{hour:02d}", f"{minute:02d}"


def build_time(ampm: str, hour: str, minute: str) -> str:
    """12시간제 (오전/오후, 시, 분) -> 24시간제 'HH:MM'"""
    h = int(hour)
    if ampm == AM:
        if h == 12:
            h = 0
    elif h != 12:
        h += 12
    return f"{h:02d}:{minute}"


def split_time(value: str) -> Tuple[str, str, str]:
    """24시간제 'HH:MM' -> (오전/오후, 시 2자리, 분)"""
    hh, mm = value.split(':')
    h = int(hh)
    ampm = AM if h < 12 else PM
    hour = h % 12 or 12
    return ampm, f"{hour:02d}", mm


def fmt_time_display(ampm: str, hour: str, minute: str) -> str:
    """화면 표시용 시간 ('오전 9:00')"""
    return f"{ampm} {int(hour)}:{minute}"
