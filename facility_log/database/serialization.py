# facility_log/database/serialization.py - 일지 목록 직렬화 (JSON)

import json
from typing import List, Sequence

from .models import LogEntry


class CollectionFormatError(ValueError):
    """저장소 값이 일지 목록 형식이 아님"""


def encode_collection(entries: Sequence[LogEntry]) -> str:
    """일지 목록 전체를 JSON 문자열로 변환"""
    return json.dumps([e.to_dict() for e in entries], ensure_ascii=False)


def decode_collection(payload: str) -> List[LogEntry]:
    """
    JSON 문자열을 일지 목록으로 변환

    Raises:
        CollectionFormatError: JSON 파싱 실패 또는 목록/레코드 형식 오류
    """
    try:
        data = json.loads(payload)
    except (TypeError, json.JSONDecodeError) as e:
        raise CollectionFormatError(f"JSON 파싱 실패: {e}") from e

    if not isinstance(data, list):
        raise CollectionFormatError(f"목록이 아닌 값: {type(data).__name__}")

    entries = []
    for i, item in enumerate(data):
        if not isinstance(item, dict) or 'id' not in item:
            raise CollectionFormatError(f"{i}번째 레코드 형식 오류")
        try:
            entries.append(LogEntry.from_dict(item))
        except (TypeError, ValueError, AttributeError) as e:
            raise CollectionFormatError(f"{i}번째 레코드 변환 실패: {e}") from e
    return entries
