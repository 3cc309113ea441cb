# facility_log/web/api.py - 웹 API (Python ↔ JavaScript)

from typing import Any, Dict, List, Optional

import eel

from ..business.excel_export import export_entries_to_excel
from ..business.form_controller import FIELD_MISSING
from ..business.log_service import ERROR_MESSAGES
from ..business.session import LogbookSession, SessionNotReadyError
from ..database.models import HOURS, MERIDIEMS, MINUTES, STATUSES, URGENCIES
from ..utils.formatting import fmt_date, today
from ..utils.logger import logger

_session: Optional[LogbookSession] = None

# 화면(camelCase) -> 초안(snake_case) 필드 이름
_FIELD_NAMES = {
    'date': 'date',
    'job': 'job',
    'writer': 'writer',
    'hasIssue': 'has_issue',
    'issue': 'issue',
    'action': 'action',
    'status': 'status',
    'urgency': 'urgency',
    'needReport': 'need_report',
}

_MESSAGES = dict(ERROR_MESSAGES, **{FIELD_MISSING: "다른 사용자가 삭제한 일지입니다."})


def bind_session(session: Optional[LogbookSession]):
    """실행 중인 세션 연결 (main에서 호출)"""
    global _session
    _session = session


def _require_session() -> LogbookSession:
    if _session is None:
        raise RuntimeError("세션이 시작되지 않았습니다.")
    return _session


def _error_messages(errors) -> Dict[str, str]:
    return {field: _MESSAGES.get(field, field) for field in sorted(errors)}


def _fail(action: str, e: Exception) -> Dict[str, Any]:
    if isinstance(e, SessionNotReadyError):
        return {'success': False, 'message': str(e)}
    logger.error(f"{action} 오류: {e}")
    return {'success': False, 'message': f'{action} 중 오류가 발생했습니다: {str(e)}'}


# ============================================================================
# 연결 확인 / 기본 정보
# ============================================================================

@eel.expose
def ping() -> bool:
    """Python 백엔드 연결 확인용"""
    return True


@eel.expose
def get_catalog() -> Dict[str, Any]:
    """선택 목록 (작성자, 직무, 상태, 긴급도, 시간 선택기)"""
    session = _require_session()
    return {
        'writers': list(session.writers),
        'jobs': list(session.jobs),
        'statuses': list(STATUSES),
        'urgencies': list(URGENCIES),
        'meridiems': list(MERIDIEMS),
        'hours': list(HOURS),
        'minutes': list(MINUTES),
        'today': today(),
        'todayDisplay': fmt_date(today()),
    }


@eel.expose
def get_state() -> Dict[str, Any]:
    """동기화 상태 + 현황 요약 + 폼 상태 (화면 갱신용)"""
    try:
        session = _require_session()
        return {
            'success': True,
            'sync': session.sync.get_sync_status(),
            'summary': session.summary().to_dict(),
            'form': session.create_form.to_dict(),
            'edit': session.edit_form.to_dict(),
        }
    except Exception as e:
        return _fail('상태 조회', e)


@eel.expose
def get_logs(filters: Dict[str, str] = None) -> List[Dict[str, Any]]:
    """필터 적용한 일지 목록 (date, job, writer / '전체'는 전체)"""
    try:
        filters = filters or {}
        entries = _require_session().filtered(
            date=filters.get('date'),
            job=filters.get('job'),
            writer=filters.get('writer'),
        )
        return [e.to_dict() for e in entries]
    except Exception as e:
        logger.error(f"일지 목록 조회 오류: {e}")
        return []


@eel.expose
def refresh_logs() -> Dict[str, Any]:
    """즉시 새로고침"""
    try:
        return {'success': _require_session().refresh()}
    except Exception as e:
        return _fail('새로고침', e)


# ============================================================================
# 작성 폼
# ============================================================================

@eel.expose
def set_form_field(field: str, value: Any) -> Dict[str, Any]:
    try:
        form = _require_session().create_form
        form.set_field(_FIELD_NAMES.get(field, field), value)
        return {'success': True, 'form': form.to_dict()}
    except Exception as e:
        return _fail('입력', e)


@eel.expose
def add_form_item() -> Dict[str, Any]:
    try:
        form = _require_session().create_form
        form.add_work_item()
        return {'success': True, 'form': form.to_dict()}
    except Exception as e:
        return _fail('항목 추가', e)


@eel.expose
def update_form_item(item_id: str, field: str, value: str) -> Dict[str, Any]:
    try:
        form = _require_session().create_form
        form.update_work_item(item_id, field, value)
        return {'success': True, 'form': form.to_dict()}
    except Exception as e:
        return _fail('항목 수정', e)


@eel.expose
def remove_form_item(item_id: str) -> Dict[str, Any]:
    try:
        form = _require_session().create_form
        form.remove_work_item(item_id)
        return {'success': True, 'form': form.to_dict()}
    except Exception as e:
        return _fail('항목 삭제', e)


@eel.expose
def submit_form() -> Dict[str, Any]:
    """일지 제출"""
    try:
        form = _require_session().create_form
        entry = form.submit()
        if entry is None:
            return {
                'success': False,
                'errors': _error_messages(form.errors),
                'form': form.to_dict(),
            }
        return {
            'success': True,
            'message': '일지가 정상적으로 제출되었습니다.',
            'log': entry.to_dict(),
            'form': form.to_dict(),
        }
    except Exception as e:
        return _fail('일지 제출', e)


# ============================================================================
# 상세 / 수정
# ============================================================================

@eel.expose
def open_log(log_id: str) -> Dict[str, Any]:
    try:
        session = _require_session()
        if not session.open_entry(log_id):
            return {'success': False, 'message': '일지를 찾을 수 없습니다.'}
        return {'success': True, 'edit': session.edit_form.to_dict()}
    except Exception as e:
        return _fail('일지 열기', e)


@eel.expose
def close_log() -> Dict[str, Any]:
    _require_session().edit_form.close()
    return {'success': True}


@eel.expose
def begin_edit() -> Dict[str, Any]:
    try:
        form = _require_session().edit_form
        form.begin_edit()
        return {'success': True, 'edit': form.to_dict()}
    except Exception as e:
        return _fail('수정 시작', e)


@eel.expose
def cancel_edit() -> Dict[str, Any]:
    form = _require_session().edit_form
    form.cancel_edit()
    return {'success': True, 'edit': form.to_dict()}


@eel.expose
def set_edit_field(field: str, value: Any) -> Dict[str, Any]:
    try:
        form = _require_session().edit_form
        form.set_field(_FIELD_NAMES.get(field, field), value)
        return {'success': True, 'edit': form.to_dict()}
    except Exception as e:
        return _fail('입력', e)


@eel.expose
def add_edit_item() -> Dict[str, Any]:
    try:
        form = _require_session().edit_form
        form.add_work_item()
        return {'success': True, 'edit': form.to_dict()}
    except Exception as e:
        return _fail('항목 추가', e)


@eel.expose
def update_edit_item(item_id: str, field: str, value: str) -> Dict[str, Any]:
    try:
        form = _require_session().edit_form
        form.update_work_item(item_id, field, value)
        return {'success': True, 'edit': form.to_dict()}
    except Exception as e:
        return _fail('항목 수정', e)


@eel.expose
def remove_edit_item(item_id: str) -> Dict[str, Any]:
    try:
        form = _require_session().edit_form
        form.remove_work_item(item_id)
        return {'success': True, 'edit': form.to_dict()}
    except Exception as e:
        return _fail('항목 삭제', e)


@eel.expose
def save_edit() -> Dict[str, Any]:
    try:
        form = _require_session().edit_form
        stored = form.save()
        if stored is None:
            return {'success': False, 'errors': _error_messages(form.errors), 'edit': form.to_dict()}
        return {'success': True, 'message': '수정되었습니다.', 'edit': form.to_dict()}
    except Exception as e:
        return _fail('일지 수정', e)


@eel.expose
def delete_log(confirmed: bool) -> Dict[str, Any]:
    """
    열린 일지 삭제

    확인 창은 브라우저(window.confirm)에서 띄우고 결과만 전달받는다.
    """
    try:
        deleted = _require_session().delete_open_entry(lambda: bool(confirmed))
        return {'success': deleted}
    except Exception as e:
        return _fail('일지 삭제', e)


# ============================================================================
# 내보내기
# ============================================================================

@eel.expose
def export_logs(output_path: str, filters: Dict[str, str] = None) -> Dict[str, Any]:
    """필터 적용한 일지를 Excel로 저장"""
    try:
        filters = filters or {}
        entries = _require_session().filtered(
            date=filters.get('date'),
            job=filters.get('job'),
            writer=filters.get('writer'),
        )
        success = export_entries_to_excel(entries, output_path)
        return {
            'success': success,
            'message': f'{len(entries)}건을 내보냈습니다.' if success else '내보내기 실패'
        }
    except Exception as e:
        return _fail('내보내기', e)
