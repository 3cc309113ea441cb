# facility_log/business/excel_export.py - Excel 내보내기

from typing import Sequence

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill

from ..database.models import LogEntry
from ..utils.formatting import fmt_date
from ..utils.logger import logger

HEADERS = ['작성일자', '직무', '작성자', '주요 업무', '특이사항', '조치 내용',
           '처리 상태', '긴급도', '보고 필요', '작성 시각', '수정 시각']


def _work_lines(entry: LogEntry) -> str:
    return "\n".join(f"{w.display_time()} {w.content}".strip() for w in entry.work_items)


def export_entries_to_excel(entries: Sequence[LogEntry], output_path: str,
                            title: str = "근무일지") -> bool:
    """일지 목록을 Excel 파일로 내보내기"""
    try:
        wb = Workbook()
        ws = wb.active
        ws.title = title[:31]

        header_fill = PatternFill(start_color="C6EFCE", end_color="C6EFCE", fill_type="solid")
        header_font = Font(bold=True)

        for col, header in enumerate(HEADERS, 1):
            cell = ws.cell(row=1, column=col, value=header)
            cell.fill = header_fill
            cell.font = header_font
            cell.alignment = Alignment(horizontal='center')

        wrap = Alignment(wrap_text=True, vertical='top')
        for row_idx, entry in enumerate(entries, 2):
            values = [
                fmt_date(entry.date),
                entry.job,
                entry.writer,
                _work_lines(entry),
                entry.issue if entry.has_issue else '',
                entry.action if entry.has_issue else '',
                entry.status if entry.has_issue else '',
                entry.urgency if entry.has_issue else '',
                'Y' if entry.need_report else '',
                entry.created_at,
                entry.updated_at or '',
            ]
            for col, value in enumerate(values, 1):
                cell = ws.cell(row=row_idx, column=col, value=value)
                cell.alignment = wrap

        ws.column_dimensions['D'].width = 50
        ws.column_dimensions['E'].width = 30

        wb.save(output_path)
        logger.info(f"Excel 내보내기 성공: {output_path} ({len(entries)}건)")
        return True

    except Exception as e:
        logger.error(f"Excel 내보내기 실패: {e}")
        return False
