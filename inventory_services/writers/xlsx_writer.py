"""
XLSX writer for rendered exports.

Produces a workbook with the report on the first sheet (bold header row,
frozen below the header) and the export metadata on a second ``Metadata``
sheet.  Cell values are the same display strings the CSV carries.
"""

from __future__ import annotations

import io

from inventory_engines.analytics import ExportData, ExportMetadata
from inventory_engines.formatting import format_money

REPORT_SHEET_TITLE = "Report"
METADATA_SHEET_TITLE = "Metadata"


def metadata_rows(metadata: ExportMetadata) -> list[tuple[str, str]]:
    return [
        ("Export Type", metadata.export_type.value),
        ("Count Date", metadata.count_date),
        ("Team", metadata.team_name),
        ("Total Items", str(metadata.total_items)),
        ("Total Variance Cost", format_money(metadata.total_variance_cost)),
        ("Critical Items", str(metadata.critical_items)),
        ("Generated At", metadata.generated_at),
    ]


def render_xlsx(export: ExportData) -> bytes:
    """Return the export as the bytes of an .xlsx workbook."""
    try:
        import openpyxl
        from openpyxl.styles import Font
    except ImportError as e:
        raise ImportError("XLSX export requires openpyxl. Install with: pip install openpyxl") from e

    wb = openpyxl.Workbook()
    sheet = wb.active
    sheet.title = REPORT_SHEET_TITLE
    sheet.append(list(export.headers))
    for cell in sheet[1]:
        cell.font = Font(bold=True)
    for row in export.rows:
        sheet.append(list(row))
    sheet.freeze_panes = "A2"

    meta = wb.create_sheet(METADATA_SHEET_TITLE)
    for label, value in metadata_rows(export.metadata):
        meta.append([label, value])

    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()
