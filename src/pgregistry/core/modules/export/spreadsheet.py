"""Rendering of resident rows into an xlsx workbook."""

import io
import zipfile
from datetime import datetime

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from openpyxl.xml.constants import ARC_CORE
from openpyxl.xml.functions import tostring

from pgregistry.core.modules.export.models import EXPORT_COLUMNS, ResidentRow

SHEET_TITLE = "Students"
EXPORT_FILENAME = "students.xlsx"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# Fixed document and archive timestamps keep the output identical for identical rows
FIXED_PROPERTIES_TIME = datetime(2000, 1, 1)
FIXED_ZIP_TIME = (2000, 1, 1, 0, 0, 0)


def render_workbook(rows: list[ResidentRow]) -> bytes:
    """Render rows into xlsx bytes, one header row then one row per resident."""
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = SHEET_TITLE

    sheet.append([header for _, header, _ in EXPORT_COLUMNS])
    for cell in sheet[1]:
        cell.font = Font(bold=True)
    for index, (_, _, width) in enumerate(EXPORT_COLUMNS, start=1):
        sheet.column_dimensions[get_column_letter(index)].width = width

    for row in rows:
        sheet.append([getattr(row, attr) for attr, _, _ in EXPORT_COLUMNS])

    buffer = io.BytesIO()
    workbook.save(buffer)

    # Saving may stamp the modification time, so the core properties are written again afterwards
    workbook.properties.creator = "pgregistry"
    workbook.properties.created = FIXED_PROPERTIES_TIME
    workbook.properties.modified = FIXED_PROPERTIES_TIME
    core_properties = tostring(workbook.properties.to_tree())
    return _normalize_archive(buffer.getvalue(), {ARC_CORE: core_properties})


def _normalize_archive(data: bytes, replacements: dict[str, bytes]) -> bytes:
    """Rewrite the xlsx zip with fixed entry timestamps and the given entries replaced."""
    output = io.BytesIO()
    with zipfile.ZipFile(io.BytesIO(data)) as source, zipfile.ZipFile(output, "w") as target:
        for info in source.infolist():
            entry = zipfile.ZipInfo(info.filename, date_time=FIXED_ZIP_TIME)
            entry.compress_type = zipfile.ZIP_DEFLATED
            entry.external_attr = info.external_attr
            content = replacements.get(info.filename, source.read(info.filename))
            target.writestr(entry, content)
    return output.getvalue()
