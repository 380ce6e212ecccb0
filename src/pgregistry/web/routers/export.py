"""Spreadsheet export endpoint."""

from fastapi import APIRouter
from fastapi.responses import Response

from pgregistry.core.modules.export.spreadsheet import EXPORT_FILENAME, XLSX_MEDIA_TYPE
from pgregistry.web.deps import AppDep

router = APIRouter(tags=["export"])


@router.get(
    "/export",
    summary="Export residents",
    description="Download all residents as an Excel workbook, ordered by serial number.",
    operation_id="exportStudents",
    response_class=Response,
    responses={200: {"description": "xlsx workbook", "content": {XLSX_MEDIA_TYPE: {}}}},
)
async def export_students(app: AppDep) -> Response:
    data = await app.export_residents()
    return Response(
        content=data,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename={EXPORT_FILENAME}"},
    )
