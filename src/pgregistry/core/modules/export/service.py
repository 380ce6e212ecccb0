"""Spreadsheet export of resident records."""

from typing import Any

import structlog
from pymongo.asynchronous.database import AsyncDatabase

from pgregistry.core.core import Service
from pgregistry.core.modules.export.rows import build_rows
from pgregistry.core.modules.export.spreadsheet import render_workbook

logger = structlog.get_logger(__name__)


class ExportService(Service):
    """Service for exporting residents to xlsx."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)

    async def export_residents(self) -> bytes:
        """Render every resident into a workbook, in serial order."""
        residents = await self.core.services.resident.list_residents_by_serial()
        rows = build_rows(residents)
        data = render_workbook(rows)
        logger.info("residents_exported", rows=len(rows), size=len(data))
        return data
