"""
Purpose:
- /api/export-csv: the review table posts its (possibly edited) rows back and gets a CSV download.
"""

from datetime import date

from fastapi import APIRouter
from fastapi.responses import Response

from ..schemas import ExportRequest
from ..services.csv_export import export_filename, transactions_to_csv

router = APIRouter(prefix="/api", tags=["export"])


@router.post("/export-csv")
def export_csv(payload: ExportRequest):
    filename = export_filename(date.today())
    return Response(
        content=transactions_to_csv(payload.transactions),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
