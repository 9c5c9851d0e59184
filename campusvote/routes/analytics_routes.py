import csv
import io
from typing import List, Literal

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from openpyxl import Workbook

from campusvote.database import utcnow
from campusvote.errors import NotFound
from campusvote.routes.deps import get_services, require_admin, to_json
from campusvote.services import Services

router = APIRouter(prefix="/admin", tags=["Admin Analytics"], dependencies=[Depends(require_admin)])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

FILENAME_PREFIX = {
    "voters": "voters",
    "results": "poll_results",
    "detailed-votes": "detailed_votes",
}


def _columns(rows: List[dict]) -> List[str]:
    # rows from "results" carry different candidate columns per poll
    columns: List[str] = []
    for row in rows:
        for key in row:
            if key not in columns:
                columns.append(key)
    return columns


def rows_to_csv(rows: List[dict]) -> bytes:
    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=_columns(rows), restval="")
    writer.writeheader()
    writer.writerows(rows)
    return output.getvalue().encode("utf-8")


def rows_to_xlsx(rows: List[dict]) -> bytes:
    columns = _columns(rows)
    wb = Workbook()
    ws = wb.active
    ws.title = "Data"
    ws.append(columns)
    for row in rows:
        ws.append([row.get(column) for column in columns])
    output = io.BytesIO()
    wb.save(output)
    return output.getvalue()


@router.get("/analytics")
def get_analytics(services: Services = Depends(get_services)):
    return {"success": True, "analytics": to_json(services.analytics.dashboard())}


@router.get("/export")
def export(type: str, format: Literal["xlsx", "csv"] = "xlsx", services: Services = Depends(get_services)):
    rows = services.analytics.export(type)
    if not rows:
        raise NotFound("No data to export")

    filename = f"{FILENAME_PREFIX[type]}_{utcnow().date().isoformat()}.{format}"
    if format == "csv":
        content, media_type = rows_to_csv(rows), "text/csv"
    else:
        content, media_type = rows_to_xlsx(rows), XLSX_MEDIA_TYPE
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
