"""
Server-rendered HTML pages for browsing vehicles and error vehicles.
"""

import math
from datetime import date
from html import escape
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import HTMLResponse

from vehicle_data.api.deps import get_store
from vehicle_data.config import settings
from vehicle_data.db import VehicleStore
from vehicle_data.utils.parsing import parse_dealer_id

router = APIRouter(prefix="/pages", tags=["pages"])

_PAGE = """<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>{title}</title></head>
<body>
<h1>{title}</h1>
<p><a href="/pages/vehicles">Vehicles</a> | <a href="/pages/errors">Error Vehicles</a></p>
{body}
</body>
</html>"""


def _cell(value) -> str:
    return f"<td>{escape('' if value is None else str(value))}</td>"


def _table(columns: list[tuple[str, str]], rows: list[dict]) -> str:
    head = "".join(f"<th>{escape(label)}</th>" for label, _ in columns)
    body = "".join("<tr>" + "".join(_cell(row.get(key)) for _, key in columns) + "</tr>" for row in rows)
    return f"<table border='1'><thead><tr>{head}</tr></thead><tbody>{body}</tbody></table>"


def _pager(path: str, page_number: int, page_size: int, total: int, filters: dict) -> str:
    total_pages = max(1, math.ceil(total / page_size))
    params = {k: v for k, v in filters.items() if v is not None}
    links = []
    if page_number > 1:
        qs = urlencode({**params, "pageNumber": page_number - 1, "pageSize": page_size})
        links.append(f'<a href="{path}?{escape(qs)}">Previous</a>')
    links.append(f"Page {page_number} of {total_pages} ({total} records)")
    if page_number < total_pages:
        qs = urlencode({**params, "pageNumber": page_number + 1, "pageSize": page_size})
        links.append(f'<a href="{path}?{escape(qs)}">Next</a>')
    return "<p>" + " | ".join(links) + "</p>"


@router.get("/vehicles", response_class=HTMLResponse)
async def vehicle_table(
    page_number: int = Query(1, ge=1, alias="pageNumber"),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size, alias="pageSize"),
    dealer: str | None = Query(None, alias="dealerId"),
    modified: str | None = Query(None, alias="modifiedDate"),
    store: VehicleStore = Depends(get_store),
):
    """Vehicle table with dealer / modified-date filters. Blank filter fields are ignored."""
    try:
        dealer_id = parse_dealer_id(dealer) if dealer and dealer.strip() else None
        modified_date = date.fromisoformat(modified.strip()) if modified and modified.strip() else None
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid filter: {e}")

    rows, total = await store.list_vehicles(
        dealer_id=dealer_id,
        modified_since=modified_date,
        limit=page_size,
        offset=(page_number - 1) * page_size,
    )
    form = (
        '<form method="get" action="/pages/vehicles">'
        f'Dealer ID <input name="dealerId" value="{escape("" if dealer_id is None else str(dealer_id))}"> '
        f'Modified since <input type="date" name="modifiedDate" value="{escape(str(modified_date or ""))}"> '
        '<button type="submit">Filter</button></form>'
    )
    columns = [
        ("VIN", "vin"),
        ("Dealer ID", "dealer_id"),
        ("Modified", "modified_date"),
        ("Make", "make"),
        ("Model", "model"),
        ("Year", "year"),
    ]
    filters = {"dealerId": dealer_id, "modifiedDate": modified_date.isoformat() if modified_date else None}
    body = form + _table(columns, rows) + _pager("/pages/vehicles", page_number, page_size, total, filters)
    return _PAGE.format(title="Vehicles", body=body)


@router.get("/errors", response_class=HTMLResponse)
async def error_vehicle_table(
    page_number: int = Query(1, ge=1, alias="pageNumber"),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size, alias="pageSize"),
    store: VehicleStore = Depends(get_store),
):
    rows, total = await store.list_error_vehicles(limit=page_size, offset=(page_number - 1) * page_size)
    columns = [
        ("VIN", "vin"),
        ("Dealer ID", "dealer_id"),
        ("Modified", "modified_date"),
        ("Error Code", "error_code"),
        ("Error Text", "error_text"),
    ]
    body = _table(columns, rows) + _pager("/pages/errors", page_number, page_size, total, {})
    return _PAGE.format(title="Error Vehicles", body=body)
