"""
Monthly report endpoints: statistics, bar chart, pie chart, combined.

All four take ``month`` as 1..12.  A missing, non-numeric or out-of-range
month is rejected with 400 before any store query runs.

Month matching conventions:
    /statistics, /barchart, /combined  calendar month of dateOfSale, any year
    /piechart                          [Y-month-01, Y-(month+1)-01) with Y =
                                       APP_PIE_CHART_YEAR, or any year when
                                       that is set to "any"
"""

import sqlite3
from typing import Any

from fastapi import APIRouter, Depends, Query

from api.database import TRANSACTIONS_TABLE, get_db
from api.errors import InvalidArgument, StoreFailure
from api.models import (
    BarChartBucket,
    CombinedOut,
    ErrorResponse,
    PieChartSlice,
    StatisticsOut,
)
from api.settings import get_config
from utils.config import AppConfig
from utils.database import query_to_dicts
from utils.query import (
    MONTH_MATCH,
    PRICE_BUCKETS,
    boundary_buckets,
    build_date_window,
    price_bucket_case,
)
from utils.strings import parse_leading_int

router = APIRouter(tags=["reports"])

_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse, "description": "Missing or invalid month"},
    500: {"model": ErrorResponse, "description": "Store failure"},
}


def parse_month(raw: str | None) -> int:
    """Validate the ``month`` query parameter.

    Reads the leading integer ("3", "03", "3rd" are all March).

    Raises:
        InvalidArgument: missing, non-numeric, or outside 1..12.
    """
    month = parse_leading_int(raw)
    if month is None or not 1 <= month <= 12:
        raise InvalidArgument(
            f"month must be an integer between 1 and 12, got {raw!r}",
            error="Invalid month",
        )
    return month


def _query(conn: sqlite3.Connection, sql: str, params: list[Any], error: str) -> list[dict]:
    try:
        return query_to_dicts(conn, sql, params)
    except sqlite3.Error as exc:
        raise StoreFailure(error=error) from exc


# ── Query functions ───────────────────────────────────────────────────────────

def query_statistics(conn: sqlite3.Connection, month: int) -> StatisticsOut:
    """Total sale amount and sold/not-sold counts for a calendar month."""
    rows = _query(
        conn,
        f"SELECT COALESCE(SUM(price), 0) AS total_sale_amount, "
        f"COALESCE(SUM(CASE WHEN sold = 1 THEN 1 ELSE 0 END), 0) AS sold_items_count, "
        f"COALESCE(SUM(CASE WHEN sold = 0 THEN 1 ELSE 0 END), 0) AS not_sold_items_count "
        f"FROM {TRANSACTIONS_TABLE} WHERE {MONTH_MATCH}",
        [month],
        "Error fetching statistics",
    )
    return StatisticsOut(**rows[0])


def _count_by_bucket(
    conn: sqlite3.Connection,
    month: int,
    buckets: list[tuple[str, float, float]],
    error: str,
) -> dict[int, int]:
    rows = _query(
        conn,
        f"SELECT {price_bucket_case(buckets)} AS bucket, COUNT(*) AS count "
        f"FROM {TRANSACTIONS_TABLE} WHERE {MONTH_MATCH} "
        f"GROUP BY bucket",
        [month],
        error,
    )
    return {r["bucket"]: r["count"] for r in rows if r["bucket"] is not None}


def query_bar_chart(conn: sqlite3.Connection, month: int) -> list[BarChartBucket]:
    """Counts for all ten fixed price ranges, in order, zeros included."""
    counts = _count_by_bucket(conn, month, PRICE_BUCKETS, "Error fetching bar chart data")
    return [
        BarChartBucket(range=label, count=counts.get(index, 0))
        for index, (label, _, _) in enumerate(PRICE_BUCKETS)
    ]


def query_pie_chart(
    conn: sqlite3.Connection,
    month: int,
    year: int | None = None,
) -> list[PieChartSlice]:
    """Record count per category.

    With ``year`` the month is a fixed date window in that year; without it
    the calendar month is matched across all years.
    """
    if year is None:
        where, params = f"WHERE {MONTH_MATCH}", [month]
    else:
        where, params = build_date_window(year, month)
    rows = _query(
        conn,
        f"SELECT category, COUNT(*) AS count FROM {TRANSACTIONS_TABLE} "
        f"{where} GROUP BY category ORDER BY category",
        params,
        "Error fetching pie chart data",
    )
    return [PieChartSlice(**r) for r in rows]


def query_combined_statistics(conn: sqlite3.Connection, month: int) -> dict[str, Any]:
    """Combined-endpoint statistics: ``{totalSales, soldItems, notSoldItems}``.

    Returns ``{}`` when no record matches the month.
    """
    rows = _query(
        conn,
        f"SELECT COUNT(*) AS matched, SUM(price) AS totalSales, "
        f"SUM(CASE WHEN sold = 1 THEN 1 ELSE 0 END) AS soldItems, "
        f"SUM(CASE WHEN sold = 0 THEN 1 ELSE 0 END) AS notSoldItems "
        f"FROM {TRANSACTIONS_TABLE} WHERE {MONTH_MATCH}",
        [month],
        "Error fetching combined data",
    )
    row = rows[0]
    if not row.pop("matched"):
        return {}
    return row


def query_bucketed(conn: sqlite3.Connection, month: int) -> list[BarChartBucket]:
    """Native-bucketing histogram: non-empty [lo, hi) buckets in order."""
    buckets = boundary_buckets()
    counts = _count_by_bucket(conn, month, buckets, "Error fetching combined data")
    return [
        BarChartBucket(range=label, count=counts[index])
        for index, (label, _, _) in enumerate(buckets)
        if index in counts
    ]


# ── Routes ────────────────────────────────────────────────────────────────────

@router.get("/statistics", response_model=StatisticsOut, summary="Monthly sale statistics",
            responses=_ERROR_RESPONSES)
def statistics(
    month: str | None = Query(None, description="Calendar month, 1-12"),
    conn: sqlite3.Connection = Depends(get_db),
) -> StatisticsOut:
    """Total sale amount, sold count and not-sold count for a month (any year)."""
    return query_statistics(conn, parse_month(month))


@router.get("/barchart", response_model=list[BarChartBucket], summary="Price range histogram",
            responses=_ERROR_RESPONSES)
def bar_chart(
    month: str | None = Query(None, description="Calendar month, 1-12"),
    conn: sqlite3.Connection = Depends(get_db),
) -> list[BarChartBucket]:
    """Count of records per fixed price range for a month (any year)."""
    return query_bar_chart(conn, parse_month(month))


@router.get("/piechart", response_model=list[PieChartSlice], summary="Category distribution",
            responses=_ERROR_RESPONSES)
def pie_chart(
    month: str | None = Query(None, description="Calendar month, 1-12"),
    conn: sqlite3.Connection = Depends(get_db),
    cfg: AppConfig = Depends(get_config),
) -> list[PieChartSlice]:
    """Count of records per category within the configured year's month."""
    return query_pie_chart(conn, parse_month(month), year=cfg.pie_chart_year)


@router.get("/combined", response_model=CombinedOut, summary="Statistics, bar chart and pie chart",
            responses=_ERROR_RESPONSES)
def combined(
    month: str | None = Query(None, description="Calendar month, 1-12"),
    conn: sqlite3.Connection = Depends(get_db),
) -> CombinedOut:
    """Bundle of three independent month-component sub-queries."""
    month_number = parse_month(month)
    return CombinedOut(
        statistics=query_combined_statistics(conn, month_number),
        barchart=query_bucketed(conn, month_number),
        piechart=query_pie_chart(conn, month_number),
    )
