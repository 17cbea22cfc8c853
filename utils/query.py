"""Shared SQL query builder utilities for the reporting routes.

Provides the WHERE clauses and bucket expressions used by the listing,
statistics, chart and combined endpoints, so every endpoint that claims a
"month-component match" builds exactly the same condition.
"""

import math
from typing import Any

from utils.strings import parse_leading_float

# Month-component match: calendar month only, year ignored.
MONTH_MATCH = "CAST(strftime('%m', date_of_sale) AS INTEGER) = ?"

# Standalone bar chart: ten fixed ranges that partition every price >= 0.
# (label, lower bound inclusive, upper bound exclusive)
PRICE_BUCKETS: list[tuple[str, float, float]] = [
    ("0-100", 0, 101),
    ("101-200", 101, 201),
    ("201-300", 201, 301),
    ("301-400", 301, 401),
    ("401-500", 401, 501),
    ("501-600", 501, 601),
    ("601-700", 601, 701),
    ("701-800", 701, 801),
    ("801-900", 801, 901),
    ("901-above", 901, math.inf),
]

# Combined endpoint: native-bucketing boundaries, half-open [lo, hi).
BUCKET_BOUNDARIES: list[float] = [0, 100, 200, 300, 400, 500, 600, 700, 800, 900, math.inf]


def bucket_label(lower: float, upper: float) -> str:
    """Label for a [lower, upper) bucket, e.g. "100-200" or "900-above"."""
    hi = "above" if math.isinf(upper) else f"{upper:g}"
    return f"{lower:g}-{hi}"


def price_bucket_case(buckets: list[tuple[str, float, float]] = PRICE_BUCKETS) -> str:
    """Return a CASE expression mapping ``price`` to its bucket index.

    Prices below the first lower bound map to NULL.
    """
    whens = []
    for index, (_, lower, upper) in enumerate(buckets):
        if math.isinf(upper):
            whens.append(f"WHEN price >= {lower:g} THEN {index}")
        else:
            whens.append(f"WHEN price >= {lower:g} AND price < {upper:g} THEN {index}")
    return "CASE " + " ".join(whens) + " END"


def boundary_buckets(boundaries: list[float] = BUCKET_BOUNDARIES) -> list[tuple[str, float, float]]:
    """Turn a boundary list into (label, lower, upper) buckets."""
    return [
        (bucket_label(lo, hi), lo, hi)
        for lo, hi in zip(boundaries, boundaries[1:])
    ]


def build_transaction_filter(
    search: str | None = None,
    month: int | None = None,
) -> tuple[str, list[Any]]:
    """Build the WHERE clause for the transaction listing.

    Args:
        search: Free text.  Matches title or description (case-insensitive
            substring in any script) OR a price equal to the text's leading
            number, 0 when it has none.  The clause calls the ``casefold``
            SQL function registered by api.database.open_connection().
        month: Calendar month 1..12, ANDed with the search condition.

    Returns:
        Tuple of (where_clause_string, params_list). The where_clause_string
        starts with "WHERE " if any conditions exist, or is "" if none.
    """
    conditions: list[str] = []
    params: list[Any] = []

    if search:
        conditions.append(
            "(instr(casefold(title), casefold(?)) > 0"
            " OR instr(casefold(description), casefold(?)) > 0"
            " OR price = ?)"
        )
        params.extend([search, search, parse_leading_float(search)])

    if month is not None:
        conditions.append(MONTH_MATCH)
        params.append(month)

    where = "WHERE " + " AND ".join(conditions) if conditions else ""
    return where, params


def build_date_window(year: int, month: int) -> tuple[str, list[Any]]:
    """WHERE clause for sales in [year-month-01, first day of next month).

    December rolls over to January 1 of the next year.
    """
    start = f"{year:04d}-{month:02d}-01T00:00:00"
    if month == 12:
        end = f"{year + 1:04d}-01-01T00:00:00"
    else:
        end = f"{year:04d}-{month + 1:02d}-01T00:00:00"
    return "WHERE date_of_sale >= ? AND date_of_sale < ?", [start, end]
