"""
GET /api/transactions endpoint.

Free-text search over title/description/price, optional month filter, and
page/perPage pagination.  Results are ordered by the external ``id`` (then
storage order) so pages are stable across requests.
"""

import logging
import sqlite3

from fastapi import APIRouter, Depends, Query

from api.database import TRANSACTIONS_TABLE, get_db
from api.errors import InvalidArgument, StoreFailure
from api.models import ErrorResponse, TransactionOut
from utils.query import build_transaction_filter
from utils.strings import month_number_from_name

logger = logging.getLogger(__name__)

router = APIRouter(tags=["transactions"])

_SELECT_COLUMNS = "id, title, description, price, category, date_of_sale, sold"

DEFAULT_PER_PAGE = 10

# Largest value SQLite accepts as a LIMIT or OFFSET bound.
_SQLITE_MAX_INTEGER = 2**63 - 1


def fetch_transactions(
    conn: sqlite3.Connection,
    page: int = 1,
    per_page: int = DEFAULT_PER_PAGE,
    search: str | None = None,
    month: int | None = None,
) -> list[TransactionOut]:
    """Return one page of matching transactions.

    A page starting past the largest offset SQLite can express is empty.

    Raises:
        StoreFailure: the query failed.
    """
    where, params = build_transaction_filter(search=search, month=month)
    offset = (max(page, 1) - 1) * per_page
    if offset > _SQLITE_MAX_INTEGER:
        return []
    limit = min(per_page, _SQLITE_MAX_INTEGER)
    sql = (
        f"SELECT {_SELECT_COLUMNS} FROM {TRANSACTIONS_TABLE} {where} "
        f"ORDER BY id, row_key LIMIT ? OFFSET ?"
    )
    try:
        rows = conn.execute(sql, params + [limit, offset]).fetchall()
    except sqlite3.Error as exc:
        raise StoreFailure(error="Error fetching transactions") from exc
    return [TransactionOut(**dict(row)) for row in rows]


@router.get(
    "/transactions",
    response_model=list[TransactionOut],
    summary="List transactions",
    responses={
        400: {"model": ErrorResponse, "description": "Unknown month name"},
        500: {"model": ErrorResponse, "description": "Store failure"},
    },
)
def list_transactions(
    page: int = Query(1, ge=1, description="1-based page number"),
    per_page: int = Query(DEFAULT_PER_PAGE, ge=1, alias="perPage",
                          description="Records per page"),
    search: str | None = Query(None, description="Text in title/description, or an exact price"),
    month: str | None = Query(None, description="Month name, e.g. 'March'"),
    conn: sqlite3.Connection = Depends(get_db),
) -> list[TransactionOut]:
    """Return a page of transactions, optionally searched and month-filtered.

    No total count is returned; a page shorter than ``perPage`` is the last.
    """
    month_number = None
    if month:
        month_number = month_number_from_name(month)
        if month_number is None:
            raise InvalidArgument(f"Unknown month name: {month!r}", error="Invalid month")

    logger.debug("list page=%d per_page=%d search=%r month=%s",
                 page, per_page, search, month_number)
    return fetch_transactions(conn, page=page, per_page=per_page,
                              search=search, month=month_number)
