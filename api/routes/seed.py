"""
GET /api/initializeDatabase: replace the store with the remote seed dataset.

The seed is fetched and fully validated before the store is touched.  The
replacement itself goes through utils.database.replace_table, so concurrent
readers never observe an empty or partial table, and any failure leaves the
previous contents in place.
"""

import logging
import sqlite3
from typing import Any

import requests
from fastapi import APIRouter, Depends
from pydantic import TypeAdapter, ValidationError

from api.database import (
    TRANSACTION_COLUMNS,
    TRANSACTION_COLUMNS_DDL,
    TRANSACTIONS_TABLE,
    get_db,
)
from api.errors import StoreFailure, UpstreamFailure
from api.models import ErrorResponse, SeedResult, TransactionIn
from api.settings import get_config
from utils.config import AppConfig
from utils.database import replace_table
from utils.http import RetryStrategy, SessionManager, fetch_json

logger = logging.getLogger(__name__)

router = APIRouter(tags=["seed"])

SEED_FAILED = "Failed to initialize database"

_records_adapter = TypeAdapter(list[TransactionIn])


def fetch_seed_records(url: str, timeout: float = 30.0, max_retries: int = 0) -> Any:
    """Download the seed JSON array.

    Raises:
        requests.RequestException: network failure or non-2xx status.
        ValueError: the body is not JSON.
    """
    strategy = RetryStrategy(max_retries=max_retries, backoff_factor=0.5)
    with SessionManager(retry_strategy=strategy) as manager:
        return fetch_json(url, session=manager.session, timeout=timeout)


def parse_seed_records(payload: Any) -> list[TransactionIn]:
    """Validate the decoded seed body as a list of transaction records.

    Raises:
        UpstreamFailure: the payload is not an array of valid records.
    """
    try:
        return _records_adapter.validate_python(payload)
    except ValidationError as exc:
        raise UpstreamFailure(
            f"Seed payload failed validation: {exc.error_count()} error(s); "
            f"first: {exc.errors()[0]['msg']}",
            error=SEED_FAILED,
        ) from exc


def reseed(conn: sqlite3.Connection, records: list[TransactionIn]) -> int:
    """Atomically replace every stored transaction with ``records``.

    Returns:
        Number of records now stored.

    Raises:
        StoreFailure: the load or the swap failed; the old rows remain.
    """
    rows = [record.to_row() for record in records]
    try:
        return replace_table(
            conn, TRANSACTIONS_TABLE, TRANSACTION_COLUMNS_DDL, TRANSACTION_COLUMNS, rows,
        )
    except sqlite3.Error as exc:
        raise StoreFailure(str(exc), error=SEED_FAILED) from exc


def initialize_from_source(conn: sqlite3.Connection, cfg: AppConfig) -> int:
    """Fetch, validate and store the seed configured in ``cfg``.

    Shared by the HTTP endpoint and ``main.py --seed``.
    """
    logger.info("Reseeding store from %s", cfg.seed_url)
    try:
        payload = fetch_seed_records(
            cfg.seed_url, timeout=cfg.seed_timeout, max_retries=cfg.seed_max_retries,
        )
    except (requests.RequestException, ValueError) as exc:
        raise UpstreamFailure(str(exc), error=SEED_FAILED) from exc

    records = parse_seed_records(payload)
    count = reseed(conn, records)
    logger.info("Reseed complete: %d records stored", count)
    return count


@router.get(
    "/initializeDatabase",
    response_model=SeedResult,
    summary="Replace stored transactions with the seed dataset",
    responses={500: {"model": ErrorResponse, "description": "Seed fetch or store failure"}},
)
def initialize_database(
    conn: sqlite3.Connection = Depends(get_db),
    cfg: AppConfig = Depends(get_config),
) -> SeedResult:
    """Fetch the seed dataset and swap it in as the full store contents.

    Idempotent: repeating it with the same source yields the same rows.
    """
    count = initialize_from_source(conn, cfg)
    return SeedResult(message="Database initialized with seed data", count=count)
