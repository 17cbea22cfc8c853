"""Shared utilities for the transaction reporting service."""

# Pattern definitions
from utils.patterns import LEADING_FLOAT, LEADING_INT

# String utilities
from utils.strings import parse_leading_float, parse_leading_int, month_number_from_name

# Database utilities
from utils.database import (
    init_pragmas,
    transaction,
    batch_insert,
    get_table_count,
    table_exists,
    query_to_dicts,
    replace_table,
)

# Query builders
from utils.query import (
    MONTH_MATCH,
    PRICE_BUCKETS,
    BUCKET_BOUNDARIES,
    bucket_label,
    price_bucket_case,
    boundary_buckets,
    build_transaction_filter,
    build_date_window,
)

# Configuration
from utils.config import AppConfig

# Listing state
from utils.listing import ListingState, LISTING_PAGE_SIZE

__all__ = [
    # Patterns
    "LEADING_FLOAT",
    "LEADING_INT",
    # Strings
    "parse_leading_float",
    "parse_leading_int",
    "month_number_from_name",
    # Database
    "init_pragmas",
    "transaction",
    "batch_insert",
    "get_table_count",
    "table_exists",
    "query_to_dicts",
    "replace_table",
    # Query
    "MONTH_MATCH",
    "PRICE_BUCKETS",
    "BUCKET_BOUNDARIES",
    "bucket_label",
    "price_bucket_case",
    "boundary_buckets",
    "build_transaction_filter",
    "build_date_window",
    # Config
    "AppConfig",
    # Listing
    "ListingState",
    "LISTING_PAGE_SIZE",
]
