"""
Pytest fixtures for the transaction reporting tests.

Provides a deterministic set of seed-format transaction records, a helper
that loads them into a fresh SQLite store, and a module-scoped TestClient
over create_app().

The sample data (month 3 is the busiest month, spread over several years):

    id  price    category          dateOfSale (UTC)        sold
    1   109.95   men's clothing    2021-03-27 14:59:54     no
    2   22.30    men's clothing    2023-03-10 10:00:00     yes
    3   55.99    men's clothing    2022-06-15 00:00:00     yes
    4   168.00   jewelery          2023-03-01 00:00:00     no
    5   64.00    electronics       2023-12-31 23:59:59     yes
    6   999.99   electronics       2023-03-20 12:00:00     yes
    7   0.00     electronics       2022-03-05 00:00:00     no
    8   39.99    women's clothing  2024-01-01 00:00:00     no
    9   7.95     women's clothing  2023-04-01 00:00:00     yes
    10  100.50   women's clothing  2023-03-15 00:00:00     no
    11  850.00   jewelery          2021-04-01 01:00:00     yes  (-02:00 on input)
    12  599.00   electronics       2023-07-04 00:00:00     yes
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from fastapi.testclient import TestClient  # noqa: E402

from api.app import create_app  # noqa: E402
from api.database import (  # noqa: E402
    TRANSACTION_COLUMNS,
    TRANSACTION_COLUMNS_DDL,
    TRANSACTIONS_TABLE,
    close_pool,
    open_connection,
)
from api.models import TransactionIn  # noqa: E402
from utils.database import replace_table  # noqa: E402

SAMPLE_RECORDS: list[dict] = [
    {"id": 1, "title": "Fjallraven Backpack", "description": "Your perfect pack for everyday use",
     "price": 109.95, "category": "men's clothing", "image": "https://example.test/1.jpg",
     "sold": False, "dateOfSale": "2021-03-27T20:29:54+05:30"},
    {"id": 2, "title": "Mens Casual Premium Slim Fit T-Shirts", "description": "Slim-fitting style",
     "price": 22.3, "category": "men's clothing", "image": "https://example.test/2.jpg",
     "sold": True, "dateOfSale": "2023-03-10T10:00:00Z"},
    {"id": 3, "title": "Mens Cotton Jacket", "description": "great outerwear jackets",
     "price": 55.99, "category": "men's clothing", "sold": True,
     "dateOfSale": "2022-06-15T00:00:00Z"},
    {"id": 4, "title": "Solid Gold Petite Micropave", "description": "Satisfaction Guaranteed",
     "price": 168, "category": "jewelery", "sold": False,
     "dateOfSale": "2023-03-01T00:00:00Z"},
    {"id": 5, "title": "WD 2TB Elements Portable", "description": "USB 3.0 and USB 2.0 Compatibility",
     "price": 64, "category": "electronics", "sold": True,
     "dateOfSale": "2023-12-31T23:59:59Z"},
    {"id": 6, "title": "Samsung 49-Inch Monitor", "description": "49 INCH SUPER ULTRAWIDE",
     "price": 999.99, "category": "electronics", "sold": True,
     "dateOfSale": "2023-03-20T12:00:00Z"},
    {"id": 7, "title": "Free Sample Sticker", "description": "promotional item",
     "price": 0, "category": "electronics", "sold": False,
     "dateOfSale": "2022-03-05T00:00:00Z"},
    {"id": 8, "title": "Rain Jacket Women", "description": "Lightweight perfect for trip",
     "price": 39.99, "category": "women's clothing", "sold": False,
     "dateOfSale": "2024-01-01T00:00:00Z"},
    {"id": 9, "title": "Opna Women's Short Sleeve", "description": "100% Polyester",
     "price": 7.95, "category": "women's clothing", "sold": True,
     "dateOfSale": "2023-04-01T00:00:00Z"},
    {"id": 10, "title": "BIYLACLESEN Women's Snowboard Jacket",
     "description": "Note: The Jackets is US standard size",
     "price": 100.5, "category": "women's clothing", "sold": False,
     "dateOfSale": "2023-03-15T00:00:00Z"},
    {"id": 11, "title": "Pierced Owl Rose Gold Plated", "description": "Double Flared Tunnel",
     "price": 850, "category": "jewelery", "sold": True,
     "dateOfSale": "2021-03-31T23:00:00-02:00"},
    {"id": 12, "title": "Acer SB220Q 21.5 inches", "description": "Full HD widescreen",
     "price": 599, "category": "electronics", "sold": True,
     "dateOfSale": "2023-07-04T00:00:00Z"},
]

# Records whose UTC sale date falls in March of any year.
MARCH_IDS = [1, 2, 4, 6, 7, 10]


def load_records(db_path: Path, records: list[dict]) -> int:
    """Validate seed-format records and replace the store at db_path with them."""
    rows = [TransactionIn.model_validate(r).to_row() for r in records]
    conn = open_connection(db_path)
    try:
        return replace_table(conn, TRANSACTIONS_TABLE, TRANSACTION_COLUMNS_DDL,
                             TRANSACTION_COLUMNS, rows)
    finally:
        conn.close()


@pytest.fixture(scope="module")
def sample_db(tmp_path_factory) -> Path:
    """A SQLite store loaded with SAMPLE_RECORDS."""
    db_path = tmp_path_factory.mktemp("store") / "transactions.sqlite"
    load_records(db_path, SAMPLE_RECORDS)
    return db_path


@pytest.fixture(scope="module")
def client(sample_db):
    """TestClient over an app pointed at sample_db."""
    app = create_app(db_path=sample_db)
    yield TestClient(app, raise_server_exceptions=False)
    close_pool()
