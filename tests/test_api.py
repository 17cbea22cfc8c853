"""
Tests for the JSON reporting API.

    GET /api/transactions     listing, search, month filter, pagination
    GET /api/statistics       month totals
    GET /api/barchart         fixed price ranges
    GET /api/piechart         category counts in a fixed-year month window
    GET /api/combined         bundle of month-component sub-queries

Most tests share the module-scoped client over the sample store in conftest.py.
"""
import logging
import sqlite3
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from api.database import open_connection  # noqa: E402
from api.routes.transactions import fetch_transactions  # noqa: E402
from conftest import MARCH_IDS, SAMPLE_RECORDS, load_records  # noqa: E402


def _ids(resp) -> list[int]:
    return [r["id"] for r in resp.json()]


# ── GET /api/transactions ────────────────────────────────────────────────────

class TestListTransactions:
    def test_default_page_is_first_ten_by_id(self, client):
        resp = client.get("/api/transactions")
        assert resp.status_code == 200
        assert _ids(resp) == list(range(1, 11))

    def test_second_page_is_short(self, client):
        resp = client.get("/api/transactions", params={"page": 2})
        assert _ids(resp) == [11, 12]

    def test_page_past_the_end_is_empty(self, client):
        resp = client.get("/api/transactions", params={"page": 3})
        assert resp.status_code == 200
        assert resp.json() == []

    def test_per_page(self, client):
        resp = client.get("/api/transactions", params={"page": 2, "perPage": 5})
        assert _ids(resp) == [6, 7, 8, 9, 10]

    def test_large_per_page_returns_everything(self, client):
        resp = client.get("/api/transactions", params={"perPage": 200})
        assert resp.status_code == 200
        assert _ids(resp) == [r["id"] for r in SAMPLE_RECORDS]

    def test_per_page_beyond_sqlite_integer_range(self, client):
        resp = client.get("/api/transactions", params={"perPage": 10**19})
        assert resp.status_code == 200
        assert len(resp.json()) == len(SAMPLE_RECORDS)

    def test_page_beyond_sqlite_offset_range_is_empty(self, client):
        resp = client.get("/api/transactions", params={"page": 10**19})
        assert resp.status_code == 200
        assert resp.json() == []

    def test_page_zero_rejected(self, client):
        resp = client.get("/api/transactions", params={"page": 0})
        assert resp.status_code == 422

    def test_record_shape(self, client):
        first = client.get("/api/transactions", params={"perPage": 1}).json()[0]
        assert first == {
            "id": 1,
            "title": "Fjallraven Backpack",
            "description": "Your perfect pack for everyday use",
            "price": 109.95,
            "category": "men's clothing",
            "dateOfSale": "2021-03-27T14:59:54Z",
            "sold": False,
        }

    def test_offset_timestamp_normalized_to_utc(self, client):
        resp = client.get("/api/transactions", params={"page": 2})
        owl = resp.json()[0]
        assert owl["id"] == 11
        assert owl["dateOfSale"] == "2021-04-01T01:00:00Z"

    def test_search_title_case_insensitive(self, client):
        resp = client.get("/api/transactions", params={"search": "BACKPACK"})
        assert 1 in _ids(resp)

    def test_search_description(self, client):
        resp = client.get("/api/transactions", params={"search": "polyester"})
        assert 9 in _ids(resp)

    def test_search_text_also_matches_zero_price(self, client):
        # Non-numeric search text reads as price 0, which matches record 7.
        resp = client.get("/api/transactions", params={"search": "jacket", "perPage": 100})
        assert _ids(resp) == [3, 7, 8, 10]

    def test_search_numeric_matches_exact_price(self, client):
        resp = client.get("/api/transactions", params={"search": "168"})
        assert _ids(resp) == [4]

    def test_search_leading_number(self, client):
        resp = client.get("/api/transactions", params={"search": "999.99 dollars"})
        assert _ids(resp) == [6]

    def test_month_name_filter(self, client):
        resp = client.get("/api/transactions", params={"month": "March", "perPage": 100})
        assert _ids(resp) == MARCH_IDS

    def test_month_abbreviation_filter(self, client):
        resp = client.get("/api/transactions", params={"month": "mar", "perPage": 100})
        assert _ids(resp) == MARCH_IDS

    def test_search_and_month_combined(self, client):
        resp = client.get("/api/transactions",
                          params={"search": "jacket", "month": "March", "perPage": 100})
        assert _ids(resp) == [7, 10]

    def test_unknown_month_name(self, client):
        resp = client.get("/api/transactions", params={"month": "Smarch"})
        assert resp.status_code == 400
        body = resp.json()
        assert body["error"] == "Invalid month"
        assert body["status_code"] == 400

    def test_every_record_reachable_by_paging(self, client):
        seen = []
        page = 1
        while True:
            batch = _ids(client.get("/api/transactions", params={"page": page, "perPage": 5}))
            seen.extend(batch)
            if len(batch) < 5:
                break
            page += 1
        assert sorted(seen) == [r["id"] for r in SAMPLE_RECORDS]


class TestUnicodeSearch:
    RECORDS = SAMPLE_RECORDS[:3] + [
        {"id": 13, "title": "Écharpe en laine", "description": "Tricotée à la main",
         "price": 45, "category": "women's clothing", "sold": True,
         "dateOfSale": "2023-03-02T00:00:00Z"},
        {"id": 14, "title": "Wanderschuhe", "description": "Für jede STRASSE",
         "price": 89.5, "category": "men's clothing", "sold": False,
         "dateOfSale": "2023-05-02T00:00:00Z"},
    ]

    @pytest.fixture()
    def conn(self, tmp_path):
        db_path = tmp_path / "unicode.sqlite"
        load_records(db_path, self.RECORDS)
        conn = open_connection(db_path)
        yield conn
        conn.close()

    @pytest.mark.parametrize("search", ["écharpe", "ÉCHARPE", "Écharpe"])
    def test_accented_title_any_case(self, conn, search):
        assert [t.id for t in fetch_transactions(conn, search=search)] == [13]

    def test_accented_description(self, conn):
        assert [t.id for t in fetch_transactions(conn, search="TRICOTÉE")] == [13]

    def test_full_case_folding(self, conn):
        # "straße" folds to "strasse".
        assert [t.id for t in fetch_transactions(conn, search="straße")] == [14]

    def test_combined_with_month(self, conn):
        assert [t.id for t in fetch_transactions(conn, search="ÉCHARPE", month=5)] == []


# ── GET /api/statistics ──────────────────────────────────────────────────────

class TestStatistics:
    def test_march_any_year(self, client):
        resp = client.get("/api/statistics", params={"month": 3})
        assert resp.status_code == 200
        body = resp.json()
        assert body["totalSaleAmount"] == pytest.approx(1400.74)
        assert body["soldItemsCount"] == 2
        assert body["notSoldItemsCount"] == 4

    def test_counts_add_up_to_month_matches(self, client):
        body = client.get("/api/statistics", params={"month": "3"}).json()
        assert body["soldItemsCount"] + body["notSoldItemsCount"] == len(MARCH_IDS)

    def test_empty_month_is_zeros(self, client):
        body = client.get("/api/statistics", params={"month": 2}).json()
        assert body == {"totalSaleAmount": 0, "soldItemsCount": 0, "notSoldItemsCount": 0}

    def test_leading_integer_month(self, client):
        body = client.get("/api/statistics", params={"month": "3rd"}).json()
        assert body["soldItemsCount"] == 2

    def test_store_failure_is_500(self, client, monkeypatch):
        def boom(*args, **kwargs):
            raise sqlite3.OperationalError("disk I/O error")
        monkeypatch.setattr("api.routes.reports.query_to_dicts", boom)
        resp = client.get("/api/statistics", params={"month": 3})
        assert resp.status_code == 500
        body = resp.json()
        assert body["error"] == "Error fetching statistics"
        assert body["details"] is None

    def test_store_failure_cause_logged_not_returned(self, client, monkeypatch, caplog):
        def boom(*args, **kwargs):
            raise sqlite3.OperationalError("no such table: transactions")
        monkeypatch.setattr("api.routes.reports.query_to_dicts", boom)
        with caplog.at_level(logging.ERROR, logger="transaction_api"):
            resp = client.get("/api/barchart", params={"month": 3})
        assert resp.status_code == 500
        assert "no such table" not in resp.text
        assert any(r.exc_info and "no such table" in str(r.exc_info[1]) for r in caplog.records)


# ── GET /api/barchart ────────────────────────────────────────────────────────

class TestBarChart:
    def test_ten_ranges_in_order(self, client):
        body = client.get("/api/barchart", params={"month": 1}).json()
        assert [b["range"] for b in body] == [
            "0-100", "101-200", "201-300", "301-400", "401-500",
            "501-600", "601-700", "701-800", "801-900", "901-above",
        ]

    def test_march_counts(self, client):
        body = client.get("/api/barchart", params={"month": 3}).json()
        counts = {b["range"]: b["count"] for b in body}
        # 22.3, 0 and 100.5 all fall in the first range.
        assert counts["0-100"] == 3
        assert counts["101-200"] == 2
        assert counts["901-above"] == 1
        assert sum(counts.values()) == len(MARCH_IDS)

    def test_empty_month_all_zero(self, client):
        body = client.get("/api/barchart", params={"month": 2}).json()
        assert len(body) == 10
        assert all(b["count"] == 0 for b in body)

    def test_april_includes_utc_shifted_record(self, client):
        counts = {b["range"]: b["count"]
                  for b in client.get("/api/barchart", params={"month": 4}).json()}
        assert counts["0-100"] == 1      # 7.95
        assert counts["801-900"] == 1    # 850, 2021-03-31 -02:00 is April in UTC


# ── GET /api/piechart ────────────────────────────────────────────────────────

class TestPieChart:
    def test_march_in_fixed_year(self, client):
        body = client.get("/api/piechart", params={"month": 3}).json()
        assert body == [
            {"category": "electronics", "count": 1},
            {"category": "jewelery", "count": 1},
            {"category": "men's clothing", "count": 1},
            {"category": "women's clothing", "count": 1},
        ]

    def test_december_window_ends_at_new_year(self, client):
        body = client.get("/api/piechart", params={"month": 12}).json()
        assert body == [{"category": "electronics", "count": 1}]

    def test_month_outside_fixed_year_is_empty(self, client):
        assert client.get("/api/piechart", params={"month": 1}).json() == []


# ── GET /api/combined ────────────────────────────────────────────────────────

class TestCombined:
    def test_march_bundle(self, client):
        resp = client.get("/api/combined", params={"month": 3})
        assert resp.status_code == 200
        body = resp.json()

        stats = body["statistics"]
        assert stats["totalSales"] == pytest.approx(1400.74)
        assert stats["soldItems"] == 2
        assert stats["notSoldItems"] == 4

        assert body["barchart"] == [
            {"range": "0-100", "count": 2},
            {"range": "100-200", "count": 3},
            {"range": "900-above", "count": 1},
        ]

        assert body["piechart"] == [
            {"category": "electronics", "count": 2},
            {"category": "jewelery", "count": 1},
            {"category": "men's clothing", "count": 2},
            {"category": "women's clothing", "count": 1},
        ]

    def test_empty_month(self, client):
        body = client.get("/api/combined", params={"month": 2}).json()
        assert body == {"statistics": {}, "barchart": [], "piechart": []}


# ── Month validation shared by the report endpoints ──────────────────────────

_REPORT_QUERIES = {
    "/api/statistics": "query_statistics",
    "/api/barchart": "query_bar_chart",
    "/api/piechart": "query_pie_chart",
    "/api/combined": "query_combined_statistics",
}


class TestMonthValidation:
    @pytest.mark.parametrize("path", sorted(_REPORT_QUERIES))
    @pytest.mark.parametrize("month", [None, "", "0", "13", "-1", "abc", "march"])
    def test_invalid_month_rejected_before_query(self, client, monkeypatch, path, month):
        def must_not_run(*args, **kwargs):
            raise AssertionError("store queried for an invalid month")
        monkeypatch.setattr(f"api.routes.reports.{_REPORT_QUERIES[path]}", must_not_run)

        params = {} if month is None else {"month": month}
        resp = client.get(path, params=params)
        assert resp.status_code == 400
        body = resp.json()
        assert body["error"] == "Invalid month"
        assert body["status_code"] == 400
