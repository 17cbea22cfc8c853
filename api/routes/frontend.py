"""
Frontend HTML routes.

Serves the Jinja2 templates for the transaction listing.  Navigation is
driven by HTMX: the Previous/Next buttons swap in the table partial.

Routes:
    GET /                        → index.html (page shell + first table)
    GET /partials/transactions   → partials/transactions.html (HTMX swap target)
"""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

import api.database as store
from api.errors import StoreFailure
from api.routes.transactions import fetch_transactions
from utils.listing import LISTING_PAGE_SIZE, ListingState

logger = logging.getLogger(__name__)

router = APIRouter(tags=["frontend"])

# Templates instance is set by create_app() after mounting.
_templates: Jinja2Templates | None = None


def set_templates(t: Jinja2Templates) -> None:
    global _templates
    _templates = t


def _tmpl() -> Jinja2Templates:
    if _templates is None:
        raise RuntimeError("Templates not initialised, call set_templates() first")
    return _templates


def load_listing(page: int) -> ListingState:
    """Fetch one listing page (no search, no month) and wrap it in a state.

    Any store failure, including one opening a connection, becomes the
    failed state so the page still renders.
    """
    page = max(page, 1)
    try:
        with store.connection() as conn:
            records = fetch_transactions(conn, page=page, per_page=LISTING_PAGE_SIZE)
    except StoreFailure as exc:
        logger.error("listing page %d failed: %s", page, exc.error, exc_info=exc.__cause__)
        return ListingState.failed(page)
    return ListingState.from_page(page, records, per_page=LISTING_PAGE_SIZE)


# ── Routes ────────────────────────────────────────────────────────────────────

@router.get("/", response_class=HTMLResponse, include_in_schema=False)
def index(
    request: Request,
    page: int = 1,
) -> HTMLResponse:
    """Listing page."""
    return _tmpl().TemplateResponse(
        request, "index.html", {"state": load_listing(page)},
    )


@router.get("/partials/transactions", response_class=HTMLResponse, include_in_schema=False)
def transactions_partial(
    request: Request,
    page: int = 1,
) -> HTMLResponse:
    """HTMX partial: one page of the table plus navigation."""
    return _tmpl().TemplateResponse(
        request, "partials/transactions.html", {"state": load_listing(page)},
    )
