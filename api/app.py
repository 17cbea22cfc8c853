"""
FastAPI application factory for the transaction reporting service.

Usage:
    python -m api.app                          # Dev server on port 4000
    APP_DB_PATH=/data/tx.sqlite python -m api.app

OpenAPI docs available at http://localhost:4000/docs after starting.

Layout:
    /api/*       JSON reporting API (prefix from APP_API_PREFIX)
    /            server-rendered listing page (HTMX)
    /health      liveness + store check
"""

import json
import logging
import time
import uuid
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.templating import Jinja2Templates

import api.database as store
from api.errors import ReportingError
from api.routes import frontend as frontend_routes
from api.routes import reports, seed, transactions
from utils.config import AppConfig
from utils.database import get_table_count

# ── Configuration ─────────────────────────────────────────────────────────────
_cfg = AppConfig.from_env()

# ── Structured JSON logging ──────────────────────────────────────────────────


class _JsonFormatter(logging.Formatter):
    """Emit log records as newline-delimited JSON."""

    def format(self, record: logging.LogRecord) -> str:
        data: dict = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        # Merge extra fields added via logger.info("...", extra={...})
        for key in ("method", "path", "status", "duration_ms", "client_ip",
                    "request_id"):
            if hasattr(record, key):
                data[key] = getattr(record, key)
        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(data)


_logger = logging.getLogger("transaction_api")
_handler = logging.StreamHandler()
if _cfg.log_format == "json":
    _handler.setFormatter(_JsonFormatter())
else:
    _handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
    )
logging.basicConfig(handlers=[_handler], level=logging.INFO, force=True)

_SLOW_REQUEST_MS = 500


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the connection pool on startup, close it on shutdown."""
    pool = store.init_pool()
    _logger.info("store ready at %s", pool.db_path)
    yield
    store.close_pool()


def create_app(db_path: Path | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        db_path: Override the database path (useful for testing).

    Returns:
        Configured FastAPI application instance.
    """
    cfg = AppConfig.from_env()
    if db_path is not None:
        cfg.db_path = Path(db_path)
    store.configure(cfg.db_path, cfg.pool_size)

    app = FastAPI(
        title="Transaction Reporting API",
        summary="Search and monthly reports over a store of sale transactions.",
        description=(
            "## Transaction Reporting API\n\n"
            "Serves a store of product sale transactions seeded from a remote "
            "JSON dataset.\n\n"
            "### Key concepts\n"
            "- **Month filters** on statistics, bar chart and combined match the "
            "calendar month of `dateOfSale` in any year.\n"
            "- **Pie chart** counts categories inside one month of a fixed year "
            f"(currently `{cfg.pie_chart_year or 'any'}`).\n"
            "- **Reseed** replaces the whole store atomically; readers never see "
            "an empty table."
        ),
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_tags=[
            {"name": "transactions", "description": "Paginated, searchable listing."},
            {"name": "reports", "description": "Monthly statistics and chart data."},
            {"name": "seed", "description": "Replace the store from the seed source."},
            {"name": "meta", "description": "Health check."},
        ],
    )
    app.state.config = cfg

    # ── CORS middleware ───────────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "HEAD", "OPTIONS"],
        allow_headers=["*"],
    )

    # ── Request logging middleware ────────────────────────────────────────────

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log each request with its duration and tag it with a request ID."""
        request_id = str(uuid.uuid4())[:8]
        start = time.monotonic()
        client_ip = request.client.host if request.client else "unknown"
        path = request.url.path

        response = await call_next(request)
        duration_ms = (time.monotonic() - start) * 1000
        response.headers["X-Request-ID"] = request_id

        if cfg.log_format == "json":
            _logger.info(
                "request",
                extra={
                    "method": request.method,
                    "path": path,
                    "status": response.status_code,
                    "duration_ms": round(duration_ms, 1),
                    "client_ip": client_ip,
                    "request_id": request_id,
                },
            )
        else:
            _logger.info(
                "method=%s path=%s status=%d duration_ms=%.1f ip=%s rid=%s",
                request.method, path, response.status_code, duration_ms,
                client_ip, request_id,
            )
        if duration_ms > _SLOW_REQUEST_MS:
            _logger.warning(
                "slow_request method=%s path=%s duration_ms=%.1f",
                request.method, path, duration_ms,
            )
        return response

    # ── Content Security Policy + security headers ────────────────────────────

    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        """Add Content-Security-Policy, X-Content-Type-Options, and X-Frame-Options."""
        response = await call_next(request)
        # HTMX is loaded from unpkg; the page has one inline <style> block.
        response.headers["Content-Security-Policy"] = (
            "default-src 'self'; "
            "script-src 'self' unpkg.com; "
            "style-src 'self' 'unsafe-inline'; "
            "img-src 'self' data:; "
            "connect-src 'self';"
        )
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        return response

    # ── Error handling ────────────────────────────────────────────────────────

    @app.exception_handler(ReportingError)
    async def reporting_error_handler(request: Request, exc: ReportingError):
        """Render a ReportingError as the standard JSON error body."""
        level = logging.WARNING if exc.status_code < 500 else logging.ERROR
        _logger.log(level, "%s %s -> %d %s: %s", request.method, request.url.path,
                    exc.status_code, exc.error, exc.details,
                    exc_info=exc.__cause__ if exc.status_code >= 500 else None)
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": exc.error,
                "details": exc.details or None,
                "status_code": exc.status_code,
            },
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """Catch unhandled exceptions and return JSON instead of HTML traceback."""
        _logger.exception("unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "details": str(exc),
                "status_code": 500,
            },
        )

    # ── Health check ──────────────────────────────────────────────────────────

    @app.get("/health", tags=["meta"], summary="Health check")
    def health():
        """Return 200 OK if the API is running and can query the store."""
        db_path = store.get_db_path()
        try:
            pool = store.init_pool()
            conn = pool.acquire()
            try:
                count = get_table_count(conn, store.TRANSACTIONS_TABLE)
            finally:
                pool.release(conn)
        except Exception as e:
            _logger.warning("health check failed: %s", e)
            return JSONResponse(
                status_code=503,
                content={"status": "degraded", "error": str(e)},
            )
        return {"status": "ok", "database": str(db_path), "transactions": count}

    # ── Register routers ──────────────────────────────────────────────────────

    prefix = cfg.api_prefix
    app.include_router(transactions.router, prefix=prefix)
    app.include_router(reports.router,      prefix=prefix)
    app.include_router(seed.router,         prefix=prefix)

    # ── Jinja2 templates for the listing page ────────────────────────────────
    templates_dir = Path(__file__).parent.parent / "templates"
    templates = Jinja2Templates(directory=str(templates_dir))

    def fmt_price(value) -> str:
        """Jinja filter: ``$x.xx``."""
        try:
            return f"${float(value):.2f}"
        except (TypeError, ValueError):
            return "-"

    def fmt_date(value) -> str:
        """Jinja filter: date part of a datetime in the server's local zone."""
        try:
            return value.astimezone().strftime("%Y-%m-%d")
        except AttributeError:
            return str(value)

    templates.env.filters["fmt_price"] = fmt_price
    templates.env.filters["fmt_date"] = fmt_date

    frontend_routes.set_templates(templates)
    app.include_router(frontend_routes.router)

    return app


# Singleton instance for uvicorn
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.app:app",
        host=_cfg.api_host,
        port=_cfg.api_port,
        reload=True,
        log_level="info",
    )
