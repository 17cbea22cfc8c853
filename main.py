#!/usr/bin/env python3
"""
Transaction reporting service: launch the API and listing page.

Usage:
    python main.py                          # http://localhost:4000
    python main.py --port 9000              # http://localhost:9000
    python main.py --host 0.0.0.0           # bind on all interfaces
    python main.py --db /path/to/tx.sqlite
    python main.py --seed                   # reseed the store, then exit
    python main.py --reload                 # auto-reload on code changes
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
import webbrowser
from pathlib import Path

import uvicorn


def seed_store() -> int:
    """Reseed the configured store from the seed URL; return the record count."""
    import api.database as store
    from api.errors import ReportingError
    from api.routes.seed import initialize_from_source
    from utils.config import AppConfig

    cfg = AppConfig.from_env()
    pool = store.init_pool(cfg.db_path, cfg.pool_size)
    conn = pool.acquire()
    try:
        return initialize_from_source(conn, cfg)
    except ReportingError as exc:
        print(f"Error: {exc.error}: {exc.details}")
        sys.exit(1)
    finally:
        pool.release(conn)
        store.close_pool()


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Launch the transaction reporting API and listing page.",
    )
    parser.add_argument(
        "--host", default=os.getenv("APP_HOST", "127.0.0.1"),
        help="Bind address (default: 127.0.0.1 or APP_HOST env var)",
    )
    parser.add_argument(
        "--port", type=int, default=int(os.getenv("APP_PORT", "4000")),
        help="Port to listen on (default: 4000 or APP_PORT env var)",
    )
    parser.add_argument(
        "--db", type=Path, default=None,
        help="Path to SQLite database (default: transactions.sqlite or APP_DB_PATH env var)",
    )
    parser.add_argument(
        "--seed", action="store_true",
        help="Replace the store with the seed dataset and exit",
    )
    parser.add_argument(
        "--reload", action="store_true",
        help="Enable auto-reload on file changes (development mode)",
    )
    parser.add_argument(
        "--no-browser", action="store_true",
        help="Don't open a browser window automatically",
    )
    args = parser.parse_args()

    # Set DB path env var if provided via CLI
    if args.db is not None:
        os.environ["APP_DB_PATH"] = str(args.db)

    db_path = Path(os.getenv("APP_DB_PATH", "transactions.sqlite"))

    if args.seed:
        logging.basicConfig(level=logging.INFO,
                            format="%(asctime)s %(levelname)s %(name)s %(message)s")
        count = seed_store()
        print(f"Seeded {count} transactions into {db_path}")
        return

    if not db_path.exists():
        print(f"Note: no database at {db_path}; it will be created empty.")
        print("  Run 'python main.py --seed' or GET /api/initializeDatabase to load data.")
        print()

    url = f"http://{'localhost' if args.host == '0.0.0.0' else args.host}:{args.port}"
    print(f"Starting transaction reporting service at {url}")
    print(f"Database: {db_path}")
    print()

    if not args.no_browser:
        # Open browser after a short delay to let the server start
        import threading
        threading.Timer(1.5, webbrowser.open, args=(url,)).start()

    uvicorn.run(
        "api.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level="info",
    )


if __name__ == "__main__":
    main()
