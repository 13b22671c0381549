"""
Canonical database engine factory.

This is the SINGLE SOURCE OF TRUTH for engine creation. The Flask app, the
CLI and tests all go through get_engine() so pool settings stay in one place.

Usage:
    from db.engine import get_engine

    engine = get_engine()                      # Config.DATABASE_URL
    engine = get_engine("sqlite://")           # in-memory, shared across threads

In-memory SQLite:
    Each new connection to "sqlite://" would open a separate empty database,
    and find/count run on worker threads. StaticPool with
    check_same_thread=False keeps one shared connection.

Warmup with retry:
    - Exponential backoff (0.75s, 1.5s, 3s, 6s)
    - Fails fast after 4 attempts with clear error
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.pool import StaticPool

log = logging.getLogger(__name__)

# Module-level engine cache (per-process, keyed by URL)
_ENGINES: Dict[str, Engine] = {}


def _base_options() -> Dict[str, Any]:
    """Get base engine options from Config.DATABASE_ENGINE_OPTIONS."""
    from config import Config

    return dict(getattr(Config, "DATABASE_ENGINE_OPTIONS", {}) or {})


def _is_memory_sqlite(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:")


def _warmup(engine: Engine, attempts: int = 4, base_sleep: float = 0.75) -> None:
    """
    Warm up database connection with exponential backoff retry.

    Raises:
        OperationalError: If all attempts fail
    """
    last_error: Optional[Exception] = None

    for i in range(attempts):
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            log.info("db_warmup_success attempt=%d", i + 1)
            return
        except OperationalError as e:
            last_error = e
            sleep_s = base_sleep * (2 ** i)
            log.warning(
                "db_warmup_retry attempt=%d/%d sleep_s=%.2f err=%s",
                i + 1, attempts, sleep_s, str(e)[:100]
            )
            time.sleep(sleep_s)

    log.error("db_warmup_failed after %d attempts", attempts)
    raise last_error  # type: ignore[misc]


def get_engine(url: Optional[str] = None, *, warmup: bool = True) -> Engine:
    """
    Get (or create and cache) an engine for a database URL.

    Args:
        url: SQLAlchemy URL; defaults to Config.DATABASE_URL
        warmup: Verify connectivity before returning

    Returns:
        SQLAlchemy Engine
    """
    if url is None:
        from config import get_database_url
        url = get_database_url()

    engine = _ENGINES.get(url)
    if engine is not None:
        return engine

    if _is_memory_sqlite(url):
        engine = create_engine(
            url,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
        log.info("db_engine_created url=sqlite:// poolclass=StaticPool")
    else:
        opts = _base_options()
        engine = create_engine(url, **opts)
        log.info("db_engine_created dialect=%s", engine.dialect.name)

    if warmup:
        _warmup(engine)

    _ENGINES[url] = engine
    return engine


def dispose_engines() -> None:
    """
    Dispose all cached engines (for testing/cleanup).
    """
    for url, engine in list(_ENGINES.items()):
        try:
            engine.dispose()
        except Exception as e:
            log.warning("db_engine_dispose_failed url=%s err=%s", url, e)
        _ENGINES.pop(url, None)
