"""Postgres connection helpers for the playoff tracker's SOR store."""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import Any, Iterator

logger = logging.getLogger(__name__)


def _connect_timeout() -> int:
    return int(os.getenv("PG_CONNECT_TIMEOUT", "10"))


def _env_conn_kwargs() -> dict[str, Any]:
    kwargs = {
        "host": os.getenv("DB_HOST"),
        "port": os.getenv("DB_PORT", "5432"),
        "user": os.getenv("DB_USER"),
        "password": os.getenv("DB_PASSWORD"),
        "dbname": os.getenv("DB_NAME") or os.getenv("DB_DATABASE"),
    }
    if not all(kwargs[k] for k in ("host", "user", "password", "dbname")):
        return {}
    return kwargs


def is_configured() -> bool:
    return bool(_env_conn_kwargs() or os.getenv("DATABASE_URL", "").strip())


@contextmanager
def get_conn() -> Iterator[Any]:
    """Open a connection: psycopg2 with DB_* credentials, else psycopg with
    DATABASE_URL (the hosted Supabase connection string)."""
    kwargs = _env_conn_kwargs()
    if kwargs:
        try:
            import psycopg2
        except ImportError as exc:
            raise RuntimeError("psycopg2 is not installed; install server requirements") from exc
        conn = psycopg2.connect(connect_timeout=_connect_timeout(), **kwargs)
    else:
        db_url = os.getenv("DATABASE_URL", "").strip()
        if not db_url:
            raise RuntimeError(
                "SOR store is not configured. Set DB_HOST/DB_USER/DB_PASSWORD/DB_NAME "
                "or DATABASE_URL."
            )
        try:
            import psycopg
            from psycopg.rows import dict_row
        except ImportError as exc:
            raise RuntimeError("psycopg is not installed; install server requirements") from exc
        conn = psycopg.connect(
            db_url,
            row_factory=dict_row,
            connect_timeout=_connect_timeout(),
            sslmode=os.getenv("PGSSLMODE", "require"),
        )
    try:
        yield conn
    finally:
        conn.close()


@contextmanager
def _dict_cursor(conn: Any) -> Iterator[Any]:
    if conn.__class__.__module__.startswith("psycopg2"):
        from psycopg2.extras import RealDictCursor

        with conn.cursor(cursor_factory=RealDictCursor) as cur:
            yield cur
    else:
        with conn.cursor() as cur:
            yield cur


def fetch_all(query: str, params: tuple[Any, ...] = ()) -> list[dict[str, Any]]:
    with get_conn() as conn, _dict_cursor(conn) as cur:
        cur.execute(query, params)
        return [dict(row) for row in cur.fetchall()]


def fetch_one(query: str, params: tuple[Any, ...] = ()) -> dict[str, Any] | None:
    with get_conn() as conn, _dict_cursor(conn) as cur:
        cur.execute(query, params)
        row = cur.fetchone()
        return dict(row) if row else None
