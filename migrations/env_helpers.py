"""Database URL helpers for Alembic migrations.

Kept apart from env.py so they can be tested without alembic.context.

DATABASE_URL may be a URL (postgres://, postgresql://) or a libpq
key=value DSN; either way it becomes a postgresql+psycopg2 SQLAlchemy URL.
DB_PASSWORD is injected when the DSN carries no password.
"""

from __future__ import annotations

import os

from psycopg2.extensions import parse_dsn
from sqlalchemy.engine import URL, make_url

_DRIVER = "postgresql+psycopg2"


def _url_from_dsn(dsn: str, password: str | None) -> URL:
    params = parse_dsn(dsn)
    host = params.pop("host", None)
    query = {}
    if host and host.startswith("/"):
        # Unix socket (e.g. Cloud SQL): passed as a query parameter
        query["host"] = host
        host = None
    port = params.pop("port", None)
    return URL.create(
        _DRIVER,
        username=params.pop("user", None),
        password=params.pop("password", None) or password,
        host=host or (None if query else "localhost"),
        port=int(port) if port else None,
        database=params.pop("dbname", None),
        query=query,
    )


def _url_from_url(url: str, password: str | None) -> URL:
    parsed = make_url(url).set(drivername=_DRIVER)
    if password and not parsed.password:
        parsed = parsed.set(password=password)
    return parsed


def _get_database_url() -> str:
    url = os.environ.get("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL is required to run migrations")
    password = os.environ.get("DB_PASSWORD") or None

    if "://" in url:
        if url.startswith("postgres://"):
            url = "postgresql://" + url[len("postgres://"):]
        result = _url_from_url(url, password)
    else:
        result = _url_from_dsn(url, password)
    return result.render_as_string(hide_password=False)
