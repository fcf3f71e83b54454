import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Sequence

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

import config
from models import Base

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"\$(\d+)")


class Store(ABC):
    """
    Query interface the catalog handlers talk to.

    SQL is written with positional placeholders ($1, $2, ...) and every
    value that varies per call goes into ``params``.
    """

    @abstractmethod
    def query(self, sql: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        """Run one statement and return its rows in the store's order."""


def to_named_params(sql: str, params: Sequence[Any]):
    """
    Rewrites $n placeholders into SQLAlchemy bind names.

    Returns the rewritten SQL and the matching parameter dict, e.g.
    ``"... id = $1", ["7"]`` becomes ``"... id = :p1", {"p1": "7"}``.
    """
    params = list(params)

    def _replace(match):
        index = int(match.group(1))
        if index < 1 or index > len(params):
            raise ValueError(f"No parameter bound for placeholder ${index}")
        return f":p{index}"

    named_sql = _PLACEHOLDER.sub(_replace, sql)
    return named_sql, {f"p{i}": value for i, value in enumerate(params, start=1)}


class SqlStore(Store):
    def __init__(self, engine: Engine):
        self.engine = engine

    def query(self, sql, params=()):
        named_sql, bound = to_named_params(sql, params)
        # one pooled connection per statement, committed or rolled back on exit
        with self.engine.begin() as conn:
            result = conn.execute(text(named_sql), bound)
            if not result.returns_rows:
                return []
            return [dict(row._mapping) for row in result]

    def create_tables(self):
        Base.metadata.create_all(bind=self.engine)

    def dispose(self):
        self.engine.dispose()


def _normalize_url(url: str) -> str:
    # psycopg (v3) is the Postgres driver shipped with the service
    for prefix in ("postgres://", "postgresql://"):
        if url.startswith(prefix):
            return "postgresql+psycopg://" + url[len(prefix):]
    return url


def create_store(url: str = None) -> SqlStore:
    """
    Builds a SqlStore for the given URL (defaults to the configured one)
    and makes sure the products table exists.
    """
    url = _normalize_url(url or config.database_url())

    if url.startswith("sqlite"):
        engine = create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool
        )
    else:
        engine = create_engine(
            url,
            pool_pre_ping=True,
            pool_size=config.DB_POOL_SIZE,
            max_overflow=config.DB_MAX_OVERFLOW,
        )

    store = SqlStore(engine)
    try:
        store.create_tables()
    except Exception:
        store.dispose()
        raise
    logger.info("Store ready on %s", engine.url.render_as_string(hide_password=True))
    return store


def get_store(request: Request) -> Store:
    return request.app.state.store
