# backend/core/query_logger.py

import logging
import time
from typing import Any, Dict

from sqlalchemy import event
from sqlalchemy.engine import Engine

from .config import Settings

logger = logging.getLogger("sqlalchemy.engine")
query_logger = logging.getLogger("query_performance")


class QueryLogger:
    """SQL query timing for development and debugging"""

    def __init__(self, slow_query_threshold: float = 1.0):
        self.slow_query_threshold = slow_query_threshold
        self.query_stats: Dict[str, Any] = {
            "total_queries": 0,
            "slow_queries": 0,
            "total_time": 0.0,
        }

    def record(self, statement: str, elapsed: float) -> None:
        self.query_stats["total_queries"] += 1
        self.query_stats["total_time"] += elapsed

        if elapsed > self.slow_query_threshold:
            self.query_stats["slow_queries"] += 1
            query_logger.warning(f"SLOW QUERY ({elapsed:.3f}s): {statement[:200]}...")


def setup_query_logging(engine: Engine, settings: Settings) -> None:
    """
    Setup query logging for an SQLAlchemy engine

    Args:
        engine: SQLAlchemy engine instance
        settings: application settings; only active in development or debug
    """
    if not (settings.is_development or settings.debug):
        return

    stats = QueryLogger()

    @event.listens_for(engine, "before_cursor_execute")
    def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        conn.info.setdefault("query_start_time", []).append(time.time())
        if settings.log_sql_queries:
            logger.debug("Start Query: %s", statement)

    @event.listens_for(engine, "after_cursor_execute")
    def after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        total_time = time.time() - conn.info["query_start_time"].pop(-1)
        stats.record(statement, total_time)
        if settings.log_sql_queries:
            logger.debug("Query Complete in %.3fs", total_time)

    if engine.url.get_backend_name() == "sqlite":

        @event.listens_for(engine, "connect")
        def setup_sqlite_pragma(dbapi_conn, connection_record):
            """Enable foreign keys for SQLite connections"""
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys = ON")
            cursor.close()
