"""
eSync+ API — External MySQL Source Service
===========================================

What:  Read-only access to an external MySQL database rows are imported
       from: connection test, table and column listing, row sampling.
How:   A short-lived synchronous SQLAlchemy engine (PyMySQL driver) runs in a
       worker thread so the event loop never blocks on the source. Connection
       failures are retried with tenacity; what still fails surfaces as
       SourceDatabaseError (502).
Who:   MySQL routes (settings page, data transfer page).

Connection Settings:
    Stored in app_settings, category "mysql": host, port (3306), database,
    user, password. A request body may override any of them (used by the
    "test connection" button before saving).

Retry Strategy:
    Only OperationalError is retried. PyMySQL raises it for refused
    connections, timeouts and rejected logins; errors in the SQL itself
    (ProgrammingError) fail on the first attempt.
"""

import asyncio
import logging
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, TypeVar

from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL, Connection
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.pool import NullPool
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from esync_api.config import settings
from esync_api.exceptions import NotFoundError, SourceDatabaseError, ValidationError
from esync_api.schemas.transfer import SourceConnection
from esync_api.services.settings_service import settings_service

logger = logging.getLogger(__name__)

T = TypeVar("T")

MYSQL_SETTINGS_CATEGORY = "mysql"
DEFAULT_MYSQL_PORT = 3306


def quote_identifier(name: str) -> str:
    """MySQL identifier quoting: `name`, with embedded backticks doubled."""
    return "`" + name.replace("`", "``") + "`"


def json_safe(value: Any) -> Any:
    """Convert driver values the JSON encoder cannot take as-is."""
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, timedelta):
        return str(value)
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    return value


class SourceDatabaseService:

    # ── Connection Settings ───────────────────────────────────────────────

    async def load_connection(
        self, db: AsyncSession, overrides: Optional[SourceConnection] = None
    ) -> SourceConnection:
        """
        Stored settings merged with the fields set in `overrides`.

        Raises:
            ValidationError: host, database or user is missing
        """
        stored = await settings_service.get_category(db, MYSQL_SETTINGS_CATEGORY)
        merged: Dict[str, Any] = {k: v for k, v in stored.items() if k in SourceConnection.model_fields}
        if overrides is not None:
            merged.update(overrides.model_dump(exclude_none=True))

        port = merged.get("port") or DEFAULT_MYSQL_PORT
        try:
            merged["port"] = int(port)
        except (TypeError, ValueError):
            raise ValidationError(message=f"Invalid MySQL port '{port}'", field="port")

        connection = SourceConnection(**merged)
        missing = [f for f in ("host", "database", "user") if not (getattr(connection, f) or "").strip()]
        if missing:
            raise ValidationError(
                message=f"MySQL connection is not configured: missing {', '.join(missing)}",
                field=missing[0],
                context={"missing": missing},
            )
        return connection

    def _url(self, connection: SourceConnection) -> URL:
        return URL.create(
            "mysql+pymysql",
            username=connection.user,
            password=connection.password or None,
            host=connection.host.strip(),
            port=connection.port or DEFAULT_MYSQL_PORT,
            database=connection.database.strip(),
            query={"charset": "utf8mb4"},
        )

    # ── Execution ─────────────────────────────────────────────────────────

    def _run_sync(self, connection: SourceConnection, work: Callable[[Connection], T]) -> T:
        """Open a connection, run `work`, dispose the engine. Runs in a worker thread."""
        engine = create_engine(
            self._url(connection),
            poolclass=NullPool,
            connect_args={"connect_timeout": settings.source_connect_timeout},
        )
        try:
            with engine.connect() as conn:
                return work(conn)
        finally:
            engine.dispose()

    @retry(
        retry=retry_if_exception_type(OperationalError),
        stop=stop_after_attempt(settings.retry_max_attempts),
        wait=wait_exponential_jitter(
            multiplier=settings.retry_min_wait,
            max=settings.retry_max_wait,
            jitter=1 if settings.retry_max_wait else 0,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _execute_with_retry(self, connection: SourceConnection, work: Callable[[Connection], T]) -> T:
        return await asyncio.to_thread(self._run_sync, connection, work)

    async def _execute(self, connection: SourceConnection, work: Callable[[Connection], T], action: str) -> T:
        try:
            return await self._execute_with_retry(connection, work)
        except SQLAlchemyError as e:
            logger.error(
                "MySQL source %s@%s/%s failed to %s: %s",
                connection.user, connection.host, connection.database, action, str(e),
            )
            raise SourceDatabaseError(
                message=f"Source database error while trying to {action}",
                context={
                    "host": connection.host,
                    "database": connection.database,
                    "error_type": type(e).__name__,
                    "error": str(getattr(e, "orig", None) or e),
                },
            )

    # ── Operations ────────────────────────────────────────────────────────

    async def test_connection(self, db: AsyncSession, overrides: Optional[SourceConnection] = None) -> Optional[str]:
        """Connect and return the server version string."""
        connection = await self.load_connection(db, overrides)
        version = await self._execute(
            connection,
            lambda conn: conn.execute(text("SELECT VERSION()")).scalar(),
            "test the connection",
        )
        logger.info("MySQL source %s/%s reachable (version %s)", connection.host, connection.database, version)
        return str(version) if version is not None else None

    async def list_tables(self, db: AsyncSession) -> List[str]:
        connection = await self.load_connection(db)
        return await self._execute(connection, _fetch_table_names, "list tables")

    async def list_columns(self, db: AsyncSession, table: str) -> List[Dict[str, str]]:
        connection = await self.load_connection(db)

        def work(conn: Connection) -> List[Dict[str, str]]:
            _require_table(conn, table)
            result = conn.execute(text(f"SHOW COLUMNS FROM {quote_identifier(table)}"))
            return [{"name": row[0], "type": str(row[1])} for row in result]

        return await self._execute(connection, work, "list columns")

    async def table_data(self, db: AsyncSession, table: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """First `limit` rows of a source table (at most settings.source_max_rows)."""
        connection = await self.load_connection(db)
        row_limit = min(limit or settings.source_max_rows, settings.source_max_rows)

        def work(conn: Connection) -> List[Dict[str, Any]]:
            _require_table(conn, table)
            result = conn.execute(
                text(f"SELECT * FROM {quote_identifier(table)} LIMIT :limit"),
                {"limit": row_limit},
            )
            return [{key: json_safe(value) for key, value in row.items()} for row in result.mappings()]

        rows = await self._execute(connection, work, "read table data")
        logger.info("Read %d row(s) from source table %s", len(rows), table)
        return rows


def _fetch_table_names(conn: Connection) -> List[str]:
    return sorted(str(row[0]) for row in conn.execute(text("SHOW TABLES")))


def _require_table(conn: Connection, table: str) -> None:
    if table not in _fetch_table_names(conn):
        raise NotFoundError(resource="source table", resource_id=table)


source_db_service = SourceDatabaseService()
