"""
eSync+ API — External MySQL Source Tests
=========================================

What:  Connection settings, retries and result shaping of the MySQL source.
How:   `create_engine` is patched with a MagicMock engine, so no MySQL
       server (or PyMySQL connection) is needed. The test environment sets
       RETRY_MAX_ATTEMPTS=2 and zero waits.
"""

from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.exc import OperationalError, ProgrammingError
from tenacity import wait_exponential_jitter

from esync_api.config import settings
from esync_api.exceptions import NotFoundError, SourceDatabaseError, ValidationError
from esync_api.schemas.transfer import SourceConnection
from esync_api.services.settings_service import settings_service
from esync_api.services.source_db_service import (
    json_safe,
    quote_identifier,
    source_db_service,
)

CREATE_ENGINE = "esync_api.services.source_db_service.create_engine"


def fake_engine(connection):
    engine = MagicMock()
    engine.connect.return_value.__enter__.return_value = connection
    engine.connect.return_value.__exit__.return_value = False
    return engine


async def store_connection(db):
    await settings_service.put_category(
        db, "mysql", {"host": "mysql.local", "database": "shop", "user": "reader", "password": "secret"},
    )


def test_quote_identifier():
    assert quote_identifier("urunler") == "`urunler`"
    assert quote_identifier("a`b") == "`a``b`"


def test_json_safe():
    assert json_safe(Decimal("9.90")) == 9.9
    assert json_safe(date(2024, 1, 15)) == "2024-01-15"
    assert json_safe(b"abc") == "abc"
    assert json_safe(5) == 5


class TestLoadConnection:

    @pytest.mark.asyncio
    async def test_missing_settings(self, db_session):
        with pytest.raises(ValidationError, match="missing host, database, user"):
            await source_db_service.load_connection(db_session)

    @pytest.mark.asyncio
    async def test_stored_settings_with_default_port(self, db_session):
        await store_connection(db_session)
        connection = await source_db_service.load_connection(db_session)
        assert connection.host == "mysql.local"
        assert connection.port == 3306

    @pytest.mark.asyncio
    async def test_overrides_win(self, db_session):
        await store_connection(db_session)
        connection = await source_db_service.load_connection(
            db_session, SourceConnection(host="other", port=3307),
        )
        assert connection.host == "other"
        assert connection.port == 3307
        assert connection.database == "shop"

    @pytest.mark.asyncio
    async def test_invalid_stored_port(self, db_session):
        await store_connection(db_session)
        await settings_service.put_category(db_session, "mysql", {"port": "abc"})
        with pytest.raises(ValidationError, match="Invalid MySQL port"):
            await source_db_service.load_connection(db_session)


class TestSourceQueries:

    @pytest.mark.asyncio
    async def test_connection_version(self, db_session):
        await store_connection(db_session)
        conn = MagicMock()
        conn.execute.return_value.scalar.return_value = "8.0.36"

        with patch(CREATE_ENGINE, return_value=fake_engine(conn)) as mock_create:
            version = await source_db_service.test_connection(db_session)

        assert version == "8.0.36"
        url = mock_create.call_args.args[0]
        assert url.drivername == "mysql+pymysql"
        assert url.host == "mysql.local"

    @pytest.mark.asyncio
    async def test_list_tables_sorted(self, db_session):
        await store_connection(db_session)
        conn = MagicMock()
        conn.execute.return_value = [("urunler",), ("markalar",)]

        with patch(CREATE_ENGINE, return_value=fake_engine(conn)):
            assert await source_db_service.list_tables(db_session) == ["markalar", "urunler"]

    @pytest.mark.asyncio
    async def test_unknown_source_table(self, db_session):
        await store_connection(db_session)
        conn = MagicMock()
        conn.execute.return_value = [("urunler",)]

        with patch(CREATE_ENGINE, return_value=fake_engine(conn)):
            with pytest.raises(NotFoundError):
                await source_db_service.list_columns(db_session, "users; DROP TABLE x")

    @pytest.mark.asyncio
    async def test_table_data(self, db_session):
        await store_connection(db_session)
        tables = MagicMock()
        tables.__iter__.return_value = iter([("urunler",)])
        rows = MagicMock()
        rows.mappings.return_value = [{"id": 1, "fiyat": Decimal("9.90")}]
        conn = MagicMock()
        conn.execute.side_effect = [tables, rows]

        with patch(CREATE_ENGINE, return_value=fake_engine(conn)):
            data = await source_db_service.table_data(db_session, "urunler", limit=10)

        assert data == [{"id": 1, "fiyat": 9.9}]
        query, params = conn.execute.call_args.args
        assert "`urunler`" in str(query)
        assert params == {"limit": 10}

    @pytest.mark.asyncio
    async def test_operational_error_is_retried(self, db_session):
        await store_connection(db_session)
        engine = MagicMock()
        engine.connect.side_effect = OperationalError("connect", {}, Exception("Connection refused"))

        with patch(CREATE_ENGINE, return_value=engine) as mock_create:
            with pytest.raises(SourceDatabaseError) as exc_info:
                await source_db_service.test_connection(db_session)

        assert mock_create.call_count == 2
        assert exc_info.value.context["host"] == "mysql.local"
        assert "secret" not in str(exc_info.value.context)

    @pytest.mark.asyncio
    async def test_programming_error_not_retried(self, db_session):
        await store_connection(db_session)
        conn = MagicMock()
        conn.execute.side_effect = ProgrammingError("SELECT", {}, Exception("syntax"))

        with patch(CREATE_ENGINE, return_value=fake_engine(conn)) as mock_create:
            with pytest.raises(SourceDatabaseError):
                await source_db_service.test_connection(db_session)

        assert mock_create.call_count == 1

    def test_retry_backoff_follows_settings(self):
        wait = source_db_service._execute_with_retry.retry.wait
        assert isinstance(wait, wait_exponential_jitter)
        assert wait.multiplier == settings.retry_min_wait
        assert wait.max == settings.retry_max_wait
