"""
eSync+ API — Database Info and Transfer Tests
==============================================
"""

import pytest

from esync_api.exceptions import NotFoundError, ValidationError
from esync_api.services.catalog_service import brand_service
from esync_api.services.database_info_service import (
    database_info_service,
    get_table,
    human_size,
)
from esync_api.services.transfer_service import clean_mapping, transfer_service


def test_human_size():
    assert human_size(None) == "-"
    assert human_size(0) == "0 B"
    assert human_size(1536) == "1.5 KB"
    assert human_size(5 * 1024 * 1024) == "5.0 MB"


class TestDatabaseInfo:

    def test_list_tables(self):
        tables = database_info_service.list_tables()
        assert "products" in tables
        assert "app_settings" in tables
        assert tables == sorted(tables)

    def test_list_columns(self):
        columns = {c["name"]: c["type"] for c in database_info_service.list_columns("product_brands")}
        assert "name" in columns
        assert columns["id"] == "INTEGER"

    def test_unknown_table(self):
        with pytest.raises(NotFoundError):
            database_info_service.list_columns("users")

    @pytest.mark.asyncio
    async def test_table_info(self, db_session):
        await brand_service.create(db_session, {"name": "Acme"})
        info = {row["name"]: row for row in await database_info_service.table_info(db_session)}
        assert info["product_brands"]["rowCount"] == 1
        assert info["products"]["rowCount"] == 0
        # SQLite cannot report table sizes
        assert info["products"]["size"] == "-"


class TestCleanMapping:

    def test_drops_timestamps_and_blanks(self):
        table = get_table("product_brands")
        mapping = clean_mapping(table, {
            "marka_id": "id",
            "marka_adi": "name",
            "olusturma": "created_at",
            "updated_at": "country",
            "bos": "",
            "": "code",
        })
        assert mapping == {"marka_id": "id", "marka_adi": "name"}

    def test_timestamp_names_ignore_case(self):
        mapping = clean_mapping(get_table("product_brands"), {
            "Olusturma": "Created_At",
            "UPDATED_AT": "country",
            "marka_adi": "name",
        })
        assert mapping == {"marka_adi": "name"}

    def test_unknown_target(self):
        with pytest.raises(ValidationError, match="not a column") as exc_info:
            clean_mapping(get_table("product_brands"), {"a": "password"})
        assert exc_info.value.field == "columnMapping"


class TestExecuteBatch:

    @pytest.mark.asyncio
    async def test_insert_and_update(self, db_session):
        existing = await brand_service.create(db_session, {"name": "Eski", "code": "ES"})

        result = await transfer_service.execute_batch(
            db_session,
            target_table="product_brands",
            column_mapping={"marka_id": "id", "marka_adi": "name", "kod": "code"},
            rows=[
                {"marka_id": existing.id, "marka_adi": "Yeni Ad", "kod": "YA"},
                {"marka_id": 50, "marka_adi": "Acme", "kod": "AC"},
                {"marka_id": None, "marka_adi": "Beta", "kod": None},
            ],
        )
        assert result == {"inserted": 2, "updated": 1, "total": 3}

        renamed = await brand_service.get(db_session, existing.id)
        assert renamed.name == "Yeni Ad"
        acme = await brand_service.get(db_session, 50)
        assert acme.code == "AC"
        rows, total = await brand_service.list_page(db_session, search="Beta")
        assert total == 1
        assert rows[0].code == ""

    @pytest.mark.asyncio
    async def test_unknown_table(self, db_session):
        with pytest.raises(ValidationError, match="Unknown target table") as exc_info:
            await transfer_service.execute_batch(db_session, "users", {"a": "b"}, [{"a": 1}])
        assert exc_info.value.field == "targetTable"

    @pytest.mark.asyncio
    async def test_empty_rows(self, db_session):
        with pytest.raises(ValidationError, match="No rows"):
            await transfer_service.execute_batch(db_session, "product_brands", {"a": "name"}, [])

    @pytest.mark.asyncio
    async def test_batch_too_large(self, db_session):
        rows = [{"a": f"Marka {i}"} for i in range(501)]
        with pytest.raises(ValidationError, match="at most 500 rows"):
            await transfer_service.execute_batch(db_session, "product_brands", {"a": "name"}, rows)

    @pytest.mark.asyncio
    async def test_empty_mapping(self, db_session):
        with pytest.raises(ValidationError, match="mapping is empty"):
            await transfer_service.execute_batch(
                db_session, "product_brands", {"olusturma": "created_at"}, [{"olusturma": "2024"}],
            )

    @pytest.mark.asyncio
    async def test_missing_required_column(self, db_session):
        with pytest.raises(ValidationError, match="Row 1 has no value for name"):
            await transfer_service.execute_batch(
                db_session, "product_brands", {"kod": "code"}, [{"kod": "AC"}],
            )
