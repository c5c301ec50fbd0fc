"""
eSync+ API — Endpoint Tests
============================

What:  HTTP-level behaviour: status codes, the error envelope, pagination
       headers, aliases in request/response bodies.
How:   HTTPX AsyncClient over ASGITransport (see conftest.test_client); each
       test has its own in-memory database and bucket.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from esync_api.config import settings
from esync_api.database import get_db_session
from esync_api.exceptions import SourceDatabaseError

SNIFF = "esync_api.services.storage_service.sniff_mime_type"


class TestHealth:

    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert body["storage"] == "writable"

    @pytest.mark.asyncio
    async def test_health_degraded_when_storage_not_writable(self, test_client, storage):
        with patch.object(type(storage), "is_writable", return_value=False):
            response = await test_client.get("/health")
        assert response.json()["status"] == "degraded"

    @pytest.mark.asyncio
    async def test_health_unhealthy_when_database_down(self, test_client):
        from esync_api.main import app

        async def unreachable_session():
            session = MagicMock()
            session.execute = AsyncMock(side_effect=OperationalError("SELECT 1", {}, Exception("connection refused")))
            yield session

        app.dependency_overrides[get_db_session] = unreachable_session
        response = await test_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "unhealthy"
        assert body["database"] == "disconnected"
        assert body["storage"] == "writable"

    @pytest.mark.asyncio
    async def test_banner_and_hello(self, test_client):
        response = await test_client.get("/")
        assert response.status_code == 200
        assert response.text.startswith("eSync+ API")

        response = await test_client.get("/api/hello")
        assert response.status_code == 200
        assert "timestamp" in response.json()


class TestRateLimitResponse:

    @pytest.mark.asyncio
    async def test_429_carries_request_id_and_cors_headers(self, test_client, monkeypatch):
        monkeypatch.setattr(settings, "rate_limit_requests", 1)
        origin = settings.cors_origins_list[0]

        await test_client.get("/api/hello", headers={"Origin": origin})
        response = await test_client.get(
            "/api/hello", headers={"Origin": origin, "X-Request-ID": "console-7"},
        )

        assert response.status_code == 429
        assert response.json()["error"] == "rate_limit_exceeded"
        assert response.json()["request_id"] == "console-7"
        assert response.headers["X-Request-ID"] == "console-7"
        assert response.headers["Access-Control-Allow-Origin"] == origin
        assert response.headers["Retry-After"]


class TestCatalogEndpoints:

    @pytest.mark.asyncio
    async def test_crud_cycle(self, test_client):
        response = await test_client.post("/api/product-brands", json={"name": "Acme", "country": "TR"})
        assert response.status_code == 201
        brand = response.json()
        assert brand["code"] == "AC"

        response = await test_client.get(f"/api/product-brands/{brand['id']}")
        assert response.json()["name"] == "Acme"

        response = await test_client.put(f"/api/product-brands/{brand['id']}", json={"status": 0})
        assert response.json()["status"] == 0
        assert response.json()["country"] == "TR"

        response = await test_client.delete(f"/api/product-brands/{brand['id']}")
        assert response.json() == {"success": True, "id": brand["id"]}

        response = await test_client.get(f"/api/product-brands/{brand['id']}")
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_list_pagination(self, test_client):
        for name in ("Adet", "Kutu", "Metre"):
            await test_client.post("/api/product-units", json={"name": name})

        response = await test_client.get("/api/product-units", params={"page": 1, "limit": 2})
        assert response.status_code == 200
        assert response.headers["X-Total-Count"] == "3"
        body = response.json()
        assert body["total"] == 3
        assert body["page"] == 1
        assert body["limit"] == 2
        assert [row["name"] for row in body["data"]] == ["Adet", "Kutu"]

        response = await test_client.get("/api/product-units/next-sort-order")
        assert response.json() == {"next": 1}

    @pytest.mark.asyncio
    async def test_status_filter(self, test_client):
        await test_client.post("/api/product-types", json={"name": "Fiziksel"})
        await test_client.post("/api/product-types", json={"name": "Dijital", "status": 0})
        response = await test_client.get("/api/product-types", params={"status": 0})
        assert [row["name"] for row in response.json()["data"]] == ["Dijital"]

    @pytest.mark.asyncio
    async def test_business_rule_is_400(self, test_client):
        response = await test_client.post("/api/product-brands", json={"name": "   "})
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "validation_error"
        assert body["details"]["field"] == "name"
        assert body["request_id"]

    @pytest.mark.asyncio
    async def test_schema_violation_is_422(self, test_client):
        response = await test_client.post("/api/product-tax-rates", json={"name": "KDV", "value": 150})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_conflict_is_409(self, test_client):
        await test_client.post("/api/product-currencies", json={"name": "Lira", "code": "TRY"})
        response = await test_client.post("/api/product-currencies", json={"name": "TL", "code": "try"})
        assert response.status_code == 409
        assert response.json()["error"] == "conflict"

    @pytest.mark.asyncio
    async def test_supplier_mapping_json_text(self, test_client):
        response = await test_client.post(
            "/api/suppliers",
            json={"name": "Toptancı", "source_type": "csv", "column_mappings": '{"Fiyat": "price"}'},
        )
        assert response.status_code == 201
        assert response.json()["column_mappings"] == {"Fiyat": "price"}


class TestCategoryEndpoints:

    @pytest.mark.asyncio
    async def test_hierarchy_path_and_product_code(self, test_client):
        ev = (await test_client.post("/api/product-categories", json={"name": "Ev", "code": "EV"})).json()
        mutfak = (await test_client.post(
            "/api/product-categories", json={"name": "Mutfak", "code": "MU", "group_id": ev["id"]},
        )).json()
        brand = (await test_client.post("/api/product-brands", json={"name": "Acme", "code": "ACME"})).json()

        response = await test_client.get("/api/product-categories/hierarchy", params={"selectable_only": True})
        assert response.status_code == 200
        assert [item["label"] for item in response.json()["data"]] == ["Ev [EV] > Mutfak [MU]"]

        response = await test_client.get(f"/api/product-categories/{mutfak['id']}/path")
        assert response.json() == {
            "path": [{"name": "Ev", "code": "EV"}, {"name": "Mutfak", "code": "MU"}],
            "code": "EV.MU",
        }

        response = await test_client.get(
            "/api/product-code",
            params={"category_id": mutfak["id"], "brand_id": brand["id"], "supplier_code": "X1"},
        )
        assert response.json() == {"code": "EV.MU.ACME.X1", "prefix": "EV.MU.ACME"}

    @pytest.mark.asyncio
    async def test_subcategory_needs_category_parent(self, test_client):
        ev = (await test_client.post("/api/product-categories", json={"name": "Ev"})).json()
        response = await test_client.post("/api/product-categories", json={"name": "X", "category_id": ev["id"]})
        assert response.status_code == 400
        assert response.json()["details"]["field"] == "category_id"

    @pytest.mark.asyncio
    async def test_path_of_missing_category_is_404(self, test_client):
        response = await test_client.get("/api/product-categories/999/path")
        assert response.status_code == 404


class TestProductEndpoints:

    @pytest.mark.asyncio
    async def test_create_and_copy(self, test_client):
        response = await test_client.post(
            "/api/products", json={"name": "Tava", "sku": "TV-1", "images": ["images/tava.png"]},
        )
        assert response.status_code == 201
        product = response.json()
        assert product["image"] == "images/tava.png"

        response = await test_client.post(f"/api/products/{product['id']}/copy")
        assert response.status_code == 201
        assert response.json()["name"] == "Tava (kopya)"
        assert response.json()["sku"] is None

    @pytest.mark.asyncio
    async def test_copy_missing_product(self, test_client):
        response = await test_client.post("/api/products/123/copy")
        assert response.status_code == 404


class TestStorageEndpoints:

    @pytest.mark.asyncio
    async def test_upload_download_delete(self, test_client, sample_png_bytes):
        with patch(SNIFF, return_value="image/png"):
            response = await test_client.post(
                "/storage/upload",
                files={"file": ("logo.png", sample_png_bytes, "image/png")},
                data={"folder": "images/brands/"},
            )
        assert response.status_code == 201
        key = response.json()["path"]
        assert key.startswith("images/brands/logo-")

        response = await test_client.get(f"/storage/object/{key}")
        assert response.status_code == 200
        assert response.content == sample_png_bytes
        assert response.headers["content-type"] == "image/png"

        response = await test_client.delete("/storage/delete", params={"key": key})
        assert response.json() == {"success": True, "key": key}

        response = await test_client.delete("/storage/delete", params={"key": key})
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_upload_rejects_extension(self, test_client):
        response = await test_client.post(
            "/storage/upload", files={"file": ("run.exe", b"MZ", "application/octet-stream")},
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_prefixes(self, test_client):
        response = await test_client.put("/storage/folder", json={"path": "", "name": "Görseller"})
        assert response.status_code == 201
        assert response.json() == {"path": "gorseller/"}

        response = await test_client.put("/storage/folder", json={"path": "", "name": "Görseller"})
        assert response.status_code == 409

        response = await test_client.get("/storage/prefixes")
        assert response.json() == {"prefixes": ["gorseller/"]}

    @pytest.mark.asyncio
    async def test_folder_registry(self, test_client):
        response = await test_client.post("/storage/folders", json={"name": "Markalar", "path": "/images/brands"})
        assert response.status_code == 201
        folder = response.json()
        assert folder["path"] == "images/brands/"

        response = await test_client.get("/storage/folders")
        assert [f["name"] for f in response.json()] == ["Markalar"]

        response = await test_client.delete(f"/storage/folders/{folder['id']}")
        assert response.json() == {"success": True, "id": folder["id"]}


class TestSettingsEndpoints:

    @pytest.mark.asyncio
    async def test_app_settings(self, test_client):
        response = await test_client.put(
            "/api/app-settings", json={"category": "genel", "settings": {"dil": "tr", "kdv_dahil": True}},
        )
        assert response.json() == {"success": True, "category": "genel", "count": 2}

        response = await test_client.get("/api/app-settings", params={"category": "genel"})
        assert response.json() == {"dil": "tr", "kdv_dahil": "true"}

    @pytest.mark.asyncio
    async def test_app_modules(self, test_client):
        response = await test_client.get("/api/app-modules")
        modules = {m["id"]: m["path"] for m in response.json()}
        assert modules["home"] == "/"
        assert modules["ayarlar-veri-aktarimi"] == "/ayarlar/veri-aktarimi"
        assert modules["ayarlar-tedarikciler"] == "/ayarlar/tedarikciler"
        assert "parametreler-musteri-tipleri" in modules

    @pytest.mark.asyncio
    async def test_sidebar(self, test_client):
        response = await test_client.get("/api/sidebar")
        assert response.json() == {"header": {"title": "eSync+", "logo_path": None}, "menus": []}

        response = await test_client.put(
            "/api/sidebar/menus",
            json=[{"id": "p", "label": "Ürünler", "module_id": "products"}, {"id": "s", "type": "separator"}],
        )
        assert response.status_code == 200
        assert response.json()[0]["link"] == "/products"

        response = await test_client.put("/api/sidebar/header", json={"title": "Mağaza"})
        assert response.json()["title"] == "Mağaza"

        response = await test_client.get("/api/sidebar")
        body = response.json()
        assert body["header"]["title"] == "Mağaza"
        assert [m["id"] for m in body["menus"]] == ["p", "s"]

    @pytest.mark.asyncio
    async def test_sidebar_invalid_thickness_is_422(self, test_client):
        response = await test_client.put(
            "/api/sidebar/menus", json=[{"id": "s", "type": "separator", "separator_thickness": 3}],
        )
        assert response.status_code == 422


class TestDatabaseEndpoints:

    @pytest.mark.asyncio
    async def test_tables_info(self, test_client):
        await test_client.post("/api/product-units", json={"name": "Adet"})
        response = await test_client.get("/tables/info")
        info = {row["name"]: row for row in response.json()}
        assert info["product_units"]["rowCount"] == 1
        assert info["product_units"]["size"] == "-"

    @pytest.mark.asyncio
    async def test_table_name_array(self, test_client):
        response = await test_client.get("/tables")
        assert response.status_code == 200
        tables = response.json()
        assert isinstance(tables, list)
        assert "products" in tables

    @pytest.mark.asyncio
    async def test_d1_tables_and_columns(self, test_client):
        response = await test_client.get("/api/d1/tables")
        assert "products" in response.json()["tables"]

        response = await test_client.get("/api/d1/columns/product_units")
        assert {"name": "code", "type": "VARCHAR(50)"} in response.json()["columns"]

        response = await test_client.get("/api/d1/columns/nope")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_db_aliases(self, test_client):
        response = await test_client.get("/api/db/tables")
        assert "products" in response.json()["tables"]

        response = await test_client.get("/api/db/columns/product_units")
        assert {"name": "code", "type": "VARCHAR(50)"} in response.json()["columns"]

    @pytest.mark.asyncio
    async def test_transfer_batch(self, test_client):
        response = await test_client.post(
            "/api/transfer/execute-batch",
            json={
                "targetTable": "product_units",
                "columnMapping": {"birim": "name", "kisa": "code", "created_at": "created_at"},
                "rows": [{"birim": "Adet", "kisa": "AD", "created_at": "2020-01-01"}],
            },
        )
        assert response.status_code == 200
        assert response.json() == {"inserted": 1, "updated": 0, "total": 1}

    @pytest.mark.asyncio
    async def test_transfer_empty_rows_is_400(self, test_client):
        response = await test_client.post(
            "/api/transfer/execute-batch",
            json={"targetTable": "product_units", "columnMapping": {"a": "name"}, "rows": []},
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_mysql_not_configured_is_400(self, test_client):
        response = await test_client.get("/api/mysql/tables")
        assert response.status_code == 400
        assert response.json()["details"]["missing"] == ["host", "database", "user"]

    @pytest.mark.asyncio
    async def test_mysql_test_connection(self, test_client):
        with patch(
            "esync_api.routes.database.source_db_service.test_connection",
            new=AsyncMock(return_value="8.0.36"),
        ):
            response = await test_client.post("/api/mysql/test", json={"host": "db", "database": "shop", "user": "u"})
        assert response.json() == {"success": True, "version": "8.0.36"}

    @pytest.mark.asyncio
    async def test_mysql_failure_is_502(self, test_client):
        with patch(
            "esync_api.routes.database.source_db_service.list_tables",
            new=AsyncMock(side_effect=SourceDatabaseError(message="Source database error while trying to list tables")),
        ):
            response = await test_client.get("/api/mysql/tables")
        assert response.status_code == 502
        assert response.json()["error"] == "source_database_error"

    @pytest.mark.asyncio
    async def test_table_data_limit_bounds(self, test_client):
        response = await test_client.get("/api/mysql/table-data/urunler", params={"limit": 5000})
        assert response.status_code == 422
