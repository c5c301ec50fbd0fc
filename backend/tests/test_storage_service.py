"""
eSync+ API — Storage Service Unit Tests
========================================

What:  Upload validation (extension, size, content type), key safety,
       prefix listing/creation and the folder registry.
How:   Each test gets its own bucket under tmp_path. libmagic detection is
       patched where a test needs a specific MIME type.
"""

from unittest.mock import patch

import pytest

from esync_api.exceptions import ConflictError, NotFoundError, StorageError, ValidationError
from esync_api.services.folder_service import folder_service
from esync_api.services.storage_service import normalize_prefix

SNIFF = "esync_api.services.storage_service.sniff_mime_type"


class TestNormalizePrefix:

    def test_canonical_form(self):
        assert normalize_prefix("/images//brands") == "images/brands/"
        assert normalize_prefix("images/") == "images/"

    def test_root(self):
        assert normalize_prefix("") == ""
        assert normalize_prefix(None) == ""
        assert normalize_prefix("/") == ""

    def test_parent_segments_rejected(self):
        with pytest.raises(ValidationError, match=r"\.\."):
            normalize_prefix("images/../../etc")


class TestUploadValidation:

    def test_allowed_extensions(self, storage):
        for name in ("a.png", "a.JPG", "a.jpeg", "a.webp", "a.gif", "a.svg", "a.ico", "a.pdf"):
            storage.validate_extension(name)

    def test_rejected_extensions(self, storage):
        for name in ("malware.exe", "noextension", "sheet.xlsx"):
            with pytest.raises(ValidationError, match="not supported"):
                storage.validate_extension(name)

    def test_empty_file_rejected(self, storage):
        with pytest.raises(ValidationError, match="empty"):
            storage.validate_size(None, 0)

    def test_oversized_file_rejected(self, storage):
        with pytest.raises(ValidationError, match="exceeds maximum"):
            storage.validate_size(None, 50 * 1024 * 1024)

    def test_reported_size_checked_first(self, storage):
        with pytest.raises(ValidationError, match="exceeds maximum"):
            storage.validate_size(50 * 1024 * 1024, 10)

    def test_mime_type_mismatch_rejected(self, storage):
        with patch(SNIFF, return_value="application/x-dosexec"):
            with pytest.raises(ValidationError, match="not supported"):
                storage.validate_mime_type(b"MZ\x90\x00")

    def test_mime_detection_failure(self, storage):
        with patch(SNIFF, side_effect=RuntimeError("libmagic missing")):
            with pytest.raises(StorageError):
                storage.validate_mime_type(b"data")


class TestObjects:

    @pytest.mark.asyncio
    async def test_upload_stores_under_folder(self, storage, sample_png_bytes):
        with patch(SNIFF, return_value="image/png"):
            result = await storage.upload("Logo Şirket.PNG", sample_png_bytes, folder="/images/brands")

        assert result["path"].startswith("images/brands/logo-sirket-")
        assert result["path"].endswith(".png")
        assert result["url"] == f"/storage/object/{result['path']}"
        assert result["size"] == len(sample_png_bytes)
        assert result["content_type"] == "image/png"
        assert (storage.storage_root / result["path"]).read_bytes() == sample_png_bytes

    @pytest.mark.asyncio
    async def test_upload_default_folder(self, storage, sample_pdf_bytes):
        with patch(SNIFF, return_value="application/pdf"):
            result = await storage.upload("katalog.pdf", sample_pdf_bytes, folder=None)
        assert result["path"].startswith("images/katalog-")

    @pytest.mark.asyncio
    async def test_delete_object(self, storage):
        target = storage.storage_root / "docs" / "a.pdf"
        target.parent.mkdir(parents=True)
        target.write_bytes(b"%PDF")

        await storage.delete_object("docs/a.pdf")
        assert not target.exists()

    @pytest.mark.asyncio
    async def test_delete_missing_object(self, storage):
        with pytest.raises(NotFoundError):
            await storage.delete_object("docs/missing.pdf")

    @pytest.mark.asyncio
    async def test_key_escaping_root_rejected(self, storage):
        with pytest.raises(ValidationError, match="Invalid object key"):
            await storage.delete_object("../outside.txt")

    @pytest.mark.asyncio
    async def test_object_path(self, storage):
        target = storage.storage_root / "a.png"
        target.write_bytes(b"x")
        assert await storage.object_path("/a.png") == target


class TestPrefixes:

    @pytest.mark.asyncio
    async def test_list_prefixes(self, storage):
        (storage.storage_root / "images" / "products").mkdir(parents=True)
        (storage.storage_root / "images" / "brands").mkdir(parents=True)
        (storage.storage_root / "docs").mkdir()
        (storage.storage_root / "images" / "file.png").write_bytes(b"x")

        assert await storage.list_prefixes("") == ["docs/", "images/"]
        assert await storage.list_prefixes("images") == ["images/brands/", "images/products/"]
        assert await storage.list_prefixes("missing/") == []

    @pytest.mark.asyncio
    async def test_create_prefix(self, storage):
        path = await storage.create_prefix("images/", "Ürün Görselleri")
        assert path == "images/urun-gorselleri/"
        assert (storage.storage_root / "images" / "urun-gorselleri").is_dir()

    @pytest.mark.asyncio
    async def test_create_existing_prefix_conflicts(self, storage):
        await storage.create_prefix("", "docs")
        with pytest.raises(ConflictError, match="already exists"):
            await storage.create_prefix("", "docs")

    @pytest.mark.asyncio
    async def test_create_prefix_name_rules(self, storage):
        with pytest.raises(ValidationError, match="required"):
            await storage.create_prefix("", "  ")
        with pytest.raises(ValidationError, match="may not contain"):
            await storage.create_prefix("", "a/b")


class TestFolderRegistry:

    @pytest.mark.asyncio
    async def test_create_normalises_and_creates_prefix(self, db_session, storage):
        folder = await folder_service.create_folder(
            db_session, storage, {"name": "Markalar", "path": "/images/brands"},
        )
        assert folder.path == "images/brands/"
        assert folder.type == "folder"
        assert (storage.storage_root / "images" / "brands").is_dir()

    @pytest.mark.asyncio
    async def test_duplicate_path_conflicts(self, db_session, storage):
        await folder_service.create_folder(db_session, storage, {"name": "A", "path": "images/"})
        with pytest.raises(ConflictError):
            await folder_service.create_folder(db_session, storage, {"name": "B", "path": "/images"})

    @pytest.mark.asyncio
    async def test_list_and_delete(self, db_session, storage):
        await folder_service.create_folder(db_session, storage, {"name": "Zeta", "path": "z/", "sort_order": 1})
        second = await folder_service.create_folder(db_session, storage, {"name": "Alfa", "path": "a/", "sort_order": 1})
        first = await folder_service.create_folder(db_session, storage, {"name": "Son", "path": "s/"})

        folders = await folder_service.list_folders(db_session)
        assert [f.id for f in folders] == [first.id, second.id, folders[2].id]
        assert folders[2].name == "Zeta"

        await folder_service.delete_folder(db_session, second.id)
        assert len(await folder_service.list_folders(db_session)) == 2
        with pytest.raises(NotFoundError):
            await folder_service.delete_folder(db_session, second.id)
