"""
eSync+ API — Object Storage Service
====================================

What:  The object bucket: upload validation and storage, deletes, prefix
       ("folder") listing and creation, and safe key → file resolution.
How:   The bucket is a directory (settings.storage_root). Object keys are
       POSIX paths relative to it; a prefix is a key ending with "/", stored
       as a sub-directory. All file I/O goes through aiofiles.
Who:   Storage routes, FolderService (registry rows create their prefix)
       and the health check.

Upload Validation (cheapest check first):
    1. Extension check:   png, jpg, jpeg, webp, gif, svg, ico, pdf
    2. Size check:        Content-Length header, then actual byte count
    3. Content check:     libmagic reads the header bytes (python-magic)
    4. Key generation:    folder/<slug of the file name>-<8 hex>.<ext>

Key Safety:
    Keys never reach the filesystem unchecked. A key is resolved against the
    storage root and rejected (400) when the result falls outside it, so
    "../" or absolute paths cannot touch other files.
"""

import logging
import os
import uuid
from pathlib import Path, PurePosixPath
from typing import Dict, List, Optional, Union

import aiofiles
import aiofiles.os

from esync_api.catalog.text_utils import slugify
from esync_api.config import settings
from esync_api.exceptions import ConflictError, NotFoundError, StorageError, ValidationError

logger = logging.getLogger(__name__)

# ── Allowed File Types ────────────────────────────────────────────────────
ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp", ".gif", ".svg", ".ico", ".pdf"}

# libmagic reports SVG as XML or plain text depending on its version
ALLOWED_MIME_TYPES = {
    "image/png",
    "image/jpeg",
    "image/webp",
    "image/gif",
    "image/svg+xml",
    "image/svg",
    "text/xml",
    "application/xml",
    "text/plain",
    "image/vnd.microsoft.icon",
    "image/x-icon",
    "application/pdf",
}

DEFAULT_UPLOAD_FOLDER = "images/"


def sniff_mime_type(content: bytes) -> str:
    """MIME type from the content's magic bytes."""
    import magic

    return magic.from_buffer(content[:4096], mime=True)


def normalize_prefix(prefix: Optional[str]) -> str:
    """
    Canonical prefix form: no leading "/", exactly one trailing "/",
    "" for the bucket root.

    Example:
        >>> normalize_prefix("/images//brands")
        'images/brands/'
    """
    parts = [p for p in (prefix or "").replace("\\", "/").split("/") if p and p != "."]
    if any(p == ".." for p in parts):
        raise ValidationError(message="Folder path may not contain '..'", field="path")
    return "/".join(parts) + "/" if parts else ""


class StorageService:
    """
    Directory-backed object bucket.

    Layout:
        storage/
        ├── images/
        │   ├── brands/
        │   │   └── acme-1a2b3c4d.png
        │   └── products/
        └── docs/
    """

    def __init__(self, storage_root: Optional[Union[str, Path]] = None):
        """
        Args:
            storage_root: Override the default storage path (used in tests).
        """
        self.storage_root = Path(storage_root or settings.storage_root).resolve()
        self.storage_root.mkdir(parents=True, exist_ok=True)
        logger.info("StorageService initialized with storage_root=%s", self.storage_root)

    # ── Keys and URLs ─────────────────────────────────────────────────────

    def resolve_key(self, key: str) -> Path:
        """Absolute path of an object key; ValidationError when it escapes the root."""
        cleaned = (key or "").replace("\\", "/").lstrip("/")
        if not cleaned:
            raise ValidationError(message="Object key is required", field="key")
        target = (self.storage_root / PurePosixPath(cleaned)).resolve()
        if target != self.storage_root and self.storage_root not in target.parents:
            raise ValidationError(message="Invalid object key", field="key", context={"key": key})
        return target

    def public_url(self, key: str) -> str:
        return f"{settings.storage_public_url.rstrip('/')}/{key}"

    def is_writable(self) -> bool:
        return self.storage_root.is_dir() and os.access(self.storage_root, os.W_OK)

    # ── Upload ────────────────────────────────────────────────────────────

    def validate_extension(self, filename: str) -> str:
        ext = Path(filename or "").suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=(
                    f"File type '{ext or filename}' is not supported. "
                    f"Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
                ),
                field="file",
                context={"extension": ext, "allowed": sorted(ALLOWED_EXTENSIONS)},
            )
        return ext

    def validate_size(self, content_length: Optional[int], actual_size: int) -> None:
        max_mb = settings.max_upload_size / (1024 * 1024)

        if content_length and content_length > settings.max_upload_size:
            raise ValidationError(
                message=f"File size exceeds maximum of {max_mb:.0f}MB.",
                field="file",
                context={"max_size_mb": max_mb, "reported_size": content_length},
            )
        if actual_size == 0:
            raise ValidationError(message="The uploaded file is empty", field="file")
        if actual_size > settings.max_upload_size:
            raise ValidationError(
                message=f"File size ({actual_size / (1024 * 1024):.1f}MB) exceeds maximum of {max_mb:.0f}MB.",
                field="file",
                context={"max_size_mb": max_mb, "actual_size": actual_size},
            )

    def validate_mime_type(self, content: bytes) -> str:
        try:
            mime_type = sniff_mime_type(content)
        except Exception as e:
            logger.error("MIME type detection failed: %s", str(e))
            raise StorageError(
                message="Could not verify file type. Please try again.",
                context={"error": str(e)},
            )

        if mime_type not in ALLOWED_MIME_TYPES:
            raise ValidationError(
                message=f"File content type '{mime_type}' is not supported.",
                field="file",
                context={"detected_mime": mime_type},
            )
        return mime_type

    def _generate_key(self, folder: str, filename: str, extension: str) -> str:
        stem = slugify(Path(filename).stem) or "file"
        return f"{folder}{stem}-{uuid.uuid4().hex[:8]}{extension}"

    async def upload(
        self,
        filename: str,
        content: bytes,
        folder: Optional[str] = DEFAULT_UPLOAD_FOLDER,
        content_length: Optional[int] = None,
    ) -> Dict[str, Union[str, int]]:
        """
        Validate and store an uploaded file.

        Returns:
            {"path": key, "url": public URL, "size": bytes, "content_type": MIME}
        """
        ext = self.validate_extension(filename)
        self.validate_size(content_length, len(content))
        mime_type = self.validate_mime_type(content)

        prefix = normalize_prefix(DEFAULT_UPLOAD_FOLDER if folder is None else folder)
        key = self._generate_key(prefix, filename, ext)
        target = self.resolve_key(key)

        try:
            await aiofiles.os.makedirs(target.parent, exist_ok=True)
            async with aiofiles.open(target, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store object %s: %s", key, str(e))
            raise StorageError(
                message="Failed to save the uploaded file. Please try again.",
                context={"key": key, "os_error": str(e)},
            )

        logger.info("Object stored: %s (%d bytes, %s)", key, len(content), mime_type)
        return {
            "path": key,
            "url": self.public_url(key),
            "size": len(content),
            "content_type": mime_type,
        }

    # ── Objects ───────────────────────────────────────────────────────────

    async def object_path(self, key: str) -> Path:
        """Path of an existing object; NotFoundError when absent."""
        target = self.resolve_key(key)
        if not await aiofiles.os.path.isfile(target):
            raise NotFoundError(resource="object", resource_id=key)
        return target

    async def delete_object(self, key: str) -> None:
        target = await self.object_path(key)
        try:
            await aiofiles.os.remove(target)
        except OSError as e:
            logger.error("Failed to delete object %s: %s", key, str(e))
            raise StorageError(message="Failed to delete the object.", context={"key": key})
        logger.info("Object deleted: %s", key)

    # ── Prefixes ──────────────────────────────────────────────────────────

    async def list_prefixes(self, prefix: Optional[str] = "") -> List[str]:
        """
        Immediate child prefixes of `prefix`, sorted.

        Example:
            list_prefixes("images/") → ["images/brands/", "images/products/"]
        """
        base = normalize_prefix(prefix)
        directory = self.resolve_key(base) if base else self.storage_root
        if not await aiofiles.os.path.isdir(directory):
            return []
        try:
            names = await aiofiles.os.listdir(directory)
        except OSError as e:
            logger.error("Failed to list prefix %s: %s", base, str(e))
            raise StorageError(message="Failed to list folders.", context={"prefix": base})
        children = []
        for name in names:
            if await aiofiles.os.path.isdir(directory / name):
                children.append(f"{base}{name}/")
        return sorted(children)

    async def prefix_exists(self, prefix: str) -> bool:
        base = normalize_prefix(prefix)
        if not base:
            return True
        return await aiofiles.os.path.isdir(self.resolve_key(base))

    async def ensure_prefix(self, prefix: str) -> str:
        """Create the prefix (and its parents) if missing; returns its canonical form."""
        base = normalize_prefix(prefix)
        if base:
            try:
                await aiofiles.os.makedirs(self.resolve_key(base), exist_ok=True)
            except OSError as e:
                logger.error("Failed to create prefix %s: %s", base, str(e))
                raise StorageError(message="Failed to create the folder.", context={"prefix": base})
        return base

    async def create_prefix(self, parent: Optional[str], name: str) -> str:
        """
        Create `parent + slug(name) + "/"`.

        Raises:
            ValidationError: blank name, or a name containing "/"
            ConflictError:   the prefix already exists
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError(message="Folder name is required", field="name")
        if "/" in name or "\\" in name:
            raise ValidationError(message="Folder name may not contain '/'", field="name")
        segment = slugify(name)
        if not segment:
            raise ValidationError(message="Folder name must contain letters or digits", field="name")

        path = f"{normalize_prefix(parent)}{segment}/"
        if await self.prefix_exists(path):
            raise ConflictError(message=f"Folder '{path}' already exists", context={"path": path})
        await self.ensure_prefix(path)
        logger.info("Prefix created: %s", path)
        return path


# ── Singleton Instance ────────────────────────────────────────────────────
storage_service = StorageService()


def get_storage_service() -> StorageService:
    """FastAPI dependency returning the bucket; tests override it with a temp-dir instance."""
    return storage_service
