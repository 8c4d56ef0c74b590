# backend/app/services/receipt_storage.py
"""
Blob storage for payment receipt images.

Receipts are addressed by a relative path such as
``receipts/2026/10/01J....png``. The backend is chosen by
``settings.receipt_storage_backend``:

- ``local``: files under ``settings.receipt_storage_dir``
- ``r2``: Cloudflare R2 bucket via R2StorageClient
- ``none``: nothing is stored (NullReceiptStorage)
"""

from datetime import datetime, timezone
import logging
from pathlib import Path
from typing import Optional

from ..core.config import settings
from ..core.constants import ALLOWED_RECEIPT_CONTENT_TYPES, ALLOWED_RECEIPT_EXTENSIONS
from ..core.exceptions import ServiceException, ValidationException
from ..core.ulid_helper import generate_ulid
from .r2_storage_client import R2StorageClient

logger = logging.getLogger(__name__)


def validate_receipt(
    content: bytes,
    content_type: Optional[str],
    filename: Optional[str],
    max_bytes: Optional[int] = None,
) -> str:
    """
    Check an uploaded receipt and return the file extension to store it under.

    Raises:
        ValidationException: wrong type, empty file or too large
    """
    limit = max_bytes or settings.receipt_max_bytes
    extension = (Path(filename).suffix.lstrip(".").lower() if filename else "") or ""
    normalized_type = (content_type or "").lower()

    if normalized_type not in ALLOWED_RECEIPT_CONTENT_TYPES or (
        extension and extension not in ALLOWED_RECEIPT_EXTENSIONS
    ):
        raise ValidationException(
            "Receipt must be a jpg, jpeg or png image",
            code="INVALID_RECEIPT_TYPE",
            details={"content_type": content_type, "filename": filename},
        )
    if not content:
        raise ValidationException("Receipt file is empty", code="EMPTY_RECEIPT")
    if len(content) > limit:
        raise ValidationException(
            "Receipt must not be larger than 2 MB",
            code="RECEIPT_TOO_LARGE",
            details={"max_bytes": limit, "size": len(content)},
        )
    return extension if extension else ALLOWED_RECEIPT_CONTENT_TYPES[normalized_type]


def _receipt_key(extension: str) -> str:
    now = datetime.now(timezone.utc)
    return f"receipts/{now:%Y}/{now:%m}/{generate_ulid()}.{extension}"


class ReceiptStorage:
    """Interface shared by the receipt storage backends."""

    def store(self, content: bytes, content_type: str, extension: str) -> str:
        raise NotImplementedError

    def delete(self, path: str) -> bool:
        raise NotImplementedError

    def url_for(self, path: Optional[str]) -> Optional[str]:
        if not path:
            return None
        base = settings.receipt_public_base_url
        return f"{base.rstrip('/')}/{path}" if base else path


class LocalReceiptStorage(ReceiptStorage):
    def __init__(self, root: Optional[str] = None) -> None:
        self.root = Path(root or settings.receipt_storage_dir)

    def store(self, content: bytes, content_type: str, extension: str) -> str:
        key = _receipt_key(extension)
        target = self.root / key
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)
        except OSError as e:
            logger.error(f"Failed to write receipt {key}: {e}")
            raise ServiceException("Failed to store receipt", code="RECEIPT_STORAGE_FAILED")
        return key

    def delete(self, path: str) -> bool:
        target = self.root / path
        try:
            target.unlink(missing_ok=True)
            return True
        except OSError as e:
            logger.warning(f"Failed to delete receipt {path}: {e}")
            return False


class R2ReceiptStorage(ReceiptStorage):
    def __init__(self, client: Optional[R2StorageClient] = None) -> None:
        self.client = client or R2StorageClient()

    def store(self, content: bytes, content_type: str, extension: str) -> str:
        key = _receipt_key(extension)
        if not self.client.upload_bytes(key, content, content_type):
            raise ServiceException("Failed to store receipt", code="RECEIPT_STORAGE_FAILED")
        return key

    def delete(self, path: str) -> bool:
        deleted = self.client.delete_object(path)
        if not deleted:
            logger.warning(f"Failed to delete receipt {path} from R2")
        return deleted

    def url_for(self, path: Optional[str]) -> Optional[str]:
        if not path or settings.receipt_public_base_url:
            return super().url_for(path)
        return self.client.presigned_get_url(path)


class NullReceiptStorage(ReceiptStorage):
    """No-op storage used when receipt storage is disabled."""

    def store(self, content: bytes, content_type: str, extension: str) -> str:
        return _receipt_key(extension)

    def delete(self, path: str) -> bool:
        return True


def get_receipt_storage() -> ReceiptStorage:
    backend = settings.receipt_storage_backend
    if backend == "r2":
        return R2ReceiptStorage()
    if backend == "none":
        return NullReceiptStorage()
    return LocalReceiptStorage()
