# blogstore/core/storage.py
"""
Local filesystem storage for uploaded media.
"""
import io
import logging
import uuid
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional, Tuple

import aiofiles
from PIL import Image, UnidentifiedImageError

from blogstore.core.exceptions import InvalidState

logger = logging.getLogger(__name__)


class StorageService:
    """Stores files under upload_dir, one subdirectory per category."""

    def __init__(
        self,
        upload_dir: str = "./uploads",
        max_file_size: int = 10 * 1024 * 1024,  # 10MB default
        allowed_types: Optional[Iterable[str]] = None,
    ):
        self.upload_dir = Path(upload_dir)
        self.max_file_size = max_file_size
        self.allowed_types = set(allowed_types) if allowed_types is not None else None
        self.upload_dir.mkdir(parents=True, exist_ok=True)

    def generate_filename(self, original_filename: str, user_id: int) -> str:
        """Unique name of the form {user_id}_{timestamp}_{uuid}{ext}."""
        ext = Path(original_filename).suffix.lower()
        timestamp = datetime.utcnow().strftime("%Y%m%d_%H%M%S")
        return f"{user_id}_{timestamp}_{uuid.uuid4()}{ext}"

    def get_file_path(self, filename: str, category: str = "general") -> str:
        return str(self.upload_dir / category / filename)

    def check_upload(self, file_content: bytes, mime_type: str) -> None:
        """Reject empty, oversized or disallowed uploads."""
        if not file_content:
            raise InvalidState("Uploaded file is empty")
        if len(file_content) > self.max_file_size:
            raise InvalidState(
                f"File size {len(file_content)} exceeds maximum {self.max_file_size}"
            )
        if self.allowed_types is not None and mime_type not in self.allowed_types:
            raise InvalidState(f"File type {mime_type!r} is not allowed")

    async def save_file(
        self,
        file_content: bytes,
        filename: str,
        mime_type: str,
        category: str = "general",
        user_id: int = 0
    ) -> Tuple[str, str, int]:
        """
        Write an upload to disk.

        Returns:
            Tuple of (generated_filename, storage_path, file_size)
        """
        self.check_upload(file_content, mime_type)

        unique_filename = self.generate_filename(filename, user_id)
        storage_path = self.get_file_path(unique_filename, category)

        file_path = Path(storage_path)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(file_path, "wb") as f:
            await f.write(file_content)

        logger.info(f"Saved file locally: {storage_path}")
        return unique_filename, storage_path, len(file_content)

    async def delete_file(self, file_path: str) -> bool:
        """Remove a stored file. Returns False when it was already gone."""
        path = Path(file_path)
        if not path.exists():
            logger.warning(f"File to delete does not exist: {file_path}")
            return False
        path.unlink()
        logger.info(f"Deleted file: {file_path}")
        return True

    def get_image_dimensions(self, image_content: bytes) -> Optional[Tuple[int, int]]:
        """(width, height) of an image, or None when Pillow cannot read it."""
        try:
            with Image.open(io.BytesIO(image_content)) as image:
                return image.size
        except UnidentifiedImageError as e:
            logger.warning(f"Could not read image dimensions: {e}")
            return None


# Global storage instance
_storage_instance: Optional[StorageService] = None


def get_storage_service() -> StorageService:
    """Get the global storage service instance."""
    global _storage_instance
    if _storage_instance is None:
        from blogstore.core.config import settings

        _storage_instance = StorageService(
            upload_dir=settings.UPLOAD_DIR,
            max_file_size=settings.MAX_FILE_SIZE,
            allowed_types=settings.ALLOWED_IMAGE_TYPES + settings.ALLOWED_DOCUMENT_TYPES,
        )
    return _storage_instance
