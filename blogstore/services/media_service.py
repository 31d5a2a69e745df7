# blogstore/services/media_service.py
"""
Media uploads: the file goes to storage, the metadata to the media table.
"""
import logging
from typing import Optional

from sqlmodel import Session

from blogstore.core.exceptions import BlogStoreError
from blogstore.core.storage import StorageService, get_storage_service
from blogstore.crud.media import media_crud
from blogstore.models.media import Media

logger = logging.getLogger(__name__)


class MediaService:
    """Service for storing and removing media files."""

    def __init__(self, storage: Optional[StorageService] = None):
        self._storage = storage

    @property
    def storage(self) -> StorageService:
        if self._storage is None:
            self._storage = get_storage_service()
        return self._storage

    async def store_upload(
        self,
        db: Session,
        uploaded_by: int,
        original_filename: str,
        content: bytes,
        mime_type: str,
        alt_text: Optional[str] = None,
        caption: Optional[str] = None
    ) -> Media:
        """
        Save an uploaded file and record it.

        If the database write fails the stored file is removed again, so no
        orphan file is left behind.
        """
        category = "images" if mime_type.startswith("image/") else "documents"
        filename, file_path, file_size = await self.storage.save_file(
            content, original_filename, mime_type, category=category, user_id=uploaded_by
        )

        width = height = None
        if category == "images":
            dimensions = self.storage.get_image_dimensions(content)
            if dimensions:
                width, height = dimensions

        try:
            return media_crud.create_media(
                db,
                uploaded_by=uploaded_by,
                filename=filename,
                original_filename=original_filename,
                file_path=file_path,
                file_size=file_size,
                mime_type=mime_type,
                width=width,
                height=height,
                alt_text=alt_text,
                caption=caption
            )
        except BlogStoreError:
            await self.storage.delete_file(file_path)
            raise

    async def delete_upload(self, db: Session, media_id: int) -> None:
        file_path = media_crud.get_media(db, media_id).file_path
        media_crud.delete_media(db, media_id)
        await self.storage.delete_file(file_path)
        logger.info(f"Media #{media_id} removed")


media_service = MediaService()
