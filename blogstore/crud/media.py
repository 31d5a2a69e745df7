from sqlmodel import Session, select, func
from typing import List, Optional
import logging

from blogstore.crud.integrity import commit_or_raise, ensure_reference, get_or_raise
from blogstore.models.media import Media
from blogstore.models.user import User

logger = logging.getLogger(__name__)


class MediaCRUD:
    def create_media(
        self,
        db: Session,
        uploaded_by: int,
        filename: str,
        original_filename: str,
        file_path: str,
        file_size: int,
        mime_type: str,
        width: Optional[int] = None,
        height: Optional[int] = None,
        alt_text: Optional[str] = None,
        caption: Optional[str] = None
    ) -> Media:
        ensure_reference(db, User, uploaded_by, "uploaded_by")
        media = Media(
            filename=filename,
            original_filename=original_filename,
            file_path=file_path,
            file_size=file_size,
            mime_type=mime_type,
            width=width,
            height=height,
            alt_text=alt_text,
            caption=caption,
            uploaded_by=uploaded_by
        )
        db.add(media)
        commit_or_raise(db, f"media {original_filename!r}")
        db.refresh(media)
        logger.info(f"Media #{media.id} ({mime_type}, {file_size} bytes) stored for user #{uploaded_by}")
        return media

    def get_media(self, db: Session, media_id: int) -> Media:
        return get_or_raise(db, Media, media_id)

    def get_media_by_uploader(
        self,
        db: Session,
        uploaded_by: int,
        skip: int = 0,
        limit: int = 50,
        mime_prefix: Optional[str] = None
    ) -> tuple[List[Media], int]:
        query = select(Media).where(Media.uploaded_by == uploaded_by)
        count_query = select(func.count(Media.id)).where(Media.uploaded_by == uploaded_by)

        if mime_prefix:
            query = query.where(Media.mime_type.startswith(mime_prefix))
            count_query = count_query.where(Media.mime_type.startswith(mime_prefix))

        total = db.exec(count_query).one()
        items = db.exec(query.order_by(Media.created_at.desc(), Media.id.desc()).offset(skip).limit(limit)).all()
        return items, total

    def update_media(
        self,
        db: Session,
        media_id: int,
        alt_text: Optional[str] = None,
        caption: Optional[str] = None
    ) -> Media:
        media = get_or_raise(db, Media, media_id)
        if alt_text is not None:
            media.alt_text = alt_text
        if caption is not None:
            media.caption = caption
        commit_or_raise(db, f"media #{media_id}")
        db.refresh(media)
        return media

    def delete_media(self, db: Session, media_id: int) -> None:
        """Delete the media row; removing the stored file is up to the caller."""
        media = get_or_raise(db, Media, media_id)
        db.delete(media)
        commit_or_raise(db, f"media #{media_id}")


# Create singleton instance
media_crud = MediaCRUD()
