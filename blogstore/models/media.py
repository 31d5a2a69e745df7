from sqlmodel import SQLModel, Field, Column, Text
from typing import Optional
from datetime import datetime


class Media(SQLModel, table=True):
    __tablename__ = "media"

    id: Optional[int] = Field(default=None, primary_key=True)
    filename: str = Field(max_length=255)
    original_filename: str = Field(max_length=255)
    file_path: str = Field(max_length=500)
    file_size: int  # Bytes
    mime_type: str = Field(max_length=100, index=True)
    width: Optional[int] = Field(default=None)  # Images only
    height: Optional[int] = Field(default=None)  # Images only
    alt_text: Optional[str] = Field(default=None, max_length=255)
    caption: Optional[str] = Field(default=None, sa_column=Column(Text))
    uploaded_by: int = Field(foreign_key="users.id", ondelete="CASCADE", index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")
