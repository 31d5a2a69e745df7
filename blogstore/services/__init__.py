# blogstore/services/__init__.py
"""
Services that combine storage and database writes.
"""

from blogstore.services.media_service import MediaService, media_service

__all__ = [
    "MediaService",
    "media_service",
]
