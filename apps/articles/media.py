"""
Image upload handling for post articles.

``ImageUploader`` stores uploaded files through a Django storage backend.
``MediaAttacher`` decides which reference ends up on the row: a new upload
wins, otherwise the previously stored reference is kept.
"""

import logging
import os
import uuid
from typing import Any, Mapping, Optional

from django.conf import settings
from django.core.files import File
from django.core.files.storage import Storage, default_storage
from rest_framework import status

from apps.core.exceptions import ErrorCode, UploadError

logger = logging.getLogger(__name__)


class ImageUploader:
    """
    Store image uploads and return their storage reference.
    """

    def __init__(self, storage: Optional[Storage] = None, upload_dir: Optional[str] = None):
        self.storage = storage or default_storage
        self.upload_dir = upload_dir or getattr(settings, 'ARTICLE_UPLOAD_DIR', 'articles')
        self.allowed_extensions = {
            ext.lower() for ext in getattr(
                settings, 'ARTICLE_IMAGE_EXTENSIONS', ('png', 'jpg', 'jpeg', 'gif', 'webp')
            )
        }
        self.max_size = getattr(settings, 'ARTICLE_MAX_IMAGE_SIZE', 5 * 1024 * 1024)

    def upload_image(self, data: Mapping[str, Any], field_name: str) -> str:
        """
        Store ``data[field_name]`` if it is an uploaded file.

        Returns:
            The stored reference, or an empty string when nothing was uploaded.

        Raises:
            UploadError: Unsupported type, oversized file, or storage failure.
        """
        upload = data.get(field_name) if hasattr(data, 'get') else None
        if not isinstance(upload, File) or not upload.name:
            return ''

        extension = os.path.splitext(upload.name)[1].lstrip('.').lower()
        if extension not in self.allowed_extensions:
            raise UploadError(
                f"Unsupported image type '.{extension}'",
                field=field_name,
                details={'allowed': sorted(self.allowed_extensions)},
            )

        if upload.size is not None and upload.size > self.max_size:
            raise UploadError(
                "Image exceeds maximum upload size",
                code=ErrorCode.CONTENT_TOO_LARGE,
                field=field_name,
                details={'max_bytes': self.max_size},
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            )

        name = f"{self.upload_dir}/{uuid.uuid4().hex}.{extension}"
        try:
            stored = self.storage.save(name, upload)
        except OSError as exc:
            logger.error("Storing %s for '%s' failed: %s", upload.name, field_name, exc)
            raise UploadError(
                "Image could not be stored",
                code=ErrorCode.STORAGE_ERROR,
                field=field_name,
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            ) from exc

        logger.info(f"Stored upload for '{field_name}' as {stored}")
        return stored

    def discard(self, reference: str) -> None:
        """Remove a stored file. Failures are logged, not raised."""
        if not reference:
            return
        try:
            self.storage.delete(reference)
        except OSError as exc:
            logger.warning(f"Could not delete stored upload {reference}: {exc}")


class MediaAttacher:
    """Resolve image fields for a write, preserving previous references."""

    def __init__(self, uploader: Optional[ImageUploader] = None):
        self.uploader = uploader or ImageUploader()

    def resolve(self, data: Mapping[str, Any], field_name: str, previous: str = '') -> str:
        stored = self.uploader.upload_image(data, field_name)
        return stored or previous or ''

    def discard(self, reference: str) -> None:
        self.uploader.discard(reference)
