"""
Storage backends for uploaded media.

django-cloudinary-storage's MediaCloudinaryStorage treats all files as images,
so KYC documents (which may be PDFs) go through the 'raw' resource type.
Without Cloudinary credentials everything falls back to default_storage.
"""

import cloudinary
import cloudinary.utils
from cloudinary_storage.storage import (
    MediaCloudinaryStorage,
    RawMediaCloudinaryStorage,
)
from django.conf import settings
from django.core.files.storage import default_storage


def _ensure_cloudinary_config():
    """Ensure Cloudinary is configured from Django settings."""
    if not cloudinary.config().cloud_name:
        cloudinary.config(
            cloud_name=settings.CLOUDINARY_STORAGE.get('CLOUD_NAME'),
            api_key=settings.CLOUDINARY_STORAGE.get('API_KEY'),
            api_secret=settings.CLOUDINARY_STORAGE.get('API_SECRET'),
        )


class ImageCloudinaryStorage(MediaCloudinaryStorage):
    """Storage for course thumbnails."""
    pass  # Uses default image resource type


class RawCloudinaryStorage(RawMediaCloudinaryStorage):
    """
    Storage for KYC documents (images and PDFs).
    URLs are signed; the API only hands them to admins.
    """

    def url(self, name):
        if not name:
            return ''
        _ensure_cloudinary_config()
        public_id = name.replace('\\', '/')
        url, _ = cloudinary.utils.cloudinary_url(
            public_id,
            resource_type='raw',
            type='upload',
            sign_url=True,
            secure=True,
        )
        return url


def image_storage():
    """Storage used for thumbnails."""
    if getattr(settings, 'USE_CLOUDINARY', False):
        return ImageCloudinaryStorage()
    return default_storage


def private_document_storage():
    """Storage used for KYC documents (callable so settings are read lazily)."""
    if getattr(settings, 'USE_CLOUDINARY', False):
        return RawCloudinaryStorage()
    return default_storage
