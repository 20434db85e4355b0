import logging
from uuid import uuid4

from django.conf import settings
from django.core.files.storage import default_storage

from main import exceptions as errors

logger = logging.getLogger(__name__)

CV_CONTENT_TYPES = {
    'application/pdf': '.pdf',
    'application/msword': '.doc',
    'application/vnd.openxmlformats-officedocument.wordprocessingml.document': '.docx',
}

LOGO_CONTENT_TYPES = {
    'image/jpeg': '.jpg',
    'image/png': '.png',
    'image/svg+xml': '.svg',
}


def _store(upload, folder, allowed, label):
    max_bytes = settings.KIMCONNECT['UPLOAD_MAX_BYTES']
    if upload.size > max_bytes:
        raise errors.ValidationError(f"{label} must be at most {max_bytes // (1024 * 1024)}MB.")

    content_type = (upload.content_type or '').split(';')[0].strip().lower()
    if content_type not in allowed:
        raise errors.ValidationError(f"Unsupported {label.lower()} type: {content_type or 'unknown'}.")

    ext = allowed[content_type]
    name = default_storage.save(f"{folder}/{uuid4().hex}{ext}", upload)
    logger.info("Stored %s upload at %s", label.lower(), name)
    return default_storage.url(name)


def store_cv(upload):
    """Save a CV (PDF, DOC or DOCX) and return its URL."""
    return _store(upload, 'cvs', CV_CONTENT_TYPES, 'CV')


def store_logo(upload):
    """Save a company logo (JPEG, PNG or SVG) and return its URL."""
    return _store(upload, 'logos', LOGO_CONTENT_TYPES, 'Logo')
