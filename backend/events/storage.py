'''
    BlobStore: writes uploaded files into Django storage and keeps their Blob rows.

    Bytes go wherever `Blob.file` is configured to store them (default_storage,
    i.e. MEDIA_ROOT in development). The row carries everything needed to
    describe the file without opening it: name, MIME type, size, checksum.
'''

import base64
import hashlib
import logging
import mimetypes
import os
import secrets
import string

from django.conf import settings

from .errors import BlobNotFound
from .models import Blob

logger = logging.getLogger(__name__)

KEY_ALPHABET = string.ascii_lowercase + string.digits
DEFAULT_KEY_LENGTH = 28
DEFAULT_CONTENT_TYPE = 'application/octet-stream'


def _uploads_setting(name, default):
    return getattr(settings, 'EVENT_UPLOADS', {}).get(name, default)


def generate_key(length=None):
    """Random lowercase base36 token; safe to embed in a URL path unescaped."""
    length = int(length or _uploads_setting('KEY_LENGTH', DEFAULT_KEY_LENGTH))
    return ''.join(secrets.choice(KEY_ALPHABET) for _ in range(length))


def _compute_checksum(dj_file):
    hasher = hashlib.md5()
    size = 0
    for chunk in dj_file.chunks():
        hasher.update(chunk)
        size += len(chunk)
    dj_file.seek(0)  # rewind so storage saves the full content
    return base64.b64encode(hasher.digest()).decode('ascii'), size


def _clip_filename(filename):
    # Keep the extension when a client name is longer than the column.
    max_length = Blob._meta.get_field('filename').max_length
    if len(filename) <= max_length:
        return filename
    stem, ext = os.path.splitext(filename)
    if len(ext) >= max_length:
        return filename[:max_length]
    return stem[:max_length - len(ext)] + ext


def _content_type_for(upload, filename, explicit=None):
    """
    Explicit type, then the client-sent one, then a guess from the filename.
    Values too long for the column are skipped rather than cut into a bogus type.
    """
    max_length = Blob._meta.get_field('content_type').max_length
    for content_type in (explicit, getattr(upload, 'content_type', None)):
        if content_type and len(content_type) <= max_length:
            return content_type
        if content_type:
            logger.warning("Ignoring content type longer than %d characters", max_length)
    guessed, _ = mimetypes.guess_type(filename)
    return guessed or DEFAULT_CONTENT_TYPE


class BlobStore:
    """
    Creates, looks up and purges blobs.

    `service_name` is recorded on each new blob so rows can be traced back
    to the backend that holds their bytes.
    """

    def __init__(self, service_name=None):
        self.service_name = service_name or _uploads_setting('SERVICE_NAME', 'local')

    def create(self, upload, filename=None, content_type=None):
        """
        Store `upload` (a Django File / UploadedFile) as a brand new blob.
        A fresh key is generated every time, even for identical content.
        """
        filename = filename or getattr(upload, 'name', None) or 'blob'
        # Uploads may carry a client path; only the final component is kept.
        filename = _clip_filename(filename.replace('\\', '/').rsplit('/', 1)[-1])
        checksum, byte_size = _compute_checksum(upload)

        blob = Blob(
            key=generate_key(),
            filename=filename,
            content_type=_content_type_for(upload, filename, content_type),
            byte_size=byte_size,
            checksum=checksum,
            service_name=self.service_name,
        )
        blob.file.save(blob.key, upload, save=False)
        blob.save()
        logger.info(
            "Stored blob %s (%s, %d bytes) at %s",
            blob.key, blob.content_type, blob.byte_size, blob.file.name,
        )
        return blob

    def get(self, key):
        try:
            return Blob.objects.get(key=key)
        except Blob.DoesNotExist:
            raise BlobNotFound(key) from None

    def open(self, key, mode='rb'):
        blob = self.get(key)
        return blob.file.storage.open(blob.file.name, mode)

    def delete(self, blob):
        """
        Purge a blob. The row goes now; the bytes are removed once the
        surrounding transaction commits (see signals.py).
        """
        logger.info("Purging blob %s", blob.key)
        blob.delete()
