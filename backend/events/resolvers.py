'''
    Attachment-to-URL resolution.

    URLBuilder turns a blob key into an absolute URL for a configured host.
    AttachmentResolver looks up a record's attachments and hands each blob key
    to the builder. Neither keeps state between calls, so resolving the same
    stored attachments twice gives the same URLs.
'''

import logging
from urllib.parse import quote, urlsplit

from django.conf import settings

from .errors import ConfigurationError
from .models import Attachment

logger = logging.getLogger(__name__)

DEFAULT_PATH_PREFIX = 'blobs'


class URLBuilder:
    """
    Maps a blob key to `<host>/<path_prefix>/<key>`.

    `host` may omit the scheme (``localhost:3000`` becomes
    ``http://localhost:3000``). Building without a host raises
    ConfigurationError instead of returning a relative link.
    """

    def __init__(self, host=None, path_prefix=DEFAULT_PATH_PREFIX):
        self.host = host
        self.path_prefix = path_prefix

    @classmethod
    def from_settings(cls):
        options = getattr(settings, 'EVENT_UPLOADS', {})
        return cls(
            host=options.get('URL_HOST'),
            path_prefix=options.get('URL_PATH_PREFIX', DEFAULT_PATH_PREFIX),
        )

    def _base_url(self):
        host = (self.host or '').strip()
        if not host:
            logger.warning("Cannot build a blob URL: EVENT_UPLOADS['URL_HOST'] is not set")
            raise ConfigurationError(
                "Missing host to link to. Set EVENT_UPLOADS['URL_HOST'] "
                "(or the EVENT_UPLOADS_URL_HOST environment variable)."
            )
        if '://' not in host:
            host = f"http://{host}"
        if not urlsplit(host).netloc:
            logger.warning("Cannot build a blob URL: host %r has no network location", self.host)
            raise ConfigurationError(
                f"EVENT_UPLOADS['URL_HOST'] = {self.host!r} does not name a host to link to."
            )
        return host.rstrip('/')

    def build(self, blob_key):
        base = self._base_url()
        key = quote(str(blob_key), safe='')
        prefix = (self.path_prefix or '').strip('/')
        return f"{base}/{prefix}/{key}" if prefix else f"{base}/{key}"

    def __repr__(self):
        return f"URLBuilder(host={self.host!r}, path_prefix={self.path_prefix!r})"


class AttachmentResolver:
    """
    Resolves the attachments stored under a name on any model instance.

    Nothing attached is not an error: resolve_one gives None and
    resolve_many an empty list, and the URL builder is not consulted.
    """

    def __init__(self, url_builder):
        self.url_builder = url_builder

    @classmethod
    def from_settings(cls):
        return cls(URLBuilder.from_settings())

    def resolve_one(self, entity, attachment_name):
        # Earliest attachment wins if a single-file name somehow holds several.
        attachment = Attachment.objects.for_record(entity, attachment_name).first()
        if attachment is None:
            return None
        return self.url_builder.build(attachment.blob.key)

    def resolve_many(self, entity, attachment_name):
        return [
            self.url_builder.build(attachment.blob.key)
            for attachment in Attachment.objects.for_record(entity, attachment_name)
        ]
