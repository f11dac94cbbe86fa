'''
    Exceptions raised by the attachment layer.

    "Not attached" is never an error here: resolvers return None or an empty
    list for it. Everything below is surfaced to the caller as-is.
'''

from django.core.exceptions import ImproperlyConfigured, ObjectDoesNotExist


class AttachmentError(Exception):
    """Base class for attachment errors that are not Django configuration/lookup errors."""
    pass


class ConfigurationError(AttachmentError, ImproperlyConfigured):
    """
    The URL builder has no host to link to.

    This is a deployment misconfiguration: it is never retried or recovered
    locally, and no relative or empty URL is ever returned in its place.
    """
    pass


class BlobNotFound(AttachmentError, ObjectDoesNotExist):
    """No blob is stored under the requested key."""

    def __init__(self, key):
        self.key = key
        super().__init__(f"No blob stored under key {key!r}")


class ImmutableBlobError(AttachmentError):
    """Blobs are written once; a new upload always creates a new blob."""
    pass
