'''
    Declared attachment relations.

    A model states its attachments explicitly:

        class Event(models.Model):
            poster = HasOneAttached()
            posters = HasManyAttached()

    Reading `event.poster` / `event.posters` returns a handle over the
    Attachment rows stored under that name. Handles hold no state of their
    own; every read goes to the database, so two reads of unchanged storage
    always agree.
'''

import logging

from django.db import transaction

logger = logging.getLogger(__name__)


def _require_saved(record):
    # Same rule Django applies to unsaved related objects.
    if record.pk is None or record._state.adding:
        raise ValueError(
            f"Save {record.__class__.__name__} before attaching files to it."
        )


class AttachedHandle:
    """Attachments of one record under one name."""

    def __init__(self, record, name):
        self.record = record
        self.name = name

    def _queryset(self):
        from .models import Attachment
        return Attachment.objects.for_record(self.record, self.name)

    def _create(self, upload):
        from .models import Attachment
        from .storage import BlobStore

        blob = BlobStore().create(upload)
        attachment = Attachment.objects.create(record=self.record, name=self.name, blob=blob)
        logger.info(
            "Attached blob %s to %s %s as %r",
            blob.key, self.record.__class__.__name__, self.record.pk, self.name,
        )
        return attachment

    @property
    def attached(self):
        return self._queryset().exists()

    def purge(self):
        """
        Delete every attachment under this name.
        Blobs (and their bytes) go with them via the post_delete signal.
        """
        with transaction.atomic():
            for attachment in self._queryset():
                attachment.delete()

    def __repr__(self):
        return f"<{self.__class__.__name__} {self.name!r} of {self.record!r}>"


class OneAttached(AttachedHandle):

    @property
    def attachment(self):
        return self._queryset().first()

    @property
    def blob(self):
        attachment = self.attachment
        return attachment.blob if attachment is not None else None

    def attach(self, upload):
        """Attach `upload`, replacing (and purging) whatever was attached before."""
        _require_saved(self.record)
        with transaction.atomic():
            self.purge()
            return self._create(upload)


class ManyAttached(AttachedHandle):

    @property
    def attachments(self):
        return list(self._queryset())

    def blobs(self):
        return [attachment.blob for attachment in self._queryset()]

    def attach(self, *uploads):
        """Append uploads in argument order; existing attachments are kept."""
        _require_saved(self.record)
        with transaction.atomic():
            return [self._create(upload) for upload in uploads]

    def __iter__(self):
        return iter(self._queryset())

    def __len__(self):
        return self._queryset().count()


class _AttachedDescriptor:
    handle_class = None

    def __init__(self, name=None):
        # Defaults to the attribute name the descriptor is assigned to.
        self.name = name

    def __set_name__(self, owner, attr_name):
        if self.name is None:
            self.name = attr_name

    def __get__(self, instance, owner=None):
        if instance is None:
            return self
        return self.handle_class(instance, self.name)

    def __set__(self, instance, value):
        raise AttributeError(
            f"Use .attach() to change the {self.name!r} attachment."
        )


class HasOneAttached(_AttachedDescriptor):
    handle_class = OneAttached


class HasManyAttached(_AttachedDescriptor):
    handle_class = ManyAttached
