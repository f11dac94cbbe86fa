'''
    Events and their file attachments. Three kinds of rows:
        Blob: immutable metadata for one stored file; owns the physical bytes.
        Attachment: a named link between any record and exactly one Blob.
        Event: the domain record that owns a single `poster` and a list of `posters`.
    Invariant: an Attachment always references an existing Blob, so "attached?"
    is simply "an Attachment row exists for this record and name".
'''

import os
import uuid

from django.contrib.contenttypes.fields import GenericForeignKey, GenericRelation
from django.contrib.contenttypes.models import ContentType
from django.db import models

from .attachments import HasManyAttached, HasOneAttached
from .errors import ImmutableBlobError


def blob_upload_path(instance, filename):
    """
    Store the physical file as blobs/<k0k1>/<k2k3>/<key>.
    The user-visible name lives in `filename`; the key is random, URL safe
    and never reused, so paths cannot collide.
    """
    key = instance.key
    return os.path.join('blobs', key[0:2], key[2:4], key)


class Blob(models.Model):
    """
    Stored file metadata plus a reference to the bytes.

    Rows are written once. Any later `save()` raises ImmutableBlobError;
    replacing a file means creating a new Blob and purging the old one.
    """
    # Opaque identifier used in public URLs; the integer pk never leaves the DB.
    key = models.CharField(max_length=64, unique=True, editable=False)

    file = models.FileField(upload_to=blob_upload_path, max_length=255)
    filename = models.CharField(max_length=255)  # name as uploaded
    content_type = models.CharField(max_length=100, blank=True)  # MIME type
    byte_size = models.BigIntegerField()
    checksum = models.CharField(max_length=32)  # base64 MD5 of the content
    service_name = models.CharField(max_length=50)  # storage backend identifier
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['id']

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ImmutableBlobError(f"Blob {self.key!r} is immutable")
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.filename} ({self.key})"


class AttachmentQuerySet(models.QuerySet):

    def for_record(self, record, name=None):
        """
        Attachments owned by `record`, oldest first.
        An unsaved record cannot own attachments, so it gets an empty queryset.
        """
        if record.pk is None:
            return self.none()
        qs = self.filter(
            record_type=ContentType.objects.get_for_model(record),
            record_id=str(record.pk),
        )
        if name is not None:
            qs = qs.filter(name=name)
        return qs.select_related('blob').order_by('id')


class Attachment(models.Model):
    """
    Named association between an owning record and one Blob.

    Insertion order is the primary key order; a has-many relation reads its
    attachments back in exactly that order.
    """
    name = models.CharField(max_length=255)

    # Generic owner so any model can declare attachments.
    record_type = models.ForeignKey(ContentType, on_delete=models.CASCADE)
    record_id = models.CharField(max_length=64)
    record = GenericForeignKey('record_type', 'record_id')

    blob = models.ForeignKey(Blob, on_delete=models.CASCADE, related_name='attachments')
    created_at = models.DateTimeField(auto_now_add=True)

    objects = AttachmentQuerySet.as_manager()

    class Meta:
        ordering = ['id']
        indexes = [
            models.Index(fields=['record_type', 'record_id', 'name'], name='events_attachment_record_idx'),
        ]

    def __str__(self):
        return f"{self.name} -> {self.blob.key}"


class Event(models.Model):
    """
    An event with an optional poster and an ordered gallery of posters.

    - `poster` holds at most one attachment; attaching again replaces it.
    - `posters` holds any number, read back in upload order.
    Deleting an event deletes its attachments, which in turn purges their blobs.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    starts_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    # Cascades attachment rows when the event is deleted.
    attachments = GenericRelation(
        Attachment,
        content_type_field='record_type',
        object_id_field='record_id',
        related_query_name='event',
    )

    poster = HasOneAttached()
    posters = HasManyAttached()

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return self.title
