'''
    Cascade purging:
        Attachment deleted -> its Blob is deleted (blobs are never shared).
        Blob deleted -> its bytes are removed from storage after commit.
    Deleting an Event reaches both through the GenericRelation cascade.
'''

import logging
from functools import partial

from django.db import transaction
from django.db.models.signals import post_delete
from django.dispatch import receiver

from .models import Attachment, Blob
from .storage import BlobStore

logger = logging.getLogger(__name__)


@receiver(post_delete, sender=Attachment, dispatch_uid='events.purge_attachment_blob')
def purge_attachment_blob(sender, instance, origin=None, **kwargs):
    # Deleting the blob itself already cascades here; don't delete it twice.
    if isinstance(origin, Blob):
        return
    blob = Blob.objects.filter(pk=instance.blob_id).first()
    if blob is not None and not blob.attachments.exists():
        BlobStore().delete(blob)


def _delete_stored_file(storage, name):
    storage.delete(name)
    logger.info("Removed stored file %s", name)


@receiver(post_delete, sender=Blob, dispatch_uid='events.delete_blob_file')
def delete_blob_file(sender, instance, **kwargs):
    if not instance.file:
        return
    # Only touch storage once the row deletion is durable.
    transaction.on_commit(partial(_delete_stored_file, instance.file.storage, instance.file.name))
