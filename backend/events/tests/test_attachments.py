import base64
import hashlib
import os

from django.test import TestCase

from events.attachments import HasManyAttached, HasOneAttached, ManyAttached, OneAttached
from events.errors import ImmutableBlobError
from events.models import Attachment, Blob, Event

from .helpers import IsolatedMediaMixin, make_upload


def md5_base64(b: bytes) -> str:
    return base64.b64encode(hashlib.md5(b).digest()).decode("ascii")


class TestDeclaredAttachments(IsolatedMediaMixin, TestCase):
    """
    has-one / has-many relations declared on Event:
        - attach, read back, replace, append
        - purge and cascade delete remove rows and stored bytes
        - unsaved records cannot take attachments
    """

    def setUp(self):
        super().setUp()
        self.event = Event.objects.create(title="Spring fair")

    # ------------------ declaration ------------------
    def test_descriptors_take_attribute_names(self):
        self.assertIsInstance(Event.poster, HasOneAttached)
        self.assertIsInstance(Event.posters, HasManyAttached)
        self.assertEqual(Event.poster.name, "poster")
        self.assertEqual(Event.posters.name, "posters")
        self.assertIsInstance(self.event.poster, OneAttached)
        self.assertIsInstance(self.event.posters, ManyAttached)

    def test_assignment_is_rejected(self):
        with self.assertRaises(AttributeError):
            self.event.poster = make_upload()

    def test_unsaved_record_cannot_attach(self):
        draft = Event(title="draft")
        with self.assertRaises(ValueError):
            draft.poster.attach(make_upload())
        with self.assertRaises(ValueError):
            draft.posters.attach(make_upload())
        self.assertFalse(Blob.objects.exists())

    # ------------------ has one ------------------
    def test_nothing_attached(self):
        self.assertFalse(self.event.poster.attached)
        self.assertIsNone(self.event.poster.attachment)
        self.assertIsNone(self.event.poster.blob)

    def test_attach_poster_stores_blob_metadata_and_bytes(self):
        content = b"poster bytes " * 100
        attachment = self.event.poster.attach(make_upload("flyer.png", content))

        self.assertTrue(self.event.poster.attached)
        self.assertEqual(attachment.name, "poster")
        self.assertEqual(attachment.record, self.event)

        blob = self.event.poster.blob
        self.assertEqual(blob.filename, "flyer.png")
        self.assertEqual(blob.content_type, "image/png")
        self.assertEqual(blob.byte_size, len(content))
        self.assertEqual(blob.checksum, md5_base64(content))
        self.assertEqual(blob.service_name, "local")
        self.assertTrue(os.path.exists(blob.file.path))
        with blob.file.open("rb") as fh:
            self.assertEqual(fh.read(), content)

    def test_attaching_again_replaces_and_purges_previous(self):
        self.event.poster.attach(make_upload("old.png", b"old"))
        old_blob = self.event.poster.blob
        old_path = old_blob.file.path

        with self.captureOnCommitCallbacks(execute=True):
            self.event.poster.attach(make_upload("new.png", b"new"))

        self.assertEqual(Attachment.objects.for_record(self.event, "poster").count(), 1)
        self.assertEqual(self.event.poster.blob.filename, "new.png")
        self.assertNotEqual(self.event.poster.blob.key, old_blob.key)
        self.assertFalse(Blob.objects.filter(pk=old_blob.pk).exists())
        self.assertFalse(os.path.exists(old_path), "Replaced poster bytes should be removed")

    # ------------------ has many ------------------
    def test_posters_append_in_upload_order(self):
        self.event.posters.attach(make_upload("p1.png", b"1"), make_upload("p2.png", b"2"))
        self.event.posters.attach(make_upload("p3.png", b"3"))

        self.assertTrue(self.event.posters.attached)
        self.assertEqual(len(self.event.posters), 3)
        self.assertEqual([b.filename for b in self.event.posters.blobs()], ["p1.png", "p2.png", "p3.png"])
        self.assertEqual([a.blob.filename for a in self.event.posters], ["p1.png", "p2.png", "p3.png"])
        self.assertEqual([a.name for a in self.event.posters.attachments], ["posters"] * 3)

    def test_identical_uploads_get_distinct_blobs(self):
        self.event.posters.attach(make_upload("same.png", b"x"), make_upload("same.png", b"x"))
        keys = [b.key for b in self.event.posters.blobs()]
        self.assertEqual(len(set(keys)), 2)

    def test_one_and_many_are_separate_names(self):
        self.event.poster.attach(make_upload("single.png"))
        self.assertFalse(self.event.posters.attached)
        self.assertEqual(len(self.event.posters), 0)

    # ------------------ purge / cascade ------------------
    def test_purge_removes_attachments_blobs_and_bytes(self):
        self.event.posters.attach(make_upload("a.png", b"a"), make_upload("b.png", b"b"))
        paths = [b.file.path for b in self.event.posters.blobs()]

        with self.captureOnCommitCallbacks(execute=True):
            self.event.posters.purge()

        self.assertFalse(self.event.posters.attached)
        self.assertFalse(Blob.objects.exists())
        for path in paths:
            self.assertFalse(os.path.exists(path))

    def test_deleting_event_cascades_to_blobs_and_bytes(self):
        self.event.poster.attach(make_upload("p.png", b"p"))
        self.event.posters.attach(make_upload("g.png", b"g"))
        paths = [self.event.poster.blob.file.path] + [b.file.path for b in self.event.posters.blobs()]

        keep = Event.objects.create(title="Keep me")
        keep.poster.attach(make_upload("keep.png", b"k"))

        with self.captureOnCommitCallbacks(execute=True):
            self.event.delete()

        self.assertEqual(Attachment.objects.count(), 1)
        self.assertEqual(Blob.objects.count(), 1)
        self.assertTrue(keep.poster.attached)
        for path in paths:
            self.assertFalse(os.path.exists(path), "Bytes of a deleted event's attachments should be removed")
        self.assertTrue(os.path.exists(keep.poster.blob.file.path))

    def test_bytes_survive_until_commit(self):
        self.event.poster.attach(make_upload("p.png", b"p"))
        path = self.event.poster.blob.file.path

        with self.captureOnCommitCallbacks(execute=False) as callbacks:
            self.event.poster.purge()

        self.assertTrue(os.path.exists(path))
        self.assertEqual(len(callbacks), 1)

    # ------------------ immutability ------------------
    def test_blob_rows_are_immutable(self):
        self.event.poster.attach(make_upload())
        blob = self.event.poster.blob
        blob.filename = "renamed.png"
        with self.assertRaises(ImmutableBlobError):
            blob.save()
        self.assertNotEqual(Blob.objects.get(pk=blob.pk).filename, "renamed.png")
