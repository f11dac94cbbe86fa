import shutil
import tempfile

from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import override_settings


HOST = "http://localhost:3000"


def make_upload(name="poster.png", content=b"\x89PNG fake image bytes", content_type="image/png"):
    return SimpleUploadedFile(name, content, content_type=content_type)


class IsolatedMediaMixin:
    """
    Fresh MEDIA_ROOT per test plus a configured URL host.
    Tests that need a missing host override EVENT_UPLOADS again locally.
    """

    def setUp(self):
        super().setUp()
        self.temp_media_dir = tempfile.mkdtemp(prefix="media_")
        self.addCleanup(lambda: shutil.rmtree(self.temp_media_dir, ignore_errors=True))

        overrides = override_settings(
            MEDIA_ROOT=self.temp_media_dir,
            EVENT_UPLOADS={
                "URL_HOST": HOST,
                "URL_PATH_PREFIX": "blobs",
                "KEY_LENGTH": 28,
                "SERVICE_NAME": "local",
            },
        )
        overrides.enable()
        self.addCleanup(overrides.disable)
