from __future__ import annotations

import os
import shutil
import tempfile
import time

from django.core.files.base import ContentFile
from django.core.files.storage import FileSystemStorage

from uploads.storage import ObjectStorage, StorageConfig, reset_object_storage, set_object_storage

R2_SETTINGS = {
    "OBJECT_STORAGE_BUCKET": "course-files",
    "OBJECT_STORAGE_REGION": "auto",
    "OBJECT_STORAGE_ENDPOINT_URL": "https://account123.r2.cloudflarestorage.com",
    "OBJECT_STORAGE_ACCESS_KEY_ID": "test-access-key",
    "OBJECT_STORAGE_SECRET_ACCESS_KEY": "test-secret-key",
    "OBJECT_STORAGE_PUBLIC_URL": "",
    "OBJECT_STORAGE_KEY_PREFIX": "uploads",
}


class TemporaryObjectStorageMixin:
    """Back object storage with a temporary directory for the test."""

    storage_config = StorageConfig(bucket="test-bucket", region="auto")

    def setUp(self):
        super().setUp()
        self.storage_dir = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.storage_dir, ignore_errors=True)
        os.makedirs(os.path.join(self.storage_dir, self.storage_config.key_prefix))
        self.object_storage = ObjectStorage(
            self.storage_config,
            backend=FileSystemStorage(location=self.storage_dir, base_url="/media/"),
        )
        set_object_storage(self.object_storage)
        self.addCleanup(reset_object_storage)

    def put_object(self, key: str, content: bytes = b"data") -> str:
        return self.object_storage.save(key, ContentFile(content))

    def age_object(self, key: str, hours: float) -> None:
        """Backdate the stored object's modification time."""

        stamp = time.time() - hours * 3600
        os.utime(self.object_storage.backend.path(key), (stamp, stamp))
