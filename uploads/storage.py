"""Object storage access for uploaded course files.

Files live in an S3-compatible bucket (Cloudflare R2 in production). The
browser uploads directly to the bucket through a short-lived presigned PUT
URL; the server only issues URLs, checks that objects exist, and removes
them when their records go away.

Nothing here talks to the network at import time. Settings are read into a
:class:`StorageConfig` and the :class:`ObjectStorage` wrapper is built on the
first call to :func:`get_object_storage`.
"""
from __future__ import annotations

import logging
import mimetypes
import posixpath
import re
import secrets
import threading
import time
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Iterator
from urllib.parse import quote

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.core.files.storage import Storage
from django.core.signals import setting_changed
from django.dispatch import receiver
from django.utils.text import slugify

logger = logging.getLogger(__name__)

_EXTENSION_RE = re.compile(r"^\.[a-z0-9]{1,10}$")


class StorageNotConfigured(ImproperlyConfigured):
    """Object storage settings are missing or unusable."""


class UploadMissing(Exception):
    """The client claimed an upload that is not in the bucket."""

    def __init__(self, key: str):
        super().__init__(f"No uploaded object found for key {key!r}")
        self.key = key


@dataclass(frozen=True)
class StorageConfig:
    bucket: str
    region: str = "auto"
    endpoint_url: str = ""
    access_key_id: str = ""
    secret_access_key: str = ""
    public_url: str = ""
    key_prefix: str = "uploads"
    upload_expires: int = 60
    download_expires: int = 3600
    signature_version: str = "s3v4"
    addressing_style: str = "virtual"

    @classmethod
    def from_settings(cls, source=settings) -> "StorageConfig":
        return cls(
            bucket=source.OBJECT_STORAGE_BUCKET,
            region=source.OBJECT_STORAGE_REGION,
            endpoint_url=source.OBJECT_STORAGE_ENDPOINT_URL,
            access_key_id=source.OBJECT_STORAGE_ACCESS_KEY_ID,
            secret_access_key=source.OBJECT_STORAGE_SECRET_ACCESS_KEY,
            public_url=source.OBJECT_STORAGE_PUBLIC_URL,
            key_prefix=source.OBJECT_STORAGE_KEY_PREFIX.strip("/"),
            upload_expires=int(source.OBJECT_STORAGE_UPLOAD_EXPIRES),
            download_expires=int(source.OBJECT_STORAGE_DOWNLOAD_EXPIRES),
            signature_version=source.OBJECT_STORAGE_SIGNATURE_VERSION,
            addressing_style=source.OBJECT_STORAGE_ADDRESSING_STYLE,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.bucket)


@dataclass(frozen=True)
class PresignedUrl:
    key: str
    url: str
    expires_in: int
    bucket: str
    region: str

    def as_dict(self) -> dict:
        return {
            "key": self.key,
            "signedUrl": self.url,
            "expiresInSeconds": self.expires_in,
            "bucket": self.bucket,
            "region": self.region,
        }


def key_filename(key: str) -> str:
    """File name shown to users: the last segment of the key."""

    return posixpath.basename(key)


def key_extension(key: str) -> str:
    return posixpath.splitext(key)[1].lower()


def _unique_token() -> str:
    # Millisecond timestamp first so keys sort by upload time.
    return f"{int(time.time() * 1000):011x}{secrets.token_hex(5)}"


class ObjectStorage:
    """Thin wrapper around a Django storage backend pointed at the bucket.

    The backend is ``storages.backends.s3boto3.S3Boto3Storage`` unless one is
    passed in. Presigning needs the boto3 client behind that backend; the
    other operations go through the generic ``Storage`` API.
    """

    def __init__(self, config: StorageConfig, backend: Storage | None = None):
        if backend is None:
            if not config.is_configured:
                raise StorageNotConfigured("OBJECT_STORAGE_BUCKET is not set.")
            backend = self._build_backend(config)
        self.config = config
        self.backend = backend

    @staticmethod
    def _build_backend(config: StorageConfig) -> Storage:
        from storages.backends.s3boto3 import S3Boto3Storage

        return S3Boto3Storage(
            bucket_name=config.bucket,
            region_name=config.region or None,
            endpoint_url=config.endpoint_url or None,
            access_key=config.access_key_id or None,
            secret_key=config.secret_access_key or None,
            signature_version=config.signature_version,
            addressing_style=config.addressing_style,
            default_acl=None,
            file_overwrite=False,
            querystring_auth=True,
            querystring_expire=config.download_expires,
        )

    @property
    def _client(self):
        bucket = getattr(self.backend, "bucket", None)
        if bucket is None:
            raise StorageNotConfigured("Presigned URLs need an S3-compatible storage backend.")
        return bucket.meta.client

    # Keys

    def generate_key(self, filename: str, *, owner_id, content_type: str | None = None) -> str:
        """Build ``<prefix>/<owner>/<unique>-<name><ext>`` for a new upload."""

        stem, ext = posixpath.splitext(posixpath.basename(filename.replace("\\", "/")))
        ext = ext.lower()
        if not _EXTENSION_RE.match(ext):
            ext = mimetypes.guess_extension(content_type) or "" if content_type else ""
        name = slugify(stem)[:60] or "file"
        parts = [self.config.key_prefix, str(owner_id), f"{_unique_token()}-{name}{ext}"]
        return "/".join(part for part in parts if part)

    def owner_prefix(self, owner_id) -> str:
        return "/".join(part for part in (self.config.key_prefix, str(owner_id)) if part) + "/"

    def owns(self, key: str, owner_id) -> bool:
        normalized = posixpath.normpath(key)
        return normalized == key and key.startswith(self.owner_prefix(owner_id))

    # Presigning

    def presign_upload(
        self, filename: str, *, owner_id, content_type: str | None = None
    ) -> PresignedUrl:
        key = self.generate_key(filename, owner_id=owner_id, content_type=content_type)
        params = {"Bucket": self.config.bucket, "Key": key}
        if content_type:
            params["ContentType"] = content_type
        url = self._client.generate_presigned_url(
            "put_object",
            Params=params,
            ExpiresIn=self.config.upload_expires,
            HttpMethod="PUT",
        )
        logger.info(
            "Issued upload URL for %s (expires in %ss)", key, self.config.upload_expires
        )
        return PresignedUrl(
            key=key,
            url=url,
            expires_in=self.config.upload_expires,
            bucket=self.config.bucket,
            region=self.config.region,
        )

    def presign_download(self, key: str, *, filename: str | None = None) -> PresignedUrl:
        params = {"Bucket": self.config.bucket, "Key": key}
        if filename:
            params["ResponseContentDisposition"] = f'attachment; filename="{filename}"'
        url = self._client.generate_presigned_url(
            "get_object",
            Params=params,
            ExpiresIn=self.config.download_expires,
        )
        return PresignedUrl(
            key=key,
            url=url,
            expires_in=self.config.download_expires,
            bucket=self.config.bucket,
            region=self.config.region,
        )

    def public_url(self, key: str) -> str | None:
        if not self.config.public_url:
            return None
        return f"{self.config.public_url.rstrip('/')}/{quote(key)}"

    def url_for(self, key: str) -> str:
        """URL a browser can follow to read ``key``."""

        public = self.public_url(key)
        if public:
            return public
        if getattr(self.backend, "bucket", None) is None:
            return self.backend.url(key)
        return self.presign_download(key, filename=key_filename(key)).url

    # Objects

    def exists(self, key: str) -> bool:
        return self.backend.exists(key)

    def verify_uploaded(self, key: str) -> None:
        if not self.exists(key):
            logger.warning("Upload %s is missing from the bucket", key)
            raise UploadMissing(key)
        logger.info("Verified upload %s", key)

    def save(self, key: str, content) -> str:
        name = self.backend.save(key, content)
        logger.info("Stored %s", name)
        return name

    def modified_time(self, key: str) -> datetime:
        return self.backend.get_modified_time(key)

    def delete(self, key: str) -> None:
        self.backend.delete(key)
        logger.info("Deleted stored object %s", key)

    def iter_keys(self, prefix: str = "") -> Iterator[str]:
        """Walk every object key under ``prefix``."""

        queue = deque([prefix.strip("/")])
        seen = set()

        while queue:
            current = queue.popleft()
            if current in seen:
                continue
            seen.add(current)

            dirs, files = self.backend.listdir(current)
            for name in files:
                yield posixpath.join(current, name)
            for name in dirs:
                queue.append(posixpath.join(current, name))


_lock = threading.Lock()
_storage: ObjectStorage | None = None


def get_object_storage() -> ObjectStorage:
    """Return the process-wide storage, building it on first use."""

    global _storage
    if _storage is None:
        with _lock:
            if _storage is None:
                _storage = ObjectStorage(StorageConfig.from_settings())
    return _storage


def set_object_storage(storage: ObjectStorage | None) -> None:
    global _storage
    with _lock:
        _storage = storage


def reset_object_storage() -> None:
    set_object_storage(None)


@receiver(setting_changed)
def _reset_on_settings_change(sender, setting, **kwargs):
    if setting.startswith("OBJECT_STORAGE_"):
        reset_object_storage()
