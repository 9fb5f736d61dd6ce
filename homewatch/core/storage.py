"""Supabase Storage access for checklist photos.

Photos are referenced by a storage locator, which is either an absolute
``http(s)://`` URL or a ``<bucket>/<object/path>`` string. Everything in
the application goes through a :class:`BlobStore`; the Supabase client is
created lazily so that a deployment without storage credentials can still
serve checklists that have no photos.
"""
import logging
import re
from collections import defaultdict
from dataclasses import dataclass
from typing import Protocol

from supabase import Client, create_client

from homewatch.core.config import settings

logger = logging.getLogger(__name__)

REMOTE_URL_PATTERN = re.compile(r"^https?://", re.IGNORECASE)


class BlobStoreError(Exception):
    """Raised when the object store rejects or fails an operation."""


@dataclass
class BlobObject:
    """Downloaded object payload and the content type the store reported."""
    data: bytes
    content_type: str | None = None


class BlobStore(Protocol):
    def download(self, bucket: str, path: str) -> BlobObject: ...

    def create_signed_url(self, bucket: str, path: str, ttl_seconds: int) -> str: ...

    def get_public_url(self, bucket: str, path: str) -> str: ...

    def upload(
        self, bucket: str, path: str, data: bytes, content_type: str | None = None
    ) -> None: ...

    def remove(self, bucket: str, paths: list[str]) -> None: ...


class SupabaseBlobStore:
    """BlobStore backed by Supabase Storage."""

    def __init__(self, url: str, key: str):
        self.url = url
        self.key = key
        self._client: Client | None = None

    @property
    def client(self) -> Client:
        if self._client is None:
            if not self.url or not self.key:
                raise BlobStoreError(
                    "Supabase storage is not configured. Set SUPABASE_URL and "
                    "SUPABASE_SERVICE_ROLE_KEY."
                )
            self._client = create_client(self.url, self.key)
        return self._client

    def download(self, bucket: str, path: str) -> BlobObject:
        try:
            data = self.client.storage.from_(bucket).download(path)
        except BlobStoreError:
            raise
        except Exception as e:
            raise BlobStoreError(f"Download of {bucket}/{path} failed: {e}") from e
        if not data:
            raise BlobStoreError(f"Download of {bucket}/{path} returned no data")
        # Storage downloads carry no content type; callers infer it from the name.
        return BlobObject(data=data)

    def create_signed_url(self, bucket: str, path: str, ttl_seconds: int) -> str:
        try:
            signed = self.client.storage.from_(bucket).create_signed_url(path, ttl_seconds)
        except BlobStoreError:
            raise
        except Exception as e:
            raise BlobStoreError(f"Signing {bucket}/{path} failed: {e}") from e
        url = (signed or {}).get("signedURL") or (signed or {}).get("signedUrl")
        if not url:
            raise BlobStoreError(f"Signed URL not returned for {bucket}/{path}")
        return url

    def get_public_url(self, bucket: str, path: str) -> str:
        try:
            return self.client.storage.from_(bucket).get_public_url(path)
        except BlobStoreError:
            raise
        except Exception as e:
            raise BlobStoreError(f"Public URL lookup for {bucket}/{path} failed: {e}") from e

    def upload(
        self, bucket: str, path: str, data: bytes, content_type: str | None = None
    ) -> None:
        file_options = {"cache-control": "3600", "upsert": "false"}
        if content_type:
            file_options["content-type"] = content_type
        try:
            self.client.storage.from_(bucket).upload(
                path=path, file=data, file_options=file_options
            )
        except BlobStoreError:
            raise
        except Exception as e:
            raise BlobStoreError(f"Upload of {bucket}/{path} failed: {e}") from e

    def remove(self, bucket: str, paths: list[str]) -> None:
        try:
            self.client.storage.from_(bucket).remove(paths)
        except BlobStoreError:
            raise
        except Exception as e:
            raise BlobStoreError(f"Removal from {bucket} failed: {e}") from e


_store: SupabaseBlobStore | None = None


def get_blob_store() -> BlobStore:
    """Dependency returning the shared Supabase-backed store."""
    global _store
    if _store is None:
        _store = SupabaseBlobStore(settings.supabase_url, settings.supabase_service_role_key)
    return _store


def is_remote_url(locator: str) -> bool:
    return bool(REMOTE_URL_PATTERN.match(locator))


def split_locator(locator: str) -> tuple[str, str] | None:
    """Split ``bucket/object/path`` into its bucket and object path.

    Returns None when the locator has no object part.
    """
    bucket, _, object_path = locator.partition("/")
    if not bucket or not object_path:
        return None
    return bucket, object_path


def resolve_display_url(store: BlobStore, locator: str | None, ttl_seconds: int) -> str | None:
    """Turn a storage locator into a URL a browser can load.

    Absolute URLs pass through. Bucket paths get a signed URL, falling back
    to the public URL when signing fails.
    """
    if not locator:
        return None
    if is_remote_url(locator):
        return locator

    parts = split_locator(locator)
    if parts is None:
        logger.warning(f"Checklist photo storage path is malformed: {locator!r}")
        return None

    bucket, object_path = parts
    try:
        return store.create_signed_url(bucket, object_path, ttl_seconds)
    except BlobStoreError as e:
        logger.warning(f"Failed to create signed URL for {locator}, using public URL: {e}")
    try:
        return store.get_public_url(bucket, object_path)
    except BlobStoreError as e:
        logger.warning(f"Failed to build public URL for {locator}: {e}")
        return None


def remove_locators(store: BlobStore, locators: list[str]) -> int:
    """Best-effort removal of stored objects, grouped by bucket.

    Remote URLs and malformed locators are skipped. Returns the number of
    object paths that were removed without error.
    """
    removals: dict[str, list[str]] = defaultdict(list)
    for locator in locators:
        if not locator or is_remote_url(locator):
            continue
        parts = split_locator(locator)
        if parts is None:
            continue
        bucket, object_path = parts
        removals[bucket].append(object_path)

    removed = 0
    for bucket, paths in removals.items():
        try:
            store.remove(bucket, paths)
            removed += len(paths)
        except BlobStoreError as e:
            logger.warning(f"Failed to remove checklist photos from {bucket}: {e}")
    return removed
