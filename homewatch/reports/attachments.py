"""Download checklist photos for the emailed report.

Each photo locator is resolved on its own: an absolute URL is fetched over
HTTP, anything else is read from object storage as ``bucket/path``. A
photo that cannot be fetched is logged and skipped; it never fails the
delivery. All downloads for a checklist run concurrently, then filenames
are made unique in item/photo order so the attachment list is stable.
"""
import asyncio
import logging
import os
import re
from dataclasses import dataclass
from urllib.parse import unquote, urlparse

import httpx

from homewatch.core.storage import BlobStore, BlobStoreError, is_remote_url, split_locator
from homewatch.models import ChecklistItem
from homewatch.reports.categories import DEFAULT_CATEGORY, format_category_label

logger = logging.getLogger(__name__)

EXTENSION_TO_MIME = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
    ".gif": "image/gif",
    ".heic": "image/heic",
    ".heif": "image/heif",
    ".bmp": "image/bmp",
    ".mp4": "video/mp4",
    ".mov": "video/quicktime",
    ".pdf": "application/pdf",
}

IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp", ".gif", ".bmp", ".heic", ".heif"}
DEFAULT_EXTENSION = ".jpg"


@dataclass
class DownloadedAttachment:
    filename: str
    content: bytes
    content_type: str | None = None


@dataclass
class PhotoAttachment(DownloadedAttachment):
    """A downloaded photo plus the checklist item it belongs to."""
    category_key: str = DEFAULT_CATEGORY
    category_label: str = "General"
    item_label: str = "Checklist item"

    @property
    def is_image(self) -> bool:
        if self.content_type and self.content_type.lower().startswith("image/"):
            return True
        return sanitize_extension(os.path.splitext(self.filename)[1]) in IMAGE_EXTENSIONS


def sanitize_segment(value: str) -> str:
    value = re.sub(r"\s+", "-", value.strip())
    value = re.sub(r"[^a-zA-Z0-9._-]", "-", value)
    value = re.sub(r"-+", "-", value)
    return value.strip("-")


def sanitize_extension(ext: str) -> str:
    cleaned = re.sub(r"[^a-zA-Z0-9]", "", ext.removeprefix(".")).lower()
    return f".{cleaned}" if cleaned else ""


def extension_from_mime(mime: str | None) -> str:
    if not mime:
        return ""
    normalized = mime.lower()
    for extension, value in EXTENSION_TO_MIME.items():
        if value == normalized:
            return extension
    return ""


def infer_content_type(filename: str, explicit: str | None = None) -> str | None:
    if explicit and explicit.strip():
        return explicit
    return EXTENSION_TO_MIME.get(sanitize_extension(os.path.splitext(filename)[1]))


def build_filename(raw_name: str | None, fallback_base: str, mime_hint: str | None = None) -> str:
    """Safe attachment filename.

    The extension comes from ``raw_name`` when it has one, else from the
    MIME hint, else ``.jpg``. An empty base falls back to ``fallback_base``
    and then to ``file``.
    """
    raw_name = raw_name or ""
    base, raw_ext = os.path.splitext(raw_name)
    extension = sanitize_extension(raw_ext)
    if not extension:
        base = raw_name
    base = sanitize_segment(base) or sanitize_segment(fallback_base) or "file"
    if not extension:
        extension = sanitize_extension(extension_from_mime(mime_hint)) or DEFAULT_EXTENSION
    return f"{base}{extension}"


def ensure_unique_filename(name: str, seen: set[str]) -> str:
    """Return ``name`` or the first free ``name-N.ext`` (N >= 2), and record it."""
    if name not in seen:
        seen.add(name)
        return name

    root, raw_ext = os.path.splitext(name)
    extension = sanitize_extension(raw_ext)
    base = sanitize_segment(root if extension else name) or "file"

    counter = 2
    candidate = f"{base}-{counter}{extension}"
    while candidate in seen:
        counter += 1
        candidate = f"{base}-{counter}{extension}"
    seen.add(candidate)
    return candidate


def _media_type(header: str | None) -> str | None:
    if not header:
        return None
    return header.split(";", 1)[0].strip() or None


async def _fetch_remote(url: str, fallback_base: str, http: httpx.AsyncClient) -> DownloadedAttachment | None:
    try:
        raw_name = unquote(urlparse(url).path.rsplit("/", 1)[-1])
        response = await http.get(url)
    except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
        logger.warning(f"Failed to download external checklist photo {url}: {e}")
        return None
    if not response.is_success:
        logger.warning(
            f"Failed to fetch external checklist photo {url}: status {response.status_code}"
        )
        return None

    content_type = _media_type(response.headers.get("content-type"))
    filename = build_filename(raw_name, fallback_base, content_type)
    return DownloadedAttachment(
        filename=filename,
        content=response.content,
        content_type=infer_content_type(filename, content_type),
    )


async def _fetch_stored(locator: str, fallback_base: str, store: BlobStore) -> DownloadedAttachment | None:
    parts = split_locator(locator)
    if parts is None:
        logger.warning(f"Checklist photo storage path is malformed: {locator!r}")
        return None

    bucket, object_path = parts
    try:
        blob = await asyncio.to_thread(store.download, bucket, object_path)
    except BlobStoreError as e:
        logger.warning(f"Failed to download checklist photo {locator} from storage: {e}")
        return None
    if not blob.data:
        logger.warning(f"Checklist photo {locator} downloaded with no data")
        return None

    raw_name = unquote(object_path.rsplit("/", 1)[-1])
    filename = build_filename(raw_name, fallback_base, blob.content_type)
    return DownloadedAttachment(
        filename=filename,
        content=blob.data,
        content_type=infer_content_type(filename, blob.content_type),
    )


async def resolve_attachment(
    locator: str | None,
    fallback_base: str,
    store: BlobStore,
    http: httpx.AsyncClient,
) -> DownloadedAttachment | None:
    """Fetch one photo; None when it cannot be resolved."""
    if not locator:
        return None
    if is_remote_url(locator):
        return await _fetch_remote(locator, fallback_base, http)
    return await _fetch_stored(locator, fallback_base, store)


async def collect_photo_attachments(
    items: list[ChecklistItem],
    store: BlobStore,
    http: httpx.AsyncClient | None = None,
    timeout: float = 30.0,
) -> list[PhotoAttachment]:
    """Resolve every photo on ``items`` concurrently.

    Results keep item/photo order; unresolved photos are dropped and
    duplicate filenames get ``-2``, ``-3``... suffixes, first one wins.
    """
    if http is None:
        async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
            return await collect_photo_attachments(items, store, client)

    jobs = []
    for item_index, item in enumerate(items, start=1):
        category_key = item.category or DEFAULT_CATEGORY
        item_label = item.item_text or "Checklist item"
        for photo_index, photo in enumerate(item.photos, start=1):
            if not photo.storage_path:
                continue
            fallback_base = f"photo-{item_index}-{photo_index}"
            jobs.append((photo.storage_path, fallback_base, category_key, item_label))

    if not jobs:
        return []

    results = await asyncio.gather(
        *(resolve_attachment(locator, fallback, store, http) for locator, fallback, _, _ in jobs)
    )

    seen: set[str] = set()
    attachments = []
    for (_, fallback_base, category_key, item_label), downloaded in zip(jobs, results):
        if downloaded is None:
            continue
        name = downloaded.filename or build_filename("", fallback_base, downloaded.content_type)
        unique_name = ensure_unique_filename(name, seen)
        attachments.append(
            PhotoAttachment(
                filename=unique_name,
                content=downloaded.content,
                content_type=downloaded.content_type or infer_content_type(unique_name),
                category_key=category_key,
                category_label=format_category_label(category_key),
                item_label=item_label,
            )
        )
    return attachments


def partition_attachments(
    attachments: list[PhotoAttachment],
) -> tuple[list[PhotoAttachment], list[PhotoAttachment]]:
    """Split into (images to embed in the PDF, files to attach as-is)."""
    images = [a for a in attachments if a.is_image]
    others = [a for a in attachments if not a.is_image]
    return images, others
