"""Photo routes for uploading and removing checklist item photos."""
import logging
from uuid import UUID, uuid4

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from homewatch.core.config import settings
from homewatch.core.database import get_session
from homewatch.core.storage import BlobStore, BlobStoreError, get_blob_store, remove_locators, resolve_display_url
from homewatch.models import ChecklistItem, ChecklistPhoto
from homewatch.reports.attachments import DEFAULT_EXTENSION, extension_from_mime, sanitize_extension

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/checklists/{checklist_id}/items/{item_id}/photos", tags=["photos"])


def _get_item(session: Session, checklist_id: UUID, item_id: UUID) -> ChecklistItem:
    item = session.get(ChecklistItem, item_id)
    if not item or item.checklist_id != checklist_id:
        raise HTTPException(status_code=404, detail="Item not found")
    return item


def _upload_extension(upload: UploadFile) -> str:
    name = upload.filename or ""
    if "." in name:
        ext = sanitize_extension(name.rsplit(".", 1)[1])
        if ext:
            return ext
    return extension_from_mime(upload.content_type) or DEFAULT_EXTENSION


@router.post("", status_code=201)
async def upload_photo(
    checklist_id: UUID,
    item_id: UUID,
    file: UploadFile = File(...),
    session: Session = Depends(get_session),
    store: BlobStore = Depends(get_blob_store),
):
    """
    Attach a photo to a checklist item.

    The file is stored under ``<checklist>/<item>/<random>.<ext>`` in the
    photo bucket and a ChecklistPhoto row records the locator. If the row
    cannot be written the uploaded object is removed again.
    """
    _get_item(session, checklist_id, item_id)

    data = await file.read()
    if not data:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")

    bucket = settings.checklist_bucket
    object_path = f"{checklist_id}/{item_id}/{uuid4()}{_upload_extension(file)}"
    try:
        store.upload(bucket, object_path, data, content_type=file.content_type)
    except BlobStoreError as e:
        logger.error(f"Failed to upload photo for item {item_id}: {e}")
        raise HTTPException(status_code=502, detail="Photo upload failed")

    locator = f"{bucket}/{object_path}"
    photo = ChecklistPhoto(checklist_item_id=item_id, storage_path=locator)
    try:
        session.add(photo)
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        remove_locators(store, [locator])
        raise
    session.refresh(photo)
    logger.info(f"Stored photo {photo.id} at {locator}")

    return {
        "id": photo.id,
        "storage_path": photo.storage_path,
        "url": resolve_display_url(store, photo.storage_path, settings.signed_url_ttl_seconds),
    }


@router.delete("/{photo_id}")
async def delete_photo(
    checklist_id: UUID,
    item_id: UUID,
    photo_id: UUID,
    session: Session = Depends(get_session),
    store: BlobStore = Depends(get_blob_store),
):
    """Remove a photo row, then its stored object (best effort)."""
    _get_item(session, checklist_id, item_id)
    photo = session.get(ChecklistPhoto, photo_id)
    if not photo or photo.checklist_item_id != item_id:
        raise HTTPException(status_code=404, detail="Photo not found")

    locator = photo.storage_path
    session.delete(photo)
    session.commit()
    remove_locators(store, [locator])
    logger.info(f"Deleted photo {photo_id} from item {item_id}")
    return {"success": True, "id": photo_id}
