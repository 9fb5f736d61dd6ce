"""Checklist routes: dashboard listing, submission, editing and email."""
import logging
from datetime import UTC, datetime
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy import func
from sqlmodel import Session, select

from homewatch.core.config import settings
from homewatch.core.database import get_session
from homewatch.core.mailer import SmtpMailer, get_mailer
from homewatch.core.storage import BlobStore, get_blob_store, remove_locators, resolve_display_url
from homewatch.models import Checklist, ChecklistItem, Client, Inspector, ItemStatus, Property
from homewatch.reports import metadata
from homewatch.reports.categories import (
    DEFAULT_CATEGORY,
    DEFAULT_ITEMS,
    format_category_label,
    order_categories,
)
from homewatch.reports.context import build_report_context
from homewatch.reports.delivery import send_checklist_email
from homewatch.reports.errors import DeliveryError
from homewatch.schemas import ChecklistSubmission, clean

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/checklists", tags=["checklists"])


def _summary(checklist: Checklist) -> dict:
    meta = metadata.decode(checklist.notes)
    context = build_report_context(checklist, meta)
    recipient = (meta.email or "").strip()
    return {
        "id": checklist.id,
        "client_name": context.client_name,
        "address": context.address,
        "visit_date": context.visit_date,
        "total_items": len(checklist.items),
        "done_items": sum(1 for item in checklist.items if item.status == ItemStatus.DONE.value),
        "recipient": recipient or None,
        "email_sent_at": meta.email_sent_at,
        "email_sent_to": meta.email_sent_to,
        "needs_email": bool(recipient) and not meta.email_sent_at,
    }


def _detail(checklist: Checklist, store: BlobStore) -> dict:
    meta = metadata.decode(checklist.notes)
    context = build_report_context(checklist, meta)

    grouped: dict[str, list[ChecklistItem]] = {}
    for item in checklist.items:
        grouped.setdefault(item.category or DEFAULT_CATEGORY, []).append(item)

    categories = []
    for key in order_categories(grouped):
        categories.append({
            "key": key,
            "label": format_category_label(key),
            "items": [
                {
                    "id": item.id,
                    "category": item.category,
                    "label": item.item_text,
                    "status": item.status,
                    "notes": item.notes,
                    "photos": [
                        {
                            "id": photo.id,
                            "storage_path": photo.storage_path,
                            "url": resolve_display_url(
                                store, photo.storage_path, settings.signed_url_ttl_seconds
                            ),
                        }
                        for photo in item.photos
                    ],
                }
                for item in grouped[key]
            ],
        })

    return {
        "id": checklist.id,
        "property_id": checklist.property_id,
        "visit_date": checklist.visit_date,
        "created_at": checklist.created_at,
        "updated_at": checklist.updated_at,
        "client_name": context.client_name,
        "address": context.address,
        "inspector": context.inspector,
        "client_phone": context.client_phone,
        "client_email": context.client_email,
        "comments": context.comments,
        "temperatures": context.temperatures,
        "metadata": meta.model_dump(by_alias=True),
        "categories": categories,
    }


def _get_or_404(session: Session, model, object_id: UUID | None, label: str):
    if object_id is None:
        return None
    obj = session.get(model, object_id)
    if not obj:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    return obj


def _apply_submission(session: Session, checklist: Checklist, submission: ChecklistSubmission):
    """Write the submission's snapshot, property link and items onto ``checklist``."""
    client = _get_or_404(session, Client, submission.client_id, "Client")
    prop = _get_or_404(session, Property, submission.property_id, "Property")
    inspector = _get_or_404(session, Inspector, submission.inspector_id, "Inspector")
    if prop is not None and client is None and prop.client_id is not None:
        client = prop.client

    now = datetime.now(UTC)
    checklist.property_id = prop.id if prop else None
    checklist.visit_date = submission.visit_date
    checklist.updated_at = now

    for item_in in submission.items:
        item = session.get(ChecklistItem, item_in.id) if item_in.id else None
        if item is not None and item.checklist_id != checklist.id:
            raise HTTPException(status_code=400, detail="Item belongs to another checklist")
        if item is None:
            item = ChecklistItem(checklist_id=checklist.id, category=item_in.category, item_text="")
            if item_in.id:
                item.id = item_in.id
        item.category = item_in.category.strip() or DEFAULT_CATEGORY
        item.item_text = item_in.label.strip()
        item.status = item_in.status.value
        item.notes = clean(item_in.notes)
        item.updated_at = now
        session.add(item)
    session.flush()
    session.refresh(checklist)

    # Stored keys this edit does not set, such as delivery tracking, are kept
    meta = metadata.decode(checklist.notes).model_copy(update={
        "schema_version": metadata.SCHEMA_VERSION,
        "client_id": str(client.id) if client else None,
        "property_id": str(prop.id) if prop else None,
        "client_name": clean(submission.client_name) or (client.name if client else None),
        "address": clean(submission.address) or (prop.address if prop else None),
        "inspector": clean(submission.inspector) or (inspector.name if inspector else None),
        "inspector_id": str(inspector.id) if inspector else None,
        "inspector_email": clean(submission.inspector_email) or (inspector.email if inspector else None),
        "inspector_phone": clean(submission.inspector_phone) or (inspector.phone if inspector else None),
        "phone": clean(submission.phone) or (client.phone if client else None),
        "email": clean(submission.email) or (client.email if client else None),
        "comments": clean(submission.comments),
        "item_summary": metadata.build_item_summary(
            (item.item_text, item.status, item.notes) for item in checklist.items
        ),
    })
    meta = metadata.with_temperatures(meta, {
        "garage": submission.garage_temp,
        "mainFloor": submission.main_floor_temp,
        "secondFloor": submission.second_floor_temp,
        "thirdFloor": submission.third_floor_temp,
    })
    checklist.notes = metadata.encode(meta, base=checklist.notes)
    session.add(checklist)


@router.get("")
async def list_checklists(limit: int = 50, session: Session = Depends(get_session)):
    """
    Dashboard listing.

    Returns the most recent checklists (visit date, then creation time),
    the ones that have a recipient but were never emailed, and the total
    number of checklists.
    """
    statement = (
        select(Checklist)
        .order_by(Checklist.visit_date.desc().nulls_last(), Checklist.created_at.desc())
        .limit(limit)
    )
    recent = [_summary(checklist) for checklist in session.exec(statement).all()]
    total = session.exec(select(func.count()).select_from(Checklist)).one()
    return {
        "recent": recent,
        "pending": [summary for summary in recent if summary["needs_email"]],
        "total": total,
    }


@router.get("/template")
async def checklist_template():
    """Default visit checklist with every item unchecked."""
    return {
        "items": [
            {"id": item_id, "category": category, "label": label, "status": ItemStatus.UNCHECKED.value}
            for item_id, category, label in DEFAULT_ITEMS
        ]
    }


@router.post("", status_code=201)
async def create_checklist(
    submission: ChecklistSubmission,
    session: Session = Depends(get_session),
    store: BlobStore = Depends(get_blob_store),
):
    """Create a checklist with its items and metadata snapshot."""
    checklist = Checklist()
    session.add(checklist)
    session.flush()
    _apply_submission(session, checklist, submission)
    session.commit()
    session.refresh(checklist)
    logger.info(f"Created checklist {checklist.id} with {len(checklist.items)} items")
    return _detail(checklist, store)


@router.get("/{checklist_id}")
async def get_checklist(
    checklist_id: UUID,
    session: Session = Depends(get_session),
    store: BlobStore = Depends(get_blob_store),
):
    """Checklist detail with decoded metadata and photo URLs."""
    checklist = session.get(Checklist, checklist_id)
    if not checklist:
        raise HTTPException(status_code=404, detail="Checklist not found")
    return _detail(checklist, store)


@router.put("/{checklist_id}")
async def update_checklist(
    checklist_id: UUID,
    submission: ChecklistSubmission,
    session: Session = Depends(get_session),
    store: BlobStore = Depends(get_blob_store),
):
    """
    Edit a checklist.

    Items are upserted by id; items not in the submission are kept. Email
    delivery tracking in the metadata is preserved.
    """
    checklist = session.get(Checklist, checklist_id)
    if not checklist:
        raise HTTPException(status_code=404, detail="Checklist not found")

    _apply_submission(session, checklist, submission)
    session.commit()
    session.refresh(checklist)
    logger.info(f"Updated checklist {checklist.id}")
    return _detail(checklist, store)


@router.delete("/{checklist_id}")
async def delete_checklist(
    checklist_id: UUID,
    session: Session = Depends(get_session),
    store: BlobStore = Depends(get_blob_store),
):
    """Delete a checklist, its items and photos."""
    checklist = session.get(Checklist, checklist_id)
    if not checklist:
        raise HTTPException(status_code=404, detail="Checklist not found")

    locators = [photo.storage_path for item in checklist.items for photo in item.photos]
    session.delete(checklist)
    session.commit()
    remove_locators(store, locators)
    logger.info(f"Deleted checklist {checklist_id}")
    return {"success": True, "id": checklist_id}


@router.post("/{checklist_id}/email")
async def email_checklist(
    checklist_id: UUID,
    request: Request,
    session: Session = Depends(get_session),
    store: BlobStore = Depends(get_blob_store),
    mailer: SmtpMailer = Depends(get_mailer),
):
    """
    Email the checklist PDF report.

    The JSON body may carry ``{"email": "..."}`` to override the recipient.
    Responds with ``{"success": true}`` or ``{"error": message}``.
    """
    try:
        payload = await request.json()
    except ValueError:
        payload = {}
    requested = payload.get("email") if isinstance(payload, dict) else None
    requested = requested.strip() if isinstance(requested, str) else None

    try:
        await send_checklist_email(session, checklist_id, store, mailer, requested_email=requested)
    except DeliveryError as e:
        return JSONResponse({"error": e.message}, status_code=e.status_code)
    except Exception:
        logger.exception(f"Failed to email checklist {checklist_id}")
        return JSONResponse({"error": DeliveryError.default_message}, status_code=500)
    return {"success": True}
