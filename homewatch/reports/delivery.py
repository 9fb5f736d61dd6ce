"""Email a checklist report to the client.

The pipeline runs inside a single request:

    load checklist -> pick recipient -> check SMTP settings ->
    download photos -> render PDF -> send -> record delivery

Anything that stops the email from going out raises a
:class:`~homewatch.reports.errors.DeliveryError`. Missing photos and a
failed tracking write after the send are logged and tolerated.
"""
import asyncio
import logging
import re
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID

import httpx
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from homewatch.core.config import Settings, settings
from homewatch.core.mailer import MailAttachment, MailSendError, OutboundEmail
from homewatch.core.storage import BlobStore
from homewatch.models import Checklist
from homewatch.reports import metadata
from homewatch.reports.attachments import (
    build_filename,
    collect_photo_attachments,
    partition_attachments,
    sanitize_segment,
)
from homewatch.reports.context import ReportContext, build_report_context
from homewatch.reports.errors import (
    ChecklistLoadError,
    ChecklistNotFound,
    InvalidRecipient,
    MailNotConfigured,
    NoRecipient,
    RenderError,
    SendError,
)
from homewatch.reports.renderer import render_checklist_pdf

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
SUBJECT_SEPARATOR = " – "


class Mailer(Protocol):
    sender: str

    def missing_settings(self) -> list[str]: ...

    def send(self, email: OutboundEmail) -> None: ...


@dataclass
class DeliveryResult:
    checklist_id: UUID
    recipient: str
    sent_at: str
    pdf_filename: str
    embedded_photos: int
    attached_files: int
    metadata_recorded: bool


def load_checklist(session: Session, checklist_id: UUID) -> Checklist:
    """Load a checklist with its property, client, items and photos."""
    try:
        checklist = session.get(Checklist, checklist_id)
        if checklist is None:
            raise ChecklistNotFound()
        # Touch the relationships now so query failures surface as load errors
        if checklist.property is not None:
            _ = checklist.property.client
        for item in checklist.items:
            _ = item.photos
    except SQLAlchemyError as e:
        logger.error(f"Failed to load checklist {checklist_id} for email: {e}")
        raise ChecklistLoadError() from e
    return checklist


def resolve_recipient(
    requested_email: str | None, meta: metadata.ChecklistMetadata, checklist: Checklist
) -> str:
    """Request override, then snapshot email, then the client's email."""
    client = checklist.property.client if checklist.property else None
    for candidate in (requested_email, meta.email, client.email if client else None):
        if candidate and candidate.strip():
            recipient = candidate.strip()
            break
    else:
        raise NoRecipient()

    if not EMAIL_PATTERN.match(recipient):
        raise InvalidRecipient()
    return recipient


def build_subject(context: ReportContext) -> str:
    segments = ["Home Watch Checklist", context.client_name or "Client"]
    if context.formatted_date:
        segments.append(context.formatted_date)
    return SUBJECT_SEPARATOR.join(segments)


def build_body(context: ReportContext, embedded_photos: int) -> str:
    lines = [
        "Attached is the completed Home Watch Checklist.",
        "",
        f"Client: {context.client_name or 'Not specified'}",
        f"Property: {context.address or 'Not specified'}",
        f"Visit date: {context.formatted_date or 'Not recorded'}",
    ]
    if context.client_phone:
        lines.append(f"Client phone: {context.client_phone}")
    if context.client_email:
        lines.append(f"Client email: {context.client_email}")
    if embedded_photos:
        lines += ["", "Inspection photos are included in the attached PDF report."]
    return "\n".join(lines)


def build_pdf_filename(context: ReportContext) -> str:
    client_slug = sanitize_segment(context.client_name or "")
    date_slug = sanitize_segment(context.formatted_date.replace("/", "-"))
    return build_filename(
        f"Checklist-{client_slug or 'Client'}-{date_slug or 'Visit'}.pdf",
        "checklist-report",
        "application/pdf",
    )


def record_delivery(session: Session, checklist: Checklist, sent_at: str, recipient: str) -> bool:
    """Write email tracking into the checklist metadata.

    Re-reads the stored notes first and merges the two tracking keys into
    them, so every other stored key is kept as written. Returns False (after
    logging) if the write fails.
    """
    try:
        session.refresh(checklist)
        checklist.notes = metadata.stamp_delivery(checklist.notes, sent_at, recipient)
        checklist.updated_at = datetime.now(UTC)
        session.add(checklist)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Failed to record email metadata on checklist {checklist.id}: {e}")
        return False
    return True


async def send_checklist_email(
    session: Session,
    checklist_id: UUID,
    store: BlobStore,
    mailer: Mailer,
    requested_email: str | None = None,
    config: Settings = settings,
    http: httpx.AsyncClient | None = None,
) -> DeliveryResult:
    """Render a checklist to PDF and email it.

    Sending twice sends two emails; the tracking fields always reflect the
    latest send.
    """
    checklist = load_checklist(session, checklist_id)
    meta = metadata.decode(checklist.notes)
    recipient = resolve_recipient(requested_email, meta, checklist)

    missing = mailer.missing_settings()
    if missing:
        raise MailNotConfigured(
            "Email sending is not configured. Set " + ", ".join(missing) + " environment variables."
        )

    items = list(checklist.items)
    attachments = await collect_photo_attachments(
        items, store, http=http, timeout=config.http_timeout_seconds
    )
    images, files = partition_attachments(attachments)

    try:
        pdf_bytes = render_checklist_pdf(checklist, meta, images, config=config)
    except Exception as e:
        logger.error(f"Failed to render checklist {checklist_id} PDF: {e}")
        raise RenderError() from e

    context = build_report_context(checklist, meta)
    pdf_filename = build_pdf_filename(context)
    email = OutboundEmail(
        sender=mailer.sender,
        recipient=recipient,
        subject=build_subject(context),
        text=build_body(context, len(images)),
        attachments=[
            MailAttachment(filename=pdf_filename, content=pdf_bytes, content_type="application/pdf"),
            *(
                MailAttachment(filename=f.filename, content=f.content, content_type=f.content_type)
                for f in files
            ),
        ],
    )

    try:
        await asyncio.to_thread(mailer.send, email)
    except MailSendError as e:
        logger.error(f"Failed to email checklist {checklist_id} to {recipient}: {e}")
        raise SendError(str(e) or None) from e

    sent_at = datetime.now(UTC).isoformat().replace("+00:00", "Z")
    recorded = record_delivery(session, checklist, sent_at, recipient)
    logger.info(
        f"Emailed checklist {checklist_id} to {recipient} "
        f"({len(images)} embedded photos, {len(files)} attached files)"
    )
    return DeliveryResult(
        checklist_id=checklist_id,
        recipient=recipient,
        sent_at=sent_at,
        pdf_filename=pdf_filename,
        embedded_photos=len(images),
        attached_files=len(files),
        metadata_recorded=recorded,
    )
