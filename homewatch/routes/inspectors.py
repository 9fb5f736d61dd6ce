"""Inspector routes."""
from datetime import UTC, datetime
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from homewatch.core.database import get_session
from homewatch.models import Inspector
from homewatch.schemas import InspectorIn, clean

router = APIRouter(prefix="/inspectors", tags=["inspectors"])


def _get_inspector(session: Session, inspector_id: UUID) -> Inspector:
    inspector = session.get(Inspector, inspector_id)
    if not inspector:
        raise HTTPException(status_code=404, detail="Inspector not found")
    return inspector


@router.get("")
async def list_inspectors(session: Session = Depends(get_session)):
    return session.exec(select(Inspector).order_by(Inspector.name)).all()


@router.post("", status_code=201)
async def create_inspector(body: InspectorIn, session: Session = Depends(get_session)):
    name = body.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Inspector name is required")

    inspector = Inspector(name=name, email=clean(body.email), phone=clean(body.phone))
    session.add(inspector)
    session.commit()
    session.refresh(inspector)
    return inspector


@router.put("/{inspector_id}")
async def update_inspector(
    inspector_id: UUID, body: InspectorIn, session: Session = Depends(get_session)
):
    inspector = _get_inspector(session, inspector_id)
    name = body.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Inspector name is required")

    inspector.name = name
    inspector.email = clean(body.email)
    inspector.phone = clean(body.phone)
    inspector.updated_at = datetime.now(UTC)
    session.add(inspector)
    session.commit()
    session.refresh(inspector)
    return inspector


@router.delete("/{inspector_id}")
async def delete_inspector(inspector_id: UUID, session: Session = Depends(get_session)):
    """Delete an inspector. Past checklists keep the inspector snapshot."""
    inspector = _get_inspector(session, inspector_id)
    session.delete(inspector)
    session.commit()
    return {"success": True, "id": inspector_id}
