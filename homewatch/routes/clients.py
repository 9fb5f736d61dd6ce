"""Client and property routes."""
import logging
from datetime import UTC, datetime
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from homewatch.core.database import get_session
from homewatch.models import Client, Property
from homewatch.schemas import ClientIn, PropertyIn, clean

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/clients", tags=["clients"])


def _client_out(client: Client) -> dict:
    return {
        "id": client.id,
        "name": client.name,
        "phone": client.phone,
        "email": client.email,
        "properties": [
            {"id": prop.id, "name": prop.name, "address": prop.address}
            for prop in client.properties
        ],
    }


def _get_client(session: Session, client_id: UUID) -> Client:
    client = session.get(Client, client_id)
    if not client:
        raise HTTPException(status_code=404, detail="Client not found")
    return client


@router.get("")
async def list_clients(session: Session = Depends(get_session)):
    """All clients with their properties, by name."""
    clients = session.exec(select(Client).order_by(Client.name)).all()
    return [_client_out(client) for client in clients]


@router.post("", status_code=201)
async def create_client(body: ClientIn, session: Session = Depends(get_session)):
    name = body.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Client name is required")

    client = Client(name=name, phone=clean(body.phone), email=clean(body.email))
    session.add(client)
    session.commit()
    session.refresh(client)
    logger.info(f"Created client {client.id}")
    return _client_out(client)


@router.get("/{client_id}")
async def get_client(client_id: UUID, session: Session = Depends(get_session)):
    return _client_out(_get_client(session, client_id))


@router.put("/{client_id}")
async def update_client(client_id: UUID, body: ClientIn, session: Session = Depends(get_session)):
    client = _get_client(session, client_id)
    name = body.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Client name is required")

    client.name = name
    client.phone = clean(body.phone)
    client.email = clean(body.email)
    client.updated_at = datetime.now(UTC)
    session.add(client)
    session.commit()
    session.refresh(client)
    return _client_out(client)


@router.delete("/{client_id}")
async def delete_client(client_id: UUID, session: Session = Depends(get_session)):
    """
    Delete a client and its properties.

    Checklists for those properties are kept and lose their property link;
    their metadata snapshot still names the client and address.
    """
    client = _get_client(session, client_id)
    for prop in client.properties:
        for checklist in prop.checklists:
            checklist.property_id = None
            session.add(checklist)
    session.delete(client)
    session.commit()
    logger.info(f"Deleted client {client_id}")
    return {"success": True, "id": client_id}


@router.post("/{client_id}/properties", status_code=201)
async def add_property(client_id: UUID, body: PropertyIn, session: Session = Depends(get_session)):
    """Add a property; its name defaults to the address."""
    client = _get_client(session, client_id)
    address = body.address.strip()
    if not address:
        raise HTTPException(status_code=400, detail="Property address is required")

    prop = Property(client_id=client.id, name=clean(body.name) or address, address=address)
    session.add(prop)
    session.commit()
    session.refresh(prop)
    return {"id": prop.id, "name": prop.name, "address": prop.address, "client_id": prop.client_id}


@router.delete("/{client_id}/properties/{property_id}")
async def delete_property(client_id: UUID, property_id: UUID, session: Session = Depends(get_session)):
    prop = session.get(Property, property_id)
    if not prop or prop.client_id != client_id:
        raise HTTPException(status_code=404, detail="Property not found")

    for checklist in prop.checklists:
        checklist.property_id = None
        session.add(checklist)
    session.delete(prop)
    session.commit()
    return {"success": True, "id": property_id}
