"""Request bodies for the JSON API."""
from datetime import date
from uuid import UUID

from sqlmodel import Field, SQLModel

from homewatch.models import ItemStatus


def clean(value: str | None) -> str | None:
    """Trim a string; blank becomes None."""
    if value is None:
        return None
    value = value.strip()
    return value or None


class ClientIn(SQLModel):
    name: str = Field(min_length=1)
    phone: str | None = None
    email: str | None = None


class PropertyIn(SQLModel):
    address: str = Field(min_length=1)
    name: str | None = None


class InspectorIn(SQLModel):
    name: str = Field(min_length=1)
    email: str | None = None
    phone: str | None = None


class ChecklistItemIn(SQLModel):
    """One checklist line. Existing items are matched by ``id``."""
    id: UUID | None = None
    category: str
    label: str = Field(min_length=1)
    status: ItemStatus = ItemStatus.UNCHECKED
    notes: str | None = None


class ChecklistSubmission(SQLModel):
    """A submitted or edited visit checklist.

    Blank snapshot fields are filled from the linked client, property or
    inspector when one is given.
    """
    client_id: UUID | None = None
    property_id: UUID | None = None
    inspector_id: UUID | None = None
    client_name: str | None = None
    address: str | None = None
    visit_date: date | None = None
    inspector: str | None = None
    inspector_email: str | None = None
    inspector_phone: str | None = None
    phone: str | None = None
    email: str | None = None
    garage_temp: str | None = None
    main_floor_temp: str | None = None
    second_floor_temp: str | None = None
    third_floor_temp: str | None = None
    comments: str | None = None
    items: list[ChecklistItemIn] = Field(default_factory=list)
