"""Property model for watched homes."""

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Optional
from uuid import UUID, uuid4

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from homewatch.models.checklist import Checklist
    from homewatch.models.client import Client


class Property(SQLModel, table=True):
    """A home that receives watch visits.

    Deleting a property leaves its checklists in place with no property
    reference; their metadata snapshot still carries the address.

    Attributes:
        id: Unique identifier (UUID).
        user_id: Staff user who owns this record.
        client_id: Owning client, if any.
        name: Short label, defaults to the address.
        address: Street address.
    """
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: str | None = Field(default=None, index=True)
    client_id: UUID | None = Field(default=None, foreign_key="client.id")
    name: str
    address: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    # Relationships
    client: Optional["Client"] = Relationship(back_populates="properties")
    checklists: list["Checklist"] = Relationship(back_populates="property")
