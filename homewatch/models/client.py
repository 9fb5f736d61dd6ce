"""Client model for home-watch customers.

A client owns one or more properties. Client contact details are the last
fallback when a checklist's metadata snapshot has no email or phone.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from homewatch.models.property import Property


class Client(SQLModel, table=True):
    """A home-watch customer.

    Attributes:
        id: Unique identifier (UUID).
        user_id: Staff user who owns this record.
        name: Display name.
        phone: Contact phone, if known.
        email: Contact email, used as the report recipient when the
            checklist snapshot has none.
        properties: Homes watched for this client.
    """
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: str | None = Field(default=None, index=True)
    name: str
    phone: str | None = None
    email: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    # Relationships
    properties: list["Property"] = Relationship(
        back_populates="client",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )
