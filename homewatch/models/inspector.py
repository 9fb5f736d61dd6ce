"""Inspector model for staff who perform visits."""

from datetime import UTC, datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel


class Inspector(SQLModel, table=True):
    """A staff member who performs home-watch visits.

    Checklists copy the inspector's name and contact details into their
    metadata snapshot at submission time, so there is no foreign key from
    Checklist to Inspector.
    """
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: str | None = Field(default=None, index=True)
    name: str
    email: str | None = None
    phone: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
