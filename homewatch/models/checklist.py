"""Checklist model for a single home-watch visit.

This module defines the Checklist model. The ``notes`` column holds the
JSON metadata snapshot (client, property, inspector, temperatures,
comments and email delivery tracking); see
:mod:`homewatch.reports.metadata` for its structure.
"""

from datetime import UTC, date, datetime
from typing import TYPE_CHECKING, Optional
from uuid import UUID, uuid4

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from homewatch.models.item import ChecklistItem
    from homewatch.models.property import Property


class Checklist(SQLModel, table=True):
    """One inspection visit.

    Attributes:
        id: Unique identifier (UUID).
        property_id: Visited property, if still linked.
        user_id: Staff user who owns this record.
        visit_date: Date of arrival. Falls back to created_at for display.
        notes: JSON-encoded metadata snapshot taken at submission time.
            It is the source of truth for client/property/inspector
            details; the live relational rows are only a fallback.
        items: Checklist line entries.
    """
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    property_id: UUID | None = Field(default=None, foreign_key="property.id")
    user_id: str | None = Field(default=None, index=True)
    visit_date: date | None = None
    notes: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    # Relationships
    property: Optional["Property"] = Relationship(back_populates="checklists")
    items: list["ChecklistItem"] = Relationship(
        back_populates="checklist",
        sa_relationship_kwargs={
            "cascade": "all, delete-orphan",
            "order_by": "ChecklistItem.created_at",
        },
    )
