"""Checklist item model for individual visit checks.

Items are written as a batch whenever a checklist is submitted or edited,
upserted by id, and carry the photos taken for that check.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional
from uuid import UUID, uuid4

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from homewatch.models.checklist import Checklist
    from homewatch.models.photo import ChecklistPhoto


class ItemStatus(str, Enum):
    DONE = "done"
    ISSUE = "issue"
    NA = "na"
    UNCHECKED = "unchecked"


class ChecklistItem(SQLModel, table=True):
    """A single line on a visit checklist.

    Attributes:
        id: Unique identifier (UUID).
        checklist_id: Foreign key to the parent Checklist.
        category: Free-form category tag. The known categories (exterior,
            interior, security, lanai_pool, final) control display order;
            anything else is shown after them.
        item_text: Label shown on the report.
        status: One of done, issue, na, unchecked.
        notes: Optional inspector notes for this line.
        photos: Photos attached to this line.
    """
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    checklist_id: UUID = Field(foreign_key="checklist.id", index=True)
    category: str
    item_text: str
    status: str = Field(default=ItemStatus.UNCHECKED.value)
    notes: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    # Relationships
    checklist: Optional["Checklist"] = Relationship(back_populates="items")
    photos: list["ChecklistPhoto"] = Relationship(
        back_populates="item",
        sa_relationship_kwargs={
            "cascade": "all, delete-orphan",
            "order_by": "ChecklistPhoto.created_at",
        },
    )
