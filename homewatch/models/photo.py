"""Photo model for images attached to checklist items."""

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Optional
from uuid import UUID, uuid4

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from homewatch.models.item import ChecklistItem


class ChecklistPhoto(SQLModel, table=True):
    """A photo attached to a checklist item.

    Attributes:
        id: Unique identifier (UUID).
        checklist_item_id: Owning item.
        storage_path: Either ``<bucket>/<object/path>`` in object storage
            or an absolute http(s) URL.
    """
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    checklist_item_id: UUID = Field(foreign_key="checklistitem.id", index=True)
    storage_path: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    # Relationship
    item: Optional["ChecklistItem"] = Relationship(back_populates="photos")
