from homewatch.models.checklist import Checklist
from homewatch.models.client import Client
from homewatch.models.inspector import Inspector
from homewatch.models.item import ChecklistItem, ItemStatus
from homewatch.models.photo import ChecklistPhoto
from homewatch.models.property import Property

__all__ = [
    "Checklist",
    "ChecklistItem",
    "ChecklistPhoto",
    "Client",
    "Inspector",
    "ItemStatus",
    "Property",
]
