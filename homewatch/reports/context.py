"""Display values for a checklist report.

The metadata snapshot wins; the live property/client rows are only used
for fields the snapshot does not have.
"""
from dataclasses import dataclass, field
from datetime import date, datetime

from homewatch.models import Checklist
from homewatch.reports.metadata import ChecklistMetadata, resolve_temperatures


def format_visit_date(value: date | datetime | None) -> str:
    """Short US date without time, e.g. ``3/7/2025``; empty when unknown."""
    if value is None:
        return ""
    if isinstance(value, datetime):
        value = value.date()
    return f"{value.month}/{value.day}/{value.year}"


def _first(*values: str | None) -> str | None:
    for value in values:
        if value and value.strip():
            return value.strip()
    return None


@dataclass
class ReportContext:
    client_name: str | None = None
    address: str | None = None
    inspector: str | None = None
    visit_date: date | None = None
    client_phone: str | None = None
    client_email: str | None = None
    comments: str | None = None
    temperatures: dict[str, str | None] = field(default_factory=dict)

    @property
    def formatted_date(self) -> str:
        return format_visit_date(self.visit_date)

    @property
    def has_temperatures(self) -> bool:
        return any(value and value.strip() for value in self.temperatures.values())


def build_report_context(checklist: Checklist, meta: ChecklistMetadata) -> ReportContext:
    prop = checklist.property
    client = prop.client if prop else None

    visit_date = checklist.visit_date
    if visit_date is None and checklist.created_at is not None:
        visit_date = checklist.created_at.date()

    return ReportContext(
        client_name=_first(meta.client_name, client.name if client else None, prop.name if prop else None),
        address=_first(meta.address, prop.address if prop else None),
        inspector=_first(meta.inspector),
        visit_date=visit_date,
        client_phone=_first(meta.phone, client.phone if client else None),
        client_email=_first(meta.email, client.email if client else None),
        comments=_first(meta.comments),
        temperatures=resolve_temperatures(meta),
    )
