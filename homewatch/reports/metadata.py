"""Checklist metadata snapshot stored as JSON in ``Checklist.notes``.

The snapshot freezes client, property and inspector details at submission
time and also carries temperature readings, comments and email delivery
tracking. Keys are camelCase on the wire. Unknown keys are kept so that a
read-modify-write never drops data written by another version.

Temperatures exist in two places: the nested ``temperatures`` object,
which wins, and the older flat ``garageTemp``/``mainFloorTemp``/... keys,
which are only read as a fallback.
"""
import json
import logging
from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

# zone name -> (nested attribute, legacy flat attribute)
TEMPERATURE_ZONES = {
    "garage": ("garage", "garage_temp"),
    "mainFloor": ("main_floor", "main_floor_temp"),
    "secondFloor": ("second_floor", "second_floor_temp"),
    "thirdFloor": ("third_floor", "third_floor_temp"),
}


class Temperatures(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        coerce_numbers_to_str=True,
    )

    garage: str | None = None
    main_floor: str | None = None
    second_floor: str | None = None
    third_floor: str | None = None


class ChecklistMetadata(BaseModel):
    """Structured view of a checklist's metadata blob."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        coerce_numbers_to_str=True,
    )

    schema_version: int = SCHEMA_VERSION
    client_id: str | None = None
    property_id: str | None = None
    client_name: str | None = None
    address: str | None = None
    inspector: str | None = None
    inspector_id: str | None = None
    inspector_email: str | None = None
    inspector_phone: str | None = None
    phone: str | None = None
    email: str | None = None
    garage_temp: str | None = None
    main_floor_temp: str | None = None
    second_floor_temp: str | None = None
    third_floor_temp: str | None = None
    temperatures: Temperatures | None = None
    comments: str | None = None
    item_summary: str | None = None
    email_sent_at: str | None = None
    email_sent_to: str | None = None


def load_raw(raw: str | None) -> dict:
    """Stored blob as a plain dict; ``{}`` when it is not a JSON object."""
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except ValueError as e:
        logger.warning(f"Failed to parse checklist metadata, using empty record: {e}")
        return {}
    if not isinstance(data, dict):
        logger.warning("Checklist metadata is not a JSON object, using empty record")
        return {}
    return data


def decode(raw: str | None) -> ChecklistMetadata:
    """Parse a metadata blob.

    A key whose value has the wrong type is ignored on its own; the rest of
    the record is still read.
    """
    data = load_raw(raw)
    try:
        return ChecklistMetadata.model_validate(data)
    except ValidationError:
        pass

    usable = {}
    for key, value in data.items():
        try:
            ChecklistMetadata.model_validate({key: value})
        except ValidationError:
            logger.warning(f"Ignoring checklist metadata key {key!r} with unexpected value {value!r}")
            continue
        usable[key] = value
    return ChecklistMetadata.model_validate(usable)


def encode(record: ChecklistMetadata, base: str | None = None) -> str:
    """Serialize a record; absent values are written as explicit nulls.

    With ``base`` (the stored blob) only the keys set on ``record`` are
    written over it, so stored keys the record could not read are kept.
    """
    if not base:
        return record.model_dump_json(by_alias=True)
    data = load_raw(base)
    data.update(record.model_dump(mode="json", by_alias=True, exclude_unset=True))
    return json.dumps(data, ensure_ascii=False, separators=(",", ":"))


def stamp_delivery(raw: str | None, sent_at: str, recipient: str) -> str:
    """Stored blob with email tracking merged in; every other key untouched."""
    data = load_raw(raw)
    data["emailSentAt"] = sent_at
    data["emailSentTo"] = recipient
    return json.dumps(data, ensure_ascii=False, separators=(",", ":"))


def _present(value: str | None) -> str | None:
    if value is None or value.strip() == "":
        return None
    return value


def resolve_temperature(record: ChecklistMetadata, zone: str) -> str | None:
    """Reading for ``zone``: nested value, else legacy flat value, else None."""
    try:
        nested_attr, legacy_attr = TEMPERATURE_ZONES[zone]
    except KeyError:
        raise ValueError(f"Unknown temperature zone: {zone}") from None

    if record.temperatures is not None:
        nested = _present(getattr(record.temperatures, nested_attr))
        if nested is not None:
            return nested
    return _present(getattr(record, legacy_attr))


def resolve_temperatures(record: ChecklistMetadata) -> dict[str, str | None]:
    return {zone: resolve_temperature(record, zone) for zone in TEMPERATURE_ZONES}


def with_temperatures(record: ChecklistMetadata, readings: dict[str, str | None]) -> ChecklistMetadata:
    """Write readings to both the nested object and the legacy flat keys."""
    cleaned = {zone: _present((readings.get(zone) or "").strip()) for zone in TEMPERATURE_ZONES}
    nested = Temperatures(**{TEMPERATURE_ZONES[zone][0]: value for zone, value in cleaned.items()})
    flat = {TEMPERATURE_ZONES[zone][1]: value for zone, value in cleaned.items()}
    return record.model_copy(update={"temperatures": nested, **flat})


def build_item_summary(items: Iterable[tuple[str, str, str | None]]) -> str:
    """One ``label: STATUS[ - notes]`` line per (label, status, notes)."""
    lines = []
    for label, status, notes in items:
        line = f"{label}: {(status or 'unchecked').upper()}"
        if notes:
            line += f" - {notes}"
        lines.append(line)
    return "\n".join(lines)
