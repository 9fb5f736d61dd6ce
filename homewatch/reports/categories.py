"""Checklist categories, status labels and the default visit template."""
from collections.abc import Iterable

CATEGORY_ORDER = ["exterior", "interior", "security", "lanai_pool", "final"]
DEFAULT_CATEGORY = "general"

STATUS_LABELS = {
    "done": "DONE",
    "issue": "ISSUE",
    "na": "N/A",
    "unchecked": "UNCHECKED",
}


def status_label(status: str | None) -> str:
    return STATUS_LABELS.get(status or "unchecked", STATUS_LABELS["unchecked"])


def format_category_label(value: str | None) -> str:
    """Human label for a category tag: ``lanai_pool`` -> ``Lanai / Pool``."""
    if not value:
        return "General"
    if value == "lanai_pool":
        return "Lanai / Pool"
    return " ".join(segment[:1].upper() + segment[1:] for segment in value.split("_"))


def order_categories(keys: Iterable[str]) -> list[str]:
    """Known categories in canonical order, then the rest in first-seen order."""
    seen = list(dict.fromkeys(keys))
    known = [key for key in CATEGORY_ORDER if key in seen]
    return known + [key for key in seen if key not in CATEGORY_ORDER]


# (id, category, label) for a standard home-watch visit
DEFAULT_ITEMS = [
    ("forced_entry", "exterior", "Visual check for evidence of forced entry, vandalism, theft or damage"),
    ("yard_maintenance", "exterior", "Visual inspection of yard/landscaping to assure regular maintenance"),
    ("outdoor_fixtures", "exterior", "Visual inspection of outdoor light fixtures, fencing, windows, screens, and mailbox"),
    ("hose_faucet", "exterior", "Check exterior hose and faucet for leaks"),
    ("remove_mail", "exterior", "Removal of newspapers, flyers, packages, mail and other evidence of non-occupancy"),
    ("roof_gutters", "exterior", "Visual inspection of roof and gutters from the ground"),
    ("interior_theft", "interior", "Inspect for signs of theft, vandalism, damage or other disturbance"),
    ("fuse_box", "interior", "Check fuse box for tripped breakers or evidence of power surge"),
    ("water_supply", "interior", "Turn on water supply if turned off"),
    ("hot_water_heater", "interior", "Visual check of hot water heater"),
    ("hvac", "interior", "Visual check of HVAC"),
    ("thermostat", "interior", "Check that thermostat is set at correct temperature"),
    ("temps", "interior", "Document interior temperature levels (Garage/Storage, Main Floor, 2nd Zone, 3rd Floor)"),
    ("secure_windows", "security", "Check that all windows and entryways are secure"),
    ("security_system", "security", "Check security system is set and working properly"),
    ("lighting", "interior", "Check interior and exterior lighting"),
    ("lights_operation", "interior", "Operation of all lights - interior and exterior"),
    ("water_damage", "interior", "Visual inspection of walls, ceilings, windows, tubs/showers for evidence of water damage, leakage, mold"),
    ("water_lines", "interior", "Water flex lines and drains - Run sinks and toilets"),
    ("garbage_disposal", "interior", "Garbage disposal(s)"),
    ("pests", "interior", "Inspect for visible evidence of insects, pests, rodents"),
    ("appliances", "interior", "Visual check of appliances"),
    ("freezers", "interior", "Check that freezers, refrigerators and wine coolers are working"),
    ("icemaker", "interior", 'Ensure icemakers are in "off" position'),
    ("clocks", "interior", "Check clocks settings - reset if needed"),
    ("lanai_screens", "lanai_pool", "Lanai/Pool - Screen door(s), screens, and cage structure"),
    ("lanai_water", "lanai_pool", "Lanai/Pool - Water level and condition"),
    ("lanai_equipment", "lanai_pool", "Lanai/Pool - Equipment"),
    ("final_hot_water", "final", "Turn off hot water heater"),
    ("final_water_supply", "final", "Turn off water supply"),
    ("final_lights", "final", "Turn off all lights"),
    ("final_security", "final", "Enable security system (if applicable) and lock all doors and windows"),
]
