"""
Shipping address assignment from Loops contacts onto submission records.
"""
from dataclasses import dataclass
from enum import Enum

STATUS_FIELD = "Auto-assigned an address?"
AUTO_ASSIGNED = "Auto-assigned"
MANUALLY_ASSIGNED = "Manually assigned"

# Airtable field -> Loops contact property
ADDRESS_FIELDS = {
    "Address Line1": "addressLine1",
    "Address Line2": "addressLine2",
    "Address City": "addressCity",
    "Address State": "addressState",
    "Address Zip Code": "addressZipCode",
    "Address Country": "addressCountry",
}
# Line2 alone does not make an address
_PRESENCE_FIELDS = [f for f in ADDRESS_FIELDS if f != "Address Line2"]


class AddressOutcome(str, Enum):
    AUTO_ASSIGNED = "auto_assigned"
    MANUALLY_ASSIGNED = "manually_assigned"
    NO_ADDRESS = "no_address"


@dataclass
class AddressDecision:
    outcome: AddressOutcome
    fields: dict | None = None


def has_address(fields: dict) -> bool:
    return any(fields.get(name) for name in _PRESENCE_FIELDS)


def _contact_has_address(contact: dict) -> bool:
    return any(contact.get(ADDRESS_FIELDS[name]) for name in _PRESENCE_FIELDS)


def extract_loops_address(contacts: list[dict]) -> tuple[dict | None, bool]:
    """
    First contact carrying an address wins (address + birthday).
    Without one, fall back to the first contact with a birthday.
    Returns (fields, has_loops_address).
    """
    for contact in contacts:
        if _contact_has_address(contact):
            fields = {name: contact.get(prop) for name, prop in ADDRESS_FIELDS.items()}
            fields["Birthday"] = contact.get("birthday")
            return {k: v for k, v in fields.items() if v}, True
    for contact in contacts:
        if contact.get("birthday"):
            return {"Birthday": contact["birthday"]}, False
    return None, False


def decide_address(record_fields: dict, contacts: list[dict]) -> AddressDecision:
    airtable_has = has_address(record_fields)
    loops_fields, loops_has = extract_loops_address(contacts)

    if airtable_has:
        update = {STATUS_FIELD: MANUALLY_ASSIGNED}
        birthday = (loops_fields or {}).get("Birthday")
        if birthday and not record_fields.get("Birthday"):
            update["Birthday"] = birthday
        return AddressDecision(AddressOutcome.MANUALLY_ASSIGNED, update)
    if loops_has:
        return AddressDecision(AddressOutcome.AUTO_ASSIGNED, {**loops_fields, STATUS_FIELD: AUTO_ASSIGNED})
    return AddressDecision(AddressOutcome.NO_ADDRESS)
