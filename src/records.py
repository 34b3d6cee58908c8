"""
Canonical Order/User types and the adapter from raw Adalo records.

Adalo exposes collection properties under their display names ("Item Pick Up
Date", "Mobile Number") while older revisions of the app used snake_case or
camelCase names. All alias tolerance lives here so the sweep only ever sees
Order and User.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, Iterable, Optional

ORDER_ALIASES = {
    "pickup_due": ("Item Pick Up Date", "pickup_date", "pickupDueDate", "Pickup Date"),
    "return_due": ("Return Due Date", "return_date", "returnDueDate", "Return Date"),
    "pickup_notified_at": ("pickup_sms_sent_at", "pickupNotifiedAt"),
    "return_notified_at": ("return_sms_sent_at", "returnNotifiedAt"),
    "renter": ("Renter", "renter", "renter_id", "renterRef"),
    "lister": ("Lister", "lister", "lister_id", "listerRef"),
    "is_paid": ("isPaid", "is_paid", "Paid"),
}

USER_ALIASES = {
    "phone": ("Mobile Number", "phone", "phone_number", "phoneNumber", "Phone Number"),
    "sms_opt_in": ("sms_opt_in", "smsOptIn", "SMS Opt In"),
}


class RecordError(ValueError):
    """A store record that cannot be mapped (e.g. it has no id)."""


@dataclass
class User:
    id: str
    phone: Optional[str] = None
    sms_opt_in: bool = False


@dataclass
class Order:
    id: str
    renter_id: Optional[str] = None
    lister_id: Optional[str] = None
    pickup_due: Optional[date] = None
    return_due: Optional[date] = None
    pickup_notified_at: Optional[str] = None
    return_notified_at: Optional[str] = None
    is_paid: bool = False

    def due(self, event: str) -> Optional[date]:
        return self.pickup_due if event == "pickup" else self.return_due

    def notified_at(self, event: str) -> Optional[str]:
        return self.pickup_notified_at if event == "pickup" else self.return_notified_at


def _pick(record: Dict[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        if key in record and record[key] not in (None, ""):
            return record[key]
    return None


def _record_id(record: Dict[str, Any]) -> str:
    if not isinstance(record, dict):
        raise RecordError(f"record is not an object: {type(record).__name__}")
    value = _pick(record, ("id", "_id"))
    if value is None:
        raise RecordError(f"record has no id: keys={sorted(record)[:10]}")
    return str(value)


def first_ref(value: Any) -> Optional[str]:
    """
    Normalize a relationship value to "first id or None".

    Adalo delivers relationships as a bare id, a list of ids, or (expanded)
    a list of objects with an "id".
    """
    if isinstance(value, (list, tuple)):
        if not value:
            return None
        value = value[0]
    if isinstance(value, dict):
        value = value.get("id")
    if value is None or value == "":
        return None
    return str(value)


def calendar_day(value: Any) -> Optional[date]:
    """
    The calendar-day part of a date-ish value, ignoring time and zone.

    "2025-06-01T23:00:00Z" → date(2025, 6, 1). Malformed input → None.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def _truthy(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return value is True


def _marker(value: Any) -> Optional[str]:
    if value in (None, "", False):
        return None
    return str(value)


def user_from_record(record: Dict[str, Any]) -> User:
    user_id = _record_id(record)
    phone = _pick(record, USER_ALIASES["phone"])
    return User(
        id=user_id,
        phone=str(phone) if phone is not None else None,
        sms_opt_in=_truthy(_pick(record, USER_ALIASES["sms_opt_in"])),
    )


def order_from_record(
    record: Dict[str, Any],
    pickup_marker_field: str = "pickup_sms_sent_at",
    return_marker_field: str = "return_sms_sent_at",
) -> Order:
    """Map a raw order; the configured marker fields take precedence over aliases."""
    pickup_markers = (pickup_marker_field,) + ORDER_ALIASES["pickup_notified_at"]
    return_markers = (return_marker_field,) + ORDER_ALIASES["return_notified_at"]

    return Order(
        id=_record_id(record),
        renter_id=first_ref(_pick(record, ORDER_ALIASES["renter"])),
        lister_id=first_ref(_pick(record, ORDER_ALIASES["lister"])),
        pickup_due=calendar_day(_pick(record, ORDER_ALIASES["pickup_due"])),
        return_due=calendar_day(_pick(record, ORDER_ALIASES["return_due"])),
        pickup_notified_at=_marker(_pick(record, pickup_markers)),
        return_notified_at=_marker(_pick(record, return_markers)),
        is_paid=_truthy(_pick(record, ORDER_ALIASES["is_paid"])),
    )
