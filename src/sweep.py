"""
Daily pickup/return reminder sweep.

Pulls every Order and User from the record store, joins them in memory,
and for each order whose pickup or return date is today (and whose marker
for that event is unset) texts the renter and the lister, then stamps the
marker so the event is not notified again.

Delivery is at-least-once: the marker is written after the sends, so a
crash in between means the next run texts again.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Callable, Dict, List, Optional, Tuple, Union

from config import SweepConfig
from messages import EVENTS, LISTER, PICKUP, RENTER, build_body
from records import Order, RecordError, User, order_from_record, user_from_record
from utils.logger import get_logger, mask_phone
from utils.phone import normalize_phone


@dataclass
class SweepResult:
    date: date
    pickup_reminders_sent: int = 0
    return_reminders_sent: int = 0

    def add(self, event: str, count: int) -> None:
        if event == PICKUP:
            self.pickup_reminders_sent += count
        else:
            self.return_reminders_sent += count

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "pickupRemindersSent": self.pickup_reminders_sent,
            "returnRemindersSent": self.return_reminders_sent,
        }


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def marker_timestamp(now: datetime) -> str:
    """ISO-8601 UTC with millisecond precision, e.g. 2025-06-01T14:02:11.123Z."""
    now = now.astimezone(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def resolve_today(
    config: SweepConfig,
    as_of: Union[None, str, date] = None,
    clock: Callable[[], datetime] = utcnow,
) -> date:
    """
    The calendar day being processed.

    Defaults to "now" in the configured reference zone; an explicit date
    (or "YYYY-MM-DD" string) wins. Raises ValueError for a malformed string.
    """
    if as_of is None:
        return clock().astimezone(config.tz).date()
    if isinstance(as_of, datetime):
        return as_of.date()
    if isinstance(as_of, date):
        return as_of
    return date.fromisoformat(str(as_of).strip())


def fetch_collections(store) -> Tuple[List[dict], List[dict]]:
    """Read orders and users concurrently; either failure propagates."""
    with ThreadPoolExecutor(max_workers=2) as pool:
        orders = pool.submit(store.list_orders)
        users = pool.submit(store.list_users)
        return orders.result(), users.result()


def build_user_lookup(records: List[dict], log: logging.Logger) -> Dict[str, User]:
    users: Dict[str, User] = {}
    for record in records:
        try:
            user = user_from_record(record)
        except RecordError as e:
            log.warning("sweep.user_skipped", extra={"error": str(e)})
            continue
        except Exception as e:
            log.error("sweep.user_skipped", extra={"error": str(e)}, exc_info=True)
            continue
        users[user.id] = user
    return users


def dispatchable_phone(user: Optional[User], country_code: str) -> Optional[str]:
    """The number to text, or None when the user has not opted in or has no usable phone."""
    if user is None or not user.sms_opt_in:
        return None
    return normalize_phone(user.phone, country_code)


class _Sweep:
    def __init__(self, config, store, sender, users, today, log, clock):
        self.config = config
        self.store = store
        self.sender = sender
        self.users = users
        self.today = today
        self.log = log
        self.clock = clock

    def marker_field(self, event: str) -> str:
        if event == PICKUP:
            return self.config.pickup_marker_field
        return self.config.return_marker_field

    def process_event(self, order: Order, event: str) -> int:
        """Send the reminders for one due event; returns messages sent."""
        due = order.due(event)
        if due is None or due != self.today:
            return 0

        if order.notified_at(event):
            self.log.debug(
                "sweep.already_notified",
                extra={"order_id": order.id, "event": event},
            )
            return 0

        sent = 0
        for role, user_id in ((RENTER, order.renter_id), (LISTER, order.lister_id)):
            phone = dispatchable_phone(
                self.users.get(user_id) if user_id else None,
                self.config.country_code,
            )
            if phone is None:
                self.log.info(
                    "sweep.recipient_skipped",
                    extra={"order_id": order.id, "event": event, "role": role, "user_id": user_id},
                )
                continue

            body = build_body(event, role, due, self.config.brand)
            if self.sender.send(phone, body):
                sent += 1
            else:
                self.log.warning(
                    "sweep.send_failed",
                    extra={"order_id": order.id, "event": event, "role": role, "to": mask_phone(phone)},
                )

        field = self.marker_field(event)
        try:
            self.store.patch_order(order.id, {field: marker_timestamp(self.clock())})
        except Exception as e:
            # Leaves the marker unset, so the next run on the same day resends.
            self.log.error(
                "sweep.write_back_failed",
                extra={"order_id": order.id, "event": event, "field": field, "error": str(e)},
            )

        self.log.info(
            "sweep.event_dispatched",
            extra={"order_id": order.id, "event": event, "sent": sent},
        )
        return sent


def run_sweep(
    config: SweepConfig,
    store,
    sender,
    as_of: Union[None, str, date] = None,
    logger: Optional[logging.Logger] = None,
    clock: Callable[[], datetime] = utcnow,
) -> SweepResult:
    """
    Run one reminder sweep and return how many messages were sent per event.

    `store` needs list_orders(), list_users() and patch_order(id, fields);
    `sender` needs send(to, body) -> bool. Fetch failures propagate and
    abort the run before anything is sent; everything after the join is
    best-effort per order.
    """
    log = logger or get_logger("sweep")
    today = resolve_today(config, as_of, clock)
    result = SweepResult(date=today)

    log.info("sweep.start", extra={"date": today.isoformat(), "timezone": config.timezone})

    order_records, user_records = fetch_collections(store)
    users = build_user_lookup(user_records, log)

    log.info(
        "sweep.collections_loaded",
        extra={"orders": len(order_records), "users": len(users)},
    )

    sweep = _Sweep(config, store, sender, users, today, log, clock)

    for record in order_records:
        try:
            order = order_from_record(
                record, config.pickup_marker_field, config.return_marker_field
            )
        except RecordError as e:
            log.warning("sweep.order_skipped", extra={"error": str(e)})
            continue
        except Exception as e:
            log.error("sweep.order_skipped", extra={"error": str(e)}, exc_info=True)
            continue

        if config.require_paid and not order.is_paid:
            continue

        for event in EVENTS:
            try:
                result.add(event, sweep.process_event(order, event))
            except Exception as e:
                log.error(
                    "sweep.order_failed",
                    extra={"order_id": order.id, "event": event, "error": str(e)},
                    exc_info=True,
                )

    log.info("sweep.complete", extra=result.to_dict())
    return result
