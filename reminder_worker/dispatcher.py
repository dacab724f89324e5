"""
Due-Reminder Dispatcher

Delivers every undelivered occurrence whose scheduled time has passed and flips
it to delivered. A failed delivery leaves the row untouched so the next sweep
picks it up again; one bad occurrence never stops the rest of the batch.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List

from .errors import DeliveryError, StoreError

logger = logging.getLogger(__name__)


@dataclass
class DispatchReport:
    sent: int = 0
    failed: int = 0
    errors: List[str] = field(default_factory=list)


def format_reminder(message: str) -> str:
    return f"🔔 Reminder: {message}"


def dispatch_due(store, channel, now: datetime) -> DispatchReport:
    """Send all due occurrences through ``channel``. Never raises."""
    report = DispatchReport()

    try:
        due = store.find_due_occurrences(now)
    except StoreError as e:
        logger.error(f"Failed to fetch due occurrences: {e}")
        report.errors.append(f"find_due_occurrences: {e}")
        return report

    if due:
        logger.info(f"🔍 Dispatching {len(due)} due reminder(s)")

    for occurrence in due:
        phone = occurrence.user.phone if occurrence.user else None
        if not phone:
            logger.warning(f"Occurrence {occurrence.id} has no recipient, skipping")
            report.failed += 1
            report.errors.append(f"occurrence {occurrence.id}: no recipient")
            continue

        try:
            channel.deliver(phone, format_reminder(occurrence.message))
        except DeliveryError as e:
            logger.error(f"❌ Failed to deliver occurrence {occurrence.id} to {phone}: {e}")
            report.failed += 1
            report.errors.append(f"occurrence {occurrence.id}: {e}")
            continue
        except Exception as e:
            logger.error(f"❌ Unexpected error delivering occurrence {occurrence.id}: {e}", exc_info=True)
            report.failed += 1
            report.errors.append(f"occurrence {occurrence.id}: {e}")
            continue

        try:
            marked = store.mark_delivered(occurrence.id, now)
        except StoreError as e:
            # Sent but still marked pending: the next sweep will send it again
            logger.error(f"❌ Delivered occurrence {occurrence.id} but could not mark it: {e}")
            report.failed += 1
            report.errors.append(f"occurrence {occurrence.id}: delivered but not marked: {e}")
            continue

        if not marked:
            logger.warning(f"Occurrence {occurrence.id} was already delivered by a concurrent sweep")
            continue

        logger.info(f"✅ Sent reminder {occurrence.id} to {phone}")
        report.sent += 1

    return report
