"""
Occurrence Materializer

Turns recurring templates into concrete, dated occurrences for the current
local day. Safe to re-run any number of times: the day-window check skips a
slot that already exists, and the store's UNIQUE (template_id, slot_date)
constraint rejects the insert when two overlapping sweeps both pass the check.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from .errors import DuplicateOccurrenceError, StoreError
from .recurrence import day_window, is_due_today, local_today, today_slot

logger = logging.getLogger(__name__)


@dataclass
class MaterializeResult:
    created: bool
    occurrence_id: Optional[int] = None


@dataclass
class MaterializeReport:
    created: int = 0
    errors: List[str] = field(default_factory=list)


def materialize_today(store, template, now: datetime, tz) -> MaterializeResult:
    """
    Ensure ``template`` has exactly one occurrence for ``now``'s local day.

    Raises ``StoreError`` when the store cannot be read or written; a lost
    insert race is not an error and comes back as ``created=False``.
    """
    today = local_today(now, tz)
    if not is_due_today(template, today):
        return MaterializeResult(created=False)

    slot = today_slot(template, today, tz)
    day_start, day_end = day_window(today, tz)
    existing = store.find_occurrences(
        template_id=template.id,
        scheduled_from=day_start,
        scheduled_to=day_end,
    )
    if existing:
        return MaterializeResult(created=False)

    try:
        occurrence_id = store.insert_occurrence(
            user_id=template.user_id,
            message=template.message,
            scheduled_at=slot,
            template_id=template.id,
            slot_date=today,
        )
    except DuplicateOccurrenceError:
        logger.info(f"Template {template.id}: slot for {today} already taken by a concurrent sweep")
        return MaterializeResult(created=False)

    logger.info(f"✅ Template {template.id}: materialized occurrence {occurrence_id} at {slot.isoformat()}")
    return MaterializeResult(created=True, occurrence_id=occurrence_id)


def materialize_all(store, now: datetime, tz) -> MaterializeReport:
    """Materialize today's slot for every template, isolating per-template failures."""
    report = MaterializeReport()

    try:
        templates = store.list_templates()
    except StoreError as e:
        logger.error(f"Failed to list reminder templates: {e}")
        report.errors.append(f"list_templates: {e}")
        return report

    for template in templates:
        try:
            result = materialize_today(store, template, now, tz)
        except StoreError as e:
            logger.error(f"❌ Template {template.id}: store error while materializing: {e}")
            report.errors.append(f"template {template.id}: {e}")
            continue
        except Exception as e:
            logger.error(f"❌ Template {template.id}: unexpected error while materializing: {e}", exc_info=True)
            report.errors.append(f"template {template.id}: {e}")
            continue

        if result.created:
            report.created += 1

    return report
