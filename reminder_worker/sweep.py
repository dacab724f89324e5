"""
Reminder Sweep

One periodic pass: materialize today's occurrences from every template, then
deliver everything that is due (including slots materialized a moment ago).
Each step commits on its own, so an overlapping or repeated sweep is harmless.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

import pytz

from .config import config
from .dispatcher import dispatch_due
from .materializer import materialize_all
from .metrics import (
    OCCURRENCES_MATERIALIZED,
    REMINDERS_FAILED,
    REMINDERS_SENT,
    SWEEP_ERRORS,
    SWEEP_RUNS,
)

logger = logging.getLogger(__name__)


@dataclass
class SweepReport:
    materialized: int = 0
    sent: int = 0
    failed: int = 0
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "materialized": self.materialized,
            "sent": self.sent,
            "failed": self.failed,
            "errors": list(self.errors),
        }


def run_sweep(store, channel, now: Optional[datetime] = None, tz=None) -> SweepReport:
    """
    Run one sweep and return the aggregate report.

    Never raises: the timer calling this expects a bounded call that always
    completes, so every failure ends up in ``report.errors``.
    """
    now = now or datetime.now(pytz.utc)
    tz = tz or config.tz
    report = SweepReport()

    try:
        materialized = materialize_all(store, now, tz)
        report.materialized = materialized.created
        report.errors.extend(materialized.errors)
    except Exception as e:
        logger.error(f"Materialize step failed: {e}", exc_info=True)
        report.errors.append(f"materialize: {e}")

    try:
        dispatched = dispatch_due(store, channel, now)
        report.sent = dispatched.sent
        report.failed = dispatched.failed
        report.errors.extend(dispatched.errors)
    except Exception as e:
        logger.error(f"Dispatch step failed: {e}", exc_info=True)
        report.errors.append(f"dispatch: {e}")

    SWEEP_RUNS.inc()
    OCCURRENCES_MATERIALIZED.inc(report.materialized)
    REMINDERS_SENT.inc(report.sent)
    REMINDERS_FAILED.inc(report.failed)
    SWEEP_ERRORS.inc(len(report.errors))

    logger.info(
        f"✅ Sweep complete: {report.materialized} materialized, "
        f"{report.sent} sent, {report.failed} failed, {len(report.errors)} errors"
    )
    return report
