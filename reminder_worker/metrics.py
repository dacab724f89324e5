from prometheus_client import Counter

SWEEP_RUNS = Counter(
    "reminder_sweeps_total",
    "Total reminder sweeps run"
)

OCCURRENCES_MATERIALIZED = Counter(
    "reminder_occurrences_materialized_total",
    "Occurrences created from recurring templates"
)

REMINDERS_SENT = Counter(
    "reminders_sent_total",
    "Reminders delivered and marked as sent"
)

REMINDERS_FAILED = Counter(
    "reminders_failed_total",
    "Reminder deliveries that failed and will be retried"
)

SWEEP_ERRORS = Counter(
    "reminder_sweep_errors_total",
    "Per-item errors reported by reminder sweeps"
)
