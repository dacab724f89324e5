"""
Scheduler Configuration for the Reminder Sweep

Defines the sweep cadence and job settings.
"""

# How often the sweep runs (in seconds)
SWEEP_INTERVAL_SECONDS = 60  # Every 1 minute

# Job identity, reused so a restart replaces instead of duplicating
SWEEP_JOB_ID = "reminder_sweep_job"

# Late ticks older than this are dropped; the next tick covers them
SWEEP_MISFIRE_GRACE_SECONDS = 30
