"""
Error kinds raised across the reminder pipeline.

Per-item failures (one template, one occurrence) are caught by the sweep and
reported; they never abort a whole batch.
"""


class ReminderError(Exception):
    """Base class for reminder pipeline errors."""


class ClassificationError(ReminderError):
    """The intent classifier returned something we cannot act on."""


class StoreError(ReminderError):
    """A read or write against the record store failed."""


class DuplicateOccurrenceError(StoreError):
    """An occurrence for this (template, day) slot already exists."""


class DeliveryError(ReminderError):
    """The channel did not accept the message (includes timeouts)."""


class ValidationError(ReminderError):
    """A recurrence rule is malformed and must not be persisted."""
