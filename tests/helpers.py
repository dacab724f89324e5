from datetime import datetime

import pytz

from reminder_worker.errors import DeliveryError

BERLIN = pytz.timezone("Europe/Berlin")


def berlin(year, month, day, hour=0, minute=0):
    """Aware Europe/Berlin datetime."""
    return BERLIN.localize(datetime(year, month, day, hour, minute))


class FakeChannel:
    """Records deliveries; fails the first `fail_times` calls and any address in `fail_for`."""

    def __init__(self, fail_times=0, fail_for=()):
        self.sent = []
        self.attempts = 0
        self.fail_times = fail_times
        self.fail_for = set(fail_for)

    def deliver(self, address, text):
        self.attempts += 1
        if address in self.fail_for:
            raise DeliveryError(f"{address} unreachable")
        if self.fail_times > 0:
            self.fail_times -= 1
            raise DeliveryError("channel unavailable")
        self.sent.append((address, text))


class Template:
    """Minimal rule object for evaluator tests."""

    def __init__(self, recurrence, time_of_day="08:00", weekdays=None, anchor_date=None):
        self.recurrence = recurrence
        self.time_of_day = time_of_day
        self.weekdays = weekdays
        self.anchor_date = anchor_date
