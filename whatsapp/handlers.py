"""
Intent handlers: turn a validated intent into store writes and a reply text.
"""
import logging
from datetime import datetime
from typing import List, Sequence

from reminder_worker.errors import StoreError, ValidationError
from reminder_worker.materializer import materialize_today
from reminder_worker.recurrence import describe_schedule, local_today, next_nudge_slot
from server.schemas import (
    AutomationIntent,
    ChatIntent,
    ListIntent,
    OneTimeIntent,
    RecurringIntent,
)

logger = logging.getLogger(__name__)

HELP_TEXT = (
    "Hi! I can help you with reminders. Try:\n"
    "• One-time: \"Remind me to [task] at [time]\"\n"
    "• Recurring: \"Remind me to [task] every day at [time]\"\n"
    "• Automation: \"Set up my morning routine\"\n"
    "• View: \"What are my reminders?\""
)

AUTOMATIONS = [
    {"name": "💊 Morning Medicine", "message": "Take your morning medicine", "time": "08:00", "type": "daily"},
    {"name": "💧 Stay Hydrated", "message": "Drink a glass of water", "time": "10:00,14:00,18:00", "type": "daily"},
    {"name": "🏃 Exercise", "message": "Time for your workout!", "time": "18:00", "days": [1, 3, 5], "type": "weekly"},
    {"name": "🗑️ Trash Day", "message": "Take out the trash", "time": "19:00", "days": [2], "type": "weekly"},
]


def format_when(dt: datetime, tz) -> str:
    """`Mar 5 at 3:00 PM` in the user's time zone."""
    local = dt.astimezone(tz)
    return f"{local:%b} {local.day} at {local.strftime('%I:%M %p').lstrip('0')}"


def create_one_time(intent: OneTimeIntent, user_id: int, store, now: datetime, tz, nudge_times: Sequence[str]) -> str:
    when = intent.scheduled_time or next_nudge_slot(now, nudge_times, tz)
    try:
        store.insert_occurrence(user_id=user_id, message=intent.reminder_text, scheduled_at=when)
    except StoreError as e:
        logger.error(f"Failed to create reminder for user {user_id}: {e}")
        return "Sorry, I couldn't create that reminder."
    return f"✅ Reminder set for {format_when(when, tz)}: \"{intent.reminder_text}\""


def create_recurring(intent: RecurringIntent, user_id: int, store, now: datetime, tz) -> str:
    anchor = intent.scheduled_time.astimezone(tz).date() if intent.scheduled_time else local_today(now, tz)
    try:
        template_id = store.insert_template(
            user_id=user_id,
            message=intent.reminder_text,
            recurrence=intent.recurring_type,
            time_of_day=intent.recurring_time,
            weekdays=intent.recurring_days,
            anchor_date=anchor,
            created_at=now,
        )
        template = store.get_template(template_id)
    except ValidationError as e:
        logger.info(f"Rejected recurring rule from user {user_id}: {e}")
        return f"Sorry, I couldn't set that up: {e}"
    except StoreError as e:
        logger.error(f"Failed to create recurring reminder for user {user_id}: {e}")
        return "Sorry, I couldn't create that recurring reminder."

    # Today's slot; the sweep covers every later day
    try:
        materialize_today(store, template, now, tz)
    except StoreError as e:
        logger.warning(f"Template {template_id}: first occurrence deferred to the next sweep: {e}")

    return (
        f"🔄 Recurring reminder set!\n\"{intent.reminder_text}\"\n"
        f"Schedule: {describe_schedule(template)}"
    )


def list_reminders(user_id: int, store, tz) -> str:
    try:
        one_time = store.find_occurrences(user_id=user_id, delivered=False, one_time_only=True)
        recurring = store.list_templates(user_id=user_id)
    except StoreError as e:
        logger.error(f"Failed to list reminders for user {user_id}: {e}")
        return "Sorry, I couldn't load your reminders right now."

    lines: List[str] = []
    if one_time:
        lines.append("📋 One-time reminders:")
        for i, r in enumerate(one_time, start=1):
            lines.append(f"{i}. {r.message} - {format_when(r.scheduled_at, tz)}")

    if recurring:
        if lines:
            lines.append("")
        lines.append("🔄 Recurring reminders:")
        for i, r in enumerate(recurring, start=1):
            lines.append(f"{i}. {r.message} - {describe_schedule(r)}")

    if not lines:
        return "📭 No active reminders"
    return "\n".join(lines)


def automation_menu() -> str:
    response = "📋 Available Automations:\n\n"
    for i, auto in enumerate(AUTOMATIONS, start=1):
        response += f"{i}. {auto['name']}\n"
    response += "\nReply with numbers to activate (e.g., \"1,3\" for first and third)"
    return response


def handle_intent(intent, user_id: int, store, now: datetime, tz, nudge_times: Sequence[str]) -> str:
    if isinstance(intent, OneTimeIntent):
        return create_one_time(intent, user_id, store, now, tz, nudge_times)
    if isinstance(intent, RecurringIntent):
        return create_recurring(intent, user_id, store, now, tz)
    if isinstance(intent, ListIntent):
        return list_reminders(user_id, store, tz)
    if isinstance(intent, AutomationIntent):
        return automation_menu()
    if isinstance(intent, ChatIntent):
        return HELP_TEXT
    logger.warning(f"Unhandled intent type: {type(intent).__name__}")
    return HELP_TEXT
