from datetime import time

from reminder_worker.errors import ClassificationError, StoreError
from server.enums import RecurrenceKind
from server.schemas import AutomationIntent, ChatIntent, ListIntent, OneTimeIntent, RecurringIntent
from whatsapp.handlers import HELP_TEXT, format_when
from whatsapp.webhook import extract_message, handle_webhook
from tests.helpers import BERLIN, FakeChannel, berlin

NOW = berlin(2024, 6, 5, 10, 0)  # Wednesday
SENDER = "4915112345678"
NUDGES = ["09:00", "18:00"]


def text_payload(text, sender=SENDER):
    return {
        "entry": [{
            "changes": [{
                "value": {
                    "contacts": [{"wa_id": sender}],
                    "messages": [{"from": sender, "type": "text", "text": {"body": text}}],
                }
            }]
        }]
    }


def fixed(intent):
    """Classifier stub that always answers with `intent`."""
    calls = []

    def classify(text, now, tz):
        calls.append(text)
        return intent

    classify.calls = calls
    return classify


def run(store, channel, classifier, text="hello"):
    return handle_webhook(text_payload(text), store, classifier, channel, now=NOW, tz=BERLIN, nudge_times=NUDGES)


def test_format_when(tz):
    assert format_when(berlin(2024, 6, 5, 18, 0), tz) == "Jun 5 at 6:00 PM"


# =========================================================
# PAYLOAD EXTRACTION
# =========================================================

def test_extract_text_message():
    assert extract_message(text_payload("  hi  ")) == (SENDER, "hi")


def test_extract_button_and_list_replies():
    body = text_payload("x")
    msg = body["entry"][0]["changes"][0]["value"]["messages"][0]
    del msg["text"]
    msg["button"] = {"text": "Yes"}
    assert extract_message(body) == (SENDER, "Yes")

    del msg["button"]
    msg["interactive"] = {"list_reply": {"title": "Morning Medicine"}}
    assert extract_message(body) == (SENDER, "Morning Medicine")


def test_status_callbacks_are_ignored():
    body = {"entry": [{"changes": [{"value": {"statuses": [{"status": "delivered"}]}}]}]}
    assert extract_message(body) is None
    assert extract_message({}) is None


def test_status_callback_sends_nothing(store, channel):
    body = {"entry": [{"changes": [{"value": {"statuses": [{"status": "read"}]}}]}]}
    assert handle_webhook(body, store, fixed(ChatIntent(action="CHAT")), channel, now=NOW) == ({"status": "ok"}, 200)
    assert channel.sent == []


def test_malformed_payload_is_acknowledged(store, channel):
    assert handle_webhook({"entry": "nope"}, store, fixed(None), channel, now=NOW) == ({"status": "ok"}, 200)
    assert channel.sent == []


# =========================================================
# INTENTS
# =========================================================

def test_one_time_with_time(store, channel):
    intent = OneTimeIntent(action="CREATE_REMINDER", reminder_text="call mom", scheduled_time=berlin(2024, 6, 5, 15, 0))

    assert run(store, channel, fixed(intent)) == ({"status": "ok"}, 200)

    [occurrence] = store.find_occurrences()
    assert occurrence.message == "call mom"
    assert occurrence.scheduled_at == berlin(2024, 6, 5, 15, 0)
    assert occurrence.template_id is None
    assert channel.sent == [(SENDER, '✅ Reminder set for Jun 5 at 3:00 PM: "call mom"')]


def test_one_time_without_time_uses_next_nudge(store, channel):
    intent = OneTimeIntent(action="CREATE_REMINDER", reminder_text="buy milk")

    run(store, channel, fixed(intent))

    [occurrence] = store.find_occurrences()
    assert occurrence.scheduled_at == berlin(2024, 6, 5, 18, 0)


def test_recurring_materializes_today(store, channel):
    intent = RecurringIntent(
        action="CREATE_RECURRING",
        reminder_text="exercise",
        recurring_type=RecurrenceKind.weekly,
        recurring_days=[1, 3, 5],
        recurring_time=time(18, 0),
    )

    run(store, channel, fixed(intent))

    [template] = store.list_templates()
    assert template.weekdays == [1, 3, 5]
    [occurrence] = store.find_occurrences(template_id=template.id)
    assert occurrence.scheduled_at == berlin(2024, 6, 5, 18, 0)
    assert channel.sent[0][1] == '🔄 Recurring reminder set!\n"exercise"\nSchedule: Mon, Wed, Fri at 18:00'


def test_recurring_past_slot_still_materializes_today(store, channel):
    intent = RecurringIntent(
        action="CREATE_RECURRING",
        reminder_text="medicine",
        recurring_type=RecurrenceKind.daily,
        recurring_time=time(8, 0),
    )

    run(store, channel, fixed(intent))

    [template] = store.list_templates()
    [occurrence] = store.find_occurrences(template_id=template.id)
    assert occurrence.scheduled_at == berlin(2024, 6, 5, 8, 0)
    assert occurrence.delivered is False


def test_list_reminders(store, channel, make_template, user_id):
    store.insert_occurrence(user_id=user_id, message="call mom", scheduled_at=berlin(2024, 6, 5, 15, 0))
    make_template(recurrence="daily", time_of_day="08:00", message="medicine")

    run(store, channel, fixed(ListIntent(action="LIST_REMINDERS")))

    reply = channel.sent[0][1]
    assert "📋 One-time reminders:\n1. call mom - Jun 5 at 3:00 PM" in reply
    assert "🔄 Recurring reminders:\n1. medicine - daily at 08:00" in reply


def test_list_reminders_empty(store, channel):
    run(store, channel, fixed(ListIntent(action="LIST_REMINDERS")))
    assert channel.sent == [(SENDER, "📭 No active reminders")]


def test_automation_menu(store, channel):
    run(store, channel, fixed(AutomationIntent(action="SETUP_AUTOMATION")))
    assert channel.sent[0][1].startswith("📋 Available Automations:")


def test_chat_gets_help(store, channel):
    run(store, channel, fixed(ChatIntent(action="CHAT")))
    assert channel.sent == [(SENDER, HELP_TEXT)]


# =========================================================
# FAILURES
# =========================================================

def test_classification_failure_gets_help(store, channel):
    def broken(text, now, tz):
        raise ClassificationError("model unavailable")

    assert run(store, channel, broken) == ({"status": "ok"}, 200)
    assert channel.sent == [(SENDER, HELP_TEXT)]


def test_store_failure_gets_apology(channel):
    class DownStore:
        def upsert_user(self, address):
            raise StoreError("database down")

    classifier = fixed(ChatIntent(action="CHAT"))
    assert run(DownStore(), channel, classifier) == ({"status": "ok"}, 200)
    assert classifier.calls == []
    assert "Sorry" in channel.sent[0][1]


def test_reply_failure_is_swallowed(store):
    channel = FakeChannel(fail_times=1)
    assert run(store, channel, fixed(ChatIntent(action="CHAT"))) == ({"status": "ok"}, 200)
    assert channel.attempts == 1


def test_empty_text_skips_classifier(store, channel):
    classifier = fixed(ChatIntent(action="CHAT"))
    run(store, channel, classifier, text="   ")
    assert classifier.calls == []
    assert channel.sent == [(SENDER, HELP_TEXT)]
