import enum
# =========================================================
# ENUMS
# =========================================================
class RecurrenceKind(str, enum.Enum):
    daily = "daily"
    weekdays = "weekdays"
    weekly = "weekly"
    monthly = "monthly"

class IntentAction(str, enum.Enum):
    create_reminder = "CREATE_REMINDER"
    create_recurring = "CREATE_RECURRING"
    list_reminders = "LIST_REMINDERS"
    setup_automation = "SETUP_AUTOMATION"
    chat = "CHAT"
