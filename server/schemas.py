from typing import Annotated, List, Literal, Optional, Union
from datetime import date, datetime, time
from pydantic import BaseModel, Field, TypeAdapter, field_validator, model_validator
from server.enums import RecurrenceKind

# =========================================================
# INTENT SCHEMAS (classifier output)
# =========================================================

class OneTimeIntent(BaseModel):
    action: Literal["CREATE_REMINDER"]
    reminder_text: str = Field(min_length=1)
    scheduled_time: Optional[datetime] = None

class RecurringIntent(BaseModel):
    action: Literal["CREATE_RECURRING"]
    reminder_text: str = Field(min_length=1)
    recurring_type: RecurrenceKind
    recurring_days: Optional[List[int]] = None
    recurring_time: time
    scheduled_time: Optional[datetime] = None  # anchor for monthly

    @field_validator("recurring_time", mode="before")
    @classmethod
    def parse_hhmm(cls, v):
        if isinstance(v, str) and v.count(":") == 1:
            hours, minutes = v.strip().split(":")
            return time(int(hours), int(minutes))
        return v

    @model_validator(mode="after")
    def check_weekdays(self):
        if self.recurring_type == RecurrenceKind.weekly:
            if not self.recurring_days:
                raise ValueError("weekly reminders need recurring_days")
            if any(d < 1 or d > 7 for d in self.recurring_days):
                raise ValueError("recurring_days must be between 1 (Mon) and 7 (Sun)")
        else:
            self.recurring_days = None
        return self

class ListIntent(BaseModel):
    action: Literal["LIST_REMINDERS"]

class AutomationIntent(BaseModel):
    action: Literal["SETUP_AUTOMATION"]

class ChatIntent(BaseModel):
    action: Literal["CHAT"]

Intent = Annotated[
    Union[OneTimeIntent, RecurringIntent, ListIntent, AutomationIntent, ChatIntent],
    Field(discriminator="action"),
]

intent_adapter = TypeAdapter(Intent)

# =========================================================
# API SCHEMAS
# =========================================================

class SweepResponse(BaseModel):
    materialized: int
    sent: int
    failed: int
    errors: List[str] = []

class OccurrenceResponse(BaseModel):
    id: int
    message: str
    scheduled_at: datetime
    delivered: bool
    template_id: Optional[int]

    class Config:
        from_attributes = True

class TemplateResponse(BaseModel):
    id: int
    message: str
    recurrence: RecurrenceKind
    weekdays: Optional[List[int]]
    time_of_day: time
    anchor_date: Optional[date]
    created_at: datetime

    class Config:
        from_attributes = True

class ActiveRemindersResponse(BaseModel):
    phone: str
    one_time: List[OccurrenceResponse] = []
    recurring: List[TemplateResponse] = []
