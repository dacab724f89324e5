from datetime import datetime
import pytz
from sqlalchemy import (
    Column, Integer, String, Text, Boolean, DateTime, Date, Time, JSON,
    ForeignKey, Enum as SQLEnum, Index, UniqueConstraint
)
from sqlalchemy.orm import relationship
from sqlalchemy.types import TypeDecorator
from server.database import Base
from server.enums import RecurrenceKind

class UTCDateTime(TypeDecorator):
    """Stores naive UTC, hands back aware UTC. Naive input is taken as UTC."""
    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(pytz.utc).replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            value = pytz.utc.localize(value)
        return value

# =========================================================
# DATABASE MODELS
# =========================================================
class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True)
    phone = Column(String(20), unique=True, nullable=False)
    created_at = Column(UTCDateTime, default=datetime.utcnow)

    templates = relationship("ReminderTemplate", back_populates="user")
    occurrences = relationship("Occurrence", back_populates="user")

class ReminderTemplate(Base):
    __tablename__ = "reminder_templates"
    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    message = Column(Text, nullable=False)
    recurrence = Column(SQLEnum(RecurrenceKind), nullable=False)
    weekdays = Column(JSON)  # 1=Mon .. 7=Sun, weekly only
    time_of_day = Column(Time, nullable=False)
    anchor_date = Column(Date)  # day-of-month source for monthly
    created_at = Column(UTCDateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="templates")
    occurrences = relationship("Occurrence", back_populates="template")

class Occurrence(Base):
    __tablename__ = "occurrences"
    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    template_id = Column(Integer, ForeignKey("reminder_templates.id", ondelete="SET NULL"))
    message = Column(Text, nullable=False)
    scheduled_at = Column(UTCDateTime, nullable=False, index=True)
    slot_date = Column(Date)  # local calendar day, materialized rows only
    delivered = Column(Boolean, nullable=False, default=False)
    delivered_at = Column(UTCDateTime)
    created_at = Column(UTCDateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="occurrences")
    template = relationship("ReminderTemplate", back_populates="occurrences")

    __table_args__ = (
        # One slot per template per local day; NULLs (one-time rows) never collide
        UniqueConstraint("template_id", "slot_date", name="uq_occurrences_template_day"),
        Index("ix_occurrences_pending", "delivered", "scheduled_at"),
    )
