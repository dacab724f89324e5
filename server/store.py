"""
Record store for users, reminder templates and occurrences.

Every call opens its own short-lived session and commits (or rolls back)
before returning. Database failures surface as ``StoreError`` so callers can
tell "the query failed" apart from "the query found nothing".
"""
import logging
from datetime import date, datetime
from typing import Callable, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from reminder_worker.errors import DuplicateOccurrenceError, StoreError
from reminder_worker.recurrence import parse_time_of_day, validate_rule
from server.enums import RecurrenceKind
from server.models import Occurrence, ReminderTemplate, User

logger = logging.getLogger(__name__)

OCCURRENCE_FIELDS = {"message", "scheduled_at", "delivered", "delivered_at"}

# Postgres names the constraint; SQLite lists its columns
SLOT_CONFLICT_MARKERS = (
    "uq_occurrences_template_day",
    "occurrences.template_id, occurrences.slot_date",
)


def normalize_phone(address: str) -> str:
    return address.strip().lstrip("+")


def is_slot_conflict(error: IntegrityError) -> bool:
    message = str(getattr(error, "orig", error))
    return any(marker in message for marker in SLOT_CONFLICT_MARKERS)


class ReminderStore:
    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    # =========================================================
    # USERS
    # =========================================================
    def upsert_user(self, address: str) -> int:
        phone = normalize_phone(address)
        db = self._session_factory()
        try:
            user = db.query(User).filter(User.phone == phone).first()
            if user:
                return user.id
            user = User(phone=phone)
            db.add(user)
            db.commit()
            return user.id
        except IntegrityError:
            # Another request created the same number first
            db.rollback()
            user = db.query(User).filter(User.phone == phone).first()
            if user is None:
                raise StoreError(f"Could not upsert user {phone}")
            return user.id
        except SQLAlchemyError as e:
            db.rollback()
            raise StoreError(f"upsert_user failed: {e}") from e
        finally:
            db.close()

    def get_user_by_phone(self, address: str) -> Optional[User]:
        db = self._session_factory()
        try:
            return db.query(User).filter(User.phone == normalize_phone(address)).first()
        except SQLAlchemyError as e:
            raise StoreError(f"get_user_by_phone failed: {e}") from e
        finally:
            db.close()

    # =========================================================
    # OCCURRENCES
    # =========================================================
    def insert_occurrence(
        self,
        user_id: int,
        message: str,
        scheduled_at: datetime,
        template_id: Optional[int] = None,
        slot_date: Optional[date] = None,
    ) -> int:
        db = self._session_factory()
        try:
            occurrence = Occurrence(
                user_id=user_id,
                message=message,
                scheduled_at=scheduled_at,
                template_id=template_id,
                slot_date=slot_date,
                delivered=False,
            )
            db.add(occurrence)
            db.commit()
            return occurrence.id
        except IntegrityError as e:
            db.rollback()
            if is_slot_conflict(e):
                raise DuplicateOccurrenceError(
                    f"Occurrence for template {template_id} on {slot_date} already exists"
                ) from e
            raise StoreError(f"insert_occurrence failed: {e}") from e
        except SQLAlchemyError as e:
            db.rollback()
            raise StoreError(f"insert_occurrence failed: {e}") from e
        finally:
            db.close()

    def find_occurrences(
        self,
        template_id: Optional[int] = None,
        user_id: Optional[int] = None,
        delivered: Optional[bool] = None,
        scheduled_from: Optional[datetime] = None,
        scheduled_to: Optional[datetime] = None,
        one_time_only: bool = False,
    ) -> List[Occurrence]:
        """Occurrences matching every given filter; the time range is closed on both ends."""
        db = self._session_factory()
        try:
            query = db.query(Occurrence).options(joinedload(Occurrence.user))
            if template_id is not None:
                query = query.filter(Occurrence.template_id == template_id)
            if user_id is not None:
                query = query.filter(Occurrence.user_id == user_id)
            if delivered is not None:
                query = query.filter(Occurrence.delivered == delivered)
            if scheduled_from is not None:
                query = query.filter(Occurrence.scheduled_at >= scheduled_from)
            if scheduled_to is not None:
                query = query.filter(Occurrence.scheduled_at <= scheduled_to)
            if one_time_only:
                query = query.filter(Occurrence.template_id.is_(None))
            return query.order_by(Occurrence.scheduled_at, Occurrence.id).all()
        except SQLAlchemyError as e:
            raise StoreError(f"find_occurrences failed: {e}") from e
        finally:
            db.close()

    def find_due_occurrences(self, now: datetime) -> List[Occurrence]:
        return self.find_occurrences(delivered=False, scheduled_to=now)

    def update_occurrence(self, occurrence_id: int, **fields) -> None:
        unknown = set(fields) - OCCURRENCE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update occurrence fields: {sorted(unknown)}")

        db = self._session_factory()
        try:
            updated = db.query(Occurrence).filter(Occurrence.id == occurrence_id).update(
                fields, synchronize_session=False
            )
            if not updated:
                raise StoreError(f"Occurrence {occurrence_id} not found")
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise StoreError(f"update_occurrence failed: {e}") from e
        finally:
            db.close()

    def mark_delivered(self, occurrence_id: int, when: datetime) -> bool:
        """
        Flip a pending occurrence to delivered.

        Returns False when the row was already delivered, i.e. a concurrent
        sweep marked it first. A missing row raises ``StoreError``.
        """
        db = self._session_factory()
        try:
            updated = (
                db.query(Occurrence)
                .filter(Occurrence.id == occurrence_id, Occurrence.delivered.is_(False))
                .update({"delivered": True, "delivered_at": when}, synchronize_session=False)
            )
            if updated:
                db.commit()
                return True
            if db.query(Occurrence.id).filter(Occurrence.id == occurrence_id).first() is None:
                raise StoreError(f"Occurrence {occurrence_id} not found")
            return False
        except SQLAlchemyError as e:
            db.rollback()
            raise StoreError(f"mark_delivered failed: {e}") from e
        finally:
            db.close()

    # =========================================================
    # TEMPLATES
    # =========================================================
    def insert_template(
        self,
        user_id: int,
        message: str,
        recurrence,
        time_of_day,
        weekdays: Optional[List[int]] = None,
        anchor_date: Optional[date] = None,
        created_at: Optional[datetime] = None,
    ) -> int:
        """Validate and persist a recurring rule. Invalid rules raise ``ValidationError``."""
        days = validate_rule(recurrence, weekdays)
        kind = RecurrenceKind(getattr(recurrence, "value", recurrence))
        at = parse_time_of_day(time_of_day)

        db = self._session_factory()
        try:
            template = ReminderTemplate(
                user_id=user_id,
                message=message,
                recurrence=kind,
                weekdays=days,
                time_of_day=at,
                anchor_date=anchor_date,
            )
            if created_at is not None:
                template.created_at = created_at
            db.add(template)
            db.commit()
            return template.id
        except SQLAlchemyError as e:
            db.rollback()
            raise StoreError(f"insert_template failed: {e}") from e
        finally:
            db.close()

    def get_template(self, template_id: int) -> Optional[ReminderTemplate]:
        db = self._session_factory()
        try:
            return db.query(ReminderTemplate).filter(ReminderTemplate.id == template_id).first()
        except SQLAlchemyError as e:
            raise StoreError(f"get_template failed: {e}") from e
        finally:
            db.close()

    def list_templates(self, user_id: Optional[int] = None) -> List[ReminderTemplate]:
        db = self._session_factory()
        try:
            query = db.query(ReminderTemplate)
            if user_id is not None:
                query = query.filter(ReminderTemplate.user_id == user_id)
            return query.order_by(ReminderTemplate.id).all()
        except SQLAlchemyError as e:
            raise StoreError(f"list_templates failed: {e}") from e
        finally:
            db.close()


def default_store() -> ReminderStore:
    from server.database import SessionLocal
    return ReminderStore(SessionLocal)
