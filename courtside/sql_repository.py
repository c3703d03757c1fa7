from datetime import date, datetime, time
from typing import Callable, Dict, Iterable, List, Optional

from sqlalchemy import and_, or_
from sqlalchemy.exc import IntegrityError

from courtside.database import DatabaseManager, get_db
from courtside.exceptions import ConflictError, NotFound
from courtside.models import AvailabilitySlot, MatchInvite, Message, User
from courtside.models.availability import PrivacyLevel
from courtside.models.match_invite import InviteStatus
from courtside.realtime import ChangeEvent, ChangeFeed, ChangeType, Subscription
from courtside.repository import SchedulingRepository
from courtside.utils.logger import get_logger

logger = get_logger(__name__)

AVAILABILITY_TABLE = AvailabilitySlot.__tablename__
INVITES_TABLE = MatchInvite.__tablename__


def _overlapping_open_slots(db, user_id: str, on: date, start: time, end: time,
                            exclude_id: Optional[str] = None):
    query = db.query(AvailabilitySlot).filter(
        AvailabilitySlot.user_id == user_id,
        AvailabilitySlot.date == on,
        AvailabilitySlot.is_available.is_(True),
        AvailabilitySlot.is_blocked.is_(False),
        AvailabilitySlot.start_time < end,
        AvailabilitySlot.end_time > start,
    )
    if exclude_id:
        query = query.filter(AvailabilitySlot.id != exclude_id)
    return query.all()


class SqlAlchemyRepository(SchedulingRepository):
    """SchedulingRepository backed by the SQLAlchemy session factory"""

    def __init__(self, feed: ChangeFeed = None):
        self.feed = feed or ChangeFeed()
        self.availability_db = DatabaseManager(AvailabilitySlot)
        self.invite_db = DatabaseManager(MatchInvite)
        self.user_db = DatabaseManager(User)
        self.message_db = DatabaseManager(Message)

    # Availability

    def list_availability(self, owner_id: str, start: Optional[date] = None,
                          end: Optional[date] = None) -> List[AvailabilitySlot]:
        with get_db() as db:
            query = db.query(AvailabilitySlot).filter(AvailabilitySlot.user_id == owner_id)
            if start:
                query = query.filter(AvailabilitySlot.date >= start)
            if end:
                query = query.filter(AvailabilitySlot.date <= end)
            return query.order_by(AvailabilitySlot.date, AvailabilitySlot.start_time).all()

    def list_public_availability(self, start: date, end: date,
                                 exclude_owner_id: Optional[str] = None) -> List[AvailabilitySlot]:
        with get_db() as db:
            query = db.query(AvailabilitySlot).filter(
                AvailabilitySlot.date >= start,
                AvailabilitySlot.date <= end,
                AvailabilitySlot.is_available.is_(True),
                AvailabilitySlot.is_blocked.is_(False),
                AvailabilitySlot.privacy_level == PrivacyLevel.PUBLIC,
            )
            if exclude_owner_id:
                query = query.filter(AvailabilitySlot.user_id != exclude_owner_id)
            return query.all()

    def list_availability_group(self, owner_id: str, signature: str) -> List[AvailabilitySlot]:
        with get_db() as db:
            return db.query(AvailabilitySlot).filter(
                AvailabilitySlot.user_id == owner_id,
                AvailabilitySlot.recurrence_rule == signature
            ).order_by(AvailabilitySlot.date).all()

    def get_availability(self, slot_id: str) -> AvailabilitySlot:
        slot = self.availability_db.get(slot_id)
        if not slot:
            raise NotFound(f"Availability {slot_id} not found")
        return slot

    def create_availability(self, slot: Dict) -> AvailabilitySlot:
        try:
            with get_db() as db:
                instance = AvailabilitySlot(**slot)
                if instance.is_available is not False and not instance.is_blocked:
                    clashes = _overlapping_open_slots(
                        db, instance.user_id, instance.date, instance.start_time, instance.end_time
                    )
                    if clashes:
                        raise ConflictError(
                            f"Availability on {instance.date.isoformat()} overlaps an existing slot"
                        )
                db.add(instance)
                db.flush()
                db.refresh(instance)
        except IntegrityError as e:
            logger.warning(f"Backstop rejected availability for user {slot.get('user_id')}: {str(e.orig)}")
            raise ConflictError("An identical availability slot already exists")

        self._publish(AVAILABILITY_TABLE, ChangeType.INSERT, instance, {instance.user_id})
        return instance

    def update_availability(self, slot_id: str, patch: Dict) -> AvailabilitySlot:
        try:
            with get_db() as db:
                instance = db.query(AvailabilitySlot).filter_by(id=slot_id).first()
                if not instance:
                    raise NotFound(f"Availability {slot_id} not found")

                old_values = {key: getattr(instance, key) for key in patch}
                for key, value in patch.items():
                    setattr(instance, key, value)

                if instance.is_open:
                    clashes = _overlapping_open_slots(
                        db, instance.user_id, instance.date,
                        instance.start_time, instance.end_time, exclude_id=instance.id
                    )
                    if clashes:
                        raise ConflictError(
                            f"Availability on {instance.date.isoformat()} overlaps an existing slot"
                        )
                db.flush()
                db.refresh(instance)
        except IntegrityError as e:
            logger.warning(f"Backstop rejected update of availability {slot_id}: {str(e.orig)}")
            raise ConflictError("An identical availability slot already exists")

        self._publish(AVAILABILITY_TABLE, ChangeType.UPDATE, instance, {instance.user_id},
                      old_values=old_values)
        return instance

    def delete_availability(self, slot_id: str) -> None:
        with get_db() as db:
            instance = db.query(AvailabilitySlot).filter_by(id=slot_id).first()
            if not instance:
                raise NotFound(f"Availability {slot_id} not found")
            db.delete(instance)

        self._publish(AVAILABILITY_TABLE, ChangeType.DELETE, None, {instance.user_id},
                      old=instance, record_id=slot_id)

    # Invites

    def list_invites(self, user_id: str) -> List[MatchInvite]:
        with get_db() as db:
            return db.query(MatchInvite).filter(
                or_(MatchInvite.sender_id == user_id, MatchInvite.receiver_id == user_id)
            ).order_by(MatchInvite.created_at.desc()).all()

    def get_invite(self, invite_id: str) -> MatchInvite:
        invite = self.invite_db.get(invite_id)
        if not invite:
            raise NotFound(f"Invite {invite_id} not found")
        return invite

    def create_invite(self, invite: Dict) -> MatchInvite:
        instance = self.invite_db.create(**invite)
        self._publish(INVITES_TABLE, ChangeType.INSERT, instance,
                      {instance.sender_id, instance.receiver_id})
        return instance

    def update_invite_status(self, invite_id: str, status: InviteStatus, **extra) -> MatchInvite:
        with get_db() as db:
            instance = db.query(MatchInvite).filter_by(id=invite_id).first()
            if not instance:
                raise NotFound(f"Invite {invite_id} not found")

            changes = dict(extra, status=status)
            old_values = {key: getattr(instance, key) for key in changes}
            for key, value in changes.items():
                setattr(instance, key, value)
            db.flush()
            db.refresh(instance)

        self._publish(INVITES_TABLE, ChangeType.UPDATE, instance,
                      {instance.sender_id, instance.receiver_id}, old_values=old_values)
        return instance

    def list_expirable_invites(self, now: datetime) -> List[MatchInvite]:
        with get_db() as db:
            return db.query(MatchInvite).filter(
                MatchInvite.status == InviteStatus.PENDING,
                MatchInvite.expires_at < now
            ).all()

    def list_expiring_invites(self, now: datetime, until: datetime) -> List[MatchInvite]:
        with get_db() as db:
            return db.query(MatchInvite).filter(
                and_(
                    MatchInvite.status == InviteStatus.PENDING,
                    MatchInvite.response_at.is_(None),
                    MatchInvite.expires_at > now,
                    MatchInvite.expires_at <= until,
                )
            ).all()

    # Profiles and messaging

    def fetch_profiles(self, user_ids: Iterable[str]) -> Dict[str, User]:
        unique_ids = {uid for uid in user_ids if uid}
        return {user.id: user for user in self.user_db.filter_in('id', unique_ids)}

    def create_message(self, message: Dict) -> Message:
        return self.message_db.create(**message)

    # Real-time

    def subscribe(self, user_id: str, on_change: Callable[[ChangeEvent], None]) -> Subscription:
        return self.feed.subscribe(user_id, on_change)

    def _publish(self, table: str, change_type: ChangeType, instance, user_ids,
                 old=None, old_values=None, record_id=None):
        self.feed.publish(ChangeEvent(
            table=table,
            change_type=change_type,
            record_id=record_id or instance.id,
            user_ids=frozenset(user_ids),
            new=instance,
            old=old,
            old_values=old_values or {},
        ))
