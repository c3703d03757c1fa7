from sqlalchemy import Column, String, ForeignKey, DateTime, Date, Time, Enum, Text
import enum
from .base import BaseModel
from courtside.utils.intervals import DateInterval, parse_time


class InviteStatus(enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


# Statuses that hold the interval for both parties
BLOCKING_STATUSES = frozenset({InviteStatus.PENDING, InviteStatus.ACCEPTED})
TERMINAL_STATUSES = frozenset({InviteStatus.DECLINED, InviteStatus.CANCELLED, InviteStatus.EXPIRED})


class MatchInvite(BaseModel):
    __tablename__ = 'match_invites'

    sender_id = Column(String(36), ForeignKey('users.id'), nullable=False, index=True)
    receiver_id = Column(String(36), ForeignKey('users.id'), nullable=False, index=True)
    availability_id = Column(String(36), ForeignKey('user_availability.id', ondelete='SET NULL'))

    # Agreed (or originally requested) time
    date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)

    # Status
    status = Column(Enum(InviteStatus), default=InviteStatus.PENDING, nullable=False, index=True)
    expires_at = Column(DateTime, nullable=False)
    response_at = Column(DateTime)

    # Counter-proposal
    proposed_date = Column(Date)
    proposed_start_time = Column(Time)
    proposed_end_time = Column(Time)
    proposed_by_user_id = Column(String(36), ForeignKey('users.id'))
    proposed_at = Column(DateTime)

    # Cancellation
    cancelled_at = Column(DateTime)
    cancelled_by_user_id = Column(String(36), ForeignKey('users.id'))
    cancellation_reason = Column(String(500))

    # Details
    court_location = Column(String(255))
    message = Column(Text)

    @property
    def interval(self) -> DateInterval:
        return DateInterval(self.date, parse_time(self.start_time), parse_time(self.end_time))

    @property
    def proposed_interval(self):
        if self.proposed_date is None:
            return None
        return DateInterval(
            self.proposed_date,
            parse_time(self.proposed_start_time),
            parse_time(self.proposed_end_time)
        )

    def involves(self, user_id: str) -> bool:
        return user_id in (self.sender_id, self.receiver_id)

    def counterparty_of(self, user_id: str) -> str:
        return self.receiver_id if user_id == self.sender_id else self.sender_id

    def to_dict(self) -> dict:
        def _iso(value):
            return value.isoformat() if value else None

        def _hms(value):
            return value.strftime('%H:%M:%S') if value else None

        return {
            'id': self.id,
            'sender_id': self.sender_id,
            'receiver_id': self.receiver_id,
            'availability_id': self.availability_id,
            'date': _iso(self.date),
            'start_time': _hms(self.start_time),
            'end_time': _hms(self.end_time),
            'status': self.status.value,
            'expires_at': _iso(self.expires_at),
            'response_at': _iso(self.response_at),
            'proposed_date': _iso(self.proposed_date),
            'proposed_start_time': _hms(self.proposed_start_time),
            'proposed_end_time': _hms(self.proposed_end_time),
            'proposed_by_user_id': self.proposed_by_user_id,
            'proposed_at': _iso(self.proposed_at),
            'cancelled_at': _iso(self.cancelled_at),
            'cancelled_by_user_id': self.cancelled_by_user_id,
            'cancellation_reason': self.cancellation_reason,
            'court_location': self.court_location,
            'message': self.message,
        }
