from sqlalchemy import Column, String, Boolean, ForeignKey, Date, Time, Enum, Text, UniqueConstraint
from sqlalchemy.orm import relationship
import enum
from .base import BaseModel
from courtside.utils.intervals import DateInterval, parse_time


class PrivacyLevel(enum.Enum):
    PUBLIC = "public"
    FRIENDS_ONLY = "friends_only"
    PRIVATE = "private"


class AvailabilitySlot(BaseModel):
    __tablename__ = 'user_availability'
    __table_args__ = (
        # Backstop for the optimistic conflict check
        UniqueConstraint('user_id', 'date', 'start_time', 'end_time', name='uq_user_availability_slot'),
    )

    user_id = Column(String(36), ForeignKey('users.id'), nullable=False, index=True)

    # Schedule (naive local date; seconds kept as stored)
    date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)

    # State
    is_available = Column(Boolean, default=True, nullable=False)
    is_blocked = Column(Boolean, default=False, nullable=False)
    privacy_level = Column(Enum(PrivacyLevel), default=PrivacyLevel.PUBLIC, nullable=False)

    # Encoded RecurrenceRule shared by every occurrence of one recurring definition
    recurrence_rule = Column(String(255), index=True)
    notes = Column(Text)

    # Relationships
    owner = relationship("User", back_populates="availabilities")

    @property
    def interval(self) -> DateInterval:
        return DateInterval(self.date, parse_time(self.start_time), parse_time(self.end_time))

    @property
    def is_open(self) -> bool:
        """Offered to others: available and not blocked"""
        return bool(self.is_available) and not self.is_blocked

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'user_id': self.user_id,
            'date': self.date.isoformat(),
            'start_time': self.start_time.strftime('%H:%M:%S'),
            'end_time': self.end_time.strftime('%H:%M:%S'),
            'is_available': self.is_available,
            'is_blocked': self.is_blocked,
            'privacy_level': self.privacy_level.value if self.privacy_level else None,
            'recurrence_rule': self.recurrence_rule,
            'notes': self.notes,
        }
