from sqlalchemy import Column, String, Boolean, JSON
from sqlalchemy.orm import relationship
from .base import BaseModel


class User(BaseModel):
    __tablename__ = 'users'

    # Basic Info
    email = Column(String(255), unique=True, nullable=False, index=True)
    phone = Column(String(20), unique=True, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    is_active = Column(Boolean, default=True)

    # Preferences
    notification_preferences = Column(JSON, default=lambda: {"sms": True, "email": True})

    # Relationships
    availabilities = relationship("AvailabilitySlot", back_populates="owner", lazy='dynamic')

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def wants(self, channel: str) -> bool:
        return (self.notification_preferences or {}).get(channel, True)

    def to_profile(self) -> dict:
        return {
            'id': self.id,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'email': self.email,
        }
