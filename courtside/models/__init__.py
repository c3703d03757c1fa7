from .user import User
from .availability import AvailabilitySlot, PrivacyLevel
from .match_invite import MatchInvite, InviteStatus
from .message import Message

__all__ = [
    'User', 'AvailabilitySlot', 'PrivacyLevel',
    'MatchInvite', 'InviteStatus', 'Message'
]
