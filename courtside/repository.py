"""
Storage contract consumed by the scheduling services.

Implementations own persistence and real-time change delivery. Every method is
a single request/response against the store. ``create_availability`` enforces
an overlap backstop and raises ConflictError when it trips.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Callable, Dict, Iterable, List, Optional

from courtside.realtime import ChangeEvent, Subscription


class SchedulingRepository(ABC):

    # Availability

    @abstractmethod
    def list_availability(self, owner_id: str, start: Optional[date] = None,
                          end: Optional[date] = None) -> List:
        """Owner's slots, optionally limited to ``start <= date <= end``"""

    @abstractmethod
    def list_public_availability(self, start: date, end: date,
                                 exclude_owner_id: Optional[str] = None) -> List:
        """Open, public slots of every player in the date range"""

    @abstractmethod
    def list_availability_group(self, owner_id: str, signature: str) -> List:
        """Owner's slots sharing one recurrence signature"""

    @abstractmethod
    def get_availability(self, slot_id: str):
        """Raises NotFound"""

    @abstractmethod
    def create_availability(self, slot: Dict):
        """Raises ConflictError when the backstop constraint is violated"""

    @abstractmethod
    def update_availability(self, slot_id: str, patch: Dict):
        """Raises NotFound, ConflictError"""

    @abstractmethod
    def delete_availability(self, slot_id: str) -> None:
        """Raises NotFound"""

    # Invites

    @abstractmethod
    def list_invites(self, user_id: str) -> List:
        """Invites where the user is sender or receiver, newest first"""

    @abstractmethod
    def get_invite(self, invite_id: str):
        """Raises NotFound"""

    @abstractmethod
    def create_invite(self, invite: Dict):
        pass

    @abstractmethod
    def update_invite_status(self, invite_id: str, status, **extra):
        """Write a status change plus its accompanying fields in one update"""

    @abstractmethod
    def list_expirable_invites(self, now: datetime) -> List:
        """Pending invites whose expiry is before ``now``"""

    @abstractmethod
    def list_expiring_invites(self, now: datetime, until: datetime) -> List:
        """Pending, unanswered invites expiring in ``(now, until]``"""

    # Profiles and messaging

    @abstractmethod
    def fetch_profiles(self, user_ids: Iterable[str]) -> Dict[str, object]:
        """Batch lookup: one query for all unique ids, returned as id -> user"""

    @abstractmethod
    def create_message(self, message: Dict):
        pass

    # Real-time

    @abstractmethod
    def subscribe(self, user_id: str, on_change: Callable[[ChangeEvent], None]) -> Subscription:
        """Deliver every change touching ``user_id``; the handle unsubscribes"""

    def list_invites_with_profiles(self, user_id: str) -> List[Dict]:
        """Invites joined with sender/receiver/proposer profiles via one batch lookup"""
        invites = self.list_invites(user_id)
        user_ids = set()
        for invite in invites:
            user_ids.update({invite.sender_id, invite.receiver_id})
            if invite.proposed_by_user_id:
                user_ids.add(invite.proposed_by_user_id)
        profiles = self.fetch_profiles(user_ids)

        def _profile(uid):
            user = profiles.get(uid)
            return user.to_profile() if user else None

        results = []
        for invite in invites:
            data = invite.to_dict()
            data['sender'] = _profile(invite.sender_id)
            data['receiver'] = _profile(invite.receiver_id)
            data['proposed_by'] = _profile(invite.proposed_by_user_id) if invite.proposed_by_user_id else None
            results.append(data)
        return results
