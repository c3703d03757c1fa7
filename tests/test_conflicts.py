import pytest
from datetime import date, datetime, time
from types import SimpleNamespace
from courtside.exceptions import ConflictError
from courtside.models.match_invite import InviteStatus
from courtside.utils.conflicts import (
    AVAILABILITY, INVITE, BlockingInterval, blocking_intervals, ensure_no_conflict,
    find_conflicts, has_conflict, invite_blocking_intervals, is_slot_booked
)
from courtside.utils.intervals import DateInterval

DAY = date(2025, 3, 10)


def interval(start, end, on=DAY):
    return DateInterval.parse(on, start, end)


def make_slot(slot_id, start, end, user_id='owner', is_available=True, is_blocked=False):
    return SimpleNamespace(
        id=slot_id, user_id=user_id, is_available=is_available, is_blocked=is_blocked,
        is_open=is_available and not is_blocked, interval=interval(start, end)
    )


def make_invite(invite_id, start, end, status=InviteStatus.PENDING, sender='rival', receiver='owner'):
    return SimpleNamespace(
        id=invite_id, sender_id=sender, receiver_id=receiver, status=status,
        interval=interval(start, end)
    )


class TestHasConflict:
    """Pure overlap predicate"""

    def test_pending_invite_overlap_and_touching_slot(self):
        candidate = interval('14:00', '15:00')
        pending = BlockingInterval('i1', INVITE, interval('14:30', '15:30'))
        touching = BlockingInterval('s1', AVAILABILITY, interval('15:00', '16:00'))

        assert has_conflict(candidate, [pending])
        assert not has_conflict(candidate, [touching])

    def test_exclude_id_skips_the_record_being_edited(self):
        candidate = interval('09:00', '10:00')
        existing = [make_slot('s1', '09:00', '10:00')]
        assert has_conflict(candidate, existing)
        assert not has_conflict(candidate, existing, exclude_id='s1')

    def test_accepts_bare_intervals(self):
        assert has_conflict(interval('09:00', '10:00'), [interval('09:59', '11:00')])
        assert not has_conflict(interval('09:00', '10:00'), [])

    def test_find_conflicts_returns_every_match(self):
        existing = [make_slot('a', '08:00', '09:30'), make_slot('b', '09:45', '11:00'), make_slot('c', '12:00', '13:00')]
        found = find_conflicts(interval('09:00', '10:00'), existing)
        assert [item.id for item in found] == ['a', 'b']

    def test_ensure_no_conflict_raises(self):
        corpus = [BlockingInterval('i1', INVITE, interval('14:30', '15:30'))]
        with pytest.raises(ConflictError) as exc:
            ensure_no_conflict(interval('14:00', '15:00'), corpus)
        assert exc.value.code == 'conflict'
        assert 'invite' in exc.value.message
        ensure_no_conflict(interval('15:30', '16:00'), corpus)


class TestBlockingCorpus:
    """What a new availability slot is checked against"""

    def test_only_open_slots_and_live_invites_block(self):
        slots = [
            make_slot('open', '09:00', '10:00'),
            make_slot('blocked', '10:00', '11:00', is_blocked=True),
            make_slot('unavailable', '11:00', '12:00', is_available=False),
            make_slot('someone-else', '12:00', '13:00', user_id='rival'),
        ]
        invites = [
            make_invite('pending', '13:00', '14:00'),
            make_invite('accepted', '14:00', '15:00', status=InviteStatus.ACCEPTED),
            make_invite('declined', '15:00', '16:00', status=InviteStatus.DECLINED),
            make_invite('expired', '16:00', '17:00', status=InviteStatus.EXPIRED),
            make_invite('not-mine', '17:00', '18:00', sender='rival', receiver='third'),
        ]

        corpus = blocking_intervals('owner', slots, invites)
        assert [(item.source_id, item.kind) for item in corpus] == [
            ('open', AVAILABILITY), ('pending', INVITE), ('accepted', INVITE)
        ]

    def test_pending_invite_blocks_new_availability(self):
        corpus = blocking_intervals('owner', [], [make_invite('i1', '18:00', '19:00')])
        assert has_conflict(interval('18:30', '19:30'), corpus)

    def test_invite_corpus_for_several_users(self):
        invites = [
            make_invite('a', '09:00', '10:00', sender='x', receiver='owner'),
            make_invite('b', '10:00', '11:00', sender='rival', receiver='y'),
            make_invite('c', '11:00', '12:00', sender='x', receiver='y'),
        ]
        corpus = invite_blocking_intervals(['owner', 'rival'], invites)
        assert [item.source_id for item in corpus] == ['a', 'b']
        corpus = invite_blocking_intervals(['owner', 'rival'], invites, exclude_id='a')
        assert [item.source_id for item in corpus] == ['b']


class TestSlotBooked:

    def test_only_accepted_invites_book_a_slot(self):
        invites = [
            make_invite('p', '09:00', '10:00'),
            make_invite('a', '18:00', '19:00', status=InviteStatus.ACCEPTED),
        ]
        assert not is_slot_booked(interval('09:00', '10:00'), invites)
        assert is_slot_booked(interval('18:30', '20:00'), invites)
        assert is_slot_booked(interval('18:30', '20:00'), invites, user_id='owner')
        assert not is_slot_booked(interval('18:30', '20:00'), invites, user_id='third')


class TestModelIntervals:
    """Stored time columns feed the same algebra"""

    def test_slot_model_interval_drops_seconds(self):
        from courtside.models import AvailabilitySlot
        slot = AvailabilitySlot(
            id='s1', user_id='owner', date=DAY,
            start_time=time(18, 0, 30), end_time=time(19, 0),
            is_available=True, is_blocked=False
        )
        assert slot.interval == interval('18:00', '19:00')
        assert slot.is_open
        assert has_conflict(interval('18:45', '19:15'), [slot])

    def test_invite_model_proposed_interval(self):
        from courtside.models import MatchInvite
        invite = MatchInvite(
            id='i1', sender_id='rival', receiver_id='owner', date=DAY,
            start_time=time(9), end_time=time(10), status=InviteStatus.PENDING,
            expires_at=datetime(2025, 3, 9)
        )
        assert invite.proposed_interval is None
        invite.proposed_date = DAY
        invite.proposed_start_time = time(11)
        invite.proposed_end_time = time(12)
        assert invite.proposed_interval == interval('11:00', '12:00')
        assert invite.counterparty_of('owner') == 'rival'
