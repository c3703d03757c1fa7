from datetime import date
from types import SimpleNamespace
from courtside.models.match_invite import InviteStatus
from courtside.utils.grid import QuarterInfo, QuarterKind, ScheduleGrid, classify, visible_days
from courtside.utils.intervals import DateInterval

DAY = date(2025, 3, 10)  # Monday
AVAILABLE = QuarterInfo.available()
UNAVAILABLE = QuarterInfo.unavailable()


def make_slot(start, end, user_id='owner', is_open=True, on=DAY):
    return SimpleNamespace(user_id=user_id, is_open=is_open, interval=DateInterval.parse(on, start, end))


def make_invite(invite_id, start, end, status=InviteStatus.ACCEPTED, on=DAY):
    return SimpleNamespace(
        id=invite_id, status=status, sender_id='rival', receiver_id='owner',
        interval=DateInterval.parse(on, start, end)
    )


class TestClassify:
    """Per-quarter precedence"""

    def test_invite_wins_only_where_it_overlaps(self):
        slots = [make_slot('09:00', '11:00')]
        invites = [make_invite('i1', '10:00', '10:30')]
        booked = QuarterInfo.invite(InviteStatus.ACCEPTED, 'i1')

        assert classify(DAY, 10, slots, invites) == [booked, booked, AVAILABLE, AVAILABLE]
        assert classify(DAY, 9, slots, invites) == [AVAILABLE] * 4

    def test_invite_in_middle_quarters(self):
        slots = [make_slot('09:00', '11:00')]
        invites = [make_invite('i1', '10:15', '10:45')]
        booked = QuarterInfo.invite(InviteStatus.ACCEPTED, 'i1')

        assert classify(DAY, 10, slots, invites) == [AVAILABLE, booked, booked, AVAILABLE]

    def test_pending_invite_without_availability(self):
        invites = [make_invite('i1', '18:00', '18:30', status=InviteStatus.PENDING)]
        quarters = classify(DAY, 18, [], invites)
        assert [q.kind for q in quarters] == [
            QuarterKind.INVITE, QuarterKind.INVITE, QuarterKind.UNAVAILABLE, QuarterKind.UNAVAILABLE
        ]
        assert quarters[0].status is InviteStatus.PENDING

    def test_accepted_beats_pending_in_same_quarter(self):
        invites = [
            make_invite('pending', '18:00', '19:00', status=InviteStatus.PENDING),
            make_invite('accepted', '18:30', '19:00'),
        ]
        quarters = classify(DAY, 18, [], invites)
        assert [q.invite_id for q in quarters] == ['pending', 'pending', 'accepted', 'accepted']

    def test_closed_slots_and_dead_invites_are_ignored(self):
        slots = [make_slot('09:00', '10:00', is_open=False)]
        invites = [make_invite('i1', '09:00', '10:00', status=InviteStatus.DECLINED)]
        assert classify(DAY, 9, slots, invites) == [UNAVAILABLE] * 4

    def test_others_rank_between_available_and_unavailable(self):
        slots = [make_slot('09:00', '09:30')]
        others = [
            make_slot('09:00', '10:00', user_id='rival'),
            make_slot('09:15', '10:00', user_id='third'),
            make_slot('09:00', '10:00', user_id='owner'),
        ]
        grid = ScheduleGrid(slots, [], others, owner_id='owner')
        assert grid.quarters(DAY, 9) == [
            AVAILABLE, AVAILABLE, QuarterInfo.others(2), QuarterInfo.others(2)
        ]


class TestScheduleGrid:
    """Hour helpers and serialization"""

    def test_multi_hour_slot_fills_every_touched_hour(self):
        grid = ScheduleGrid([make_slot('09:30', '11:15')])
        assert grid.quarters(DAY, 9) == [UNAVAILABLE, UNAVAILABLE, AVAILABLE, AVAILABLE]
        assert grid.quarters(DAY, 10) == [AVAILABLE] * 4
        assert grid.quarters(DAY, 11) == [AVAILABLE, UNAVAILABLE, UNAVAILABLE, UNAVAILABLE]
        assert not grid.is_hour_available(DAY, 12)

    def test_hour_helpers(self):
        grid = ScheduleGrid([make_slot('09:00', '10:00')], [make_invite('i1', '09:00', '10:00')])
        assert grid.has_invite_in_hour(DAY, 9)
        assert not grid.is_hour_available(DAY, 9)
        assert not grid.has_invite_in_hour(DAY, 10)

    def test_lookup_accepts_iso_strings(self):
        grid = ScheduleGrid([make_slot('09:00', '10:00')])
        assert grid.quarters('2025-03-10', 9) == grid.quarters(DAY, 9)

    def test_to_dict(self):
        grid = ScheduleGrid([make_slot('06:00', '06:15')], [make_invite('i1', '07:00', '07:15')])
        data = grid.to_dict(DAY, 1, 6, 8)

        assert list(data) == ['2025-03-10']
        assert list(data['2025-03-10']) == ['6', '7']
        assert data['2025-03-10']['6'][0] == {'type': 'available'}
        assert data['2025-03-10']['7'][0] == {'type': 'invite', 'status': 'accepted', 'invite_id': 'i1'}
        assert data['2025-03-10']['7'][1] == {'type': 'unavailable'}

    def test_visible_days_filters(self):
        week = visible_days(DAY, 7)
        assert len(week) == 7
        weekdays = visible_days(DAY, 7, show_weekend=False)
        assert [d.weekday() for d in weekdays] == [0, 1, 2, 3, 4]
        weekend = visible_days(DAY, 7, show_weekday=False)
        assert weekend == [date(2025, 3, 15), date(2025, 3, 16)]
