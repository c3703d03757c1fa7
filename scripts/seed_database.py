#!/usr/bin/env python3
"""
Script to seed the database with sample players, availability and invites
"""

import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from datetime import date, datetime, timedelta
from courtside.database import init_db, drop_db, get_db
from courtside.models import User
from courtside.services import AvailabilityService, InviteService
from courtside.sql_repository import SqlAlchemyRepository
from courtside.utils.recurrence import js_weekday
from courtside.utils.security import generate_token
import random

PLAYER_NAMES = [
    ('Serena', 'Clay'), ('Rafa', 'Lobb'), ('Steffi', 'Grass'), ('Bjorn', 'Volley'),
    ('Chris', 'Baseline'), ('Andre', 'Slice'), ('Martina', 'Dropshot'), ('Pete', 'Ace'),
]


def create_players(db):
    """Create sample players"""
    players = []
    for i, (first, last) in enumerate(PLAYER_NAMES):
        player = User(
            email=f'{first.lower()}.{last.lower()}@example.com',
            phone=f'+1555555030{i}',
            first_name=first,
            last_name=last,
            is_active=True,
            notification_preferences={'sms': i % 2 == 0, 'email': True}
        )
        db.add(player)
        players.append(player)

    db.commit()
    return players


def create_availability(availability_service, players):
    """Give every player a weekly series plus a one-off weekend slot"""
    start = date.today() + timedelta(days=1)
    series_count = 0
    slot_count = 0

    for i, player in enumerate(players):
        hour = 7 + (i % 4) * 3
        weekdays = sorted({js_weekday(start), random.choice([1, 2, 3, 4, 5])})
        result = availability_service.create_availability(player.id, {
            'date': start.isoformat(),
            'start_time': f'{hour:02d}:00',
            'end_time': f'{hour + 2:02d}:00',
            'privacy_level': 'public' if i % 3 else 'friends_only',
            'notes': 'Singles or doubles',
            'recurrence': {
                'pattern': 'weekly',
                'interval': 1,
                'daysOfWeek': weekdays,
                'endDate': (start + timedelta(weeks=8)).isoformat(),
            },
        })
        series_count += 1
        slot_count += len(result.created)

        saturday = start + timedelta(days=(5 - start.weekday()) % 7)
        single = availability_service.create_availability(player.id, {
            'date': saturday.isoformat(),
            'start_time': '16:00',
            'end_time': '17:30',
        }) if saturday != start else None
        if single:
            slot_count += len(single.created)

    print(f"Created {slot_count} availability slots ({series_count} recurring series)")


def create_invites(invite_service, players):
    """Pair players up with a few invites in different states"""
    when = date.today() + timedelta(days=3)
    invites = []
    for sender, receiver in zip(players[0::2], players[1::2]):
        invite = invite_service.send_invite(sender.id, {
            'receiver_id': receiver.id,
            'date': when.isoformat(),
            'start_time': '18:00',
            'end_time': '19:30',
            'court_location': 'Riverside Courts, Court 3',
            'message': 'Fancy a hit?',
        })
        invites.append(invite)

    if invites:
        first = invites[0]
        invite_service.respond(first.id, first.receiver_id, 'accept')
    if len(invites) > 1:
        second = invites[1]
        invite_service.propose_new_time(second.id, second.receiver_id, {
            'date': when.isoformat(),
            'start_time': '20:00',
            'end_time': '21:00',
        })

    print(f"Created {len(invites)} match invites")
    return invites


def main():
    """Main seeding function"""
    print("Dropping existing database...")
    drop_db()

    print("Initializing new database...")
    init_db()

    with get_db() as db:
        print("Creating players...")
        players = create_players(db)

    repository = SqlAlchemyRepository()
    print("Creating availability...")
    create_availability(AvailabilityService(repository), players)

    print("Creating invites...")
    create_invites(InviteService(repository), players)

    print("\nDatabase seeded successfully!")
    print(f"Created {len(players)} players. Bearer tokens for trying the API:")
    for player in players[:2]:
        token = generate_token({'user_id': player.id}, timedelta(days=7))
        print(f"- {player.full_name} ({player.email}): {token}")
    print(f"\nSeeded at {datetime.now().isoformat(timespec='seconds')}")


if __name__ == "__main__":
    main()
