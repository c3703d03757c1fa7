import os

# Must be set before config.config is first imported
os.environ['COURTSIDE_ENV'] = 'testing'

import pytest  # noqa: E402
from courtside.database import drop_db, init_db, DatabaseManager  # noqa: E402
from courtside.models import User  # noqa: E402
from courtside.realtime import ChangeFeed  # noqa: E402
from courtside.sql_repository import SqlAlchemyRepository  # noqa: E402


@pytest.fixture
def database():
    """Fresh SQLite schema per test"""
    drop_db()
    init_db()
    yield
    drop_db()


@pytest.fixture
def players(database):
    """Three players: an owner, a rival and a third party"""
    user_db = DatabaseManager(User)

    owner = user_db.create(
        email='owner@test.com',
        phone='+15551230001',
        first_name='Olive',
        last_name='Owner',
        notification_preferences={'sms': True, 'email': True}
    )
    rival = user_db.create(
        email='rival@test.com',
        phone='+15551230002',
        first_name='Rory',
        last_name='Rival',
        notification_preferences={'sms': False, 'email': True}
    )
    third = user_db.create(
        email='third@test.com',
        phone='+15551230003',
        first_name='Tess',
        last_name='Third'
    )

    return {'owner': owner, 'rival': rival, 'third': third}


@pytest.fixture
def repository(database):
    return SqlAlchemyRepository(feed=ChangeFeed())
