import os
from datetime import date, datetime, time, timedelta

os.environ.setdefault('DATABASE_URL', 'sqlite://')
os.environ.setdefault('BCRYPT_ROUNDS', '4')

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from backend.auth import jwt_handler  # noqa: E402
from backend.database import Database  # noqa: E402
from backend.dependencies import build_services  # noqa: E402
from backend.main import create_app  # noqa: E402
from backend.models.event import Event  # noqa: E402
from backend.models.rsvp import Rsvp  # noqa: E402

# Tuesday, 11:00 local time.
NOW = datetime(2026, 3, 10, 11, 0)


class FrozenClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(NOW)


@pytest.fixture
def today(clock) -> date:
    return clock.now.date()


@pytest.fixture
def database():
    db = Database('sqlite://')
    db.ensure_schema()
    try:
        yield db
    finally:
        db.dispose()


@pytest.fixture
def services(database, clock):
    return build_services(database, clock=clock)


@pytest.fixture
def make_user(services):
    def _make(email='ada@example.com', name='Ada Lovelace', role='user', password='secret123'):
        return services.users.register(email=email, password=password, name=name, role=role)

    return _make


@pytest.fixture
def make_event(database, today):
    """Insert an event directly, bypassing the lifecycle checks."""

    def _make(
        event_date=None,
        start_time=time(18, 0),
        end_time=time(20, 0),
        title='Community meetup',
        location='Main hall',
        created_by=None,
    ):
        with database.session() as db:
            event = Event(
                title=title,
                description='Monthly get-together',
                date=event_date or today,
                start_time=start_time,
                end_time=end_time,
                location=location,
                created_by=created_by,
            )
            db.add(event)
            db.commit()
            db.refresh(event)
        return event

    return _make


@pytest.fixture
def count_rsvps(database):
    def _count(**filters):
        with database.session() as db:
            return db.query(Rsvp).filter_by(**filters).count()

    return _count


@pytest.fixture
def client(database, clock):
    app = create_app(database, clock=clock)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers():
    def _headers(user):
        token = jwt_handler.create_access_token(user_id=user.id, email=user.email, role=user.role)
        return {'Authorization': f'Bearer {token}'}

    return _headers
