from datetime import timedelta

import pytest

from backend.core.errors import ConflictError, NotFoundError, ValidationError
from backend.services.user_store import ProfileChanges


def test_register_hashes_password_and_normalizes_email(services) -> None:
    user = services.users.register(email=' Ada@Example.COM ', password='secret123', name='Ada')

    assert user.email == 'ada@example.com'
    assert user.role == 'user'
    assert user.hashed_password != 'secret123'
    assert user.hashed_password.startswith('$2')


def test_register_rejects_duplicate_email(services, make_user) -> None:
    make_user(email='ada@example.com')

    with pytest.raises(ConflictError) as exception_info:
        services.users.register(email='ADA@example.com', password='another1', name='Imposter')

    assert exception_info.value.message == 'User with this email already exists'


def test_authenticate_checks_password(services, make_user) -> None:
    user = make_user(password='secret123')

    assert services.users.authenticate('ada@example.com', 'secret123').id == user.id
    assert services.users.authenticate('ada@example.com', 'wrong-password') is None
    assert services.users.authenticate('nobody@example.com', 'secret123') is None


def test_find_by_email_ignores_case_and_whitespace(services, make_user) -> None:
    user = make_user()

    assert services.users.find_by_email('  ADA@Example.com ').id == user.id
    assert services.users.find_by_email('grace@example.com') is None


def test_authenticate_normalizes_email(services, make_user) -> None:
    user = make_user(password='secret123')

    assert services.users.authenticate(' Ada@Example.COM', 'secret123').id == user.id


def test_get_missing_user_raises_not_found(services) -> None:
    with pytest.raises(NotFoundError):
        services.users.get(77)


def test_update_profile_changes_supplied_fields(services, make_user, clock) -> None:
    user = make_user()
    clock.advance(hours=1)

    updated = services.users.update_profile(user.id, ProfileChanges(name='Countess Lovelace'))

    assert updated.name == 'Countess Lovelace'
    assert updated.email == 'ada@example.com'
    assert updated.updated_at == clock.now


def test_update_profile_rejects_email_of_another_user(services, make_user) -> None:
    user = make_user()
    make_user(email='grace@example.com', name='Grace')

    with pytest.raises(ConflictError) as exception_info:
        services.users.update_profile(user.id, ProfileChanges(email='Grace@example.com'))

    assert exception_info.value.message == 'Email is already taken'


def test_update_profile_allows_keeping_own_email(services, make_user) -> None:
    user = make_user()

    updated = services.users.update_profile(user.id, ProfileChanges(email='ada@example.com', name='Ada L.'))

    assert updated.email == 'ada@example.com'
    assert updated.name == 'Ada L.'


def test_update_profile_normalizes_email_without_touching_changes(services, make_user) -> None:
    user = make_user()
    changes = ProfileChanges(email='  Ada.L@Example.com ')

    updated = services.users.update_profile(user.id, changes)

    assert updated.email == 'ada.l@example.com'
    assert changes.email == '  Ada.L@Example.com '


def test_update_profile_requires_changes(services, make_user) -> None:
    user = make_user()

    with pytest.raises(ValidationError):
        services.users.update_profile(user.id, ProfileChanges())


def test_list_users_newest_first(services, make_user, clock) -> None:
    first = make_user(email='first@example.com')
    clock.advance(minutes=1)
    second = make_user(email='second@example.com')

    assert [user.id for user in services.users.list_users()] == [second.id, first.id]


def test_delete_user_removes_rsvps_and_detaches_events(
    services,
    make_user,
    make_event,
    count_rsvps,
    today,
) -> None:
    organizer = make_user(email='org@example.com', name='Organizer', role='admin')
    event = make_event(event_date=today + timedelta(days=1), created_by=organizer.id)
    services.rsvps.upsert(organizer.id, event.id, 'going')

    services.users.delete(organizer.id)

    assert count_rsvps(user_id=organizer.id) == 0
    listing = services.events.get(event.id)
    assert listing.event.created_by is None
    assert listing.created_by_name is None
    with pytest.raises(NotFoundError):
        services.users.get(organizer.id)
