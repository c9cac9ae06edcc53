import jwt

from backend.auth import jwt_handler
from backend.core import config


def test_root_reports_running(client) -> None:
    response = client.get('/')

    assert response.status_code == 200
    assert response.json() == {'status': 'Event Planner API Running'}


def test_register_returns_token_and_user(client) -> None:
    response = client.post(
        '/auth/register',
        json={'email': ' Ada@Example.com ', 'password': 'secret123', 'name': ' Ada '},
    )

    assert response.status_code == 201
    body = response.json()
    assert body['message'] == 'User registered successfully'
    assert body['user']['email'] == 'ada@example.com'
    assert body['user']['name'] == 'Ada'
    assert body['user']['role'] == 'user'
    assert 'hashed_password' not in body['user']
    assert jwt_handler.decode_access_token(body['token'])['sub'] == str(body['user']['id'])


def test_register_rejects_duplicate_email_with_conflict(client, make_user) -> None:
    make_user(email='ada@example.com')

    response = client.post(
        '/auth/register',
        json={'email': 'ada@example.com', 'password': 'secret123', 'name': 'Ada'},
    )

    assert response.status_code == 409
    assert response.json() == {'detail': 'User with this email already exists'}


def test_register_rejects_short_password(client) -> None:
    response = client.post(
        '/auth/register',
        json={'email': 'ada@example.com', 'password': 'abc', 'name': 'Ada'},
    )

    assert response.status_code == 422


def test_register_rejects_unknown_role(client) -> None:
    response = client.post(
        '/auth/register',
        json={'email': 'ada@example.com', 'password': 'secret123', 'name': 'Ada', 'role': 'owner'},
    )

    assert response.status_code == 422


def test_login_with_valid_credentials(client, make_user) -> None:
    user = make_user(password='secret123')

    response = client.post('/auth/login', json={'email': 'ADA@example.com', 'password': 'secret123'})

    assert response.status_code == 200
    body = response.json()
    assert body['message'] == 'Login successful'
    assert body['user']['id'] == user.id


def test_login_with_wrong_password_returns_401(client, make_user) -> None:
    make_user(password='secret123')

    response = client.post('/auth/login', json={'email': 'ada@example.com', 'password': 'nope-nope'})

    assert response.status_code == 401
    assert response.json() == {'detail': 'Invalid email or password'}


def test_profile_requires_token(client) -> None:
    response = client.get('/auth/profile')

    assert response.status_code == 401
    assert response.json() == {'detail': 'Access token required'}


def test_profile_rejects_invalid_token(client) -> None:
    response = client.get('/auth/profile', headers={'Authorization': 'Bearer not-a-token'})

    assert response.status_code == 401
    assert response.json() == {'detail': 'Invalid token'}


def test_profile_rejects_expired_token(client, make_user) -> None:
    user = make_user()
    token = jwt_handler.create_access_token(user.id, user.email, user.role, expires_minutes=-5)

    response = client.get('/auth/profile', headers={'Authorization': f'Bearer {token}'})

    assert response.status_code == 401
    assert response.json() == {'detail': 'Token expired'}


def test_profile_rejects_token_for_deleted_user(client) -> None:
    token = jwt.encode({'sub': '999'}, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)

    response = client.get('/auth/profile', headers={'Authorization': f'Bearer {token}'})

    assert response.status_code == 401
    assert response.json() == {'detail': 'User not found'}


def test_profile_returns_current_user(client, make_user, auth_headers) -> None:
    user = make_user()

    response = client.get('/auth/profile', headers=auth_headers(user))

    assert response.status_code == 200
    assert response.json()['email'] == 'ada@example.com'


def test_update_profile_changes_name(client, make_user, auth_headers) -> None:
    user = make_user()

    response = client.put('/auth/profile', json={'name': 'Countess'}, headers=auth_headers(user))

    assert response.status_code == 200
    assert response.json()['name'] == 'Countess'


def test_update_profile_without_fields_returns_400(client, make_user, auth_headers) -> None:
    user = make_user()

    response = client.put('/auth/profile', json={}, headers=auth_headers(user))

    assert response.status_code == 400
    assert response.json() == {'detail': 'No fields to update'}
