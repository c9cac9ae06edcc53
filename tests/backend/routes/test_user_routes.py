def test_admin_lists_users(client, make_user, auth_headers) -> None:
    admin = make_user(email='admin@example.com', name='Admin', role='admin')
    make_user(email='member@example.com', name='Member')

    response = client.get('/users', headers=auth_headers(admin))

    assert response.status_code == 200
    assert {user['email'] for user in response.json()} == {'admin@example.com', 'member@example.com'}


def test_member_cannot_list_users(client, make_user, auth_headers) -> None:
    member = make_user()

    response = client.get('/users', headers=auth_headers(member))

    assert response.status_code == 403


def test_admin_deletes_user(client, make_user, auth_headers) -> None:
    admin = make_user(email='admin@example.com', name='Admin', role='admin')
    member = make_user(email='member@example.com', name='Member')

    response = client.delete(f'/users/{member.id}', headers=auth_headers(admin))
    missing = client.delete(f'/users/{member.id}', headers=auth_headers(admin))

    assert response.status_code == 200
    assert missing.status_code == 404
    assert missing.json() == {'detail': 'User not found'}


def test_admin_cannot_delete_self(client, make_user, auth_headers) -> None:
    admin = make_user(email='admin@example.com', name='Admin', role='admin')

    response = client.delete(f'/users/{admin.id}', headers=auth_headers(admin))

    assert response.status_code == 400
