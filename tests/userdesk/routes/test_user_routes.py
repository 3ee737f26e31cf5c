import pytest
from sqlalchemy.exc import OperationalError

from userdesk.models.user import User
from userdesk.services import user_service


def test_index_requires_login(client) -> None:
    response = client.get('/', follow_redirects=False)

    assert response.status_code == 303
    assert response.headers['location'] == '/login?redirectTo=%2F'


def test_index_greets_signed_in_user(client, make_user, login_as) -> None:
    make_user('someone@example.com')
    login_as('someone@example.com')

    response = client.get('/')

    assert response.status_code == 200
    assert 'Hi User,' in response.text
    assert 'someone@example.com' in response.text
    assert 'action="/logout"' in response.text


def test_users_page_requires_login(client) -> None:
    response = client.get('/users', follow_redirects=False)

    assert response.status_code == 303
    assert response.headers['location'] == '/login?redirectTo=%2Fusers'


def test_stale_session_for_deleted_user_is_logged_out(client, db_session, make_user, login_as) -> None:
    user = make_user('gone@example.com')
    login_as('gone@example.com')
    db_session.delete(user)
    db_session.commit()

    response = client.get('/users', follow_redirects=False)

    assert response.status_code == 303
    assert response.headers['location'] == '/login?redirectTo=%2Fusers'
    assert 'Max-Age=0' in response.headers['set-cookie']


def test_regular_user_sees_list_without_admin_controls(client, make_user, login_as) -> None:
    make_user('admin@example.com', role='admin')
    make_user('someone@example.com')
    login_as('someone@example.com')

    response = client.get('/users')

    assert response.status_code == 200
    assert 'All users (2)' in response.text
    assert 'Email: admin@example.com' in response.text
    assert 'Role: admin' in response.text
    assert 'Delete User' not in response.text
    assert 'Create User' not in response.text


def test_admin_sees_admin_controls(client, make_user, login_as) -> None:
    make_user('admin@example.com', role='admin')
    login_as('admin@example.com')

    response = client.get('/users')

    assert 'Hi Admin,' in response.text
    assert 'Delete User' in response.text
    assert 'Admins can create new users.' in response.text
    assert 'value="create"' in response.text


def test_regular_user_cannot_manage_users(client, db_session, make_user, login_as) -> None:
    make_user('someone@example.com')
    login_as('someone@example.com')

    response = client.post(
        '/users',
        data={'_action': 'create', 'email': 'new@example.com', 'password': 'password123', 'role': 'admin'},
    )

    assert response.status_code == 403
    assert response.json() == {'detail': 'Only admins can manage users.'}
    assert db_session.query(User).count() == 1


def test_admin_creates_user(client, db_session, make_user, login_as) -> None:
    make_user('admin@example.com', role='admin')
    login_as('admin@example.com')

    response = client.post(
        '/users',
        data={'_action': 'create', 'email': 'new@example.com', 'password': 'password123', 'role': 'user'},
        follow_redirects=False,
    )

    assert response.status_code == 303
    assert response.headers['location'] == '/users'
    created = db_session.query(User).filter(User.email == 'new@example.com').one()
    assert created.role == 'user'


def test_admin_create_reports_validation_errors(client, make_user, login_as) -> None:
    make_user('admin@example.com', role='admin')
    login_as('admin@example.com')

    response = client.post(
        '/users',
        data={'_action': 'create', 'email': 'new@example.com', 'password': 'short', 'role': 'user'},
    )

    assert response.status_code == 400
    assert 'id="password-error"' in response.text
    assert 'Password is too short' in response.text
    assert 'All users (1)' in response.text


def test_admin_create_rejects_duplicate_email(client, make_user, login_as) -> None:
    make_user('admin@example.com', role='admin')
    login_as('admin@example.com')

    response = client.post(
        '/users',
        data={'_action': 'create', 'email': 'admin@example.com', 'password': 'password123', 'role': 'user'},
    )

    assert response.status_code == 400
    assert 'A user already exists with this email' in response.text


def test_admin_deletes_user(client, db_session, make_user, login_as) -> None:
    make_user('admin@example.com', role='admin')
    target = make_user('someone@example.com')
    target_id = target.id
    login_as('admin@example.com')

    response = client.post('/users', data={'_action': 'delete', 'id': str(target_id)}, follow_redirects=False)

    assert response.status_code == 303
    assert response.headers['location'] == '/users'
    db_session.expire_all()
    assert db_session.query(User).filter(User.id == target_id).first() is None


def test_admin_delete_unknown_user_returns_not_found(client, make_user, login_as) -> None:
    make_user('admin@example.com', role='admin')
    login_as('admin@example.com')

    response = client.post('/users', data={'_action': 'delete', 'id': '999'})

    assert response.status_code == 404
    assert response.json() == {'detail': 'User not found.'}


@pytest.mark.parametrize('raw_id', ['abc', '', '0', '-1', '9' * 30])
def test_admin_delete_requires_valid_id(client, make_user, login_as, raw_id: str) -> None:
    make_user('admin@example.com', role='admin')
    login_as('admin@example.com')

    response = client.post('/users', data={'_action': 'delete', 'id': raw_id})

    assert response.status_code == 400
    assert response.json() == {'detail': 'A valid user id is required.'}


def test_admin_cannot_delete_own_account(client, make_user, login_as) -> None:
    admin = make_user('admin@example.com', role='admin')
    login_as('admin@example.com')

    response = client.post('/users', data={'_action': 'delete', 'id': str(admin.id)})

    assert response.status_code == 400
    assert response.json() == {'detail': 'Admins cannot delete their own account.'}


def test_unknown_action_is_rejected(client, make_user, login_as) -> None:
    make_user('admin@example.com', role='admin')
    login_as('admin@example.com')

    response = client.post('/users', data={'_action': 'edit', 'id': '1'})

    assert response.status_code == 400
    assert response.json() == {'detail': 'Unknown action.'}


def test_health_endpoint(client) -> None:
    response = client.get('/health')

    assert response.status_code == 200
    assert response.json() == {'status': 'User Desk Running'}


def test_admin_create_reports_duplicate_email_when_insert_races(client, db_session, make_user, login_as, monkeypatch: pytest.MonkeyPatch) -> None:
    make_user('admin@example.com', role='admin')
    make_user('taken@example.com')
    login_as('admin@example.com')
    monkeypatch.setattr(user_service, 'get_user_by_email', lambda _db, _email: None)

    response = client.post(
        '/users',
        data={'_action': 'create', 'email': 'taken@example.com', 'password': 'password123', 'role': 'user'},
    )

    assert response.status_code == 400
    assert 'A user already exists with this email' in response.text
    assert 'All users (2)' in response.text
    assert db_session.query(User).count() == 2


def test_database_failure_returns_service_unavailable(client, make_user, login_as, monkeypatch: pytest.MonkeyPatch) -> None:
    make_user('someone@example.com')
    login_as('someone@example.com')

    def fail(_db):
        raise OperationalError('SELECT users', {}, Exception('database is down'))

    monkeypatch.setattr(user_service, 'get_all_users', fail)

    response = client.get('/users')

    assert response.status_code == 503
    assert response.json() == {'detail': 'Database unavailable. Verify DATABASE_URL.'}
