"""Registration, login and session tokens."""
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from tests.conftest import PASSWORD, auth_header


def test_first_account_becomes_admin(register):
    alice = register('alice', role='user')
    assert alice['role'] == 'admin'
    assert alice['token']
    assert 'password' not in alice and 'passwordHash' not in alice


def test_later_accounts_are_users_and_cannot_pick_role(admin, register):
    carol = register('carol', role='admin')
    assert carol['role'] == 'user'


def test_admin_may_assign_role_at_registration(admin, register):
    rev = register('rita', role='reviewer', token=admin['token'])
    assert rev['role'] == 'reviewer'


def test_admin_registration_with_unknown_role_is_rejected(client, admin):
    resp = client.post('/api/auth/register', json={
        'username': 'x', 'email': 'x@example.com', 'password': PASSWORD, 'role': 'overlord',
    }, headers=auth_header(admin['token']))
    assert resp.status_code == 400
    assert resp.get_json()['success'] is False


def test_duplicate_username_or_email_conflicts(client, admin):
    resp = client.post('/api/auth/register', json={
        'username': 'alice', 'email': 'other@example.com', 'password': PASSWORD,
    })
    assert resp.status_code == 409
    resp = client.post('/api/auth/register', json={
        'username': 'someone', 'email': 'ALICE@example.com', 'password': PASSWORD,
    })
    assert resp.status_code == 409


def test_registration_validation(client):
    resp = client.post('/api/auth/register', json={'username': '', 'email': 'a@example.com', 'password': PASSWORD})
    assert resp.status_code == 400
    resp = client.post('/api/auth/register', json={'username': 'a', 'email': 'not-an-email', 'password': PASSWORD})
    assert resp.status_code == 400
    resp = client.post('/api/auth/register', json={'username': 'a', 'email': 'a@example.com', 'password': '123'})
    assert resp.status_code == 400


@pytest.mark.parametrize('payload', [
    {'username': 42, 'email': 'a@example.com', 'password': PASSWORD},
    {'username': 'a', 'email': ['a@example.com'], 'password': PASSWORD},
    {'username': 'a', 'email': 'a@example.com', 'password': 12345678},
])
def test_registration_rejects_non_text_fields(client, payload):
    resp = client.post('/api/auth/register', json=payload)
    assert resp.status_code == 400
    assert resp.get_json()['message'].endswith('must be a string.')


def test_request_body_must_be_an_object(client):
    resp = client.post('/api/auth/register', json=['alice', 'alice@example.com', PASSWORD])
    assert resp.status_code == 400
    assert resp.get_json()['message'] == 'Request body must be a JSON object.'


def test_login_and_me(client, author):
    resp = client.post('/api/auth/login', json={'email': 'carol@example.com', 'password': PASSWORD})
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['username'] == 'carol'

    me = client.get('/api/auth/me', headers=auth_header(body['token']))
    assert me.status_code == 200
    assert me.get_json()['data']['email'] == 'carol@example.com'


def test_login_failures_are_indistinguishable(client, author):
    unknown = client.post('/api/auth/login', json={'email': 'nobody@example.com', 'password': PASSWORD})
    wrong = client.post('/api/auth/login', json={'email': 'carol@example.com', 'password': 'wrong-password'})
    assert unknown.status_code == wrong.status_code == 401
    assert unknown.get_json() == wrong.get_json() == {'success': False, 'message': 'Invalid credentials'}


def test_login_requires_both_fields(client):
    resp = client.post('/api/auth/login', json={'email': 'carol@example.com'})
    assert resp.status_code == 400


def test_login_rejects_non_text_fields(client, author):
    resp = client.post('/api/auth/login', json={'email': 'carol@example.com', 'password': 12345678})
    assert resp.status_code == 400
    resp = client.post('/api/auth/login', json={'email': {'$ne': None}, 'password': PASSWORD})
    assert resp.status_code == 400


def test_me_requires_token(client):
    assert client.get('/api/auth/me').status_code == 401
    assert client.get('/api/auth/me', headers=auth_header('garbage')).status_code == 401


def test_expired_token_is_rejected(app, client, author):
    past = datetime.now(timezone.utc) - timedelta(days=31)
    token = jwt.encode({'id': author['id'], 'iat': past, 'exp': past + timedelta(days=30)},
                       app.config['SECRET_KEY'], algorithm='HS256')
    assert client.get('/api/auth/me', headers=auth_header(token)).status_code == 401


def test_token_for_deleted_user_is_invalid(client, admin, author):
    resp = client.delete(f"/api/users/{author['id']}", headers=auth_header(admin['token']))
    assert resp.status_code == 200
    resp = client.get('/api/auth/me', headers=auth_header(author['token']))
    assert resp.status_code == 401
