"""
Tests for the JSON authentication API: email signup/login, Google
sign-in, profile updates and the password reset flow.
"""
from datetime import timedelta
from unittest.mock import patch

import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone

from core.earnings import AFFILIATE_COOKIE
from users.models import PasswordResetToken

User = get_user_model()

pytestmark = pytest.mark.django_db


def post_json(client, url, data):
    return client.post(url, data=data, content_type='application/json')


# =============================================================================
# Signup / login
# =============================================================================

def test_signup_creates_guest_and_logs_in(client):
    response = post_json(client, '/api/auth/signup', {
        'email': 'New.User@Example.com',
        'password': 'secret123',
        'name': 'New User',
    })

    assert response.status_code == 201
    data = response.json()['user']
    assert data['email'] == 'new.user@example.com'
    assert data['role'] == User.Role.GUEST
    assert data['provider'] == User.Provider.EMAIL

    me = client.get('/api/auth/me')
    assert me.status_code == 200
    assert me.json()['user']['email'] == 'new.user@example.com'


def test_signup_rejects_duplicate_email(client, buyer):
    response = post_json(client, '/api/auth/signup', {
        'email': 'BUYER@example.com',
        'password': 'secret123',
    })

    assert response.status_code == 400
    assert 'already exists' in response.json()['error']


@pytest.mark.parametrize('payload', [
    {'email': 'not-an-email', 'password': 'secret123'},
    {'email': 'short@example.com', 'password': '123'},
    {'password': 'secret123'},
])
def test_signup_validation(client, payload):
    response = post_json(client, '/api/auth/signup', payload)

    assert response.status_code == 400
    assert not User.objects.exists()


def test_signup_attributes_referring_affiliate(client, affiliate):
    client.cookies[AFFILIATE_COOKIE] = str(affiliate.pk)

    response = post_json(client, '/api/auth/signup', {
        'email': 'referred@example.com',
        'password': 'secret123',
    })

    assert response.status_code == 201
    user = User.objects.get(email='referred@example.com')
    assert user.referred_by == affiliate
    affiliate.refresh_from_db()
    assert affiliate.total_signups == 1


def test_signup_ignores_inactive_affiliate(client, affiliate):
    affiliate.is_active = False
    affiliate.save()
    client.cookies[AFFILIATE_COOKIE] = affiliate.referral_code

    post_json(client, '/api/auth/signup', {
        'email': 'referred@example.com',
        'password': 'secret123',
    })

    assert User.objects.get(email='referred@example.com').referred_by is None


def test_login_and_logout(client, buyer):
    response = post_json(client, '/api/auth/login', {
        'email': 'Buyer@Example.com',
        'password': 'secret123',
    })
    assert response.status_code == 200
    assert response.json()['user']['id'] == buyer.pk

    assert client.post('/api/auth/logout').status_code == 200
    assert client.get('/api/auth/me').status_code == 401


def test_login_wrong_password(client, buyer):
    response = post_json(client, '/api/auth/login', {
        'email': 'buyer@example.com',
        'password': 'wrong-password',
    })

    assert response.status_code == 401


def test_me_requires_authentication(client):
    assert client.get('/api/auth/me').status_code == 401


def test_wrong_method_returns_json_405(client):
    response = client.get('/api/auth/login')

    assert response.status_code == 405
    assert 'error' in response.json()


# =============================================================================
# Google sign-in
# =============================================================================

GOOGLE_PROFILE = {
    'success': True,
    'sub': 'google-123',
    'email': 'googler@example.com',
    'name': 'Google User',
    'picture': 'https://lh3.googleusercontent.com/a/avatar',
}


@patch('users.views.fetch_google_profile', return_value=GOOGLE_PROFILE)
def test_google_signin_creates_user(mock_profile, client):
    response = post_json(client, '/api/auth/google', {'accessToken': 'token'})

    assert response.status_code == 201
    user = User.objects.get(email='googler@example.com')
    assert user.provider == User.Provider.GOOGLE
    assert user.google_account_id == 'google-123'
    assert not user.has_usable_password()
    mock_profile.assert_called_once_with('token')


@patch('users.views.fetch_google_profile', return_value=GOOGLE_PROFILE)
def test_google_signin_links_existing_email_account(mock_profile, client, django_user_model):
    existing = django_user_model.objects.create_user(email='googler@example.com', password='secret123')

    response = post_json(client, '/api/auth/google', {'accessToken': 'token'})

    assert response.status_code == 200
    existing.refresh_from_db()
    assert existing.google_account_id == 'google-123'
    assert existing.check_password('secret123')


@patch('users.views.fetch_google_profile', return_value=GOOGLE_PROFILE)
def test_google_signin_rejects_mismatched_account(mock_profile, client):
    response = post_json(client, '/api/auth/google', {
        'accessToken': 'token',
        'googleId': 'someone-else',
    })

    assert response.status_code == 401
    assert not User.objects.exists()


@patch('users.views.fetch_google_profile', return_value={'success': False, 'error': 'Invalid Google access token.'})
def test_google_signin_invalid_token(mock_profile, client):
    response = post_json(client, '/api/auth/google', {'accessToken': 'bad'})

    assert response.status_code == 401
    assert response.json()['error'] == 'Invalid Google access token.'


def test_google_signin_without_verification(client, settings):
    settings.GOOGLE_VERIFY_TOKENS = False

    response = post_json(client, '/api/auth/google', {
        'email': 'trusted@example.com',
        'googleId': 'g-42',
        'name': 'Trusted',
    })

    assert response.status_code == 201
    assert User.objects.get(google_account_id='g-42').email == 'trusted@example.com'


# =============================================================================
# Profile
# =============================================================================

def test_profile_update_name_and_dob(buyer_client, buyer):
    response = buyer_client.put('/api/auth/profile', data={
        'name': 'Priya Sharma',
        'dob': '1995-04-12',
    }, content_type='application/json')

    assert response.status_code == 200
    buyer.refresh_from_db()
    assert buyer.name == 'Priya Sharma'
    assert buyer.dob.isoformat() == '1995-04-12'


def test_profile_password_change_needs_current_password(buyer_client, buyer):
    response = buyer_client.put('/api/auth/profile', data={
        'currentPassword': 'wrong',
        'newPassword': 'newsecret',
    }, content_type='application/json')
    assert response.status_code == 400

    response = buyer_client.put('/api/auth/profile', data={
        'currentPassword': 'secret123',
        'newPassword': 'newsecret',
    }, content_type='application/json')
    assert response.status_code == 200
    buyer.refresh_from_db()
    assert buyer.check_password('newsecret')
    # Session survives the password change
    assert buyer_client.get('/api/auth/me').status_code == 200


def test_profile_requires_login(client):
    assert client.get('/api/auth/profile').status_code == 401


# =============================================================================
# Password reset
# =============================================================================

def test_forgot_password_sends_reset_email(client, buyer, mailoutbox):
    response = post_json(client, '/api/auth/forgot-password', {'email': 'buyer@example.com'})

    assert response.status_code == 200
    token = PasswordResetToken.objects.get(user=buyer)
    assert len(mailoutbox) == 1
    assert mailoutbox[0].to == ['buyer@example.com']
    assert token.token in mailoutbox[0].body


def test_forgot_password_unknown_email_gives_same_answer(client, mailoutbox):
    response = post_json(client, '/api/auth/forgot-password', {'email': 'nobody@example.com'})

    assert response.status_code == 200
    assert response.json()['success'] is True
    assert mailoutbox == []


def test_reset_password_is_single_use(client, buyer):
    token = PasswordResetToken.objects.create(user=buyer)

    response = post_json(client, '/api/auth/reset-password', {
        'token': token.token,
        'newPassword': 'brandnew1',
    })
    assert response.status_code == 200
    buyer.refresh_from_db()
    assert buyer.check_password('brandnew1')

    response = post_json(client, '/api/auth/reset-password', {
        'token': token.token,
        'newPassword': 'another1',
    })
    assert response.status_code == 400


def test_reset_password_expired_token(client, buyer):
    token = PasswordResetToken.objects.create(
        user=buyer,
        expires_at=timezone.now() - timedelta(minutes=1),
    )

    response = post_json(client, '/api/auth/reset-password', {
        'token': token.token,
        'newPassword': 'brandnew1',
    })

    assert response.status_code == 400
    buyer.refresh_from_db()
    assert buyer.check_password('secret123')
