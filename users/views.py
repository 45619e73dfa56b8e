"""
JSON authentication API used by the web client (session cookie auth).
"""
import logging

from django.conf import settings
from django.contrib.auth import authenticate, login, logout, update_session_auth_hash
from django.core.exceptions import ValidationError
from django.core.validators import validate_email
from django.db import IntegrityError, transaction
from django.http import JsonResponse
from django.utils import timezone
from django.utils.dateparse import parse_date

from core.earnings import attribute_signup
from core.serializers import user_data
from core.views._helpers import api_view, error, login_required_json, read_json

from .google_auth import fetch_google_profile
from .models import User, PasswordResetToken

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
MODEL_BACKEND = 'django.contrib.auth.backends.ModelBackend'


def _clean_email(value):
    email = (value or '').strip().lower()
    try:
        validate_email(email)
    except ValidationError:
        return None
    return email


@api_view(['POST'])
def signup(request):
    data, err = read_json(request)
    if err:
        return err

    email = _clean_email(data.get('email'))
    password = data.get('password') or ''
    name = (data.get('name') or '').strip()[:150]

    if not email:
        return error('A valid email address is required')
    if len(password) < MIN_PASSWORD_LENGTH:
        return error(f'Password must be at least {MIN_PASSWORD_LENGTH} characters')
    if User.objects.filter(email__iexact=email).exists():
        return error('An account with this email already exists')

    try:
        with transaction.atomic():
            user = User.objects.create_user(email=email, password=password, name=name)
            attribute_signup(request, user)
    except IntegrityError:
        return error('An account with this email already exists')

    login(request, user, backend=MODEL_BACKEND)
    logger.info(f"New email signup: user {user.pk}")
    return JsonResponse({'user': user_data(user)}, status=201)


@api_view(['POST'])
def login_view(request):
    data, err = read_json(request)
    if err:
        return err

    email = (data.get('email') or '').strip().lower()
    password = data.get('password') or ''
    if not email or not password:
        return error('Email and password are required')

    user = authenticate(request, email=email, password=password)
    if user is None:
        return error('Invalid email or password', status=401)

    login(request, user, backend=MODEL_BACKEND)
    return JsonResponse({'user': user_data(user)})


@api_view(['POST'])
def logout_view(request):
    logout(request)
    return JsonResponse({'success': True})


@api_view(['GET'])
def me(request):
    if not request.user.is_authenticated:
        return error('Not authenticated', status=401)
    return JsonResponse({'user': user_data(request.user)})


@api_view(['POST'])
def google_auth(request):
    """
    Sign in with a Google profile obtained by the client.

    With GOOGLE_VERIFY_TOKENS on, the access token is checked against
    Google and the verified profile replaces whatever the client sent.
    """
    data, err = read_json(request)
    if err:
        return err

    email = _clean_email(data.get('email'))
    google_id = str(data.get('googleId') or '').strip()
    name = (data.get('name') or '').strip()[:150]
    picture = (data.get('picture') or '').strip()[:500]

    if settings.GOOGLE_VERIFY_TOKENS:
        access_token = data.get('accessToken')
        if not access_token:
            return error('Google access token is required')
        profile = fetch_google_profile(access_token)
        if not profile['success']:
            return error(profile['error'], status=401)
        if google_id and google_id != profile['sub']:
            return error('Google account does not match token', status=401)
        if email and email != profile['email']:
            return error('Google email does not match token', status=401)
        google_id = profile['sub']
        email = profile['email']
        name = name or profile['name']
        picture = picture or profile['picture']

    if not email or not google_id:
        return error('Google email and account ID are required')

    created = False
    with transaction.atomic():
        user = User.objects.filter(google_account_id=google_id).first()
        if user is None:
            user = User.objects.filter(email__iexact=email).first()
            if user is None:
                user = User.objects.create_user(
                    email=email,
                    name=name,
                    picture=picture,
                    provider=User.Provider.GOOGLE,
                    google_account_id=google_id,
                )
                created = True
            else:
                # Link Google to an existing email account
                user.google_account_id = google_id
                user.name = user.name or name
                user.picture = user.picture or picture
                user.save(update_fields=['google_account_id', 'name', 'picture'])
        elif picture and user.picture != picture:
            user.picture = picture
            user.save(update_fields=['picture'])

        if created:
            attribute_signup(request, user)

    if not user.is_active:
        return error('This account has been disabled', status=403)

    login(request, user, backend=MODEL_BACKEND)
    logger.info(f"Google sign-in for user {user.pk} (created={created})")
    return JsonResponse({'user': user_data(user)}, status=201 if created else 200)


@api_view(['GET', 'PUT'])
@login_required_json
def profile(request):
    user = request.user
    if request.method == 'GET':
        return JsonResponse({'user': user_data(user)})

    data, err = read_json(request)
    if err:
        return err

    update_fields = []
    if 'name' in data:
        user.name = (data.get('name') or '').strip()[:150]
        update_fields.append('name')

    if 'dob' in data:
        raw_dob = data.get('dob')
        if raw_dob:
            dob = parse_date(str(raw_dob)[:10])
            if dob is None or dob > timezone.localdate():
                return error('Invalid date of birth')
            user.dob = dob
        else:
            user.dob = None
        update_fields.append('dob')

    new_password = data.get('newPassword')
    if new_password:
        if len(new_password) < MIN_PASSWORD_LENGTH:
            return error(f'Password must be at least {MIN_PASSWORD_LENGTH} characters')
        if user.has_usable_password() and not user.check_password(data.get('currentPassword') or ''):
            return error('Current password is incorrect')
        user.set_password(new_password)
        update_fields.append('password')

    if update_fields:
        user.save(update_fields=update_fields)
    if 'password' in update_fields:
        update_session_auth_hash(request, user)

    return JsonResponse({'user': user_data(user)})


@api_view(['POST'])
def forgot_password(request):
    from core.tasks import send_password_reset_email

    data, err = read_json(request)
    if err:
        return err

    email = (data.get('email') or '').strip().lower()
    if not email:
        return error('Email is required')

    user = User.objects.filter(email__iexact=email, is_active=True).first()
    if user is not None:
        token = PasswordResetToken.objects.create(user=user)
        try:
            send_password_reset_email(token.pk)
        except Exception as e:
            logger.error(f"Failed to send password reset email: {e}")

    # Same answer whether or not the account exists
    return JsonResponse({
        'success': True,
        'message': 'If an account exists for that email, a reset link has been sent.',
    })


@api_view(['POST'])
def reset_password(request):
    data, err = read_json(request)
    if err:
        return err

    token_value = (data.get('token') or '').strip()
    new_password = data.get('newPassword') or ''
    if not token_value:
        return error('Reset token is required')
    if len(new_password) < MIN_PASSWORD_LENGTH:
        return error(f'Password must be at least {MIN_PASSWORD_LENGTH} characters')

    token = PasswordResetToken.objects.select_related('user').filter(token=token_value).first()
    if token is None or not token.is_valid:
        return error('Invalid or expired reset link')

    with transaction.atomic():
        user = token.user
        user.set_password(new_password)
        user.save(update_fields=['password'])
        PasswordResetToken.objects.filter(user=user, used_at__isnull=True).update(used_at=timezone.now())

    logger.info(f"Password reset for user {user.pk}")
    return JsonResponse({'success': True, 'message': 'Password has been reset. You can now log in.'})
