from datetime import timedelta
import secrets

from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from .managers import CustomUserManager


class User(AbstractUser):
    """
    Custom User model for the LearnWealthX platform.

    Uses email as the primary identifier instead of username. The role
    drives what the API lets a user do:
    - GUEST: registered, has not bought anything yet
    - BUYER: owns at least one course
    - AFFILIATE: has an affiliate account (referral links, wallet, payouts)
    - ADMIN: back-office access
    """

    class Role(models.TextChoices):
        GUEST = 'GUEST', _('Guest')
        BUYER = 'BUYER', _('Buyer')
        AFFILIATE = 'AFFILIATE', _('Affiliate')
        ADMIN = 'ADMIN', _('Admin')

    class Provider(models.TextChoices):
        EMAIL = 'email', _('Email & password')
        GOOGLE = 'google', _('Google')

    # Roles only ever move up this ladder
    ROLE_RANK = {
        Role.GUEST: 0,
        Role.BUYER: 1,
        Role.AFFILIATE: 2,
        Role.ADMIN: 3,
    }

    # Remove username field, use email instead
    username = None
    email = models.EmailField(
        _('email address'),
        unique=True,
        help_text=_('Required. A valid email address.'),
        error_messages={
            'unique': _('A user with that email already exists.'),
        },
    )

    name = models.CharField(
        _('name'),
        max_length=150,
        blank=True,
        help_text=_('Full name shown on the platform.'),
    )

    picture = models.URLField(
        _('picture'),
        max_length=500,
        blank=True,
        help_text=_('Avatar URL (usually supplied by Google).'),
    )

    role = models.CharField(
        _('role'),
        max_length=10,
        choices=Role.choices,
        default=Role.GUEST,
    )

    provider = models.CharField(
        _('sign-in provider'),
        max_length=10,
        choices=Provider.choices,
        default=Provider.EMAIL,
    )

    # Google OAuth account ID (for users who signed up via Google)
    google_account_id = models.CharField(
        _('Google account ID'),
        max_length=255,
        blank=True,
        null=True,
        unique=True,
        help_text=_('Google account identifier for OAuth users.'),
    )

    dob = models.DateField(
        _('date of birth'),
        null=True,
        blank=True,
    )

    # Affiliate whose link brought this user to the platform
    referred_by = models.ForeignKey(
        'core.Affiliate',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='referred_users',
        verbose_name=_('referred by'),
    )

    # Use email as the username field
    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = []

    objects = CustomUserManager()

    class Meta:
        verbose_name = _('user')
        verbose_name_plural = _('users')
        ordering = ['-date_joined']

    def __str__(self):
        return self.name or self.email

    def get_display_name(self):
        """Returns the name or the local part of the email if not set."""
        return self.name or self.email.split('@')[0]

    @property
    def is_admin(self):
        return self.role == self.Role.ADMIN or self.is_superuser

    def promote_to(self, role):
        """
        Raise the user's role to `role` if it is higher than the current one.
        Returns True when the role changed.
        """
        if self.ROLE_RANK[role] <= self.ROLE_RANK.get(self.role, 0):
            return False
        self.role = role
        self.save(update_fields=['role'])
        return True


def generate_reset_token():
    return secrets.token_urlsafe(32)


class PasswordResetToken(models.Model):
    """
    Single-use token e-mailed by the forgot-password flow.
    """
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='password_reset_tokens',
        verbose_name=_('user'),
    )
    token = models.CharField(
        _('token'),
        max_length=64,
        unique=True,
        default=generate_reset_token,
    )
    created_at = models.DateTimeField(_('created at'), auto_now_add=True)
    expires_at = models.DateTimeField(_('expires at'))
    used_at = models.DateTimeField(_('used at'), null=True, blank=True)

    class Meta:
        verbose_name = _('password reset token')
        verbose_name_plural = _('password reset tokens')
        ordering = ['-created_at']

    def __str__(self):
        return f"Reset token for {self.user.email}"

    def save(self, *args, **kwargs):
        if not self.expires_at:
            hours = getattr(settings, 'PASSWORD_RESET_TOKEN_HOURS', 1)
            self.expires_at = timezone.now() + timedelta(hours=hours)
        super().save(*args, **kwargs)

    @property
    def is_valid(self):
        return self.used_at is None and self.expires_at > timezone.now()
