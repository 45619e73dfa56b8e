"""
Affiliate models: Affiliate, AffiliateClick, PlatformSettings, Subscription.
"""
from django.db import models
from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
from django.utils.translation import gettext_lazy as _
from decimal import Decimal
import secrets
import string


def generate_referral_code():
    """Generate a unique referral code in format LWX-XXXXXX."""
    chars = string.ascii_uppercase + string.digits
    while True:
        code = 'LWX-' + ''.join(secrets.choice(chars) for _ in range(6))
        if not Affiliate.objects.filter(referral_code=code).exists():
            return code


def default_commission_rate():
    return getattr(settings, 'AFFILIATE_COMMISSION_RATE', Decimal('0.30'))


class Affiliate(models.Model):
    """
    Affiliate account attached to a user. Earns a commission on every
    course sold through its referral links.
    """

    class KYCStatus(models.TextChoices):
        NOT_SUBMITTED = 'not_submitted', _('Not submitted')
        PENDING = 'pending', _('Pending')
        UNDER_REVIEW = 'under_review', _('Under review')
        APPROVED = 'approved', _('Approved')
        REJECTED = 'rejected', _('Rejected')

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='affiliate',
        verbose_name=_('user'),
    )
    referral_code = models.CharField(
        _('referral code'),
        max_length=10,
        unique=True,
        blank=True,
    )
    is_active = models.BooleanField(_('active'), default=True)
    kyc_status = models.CharField(
        _('KYC status'),
        max_length=15,
        choices=KYCStatus.choices,
        default=KYCStatus.NOT_SUBMITTED,
    )
    total_clicks = models.PositiveIntegerField(_('total clicks'), default=0)
    total_signups = models.PositiveIntegerField(_('total signups'), default=0)
    total_earnings = models.DecimalField(
        _('total earnings'),
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
    )
    created_at = models.DateTimeField(_('created at'), auto_now_add=True)

    class Meta:
        verbose_name = _('affiliate')
        verbose_name_plural = _('affiliates')
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.referral_code} ({self.user.email})"

    def save(self, *args, **kwargs):
        if not self.referral_code:
            self.referral_code = generate_referral_code()
        super().save(*args, **kwargs)

    @property
    def is_kyc_approved(self):
        return self.kyc_status == self.KYCStatus.APPROVED

    @classmethod
    def ensure_for_user(cls, user):
        """
        Return the user's affiliate account, creating it (and its wallet)
        on first use. Creating one promotes the user to AFFILIATE.
        """
        from .wallet import Wallet

        affiliate, created = cls.objects.get_or_create(user=user)
        Wallet.objects.get_or_create(affiliate=affiliate)
        if created:
            user.promote_to(user.Role.AFFILIATE)
        return affiliate


class AffiliateClick(models.Model):
    """One visit through an affiliate link."""
    affiliate = models.ForeignKey(
        Affiliate,
        on_delete=models.CASCADE,
        related_name='clicks',
        verbose_name=_('affiliate'),
    )
    ip_address = models.GenericIPAddressField(_('IP address'), null=True, blank=True)
    user_agent = models.CharField(_('user agent'), max_length=500, blank=True)
    course_ids = models.CharField(
        _('course IDs'),
        max_length=500,
        blank=True,
        help_text=_('Comma-separated course IDs carried by the link.'),
    )
    created_at = models.DateTimeField(_('created at'), auto_now_add=True)

    class Meta:
        verbose_name = _('affiliate click')
        verbose_name_plural = _('affiliate clicks')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['affiliate', 'created_at'], name='core_affcli_aff_created_idx'),
        ]

    def __str__(self):
        return f"Click for {self.affiliate.referral_code} at {self.created_at}"


class PlatformSettings(models.Model):
    """
    Singleton model for platform-wide affiliate settings.
    Only one instance should exist in the database.
    """
    affiliate_commission_rate = models.DecimalField(
        _('affiliate commission rate'),
        max_digits=5,
        decimal_places=4,
        default=default_commission_rate,
        validators=[MinValueValidator(Decimal('0')), MaxValueValidator(Decimal('1'))],
        help_text=_('Share of the course price paid to the affiliate (0.30 = 30%).'),
    )
    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        verbose_name = _('platform settings')
        verbose_name_plural = _('platform settings')

    def __str__(self):
        return f"Platform Settings (commission {self.affiliate_commission_rate * 100:.0f}%)"

    def save(self, *args, **kwargs):
        # Ensure only one instance exists (singleton)
        if not self.pk and PlatformSettings.objects.exists():
            raise ValueError("Only one PlatformSettings instance allowed.")
        super().save(*args, **kwargs)

    @classmethod
    def get_settings(cls):
        """Get the singleton settings instance, creating it if needed."""
        settings_obj, _ = cls.objects.get_or_create(pk=1)
        return settings_obj

    @classmethod
    def get_commission_rate(cls):
        return cls.get_settings().affiliate_commission_rate


def default_subscription_fee():
    return getattr(settings, 'SUBSCRIPTION_MONTHLY_FEE', Decimal('999'))


class Subscription(models.Model):
    """
    Paid affiliate plan. Recorded by staff from the Django admin; the fee
    counts towards platform earnings.
    """

    class PlanType(models.TextChoices):
        MONTHLY = 'monthly', _('Monthly')

    class Status(models.TextChoices):
        ACTIVE = 'active', _('Active')
        EXPIRED = 'expired', _('Expired')
        CANCELLED = 'cancelled', _('Cancelled')

    affiliate = models.ForeignKey(
        Affiliate,
        on_delete=models.CASCADE,
        related_name='subscriptions',
        verbose_name=_('affiliate'),
    )
    plan_type = models.CharField(
        _('plan type'),
        max_length=10,
        choices=PlanType.choices,
        default=PlanType.MONTHLY,
    )
    amount = models.DecimalField(
        _('amount'),
        max_digits=10,
        decimal_places=2,
        default=default_subscription_fee,
    )
    status = models.CharField(
        _('status'),
        max_length=10,
        choices=Status.choices,
        default=Status.ACTIVE,
    )
    payment_reference = models.CharField(_('payment reference'), max_length=255, blank=True)
    started_at = models.DateTimeField(_('started at'))
    expires_at = models.DateTimeField(_('expires at'))
    created_at = models.DateTimeField(_('created at'), auto_now_add=True)

    class Meta:
        verbose_name = _('subscription')
        verbose_name_plural = _('subscriptions')
        ordering = ['-started_at']

    def __str__(self):
        return f"{self.affiliate.user.email} - {self.get_plan_type_display()} ({self.status})"
