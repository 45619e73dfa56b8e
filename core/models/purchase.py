"""
Checkout models: Order (one gateway payment) and Purchase (course ownership).
"""
from django.db import models
from django.conf import settings
from django.utils.translation import gettext_lazy as _
from decimal import Decimal

from .course import Course


class Order(models.Model):
    """
    A checkout for one or more courses, paid in a single Razorpay payment.
    Amounts are frozen at creation time.
    """

    class Status(models.TextChoices):
        CREATED = 'created', _('Created')
        PAID = 'paid', _('Paid')
        FAILED = 'failed', _('Failed')

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='orders',
        verbose_name=_('user'),
    )
    courses = models.ManyToManyField(
        Course,
        related_name='orders',
        verbose_name=_('courses'),
    )
    base_amount = models.DecimalField(
        _('base amount'),
        max_digits=12,
        decimal_places=2,
        help_text=_('Sum of course prices (INR).'),
    )
    gst_amount = models.DecimalField(
        _('GST amount'),
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
    )
    gateway_fee_amount = models.DecimalField(
        _('gateway fee amount'),
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
    )
    total_amount = models.DecimalField(
        _('total amount'),
        max_digits=12,
        decimal_places=2,
        help_text=_('Amount charged to the buyer (INR).'),
    )
    currency = models.CharField(_('currency'), max_length=3, default='INR')
    razorpay_order_id = models.CharField(
        _('Razorpay order ID'),
        max_length=100,
        unique=True,
        null=True,
        blank=True,
    )
    razorpay_payment_id = models.CharField(
        _('Razorpay payment ID'),
        max_length=100,
        blank=True,
    )
    razorpay_signature = models.CharField(
        _('Razorpay signature'),
        max_length=255,
        blank=True,
    )
    status = models.CharField(
        _('status'),
        max_length=10,
        choices=Status.choices,
        default=Status.CREATED,
    )
    # Attribution is decided when the order is created
    affiliate = models.ForeignKey(
        'core.Affiliate',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='orders',
        verbose_name=_('affiliate'),
    )
    is_bypass = models.BooleanField(
        _('payment bypassed'),
        default=False,
        help_text=_('Completed without the gateway (development mode).'),
    )
    created_at = models.DateTimeField(_('created at'), auto_now_add=True)
    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        verbose_name = _('order')
        verbose_name_plural = _('orders')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status'], name='core_order_status_idx'),
        ]

    def __str__(self):
        return f"Order {self.razorpay_order_id or self.pk} - {self.user.email}"

    @property
    def amount_in_paise(self):
        return int((self.total_amount * 100).quantize(Decimal('1')))


class Purchase(models.Model):
    """
    Ownership of a course by a user, created when an order is paid.
    Holds the affiliate commission split for that course.
    """

    class Status(models.TextChoices):
        COMPLETED = 'completed', _('Completed')
        REFUNDED = 'refunded', _('Refunded')

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='purchases',
        verbose_name=_('buyer'),
    )
    course = models.ForeignKey(
        Course,
        on_delete=models.CASCADE,
        related_name='purchases',
        verbose_name=_('course'),
    )
    order = models.ForeignKey(
        Order,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='purchases',
        verbose_name=_('order'),
    )
    amount = models.DecimalField(
        _('amount'),
        max_digits=10,
        decimal_places=2,
        help_text=_('Course price paid, excluding GST and gateway fee.'),
    )
    affiliate = models.ForeignKey(
        'core.Affiliate',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='purchases',
        verbose_name=_('affiliate'),
    )
    commission = models.DecimalField(
        _('affiliate commission'),
        max_digits=10,
        decimal_places=2,
        default=Decimal('0.00'),
    )
    platform_share = models.DecimalField(
        _('platform share'),
        max_digits=10,
        decimal_places=2,
        default=Decimal('0.00'),
    )
    status = models.CharField(
        _('status'),
        max_length=10,
        choices=Status.choices,
        default=Status.COMPLETED,
    )
    created_at = models.DateTimeField(_('created at'), auto_now_add=True)

    class Meta:
        verbose_name = _('purchase')
        verbose_name_plural = _('purchases')
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['user', 'course'],
                name='unique_user_course_purchase'
            )
        ]
        indexes = [
            models.Index(fields=['affiliate', 'created_at'], name='core_purcha_aff_created_idx'),
            models.Index(fields=['status'], name='core_purcha_status_idx'),
        ]

    def __str__(self):
        return f"{self.user.email} - {self.course.title}"
