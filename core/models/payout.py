"""
Affiliate payout (withdrawal) requests.
"""
from django.db import models
from django.conf import settings
from django.utils.translation import gettext_lazy as _
import json


class Payout(models.Model):
    """
    A withdrawal of wallet balance. The amount is held from the wallet
    while the payout is open (pending or processing).
    """

    class Status(models.TextChoices):
        PENDING = 'pending', _('Pending')
        PROCESSING = 'processing', _('Processing')
        COMPLETED = 'completed', _('Completed')
        FAILED = 'failed', _('Failed')

    class PaymentMethod(models.TextChoices):
        BANK_TRANSFER = 'bank_transfer', _('Bank transfer')
        UPI = 'upi', _('UPI')
        PAYPAL = 'paypal', _('PayPal')

    OPEN_STATUSES = (Status.PENDING, Status.PROCESSING)

    affiliate = models.ForeignKey(
        'core.Affiliate',
        on_delete=models.CASCADE,
        related_name='payouts',
        verbose_name=_('affiliate'),
    )
    amount = models.DecimalField(_('amount'), max_digits=12, decimal_places=2)
    status = models.CharField(
        _('status'),
        max_length=15,
        choices=Status.choices,
        default=Status.PENDING,
    )
    payment_method = models.CharField(
        _('payment method'),
        max_length=15,
        choices=PaymentMethod.choices,
        default=PaymentMethod.BANK_TRANSFER,
    )
    payment_details = models.TextField(
        _('payment details'),
        blank=True,
        help_text=_('JSON with bank account, UPI ID or PayPal email.'),
    )
    is_weekly = models.BooleanField(
        _('weekly payout'),
        default=False,
        help_text=_('Generated by the weekly payout run.'),
    )
    failure_reason = models.TextField(_('failure reason'), blank=True)
    processed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='processed_payouts',
        verbose_name=_('processed by'),
    )
    created_at = models.DateTimeField(_('created at'), auto_now_add=True)
    processed_at = models.DateTimeField(_('processed at'), null=True, blank=True)
    completed_at = models.DateTimeField(_('completed at'), null=True, blank=True)

    class Meta:
        verbose_name = _('payout')
        verbose_name_plural = _('payouts')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status'], name='core_payout_status_idx'),
            models.Index(fields=['affiliate', 'status'], name='core_payout_aff_status_idx'),
        ]

    def __str__(self):
        return f"Payout #{self.pk} - ₹{self.amount} ({self.status})"

    @property
    def is_open(self):
        return self.status in self.OPEN_STATUSES

    def get_payment_details(self):
        if not self.payment_details:
            return {}
        try:
            return json.loads(self.payment_details)
        except (json.JSONDecodeError, ValueError):
            return {'raw': self.payment_details}
