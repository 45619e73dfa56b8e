"""
Affiliate wallet: running balance plus an append-only transaction ledger.
"""
from django.db import models, transaction
from django.utils.translation import gettext_lazy as _
from decimal import Decimal


class Wallet(models.Model):
    """
    One wallet per affiliate.

    balance = total_earned - total_paid - amounts held by open payouts.
    Every mutation goes through the methods below, which lock the row.
    """
    affiliate = models.OneToOneField(
        'core.Affiliate',
        on_delete=models.CASCADE,
        related_name='wallet',
        verbose_name=_('affiliate'),
    )
    balance = models.DecimalField(
        _('balance'),
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
    )
    total_earned = models.DecimalField(
        _('total earned'),
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
    )
    total_paid = models.DecimalField(
        _('total paid'),
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
    )
    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        verbose_name = _('wallet')
        verbose_name_plural = _('wallets')
        constraints = [
            models.CheckConstraint(
                condition=models.Q(balance__gte=0),
                name='wallet_balance_non_negative',
            )
        ]

    def __str__(self):
        return f"Wallet of {self.affiliate.referral_code} (₹{self.balance})"

    def _locked(self):
        return Wallet.objects.select_for_update().get(pk=self.pk)

    def _sync_from(self, locked):
        self.balance = locked.balance
        self.total_earned = locked.total_earned
        self.total_paid = locked.total_paid

    @transaction.atomic
    def credit(self, amount, description='', reference_id=''):
        """Add earned commission to the wallet."""
        if amount <= 0:
            raise ValueError("Credit amount must be positive.")
        wallet = self._locked()
        wallet.balance += amount
        wallet.total_earned += amount
        wallet.save(update_fields=['balance', 'total_earned', 'updated_at'])
        self._sync_from(wallet)
        return WalletTransaction.objects.create(
            wallet=wallet,
            type=WalletTransaction.Type.CREDIT,
            amount=amount,
            description=description,
            reference_id=str(reference_id),
            status=WalletTransaction.Status.COMPLETED,
        )

    @transaction.atomic
    def hold_for_payout(self, payout):
        """Move a payout's amount out of the spendable balance."""
        wallet = self._locked()
        if payout.amount > wallet.balance:
            raise ValueError("Insufficient wallet balance.")
        wallet.balance -= payout.amount
        wallet.save(update_fields=['balance', 'updated_at'])
        self._sync_from(wallet)
        return WalletTransaction.objects.create(
            wallet=wallet,
            type=WalletTransaction.Type.PAYOUT_REQUEST,
            amount=payout.amount,
            description=f"Payout request #{payout.pk}",
            reference_id=str(payout.pk),
            status=WalletTransaction.Status.PENDING,
        )

    @transaction.atomic
    def release_payout(self, payout):
        """Return the held amount of a failed payout to the balance."""
        wallet = self._locked()
        wallet.balance += payout.amount
        wallet.save(update_fields=['balance', 'updated_at'])
        self._sync_from(wallet)
        WalletTransaction.objects.filter(
            wallet=wallet,
            type=WalletTransaction.Type.PAYOUT_REQUEST,
            reference_id=str(payout.pk),
        ).update(status=WalletTransaction.Status.FAILED)

    @transaction.atomic
    def settle_payout(self, payout):
        """Record a completed payout as paid out."""
        wallet = self._locked()
        wallet.total_paid += payout.amount
        wallet.save(update_fields=['total_paid', 'updated_at'])
        self._sync_from(wallet)
        WalletTransaction.objects.filter(
            wallet=wallet,
            type=WalletTransaction.Type.PAYOUT_REQUEST,
            reference_id=str(payout.pk),
        ).update(status=WalletTransaction.Status.COMPLETED)
        return WalletTransaction.objects.create(
            wallet=wallet,
            type=WalletTransaction.Type.PAYOUT_PROCESSED,
            amount=payout.amount,
            description=f"Payout #{payout.pk} completed",
            reference_id=str(payout.pk),
            status=WalletTransaction.Status.COMPLETED,
        )


class WalletTransaction(models.Model):
    """Ledger line for a wallet."""

    class Type(models.TextChoices):
        CREDIT = 'credit', _('Credit')
        DEBIT = 'debit', _('Debit')
        PAYOUT_REQUEST = 'payout_request', _('Payout request')
        PAYOUT_PROCESSED = 'payout_processed', _('Payout processed')

    class Status(models.TextChoices):
        PENDING = 'pending', _('Pending')
        COMPLETED = 'completed', _('Completed')
        FAILED = 'failed', _('Failed')

    wallet = models.ForeignKey(
        Wallet,
        on_delete=models.CASCADE,
        related_name='transactions',
        verbose_name=_('wallet'),
    )
    type = models.CharField(_('type'), max_length=20, choices=Type.choices)
    amount = models.DecimalField(_('amount'), max_digits=12, decimal_places=2)
    description = models.CharField(_('description'), max_length=255, blank=True)
    reference_id = models.CharField(
        _('reference ID'),
        max_length=100,
        blank=True,
        help_text=_('Purchase or payout this line belongs to.'),
    )
    status = models.CharField(
        _('status'),
        max_length=10,
        choices=Status.choices,
        default=Status.COMPLETED,
    )
    created_at = models.DateTimeField(_('created at'), auto_now_add=True)

    class Meta:
        verbose_name = _('wallet transaction')
        verbose_name_plural = _('wallet transactions')
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"{self.get_type_display()} ₹{self.amount} ({self.status})"
