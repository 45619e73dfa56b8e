"""
Money movements: completing paid orders, crediting affiliate commission,
and the payout lifecycle. Everything that touches a wallet runs inside a
database transaction.
"""
from datetime import timedelta
import json
import logging

from django.conf import settings
from django.db import transaction
from django.db.models import F
from django.utils import timezone

logger = logging.getLogger(__name__)

AFFILIATE_COOKIE = 'affiliate_ref'
AFFILIATE_COURSES_COOKIE = 'affiliate_courses'


class PayoutError(Exception):
    """A payout request or status change that is not allowed."""


# =============================================================================
# Attribution
# =============================================================================

def get_cookie_affiliate(request):
    """Affiliate named by the attribution cookie, if it still exists."""
    from core.models import Affiliate

    ref = request.COOKIES.get(AFFILIATE_COOKIE, '').strip()
    if not ref:
        return None
    lookup = {'pk': ref} if ref.isdigit() else {'referral_code': ref.upper()}
    return Affiliate.objects.select_related('user').filter(**lookup).first()


def is_eligible_referrer(affiliate, user):
    """Inactive affiliates and the buyer's own account never earn."""
    if affiliate is None or not affiliate.is_active:
        return False
    if user is not None and (
        affiliate.user_id == user.pk
        or affiliate.user.email.lower() == (user.email or '').lower()
    ):
        return False
    return True


def resolve_order_affiliate(request, user):
    """
    Affiliate credited for an order: the cookie wins, else whoever
    referred the user at signup.
    """
    affiliate = get_cookie_affiliate(request)
    if is_eligible_referrer(affiliate, user):
        return affiliate
    affiliate = user.referred_by
    if is_eligible_referrer(affiliate, user):
        return affiliate
    return None


def attribute_signup(request, user):
    """
    Record the referring affiliate on a freshly created account.
    Returns the affiliate or None.
    """
    from core.models import Affiliate

    if user.referred_by_id:
        return None
    affiliate = get_cookie_affiliate(request)
    if not is_eligible_referrer(affiliate, user):
        return None
    user.referred_by = affiliate
    user.save(update_fields=['referred_by'])
    Affiliate.objects.filter(pk=affiliate.pk).update(total_signups=F('total_signups') + 1)
    logger.info(f"User {user.pk} attributed to affiliate {affiliate.referral_code}")
    return affiliate


# =============================================================================
# Orders & commission
# =============================================================================

def process_affiliate_commission(purchase):
    """
    Credit the affiliate for one purchase. Called after the purchase row
    holds its commission split.
    """
    from core.models import Affiliate, Wallet

    if not purchase.affiliate_id or purchase.commission <= 0:
        return None

    wallet, _ = Wallet.objects.get_or_create(affiliate_id=purchase.affiliate_id)
    txn = wallet.credit(
        purchase.commission,
        description=f"Commission for {purchase.course.title}",
        reference_id=purchase.pk,
    )
    Affiliate.objects.filter(pk=purchase.affiliate_id).update(
        total_earnings=F('total_earnings') + purchase.commission
    )
    logger.info(
        f"Credited ₹{purchase.commission} to affiliate {purchase.affiliate_id} "
        f"for purchase {purchase.pk}"
    )
    return txn


def complete_order(order, payment_id='', signature=''):
    """
    Mark an order paid and grant the courses in it.

    Idempotent: an order that is already paid is returned untouched.
    Returns the list of purchases created by this call.
    """
    from core.models import Order, Purchase, PlatformSettings
    from core.pricing import split_commission

    with transaction.atomic():
        order = Order.objects.select_for_update().get(pk=order.pk)
        if order.status == Order.Status.PAID:
            return []

        order.status = Order.Status.PAID
        if payment_id:
            order.razorpay_payment_id = payment_id
        if signature:
            order.razorpay_signature = signature
        order.save(update_fields=[
            'status', 'razorpay_payment_id', 'razorpay_signature', 'updated_at'
        ])

        rate = PlatformSettings.get_commission_rate() if order.affiliate_id else 0
        purchases = []
        for course in order.courses.all():
            existing = Purchase.objects.filter(user=order.user, course=course).first()
            if existing is not None and existing.status == Purchase.Status.COMPLETED:
                logger.warning(f"Order {order.pk}: user already owns course {course.pk}, skipping")
                continue
            commission, platform_share = split_commission(course.price, rate)
            values = {
                'order': order,
                'amount': course.price,
                'affiliate': order.affiliate,
                'commission': commission,
                'platform_share': platform_share,
                'status': Purchase.Status.COMPLETED,
            }
            if existing is None:
                purchase = Purchase.objects.create(user=order.user, course=course, **values)
            else:
                # One row per (user, course): a refunded purchase is reactivated
                for field, value in values.items():
                    setattr(existing, field, value)
                existing.created_at = timezone.now()
                existing.save()
                purchase = existing
                logger.info(f"Order {order.pk}: reactivated refunded purchase {purchase.pk}")
            process_affiliate_commission(purchase)
            purchases.append(purchase)

        order.user.promote_to(order.user.Role.BUYER)

    logger.info(f"Order {order.pk} completed with {len(purchases)} purchase(s)")
    return purchases


# =============================================================================
# Payouts
# =============================================================================

def available_for_payout(affiliate):
    """Whole balance once KYC is approved and the minimum is reached."""
    wallet = getattr(affiliate, 'wallet', None)
    if wallet is None or not affiliate.is_kyc_approved:
        return 0
    if wallet.balance < settings.PAYOUT_MINIMUM_AMOUNT:
        return 0
    return wallet.balance


def default_payment_details(affiliate):
    """Bank details from the approved KYC submission."""
    kyc = getattr(affiliate, 'kyc', None)
    if kyc is None:
        return {}
    return {
        'accountHolderName': kyc.account_holder_name,
        'accountNumber': kyc.bank_account_number,
        'ifscCode': kyc.bank_ifsc,
        'bankName': kyc.bank_name,
    }


def request_payout(affiliate, amount, payment_method, payment_details=None, is_weekly=False):
    """
    Create a payout and hold its amount from the wallet.
    Raises PayoutError with a client-facing message when not allowed.
    """
    from core.models import Payout, Wallet

    if not affiliate.is_active:
        raise PayoutError('Your affiliate account is inactive.')
    if not affiliate.is_kyc_approved:
        raise PayoutError('KYC must be approved before requesting a payout.')
    if amount < settings.PAYOUT_MINIMUM_AMOUNT:
        raise PayoutError(f'Minimum payout amount is ₹{settings.PAYOUT_MINIMUM_AMOUNT}.')
    if payment_method not in Payout.PaymentMethod.values:
        raise PayoutError('Invalid payment method.')

    if not payment_details and payment_method == Payout.PaymentMethod.BANK_TRANSFER:
        payment_details = default_payment_details(affiliate)

    with transaction.atomic():
        wallet = Wallet.objects.select_for_update().get(affiliate=affiliate)
        if Payout.objects.filter(affiliate=affiliate, status__in=Payout.OPEN_STATUSES).exists():
            raise PayoutError('You already have a payout in progress.')
        if amount > wallet.balance:
            raise PayoutError('Insufficient wallet balance.')

        payout = Payout.objects.create(
            affiliate=affiliate,
            amount=amount,
            payment_method=payment_method,
            payment_details=json.dumps(payment_details or {}),
            is_weekly=is_weekly,
        )
        wallet.hold_for_payout(payout)

    logger.info(f"Payout {payout.pk} requested: ₹{amount} by affiliate {affiliate.pk}")
    return payout


def process_payout(payout, new_status, admin_user=None, failure_reason=''):
    """
    Move an open payout to processing, completed or failed.
    Failed payouts give the held amount back to the wallet.
    """
    from core.models import Payout, Wallet

    if new_status not in (Payout.Status.PROCESSING, Payout.Status.COMPLETED, Payout.Status.FAILED):
        raise PayoutError('Invalid payout status.')
    if new_status == Payout.Status.FAILED and not failure_reason.strip():
        raise PayoutError('A failure reason is required.')

    with transaction.atomic():
        payout = Payout.objects.select_for_update().get(pk=payout.pk)
        if not payout.is_open:
            raise PayoutError(f'Payout is already {payout.status}.')
        if new_status == payout.status:
            raise PayoutError(f'Payout is already {payout.status}.')

        wallet = Wallet.objects.get(affiliate_id=payout.affiliate_id)
        now = timezone.now()
        payout.status = new_status
        payout.processed_by = admin_user
        payout.processed_at = payout.processed_at or now

        if new_status == Payout.Status.COMPLETED:
            payout.completed_at = now
            wallet.settle_payout(payout)
        elif new_status == Payout.Status.FAILED:
            payout.failure_reason = failure_reason.strip()
            wallet.release_payout(payout)

        payout.save()

    logger.info(f"Payout {payout.pk} moved to {new_status}")
    return payout


def weekly_payout_candidates():
    """Affiliates that qualify for an automatic weekly payout."""
    from core.models import Affiliate, Payout

    open_payouts = Payout.objects.filter(status__in=Payout.OPEN_STATUSES).values('affiliate_id')
    return Affiliate.objects.filter(
        is_active=True,
        kyc_status=Affiliate.KYCStatus.APPROVED,
        wallet__balance__gte=settings.PAYOUT_MINIMUM_AMOUNT,
    ).exclude(pk__in=open_payouts).select_related('user', 'wallet', 'kyc')


def generate_weekly_payouts(dry_run=False):
    """
    Create one bank-transfer payout for the full balance of every
    qualifying affiliate. Returns the created payouts (or, on a dry run,
    unsaved Payout instances describing what would be created).
    """
    from core.models import Payout

    payouts = []
    for affiliate in weekly_payout_candidates():
        amount = affiliate.wallet.balance
        if dry_run:
            payouts.append(Payout(
                affiliate=affiliate,
                amount=amount,
                payment_method=Payout.PaymentMethod.BANK_TRANSFER,
                is_weekly=True,
            ))
            continue
        try:
            payouts.append(request_payout(
                affiliate,
                amount,
                Payout.PaymentMethod.BANK_TRANSFER,
                is_weekly=True,
            ))
        except PayoutError as e:
            logger.warning(f"Weekly payout skipped for affiliate {affiliate.pk}: {e}")
    return payouts


def next_payout_date(today=None):
    """Next PAYOUT_DAY_OF_WEEK on or after today."""
    today = today or timezone.localdate()
    days_ahead = (settings.PAYOUT_DAY_OF_WEEK - today.weekday()) % 7
    return today + timedelta(days=days_ahead)
