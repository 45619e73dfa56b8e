"""
Tests for the affiliate wallet ledger and the payout lifecycle:
requests, admin processing, weekly generation and notifications.
"""
from datetime import date
from decimal import Decimal
from io import StringIO
from unittest.mock import patch

import pytest
from django.core.management import call_command

from core.earnings import (
    PayoutError, available_for_payout, generate_weekly_payouts, next_payout_date,
    process_payout, request_payout,
)
from core.models import Payout, WalletTransaction

pytestmark = pytest.mark.django_db


@pytest.fixture
def funded_wallet(affiliate):
    wallet = affiliate.wallet
    wallet.credit(Decimal('1200.00'), description='Commission', reference_id='seed')
    return wallet


def post_json(client, url, data):
    return client.post(url, data=data, content_type='application/json')


# =============================================================================
# Wallet
# =============================================================================

def test_credit_updates_balance_and_ledger(affiliate):
    wallet = affiliate.wallet

    txn = wallet.credit(Decimal('150.50'), description='Commission', reference_id=7)

    wallet.refresh_from_db()
    assert wallet.balance == Decimal('150.50')
    assert wallet.total_earned == Decimal('150.50')
    assert txn.type == WalletTransaction.Type.CREDIT
    assert txn.reference_id == '7'


def test_credit_rejects_non_positive_amounts(affiliate):
    with pytest.raises(ValueError):
        affiliate.wallet.credit(Decimal('0'))


def test_balance_endpoint(affiliate_client, funded_wallet, approved_kyc):
    response = affiliate_client.get('/api/wallet/balance')

    assert response.status_code == 200
    data = response.json()
    assert data['balance'] == 1200.0
    assert data['availableForPayout'] == 1200.0
    assert len(data['recentTransactions']) == 1


def test_nothing_available_without_kyc(affiliate, funded_wallet):
    assert available_for_payout(affiliate) == 0


def test_nothing_available_below_minimum(affiliate, approved_kyc):
    affiliate.wallet.credit(Decimal('499.99'))

    assert available_for_payout(affiliate) == 0


def test_transactions_filter_and_pagination(affiliate_client, affiliate):
    for i in range(3):
        affiliate.wallet.credit(Decimal('10'), reference_id=i)

    response = affiliate_client.get('/api/wallet/transactions', {'type': 'credit', 'limit': 2})

    data = response.json()
    assert data['total'] == 3
    assert data['totalPages'] == 2
    assert len(data['transactions']) == 2


# =============================================================================
# Payout requests
# =============================================================================

def test_request_payout_holds_balance(affiliate, funded_wallet, approved_kyc):
    payout = request_payout(affiliate, Decimal('600'), Payout.PaymentMethod.BANK_TRANSFER)

    funded_wallet.refresh_from_db()
    assert funded_wallet.balance == Decimal('600.00')
    assert payout.status == Payout.Status.PENDING
    # Bank details come from the approved KYC
    assert payout.get_payment_details()['ifscCode'] == 'HDFC0001234'
    hold = WalletTransaction.objects.get(type=WalletTransaction.Type.PAYOUT_REQUEST)
    assert hold.status == WalletTransaction.Status.PENDING
    assert hold.reference_id == str(payout.pk)


@pytest.mark.parametrize('amount, message', [
    (Decimal('100'), 'Minimum payout'),
    (Decimal('5000'), 'Insufficient'),
])
def test_request_payout_limits(affiliate, funded_wallet, approved_kyc, amount, message):
    with pytest.raises(PayoutError, match=message):
        request_payout(affiliate, amount, Payout.PaymentMethod.UPI, {'upiId': 'rahul@upi'})


def test_request_payout_requires_kyc(affiliate, funded_wallet):
    with pytest.raises(PayoutError, match='KYC'):
        request_payout(affiliate, Decimal('600'), Payout.PaymentMethod.BANK_TRANSFER)


def test_only_one_open_payout(affiliate, funded_wallet, approved_kyc):
    request_payout(affiliate, Decimal('500'), Payout.PaymentMethod.BANK_TRANSFER)

    with pytest.raises(PayoutError, match='in progress'):
        request_payout(affiliate, Decimal('500'), Payout.PaymentMethod.BANK_TRANSFER)


def test_request_payout_endpoint(affiliate_client, funded_wallet, approved_kyc):
    response = post_json(affiliate_client, '/api/payouts/request', {
        'amount': 750,
        'paymentMethod': 'upi',
        'paymentDetails': {'upiId': 'rahul@upi'},
    })

    assert response.status_code == 201
    payout = response.json()['payout']
    assert payout['amount'] == 750.0
    assert payout['paymentDetails'] == {'upiId': 'rahul@upi'}

    history = affiliate_client.get('/api/payouts/history').json()
    assert history['total'] == 1


def test_request_payout_endpoint_validation(affiliate_client, funded_wallet, approved_kyc):
    response = post_json(affiliate_client, '/api/payouts/request', {'amount': 'lots'})
    assert response.status_code == 400

    response = post_json(affiliate_client, '/api/payouts/request', {'amount': 600, 'paymentMethod': 'cash'})
    assert response.status_code == 400
    assert response.json()['error'] == 'Invalid payment method.'


# =============================================================================
# Processing
# =============================================================================

def test_completed_payout_settles_wallet(affiliate, funded_wallet, approved_kyc, admin, mailoutbox,
                                         django_capture_on_commit_callbacks):
    payout = request_payout(affiliate, Decimal('1200'), Payout.PaymentMethod.BANK_TRANSFER)

    with django_capture_on_commit_callbacks(execute=True):
        process_payout(payout, Payout.Status.PROCESSING, admin_user=admin)
        payout = process_payout(payout, Payout.Status.COMPLETED, admin_user=admin)

    funded_wallet.refresh_from_db()
    assert funded_wallet.balance == Decimal('0.00')
    assert funded_wallet.total_paid == Decimal('1200.00')
    assert payout.completed_at is not None
    assert payout.processed_by == admin
    assert WalletTransaction.objects.filter(type=WalletTransaction.Type.PAYOUT_PROCESSED).count() == 1
    assert WalletTransaction.objects.get(
        type=WalletTransaction.Type.PAYOUT_REQUEST
    ).status == WalletTransaction.Status.COMPLETED
    # processing + completed
    assert len(mailoutbox) == 2


def test_failed_payout_returns_funds(affiliate, funded_wallet, approved_kyc, admin):
    payout = request_payout(affiliate, Decimal('700'), Payout.PaymentMethod.BANK_TRANSFER)

    with pytest.raises(PayoutError, match='failure reason'):
        process_payout(payout, Payout.Status.FAILED, admin_user=admin)

    process_payout(payout, Payout.Status.FAILED, admin_user=admin, failure_reason='Account closed')

    funded_wallet.refresh_from_db()
    assert funded_wallet.balance == Decimal('1200.00')
    assert funded_wallet.total_paid == Decimal('0.00')
    assert WalletTransaction.objects.get(
        type=WalletTransaction.Type.PAYOUT_REQUEST
    ).status == WalletTransaction.Status.FAILED


def test_closed_payout_cannot_change(affiliate, funded_wallet, approved_kyc, admin):
    payout = request_payout(affiliate, Decimal('700'), Payout.PaymentMethod.BANK_TRANSFER)
    process_payout(payout, Payout.Status.COMPLETED, admin_user=admin)

    with pytest.raises(PayoutError, match='already completed'):
        process_payout(payout, Payout.Status.FAILED, admin_user=admin, failure_reason='Oops')


def test_admin_process_endpoint(admin_client, affiliate, funded_wallet, approved_kyc):
    payout = request_payout(affiliate, Decimal('700'), Payout.PaymentMethod.BANK_TRANSFER)

    response = post_json(admin_client, '/api/payouts/admin/process', {
        'payoutId': payout.pk,
        'status': 'completed',
    })

    assert response.status_code == 200
    data = response.json()['payout']
    assert data['status'] == 'completed'
    assert data['bankDetails']['accountNumber'] == '123456789012'

    listing = admin_client.get('/api/payouts/admin/all', {'status': 'completed'}).json()
    assert listing['total'] == 1


def test_admin_endpoints_reject_affiliates(affiliate_client):
    assert affiliate_client.get('/api/payouts/admin/all').status_code == 403


# =============================================================================
# Weekly payouts
# =============================================================================

def test_weekly_payouts_only_for_qualifying_affiliates(affiliate, funded_wallet, approved_kyc, buyer):
    from core.models import Affiliate

    # Below minimum, so skipped
    other = Affiliate.ensure_for_user(buyer)
    other.wallet.credit(Decimal('100'))

    payouts = generate_weekly_payouts()

    assert len(payouts) == 1
    payout = payouts[0]
    assert payout.affiliate == affiliate
    assert payout.amount == Decimal('1200.00')
    assert payout.is_weekly is True
    # A second run finds the open payout and creates nothing
    assert generate_weekly_payouts() == []


def test_weekly_payouts_dry_run_creates_nothing(affiliate, funded_wallet, approved_kyc):
    payouts = generate_weekly_payouts(dry_run=True)

    assert len(payouts) == 1
    assert payouts[0].pk is None
    assert not Payout.objects.exists()


def test_weekly_payout_command_sync(affiliate, funded_wallet, approved_kyc, mailoutbox):
    out = StringIO()

    call_command('generate_weekly_payouts', '--sync', stdout=out)

    assert Payout.objects.filter(is_weekly=True).count() == 1
    assert len(mailoutbox) == 1
    assert 'scheduled' in mailoutbox[0].body
    assert '1 notified, 0 errors' in out.getvalue()


def test_weekly_payout_command_queues_notifications(affiliate, funded_wallet, approved_kyc):
    with patch('core.management.commands.generate_weekly_payouts.async_task') as mock_async:
        call_command('generate_weekly_payouts', stdout=StringIO())

    payout = Payout.objects.get()
    mock_async.assert_called_once_with(
        'core.tasks.send_payout_status_notification',
        payout.id,
        'pending',
        task_name=f'weekly_payout_{payout.id}',
    )


def test_admin_generate_weekly_endpoint(admin_client, affiliate, funded_wallet, approved_kyc, mailoutbox,
                                        django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks(execute=True):
        response = admin_client.post('/api/payouts/admin/generate-weekly')

    assert response.status_code == 200
    assert response.json()['generated'] == 1
    assert response.json()['totalAmount'] == 1200.0
    # Each generated payout is announced to its affiliate
    assert [m.to for m in mailoutbox] == [['partner@example.com']]
    assert 'scheduled' in mailoutbox[0].body


def test_admin_generate_weekly_queues_one_task_per_payout(admin_client, affiliate, funded_wallet, approved_kyc,
                                                          django_capture_on_commit_callbacks):
    with patch('django_q.tasks.async_task') as mock_async:
        with django_capture_on_commit_callbacks(execute=True):
            admin_client.post('/api/payouts/admin/generate-weekly')

    payout = Payout.objects.get()
    mock_async.assert_called_once_with(
        'core.tasks.send_payout_status_notification',
        payout.id,
        'pending',
        task_name=f'weekly_payout_{payout.id}',
    )


@pytest.mark.parametrize('payout_id', ['abc', None, -3, True])
def test_admin_process_rejects_malformed_payout_id(admin_client, payout_id):
    response = post_json(admin_client, '/api/payouts/admin/process', {
        'payoutId': payout_id,
        'status': 'completed',
    })

    assert response.status_code == 400
    assert 'payoutId' in response.json()['error']


@pytest.mark.parametrize('today, expected', [
    (date(2026, 10, 12), date(2026, 10, 12)),  # Monday
    (date(2026, 10, 13), date(2026, 10, 19)),  # Tuesday
    (date(2026, 10, 18), date(2026, 10, 19)),  # Sunday
])
def test_next_payout_date(today, expected):
    assert next_payout_date(today) == expected


def test_next_payout_date_endpoint(admin_client):
    data = admin_client.get('/api/payouts/admin/next-payout-date').json()

    assert date.fromisoformat(data['nextPayoutDate']).weekday() == 0


def test_reading_affiliate_pages_does_not_enrol_buyer(buyer_client, buyer):
    from core.models import Affiliate

    balance = buyer_client.get('/api/wallet/balance').json()
    assert balance['balance'] == 0.0
    assert balance['recentTransactions'] == []
    assert buyer_client.get('/api/wallet/transactions').json()['total'] == 0
    assert buyer_client.get('/api/payouts/history').json()['total'] == 0
    assert buyer_client.get('/api/kyc/status').json()['status'] == 'not_submitted'
    assert buyer_client.get('/api/milestones').json() == {'milestones': []}
    assert buyer_client.get('/api/affiliate/analytics').status_code == 404

    assert not Affiliate.objects.filter(user=buyer).exists()
    buyer.refresh_from_db()
    assert buyer.role == buyer.Role.GUEST


def test_payout_request_without_affiliate_account(buyer_client, buyer):
    from core.models import Affiliate

    response = post_json(buyer_client, '/api/payouts/request', {'amount': 600})

    assert response.status_code == 400
    assert 'KYC' in response.json()['error']
    assert not Affiliate.objects.filter(user=buyer).exists()
