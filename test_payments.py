"""
Tests for checkout: Razorpay order creation, signature verification,
course granting and affiliate commission on paid orders.
"""
import hashlib
import hmac
from decimal import Decimal
from unittest.mock import patch

import pytest

from core import razorpay_utils
from core.earnings import AFFILIATE_COOKIE, complete_order
from core.models import Order, Purchase, WalletTransaction

pytestmark = pytest.mark.django_db


def sign(order_id, payment_id, secret='rzp_test_secret'):
    return hmac.new(secret.encode(), f'{order_id}|{payment_id}'.encode(), hashlib.sha256).hexdigest()


def gateway_order(order_id='order_TEST123'):
    def fake_create_order(amount_paise, receipt, notes=None):
        return {'success': True, 'order_id': order_id, 'amount': amount_paise, 'currency': 'INR'}
    return fake_create_order


def create_order(client, course_ids):
    return client.post('/api/payments/create-order', data={
        'courseIds': course_ids,
    }, content_type='application/json')


def verify(client, order_id='order_TEST123', payment_id='pay_TEST456', signature=None):
    return client.post('/api/payments/verify', data={
        'orderId': order_id,
        'paymentId': payment_id,
        'signature': signature or sign(order_id, payment_id),
    }, content_type='application/json')


# =============================================================================
# Signature check
# =============================================================================

def test_signature_verification():
    signature = sign('order_1', 'pay_1')

    assert razorpay_utils.verify_payment_signature('order_1', 'pay_1', signature)
    assert not razorpay_utils.verify_payment_signature('order_1', 'pay_2', signature)
    assert not razorpay_utils.verify_payment_signature('order_1', 'pay_1', '')


def test_create_order_without_keys(settings):
    settings.RAZORPAY_KEY_ID = ''

    result = razorpay_utils.create_order(1000, 'receipt')

    assert result['success'] is False


def test_create_order_calls_razorpay():
    with patch('core.razorpay_utils.razorpay.Client') as mock_client:
        mock_client.return_value.order.create.return_value = {
            'id': 'order_ABC', 'amount': 119880, 'currency': 'INR',
        }
        result = razorpay_utils.create_order(119880, 'order_1', notes={'order': '1'})

    assert result == {'success': True, 'order_id': 'order_ABC', 'amount': 119880, 'currency': 'INR'}
    mock_client.assert_called_once_with(auth=('rzp_test_key', 'rzp_test_secret'))
    sent = mock_client.return_value.order.create.call_args.kwargs['data']
    assert sent['amount'] == 119880
    assert sent['currency'] == 'INR'


# =============================================================================
# Create order
# =============================================================================

def test_create_order_prices_multiple_courses(buyer_client, course, second_course):
    with patch('core.views.payments.razorpay_utils.create_order', side_effect=gateway_order()) as mock_create:
        response = create_order(buyer_client, [course.pk, second_course.pk])

    assert response.status_code == 201
    data = response.json()
    assert data['orderId'] == 'order_TEST123'
    assert data['key'] == 'rzp_test_key'
    # 1999 base + 18% GST + 2% gateway fee
    assert data['breakdown']['totalAmount'] == 2398.8
    assert data['amount'] == 239880
    assert mock_create.call_args.args[0] == 239880

    order = Order.objects.get()
    assert order.status == Order.Status.CREATED
    assert order.base_amount == Decimal('1999.00')
    assert order.courses.count() == 2


def test_create_order_requires_login(client, course):
    assert create_order(client, [course.pk]).status_code == 401


def test_create_order_unknown_course(buyer_client, course):
    response = create_order(buyer_client, [course.pk, 9999])

    assert response.status_code == 404
    assert not Order.objects.exists()


def test_create_order_rejects_owned_course(buyer_client, buyer, course):
    Purchase.objects.create(user=buyer, course=course, amount=course.price)

    response = create_order(buyer_client, [course.pk])

    assert response.status_code == 400
    assert 'already own' in response.json()['error']


def test_create_order_gateway_failure(buyer_client, course):
    with patch('core.views.payments.razorpay_utils.create_order',
               return_value={'success': False, 'error': 'Payment service unavailable.'}):
        response = create_order(buyer_client, [course.pk])

    assert response.status_code == 502
    assert Order.objects.get().status == Order.Status.FAILED


def test_bypass_mode_completes_immediately(buyer_client, buyer, course, settings):
    settings.PAYMENT_BYPASS = True

    response = create_order(buyer_client, [course.pk])

    assert response.status_code == 201
    data = response.json()
    assert data['bypass'] is True
    assert data['orderId'].startswith('bypass_')
    assert Purchase.objects.filter(user=buyer, course=course).exists()
    assert Order.objects.get().is_bypass is True


# =============================================================================
# Verify payment
# =============================================================================

def test_verify_grants_courses_and_sends_receipt(buyer_client, buyer, course, mailoutbox,
                                                django_capture_on_commit_callbacks):
    with patch('core.views.payments.razorpay_utils.create_order', side_effect=gateway_order()):
        create_order(buyer_client, [course.pk])

    with django_capture_on_commit_callbacks(execute=True) as callbacks:
        response = verify(buyer_client)

    assert response.status_code == 200
    assert response.json()['success'] is True
    order = Order.objects.get()
    assert order.status == Order.Status.PAID
    assert order.razorpay_payment_id == 'pay_TEST456'
    purchase = Purchase.objects.get(user=buyer, course=course)
    assert purchase.amount == Decimal('999.00')
    assert purchase.commission == Decimal('0.00')
    buyer.refresh_from_db()
    assert buyer.role == buyer.Role.BUYER
    assert len(callbacks) == 1
    assert len(mailoutbox) == 1
    assert 'Stock Market Basics' in mailoutbox[0].body


def test_verify_is_idempotent(buyer_client, course):
    with patch('core.views.payments.razorpay_utils.create_order', side_effect=gateway_order()):
        create_order(buyer_client, [course.pk])

    verify(buyer_client)
    response = verify(buyer_client)

    assert response.status_code == 200
    assert response.json()['alreadyProcessed'] is True
    assert Purchase.objects.count() == 1


def test_verify_bad_signature_fails_order(buyer_client, course):
    with patch('core.views.payments.razorpay_utils.create_order', side_effect=gateway_order()):
        create_order(buyer_client, [course.pk])

    response = verify(buyer_client, signature='0' * 64)

    assert response.status_code == 400
    assert Order.objects.get().status == Order.Status.FAILED
    assert not Purchase.objects.exists()


def test_verify_other_users_order(buyer_client, course, django_user_model):
    with patch('core.views.payments.razorpay_utils.create_order', side_effect=gateway_order()):
        create_order(buyer_client, [course.pk])

    intruder = django_user_model.objects.create_user(email='intruder@example.com', password='secret123')
    buyer_client.force_login(intruder)

    assert verify(buyer_client).status_code == 404


def test_valid_signature_completes_previously_failed_order(buyer_client, buyer, course):
    with patch('core.views.payments.razorpay_utils.create_order', side_effect=gateway_order()):
        create_order(buyer_client, [course.pk])
    verify(buyer_client, signature='0' * 64)
    assert Order.objects.get().status == Order.Status.FAILED

    response = verify(buyer_client, payment_id='pay_RETRY')

    assert response.status_code == 200
    order = Order.objects.get()
    assert order.status == Order.Status.PAID
    assert order.razorpay_payment_id == 'pay_RETRY'
    assert course.is_owned_by(buyer)


def test_failed_completion_sends_no_receipt(buyer, course, mailoutbox, django_capture_on_commit_callbacks):
    order = Order.objects.create(user=buyer, base_amount=course.price, total_amount=course.price)
    order.courses.add(course)

    with patch('core.earnings.process_affiliate_commission', side_effect=RuntimeError('ledger down')):
        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            with pytest.raises(RuntimeError):
                complete_order(order)

    assert callbacks == []
    assert mailoutbox == []
    order.refresh_from_db()
    assert order.status == Order.Status.CREATED
    assert not Purchase.objects.exists()


def test_rebuying_after_refund_restores_access(buyer_client, buyer, course, affiliate):
    refunded = Purchase.objects.create(
        user=buyer, course=course, amount=course.price, status=Purchase.Status.REFUNDED,
    )
    assert not course.is_owned_by(buyer)

    buyer_client.cookies[AFFILIATE_COOKIE] = str(affiliate.pk)
    with patch('core.views.payments.razorpay_utils.create_order', side_effect=gateway_order()):
        assert create_order(buyer_client, [course.pk]).status_code == 201

    response = verify(buyer_client)

    assert response.status_code == 200
    assert len(response.json()['purchases']) == 1
    purchase = Purchase.objects.get()
    assert purchase.pk == refunded.pk
    assert purchase.status == Purchase.Status.COMPLETED
    assert purchase.order == Order.objects.get()
    assert purchase.affiliate == affiliate
    assert purchase.commission == Decimal('299.70')
    assert course.is_owned_by(buyer)
    affiliate.wallet.refresh_from_db()
    assert affiliate.wallet.balance == Decimal('299.70')


# =============================================================================
# Affiliate commission
# =============================================================================

def test_affiliate_cookie_earns_commission(buyer_client, buyer, course, affiliate):
    buyer_client.cookies[AFFILIATE_COOKIE] = str(affiliate.pk)
    with patch('core.views.payments.razorpay_utils.create_order', side_effect=gateway_order()):
        create_order(buyer_client, [course.pk])

    verify(buyer_client)

    purchase = Purchase.objects.get()
    assert purchase.affiliate == affiliate
    assert purchase.commission == Decimal('299.70')
    assert purchase.platform_share == Decimal('699.30')

    affiliate.wallet.refresh_from_db()
    assert affiliate.wallet.balance == Decimal('299.70')
    assert affiliate.wallet.total_earned == Decimal('299.70')
    affiliate.refresh_from_db()
    assert affiliate.total_earnings == Decimal('299.70')
    txn = WalletTransaction.objects.get()
    assert txn.type == WalletTransaction.Type.CREDIT
    assert txn.reference_id == str(purchase.pk)


def test_signup_referrer_is_used_without_cookie(buyer_client, buyer, course, affiliate):
    buyer.referred_by = affiliate
    buyer.save()
    with patch('core.views.payments.razorpay_utils.create_order', side_effect=gateway_order()):
        create_order(buyer_client, [course.pk])

    assert Order.objects.get().affiliate == affiliate


def test_affiliate_cannot_earn_from_own_purchase(affiliate_client, affiliate, course):
    affiliate_client.cookies[AFFILIATE_COOKIE] = str(affiliate.pk)
    with patch('core.views.payments.razorpay_utils.create_order', side_effect=gateway_order()):
        create_order(affiliate_client, [course.pk])

    verify(affiliate_client)

    purchase = Purchase.objects.get()
    assert purchase.affiliate is None
    assert purchase.commission == Decimal('0.00')
    affiliate.wallet.refresh_from_db()
    assert affiliate.wallet.balance == Decimal('0.00')


def test_commission_uses_platform_rate(buyer, course, affiliate):
    from core.models import PlatformSettings

    platform = PlatformSettings.get_settings()
    platform.affiliate_commission_rate = Decimal('0.10')
    platform.save()

    order = Order.objects.create(
        user=buyer, base_amount=course.price, total_amount=course.price, affiliate=affiliate,
    )
    order.courses.set([course])

    purchases = complete_order(order, payment_id='pay_1')

    assert purchases[0].commission == Decimal('99.90')
    assert complete_order(order) == []
