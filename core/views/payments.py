"""
Checkout API: price breakdown, Razorpay order creation and payment
verification.
"""
import logging
import uuid

from django.conf import settings
from django.db import transaction
from django.http import JsonResponse

from .. import razorpay_utils
from ..earnings import complete_order, resolve_order_affiliate
from ..models import Course, Order, Purchase
from ..pricing import parse_amount, price_breakdown
from ..serializers import money, purchase_data
from ._helpers import api_view, login_required_json, read_json, error

logger = logging.getLogger(__name__)


def breakdown_payload(breakdown):
    return {
        'baseAmount': money(breakdown['base']),
        'gstAmount': money(breakdown['gst']),
        'gatewayFeeAmount': money(breakdown['gateway_fee']),
        'totalAmount': money(breakdown['total']),
        'gstRate': float(settings.GST_RATE),
        'gatewayFeeRate': float(settings.GATEWAY_FEE_RATE),
    }


@api_view(['GET'])
def price_breakdown_view(request):
    base = parse_amount(request.GET.get('baseAmount'))
    if base is None:
        return error('baseAmount must be a non-negative number')
    return JsonResponse(breakdown_payload(price_breakdown(base)))


def _parse_course_ids(raw):
    if not isinstance(raw, list) or not raw:
        return None
    ids = []
    for value in raw:
        try:
            course_id = int(value)
        except (TypeError, ValueError):
            return None
        if course_id not in ids:
            ids.append(course_id)
    return ids


@api_view(['POST'])
@login_required_json
def create_order(request):
    data, err = read_json(request)
    if err:
        return err

    course_ids = _parse_course_ids(data.get('courseIds'))
    if not course_ids:
        return error('courseIds must be a non-empty list of course IDs')

    courses = list(Course.objects.filter(pk__in=course_ids, is_published=True))
    if len(courses) != len(course_ids):
        return error('One or more courses were not found', status=404)

    owned = Purchase.objects.filter(
        user=request.user,
        course__in=courses,
        status=Purchase.Status.COMPLETED,
    ).values_list('course__title', flat=True)
    if owned:
        return error(f"You already own: {', '.join(owned)}")

    base = sum((c.price for c in courses), start=0)
    breakdown = price_breakdown(base)
    affiliate = resolve_order_affiliate(request, request.user)

    with transaction.atomic():
        order = Order.objects.create(
            user=request.user,
            base_amount=breakdown['base'],
            gst_amount=breakdown['gst'],
            gateway_fee_amount=breakdown['gateway_fee'],
            total_amount=breakdown['total'],
            currency=settings.PAYMENT_CURRENCY,
            affiliate=affiliate,
            is_bypass=settings.PAYMENT_BYPASS,
        )
        order.courses.set(courses)

    if settings.PAYMENT_BYPASS:
        order.razorpay_order_id = f"bypass_{uuid.uuid4().hex[:20]}"
        order.save(update_fields=['razorpay_order_id', 'updated_at'])
        complete_order(order)
        logger.warning(f"Order {order.pk} completed in payment bypass mode")
        return JsonResponse({
            'bypass': True,
            'orderId': order.razorpay_order_id,
            'breakdown': breakdown_payload(breakdown),
        }, status=201)

    result = razorpay_utils.create_order(
        order.amount_in_paise,
        receipt=f"order_{order.pk}",
        notes={
            'order': str(order.pk),
            'user': request.user.email,
            'courses': ','.join(str(c.pk) for c in courses),
        },
    )
    if not result['success']:
        order.status = Order.Status.FAILED
        order.save(update_fields=['status', 'updated_at'])
        return error(result['error'], status=502)

    order.razorpay_order_id = result['order_id']
    order.save(update_fields=['razorpay_order_id', 'updated_at'])

    return JsonResponse({
        'orderId': result['order_id'],
        'amount': result['amount'],
        'currency': result['currency'],
        'key': settings.RAZORPAY_KEY_ID,
        'breakdown': breakdown_payload(breakdown),
    }, status=201)


@api_view(['POST'])
@login_required_json
def verify_payment(request):
    data, err = read_json(request)
    if err:
        return err

    order_id = data.get('orderId') or data.get('razorpay_order_id')
    payment_id = data.get('paymentId') or data.get('razorpay_payment_id')
    signature = data.get('signature') or data.get('razorpay_signature')
    if not (order_id and payment_id and signature):
        return error('orderId, paymentId and signature are required')

    order = Order.objects.filter(razorpay_order_id=order_id, user=request.user).first()
    if order is None:
        return error('Order not found', status=404)

    if order.status == Order.Status.PAID:
        return JsonResponse({
            'success': True,
            'alreadyProcessed': True,
            'purchases': [purchase_data(p) for p in order.purchases.select_related('course', 'user')],
        })

    if not razorpay_utils.verify_payment_signature(order_id, payment_id, signature):
        logger.warning(f"Signature mismatch for order {order.pk}")
        order.status = Order.Status.FAILED
        order.razorpay_payment_id = str(payment_id)[:100]
        order.save(update_fields=['status', 'razorpay_payment_id', 'updated_at'])
        return error('Payment verification failed')

    purchases = complete_order(order, payment_id=payment_id, signature=signature)
    return JsonResponse({
        'success': True,
        'purchases': [purchase_data(p) for p in purchases],
    })
