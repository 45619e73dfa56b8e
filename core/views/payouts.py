"""
Payout API: affiliate withdrawal requests and admin processing.
"""
import logging

from django.http import JsonResponse

from ..earnings import (
    PayoutError, generate_weekly_payouts, next_payout_date, process_payout, request_payout,
)
from ..models import Affiliate, Payout
from ..pricing import parse_amount
from ..serializers import money, payout_data
from ..tasks import queue_after_commit
from ._helpers import api_view, admin_required_json, login_required_json, paginate, parse_id, read_json, error

logger = logging.getLogger(__name__)


@api_view(['POST'])
@login_required_json
def request_payout_view(request):
    data, err = read_json(request)
    if err:
        return err

    amount = parse_amount(data.get('amount'))
    if amount is None or amount <= 0:
        return error('A valid amount is required')

    payment_method = data.get('paymentMethod') or Payout.PaymentMethod.BANK_TRANSFER
    payment_details = data.get('paymentDetails')
    if payment_details is not None and not isinstance(payment_details, dict):
        return error('paymentDetails must be an object')

    affiliate = Affiliate.objects.filter(user=request.user).first()
    if affiliate is None:
        return error('KYC must be approved before requesting a payout.')
    try:
        payout = request_payout(affiliate, amount, payment_method, payment_details)
    except PayoutError as e:
        return error(str(e))

    return JsonResponse({
        'success': True,
        'payout': payout_data(payout),
        'message': 'Payout request submitted.',
    }, status=201)


@api_view(['GET'])
@login_required_json
def history(request):
    queryset = Payout.objects.filter(affiliate__user=request.user)
    items, meta = paginate(request, queryset, default_limit=20)
    return JsonResponse({
        'payouts': [payout_data(p) for p in items],
        **meta,
    })


@api_view(['GET'])
@admin_required_json
def admin_list(request):
    queryset = Payout.objects.select_related('affiliate__user', 'affiliate__kyc')
    status_filter = request.GET.get('status')
    if status_filter in Payout.Status.values:
        queryset = queryset.filter(status=status_filter)
    if request.GET.get('isWeekly') in ('true', 'false'):
        queryset = queryset.filter(is_weekly=request.GET['isWeekly'] == 'true')

    items, meta = paginate(request, queryset)
    return JsonResponse({
        'payouts': [payout_data(p, include_affiliate=True) for p in items],
        **meta,
    })


@api_view(['POST'])
@admin_required_json
def admin_process(request):
    data, err = read_json(request)
    if err:
        return err

    payout_id = parse_id(data.get('payoutId'))
    if payout_id is None:
        return error('A valid payoutId is required')
    payout = Payout.objects.filter(pk=payout_id).first()
    if payout is None:
        return error('Payout not found', status=404)

    try:
        payout = process_payout(
            payout,
            data.get('status'),
            admin_user=request.user,
            failure_reason=data.get('failureReason') or '',
        )
    except PayoutError as e:
        return error(str(e))

    return JsonResponse({'success': True, 'payout': payout_data(payout, include_affiliate=True)})


@api_view(['POST'])
@admin_required_json
def admin_generate_weekly(request):
    payouts = generate_weekly_payouts()
    for payout in payouts:
        queue_after_commit(f'weekly_payout_{payout.id}', 'send_payout_status_notification', payout.id, 'pending')
    logger.info(f"Weekly payouts generated by {request.user.email}: {len(payouts)}")
    return JsonResponse({
        'success': True,
        'generated': len(payouts),
        'totalAmount': money(sum((p.amount for p in payouts), start=0)),
        'payouts': [payout_data(p, include_affiliate=True) for p in payouts],
    })


@api_view(['GET'])
@admin_required_json
def admin_next_payout_date(request):
    next_date = next_payout_date()
    return JsonResponse({
        'nextPayoutDate': next_date.isoformat(),
        'nextPayoutDateFormatted': next_date.strftime('%A, %d %B %Y'),
    })
