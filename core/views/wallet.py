"""
Affiliate wallet API.

Users without an affiliate account get an empty wallet; reading it never
creates one.
"""
from django.http import JsonResponse

from ..earnings import available_for_payout
from ..models import Affiliate, WalletTransaction
from ..serializers import money, transaction_data
from ._helpers import api_view, login_required_json, paginate


@api_view(['GET'])
@login_required_json
def balance(request):
    affiliate = Affiliate.objects.select_related('wallet').filter(user=request.user).first()
    wallet = getattr(affiliate, 'wallet', None)
    if wallet is None:
        return JsonResponse({
            'balance': 0.0,
            'totalEarned': 0.0,
            'totalPaid': 0.0,
            'availableForPayout': 0.0,
            'recentTransactions': [],
        })

    recent = wallet.transactions.all()[:5]
    return JsonResponse({
        'balance': money(wallet.balance),
        'totalEarned': money(wallet.total_earned),
        'totalPaid': money(wallet.total_paid),
        'availableForPayout': money(available_for_payout(affiliate)),
        'recentTransactions': [transaction_data(t) for t in recent],
    })


@api_view(['GET'])
@login_required_json
def transactions(request):
    queryset = WalletTransaction.objects.filter(wallet__affiliate__user=request.user)
    txn_type = request.GET.get('type')
    if txn_type in WalletTransaction.Type.values:
        queryset = queryset.filter(type=txn_type)

    items, meta = paginate(request, queryset, default_limit=20)
    return JsonResponse({
        'transactions': [transaction_data(t) for t in items],
        **meta,
    })
