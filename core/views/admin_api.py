"""
Back-office API: users, affiliates, platform earnings and analytics.
All endpoints are admin-only.
"""
import logging

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.core.validators import validate_email
from django.db.models import Count, Q, Sum
from django.http import JsonResponse

from ..analytics import period_window, daily_totals, fill_days, safe_ratio
from ..models import Affiliate, PlatformSettings, Purchase, Subscription
from ..serializers import affiliate_data, iso, money, user_data, user_summary
from ._helpers import api_view, admin_required_json, paginate, parse_id, read_json, error

logger = logging.getLogger(__name__)
User = get_user_model()


def _search_users(queryset, search, prefix=''):
    if not search:
        return queryset
    return queryset.filter(
        Q(**{f'{prefix}email__icontains': search}) | Q(**{f'{prefix}name__icontains': search})
    )


# =============================================================================
# Users
# =============================================================================

@api_view(['GET'])
@admin_required_json
def users(request):
    queryset = User.objects.select_related('affiliate').annotate(
        purchase_count=Count('purchases', filter=Q(purchases__status=Purchase.Status.COMPLETED))
    )
    role = request.GET.get('role')
    if role in User.Role.values:
        queryset = queryset.filter(role=role)
    queryset = _search_users(queryset, (request.GET.get('search') or '').strip())

    items, meta = paginate(request, queryset)
    results = []
    for user in items:
        data = user_data(user)
        data['purchaseCount'] = user.purchase_count
        data['isActive'] = user.is_active
        results.append(data)
    return JsonResponse({'users': results, **meta})


@api_view(['GET', 'PUT', 'DELETE'])
@admin_required_json
def user_detail(request, user_id):
    user = User.objects.filter(pk=user_id).first()
    if user is None:
        return error('User not found', status=404)

    if request.method == 'GET':
        data = user_data(user)
        data['isActive'] = user.is_active
        data['purchases'] = [
            {
                'id': p.pk,
                'courseId': p.course_id,
                'courseTitle': p.course.title,
                'amount': money(p.amount),
                'createdAt': iso(p.created_at),
            }
            for p in user.purchases.select_related('course')
        ]
        affiliate = getattr(user, 'affiliate', None)
        data['affiliate'] = affiliate_data(affiliate) if affiliate else None
        return JsonResponse({'user': data})

    if request.method == 'DELETE':
        if user.pk == request.user.pk:
            return error('You cannot delete your own account')
        logger.info(f"User {user.pk} deleted by {request.user.email}")
        user.delete()
        return JsonResponse({'success': True})

    data, err = read_json(request)
    if err:
        return err

    update_fields = []
    if 'name' in data:
        user.name = (data.get('name') or '').strip()[:150]
        update_fields.append('name')
    if 'email' in data:
        email = (data.get('email') or '').strip().lower()
        try:
            validate_email(email)
        except ValidationError:
            return error('Invalid email address')
        if User.objects.filter(email__iexact=email).exclude(pk=user.pk).exists():
            return error('An account with this email already exists')
        user.email = email
        update_fields.append('email')
    if 'role' in data:
        role = data.get('role')
        if role not in User.Role.values:
            return error('Invalid role')
        if user.pk == request.user.pk and role != User.Role.ADMIN:
            return error('You cannot remove your own admin role')
        user.role = role
        update_fields.append('role')

    if update_fields:
        user.save(update_fields=update_fields)
    return JsonResponse({'user': user_data(user)})


# =============================================================================
# Affiliates
# =============================================================================

@api_view(['GET'])
@admin_required_json
def affiliates(request):
    queryset = Affiliate.objects.select_related('user', 'wallet').annotate(
        sales_count=Count('purchases', filter=Q(purchases__status=Purchase.Status.COMPLETED))
    )
    kyc_status = request.GET.get('kycStatus')
    if kyc_status in Affiliate.KYCStatus.values:
        queryset = queryset.filter(kyc_status=kyc_status)
    is_active = request.GET.get('isActive')
    if is_active in ('true', 'false'):
        queryset = queryset.filter(is_active=is_active == 'true')
    search = (request.GET.get('search') or '').strip()
    if search:
        queryset = queryset.filter(
            Q(user__email__icontains=search)
            | Q(user__name__icontains=search)
            | Q(referral_code__icontains=search)
        )

    items, meta = paginate(request, queryset)
    results = []
    for affiliate in items:
        data = affiliate_data(affiliate)
        wallet = getattr(affiliate, 'wallet', None)
        data['salesCount'] = affiliate.sales_count
        data['walletBalance'] = money(wallet.balance if wallet else 0)
        results.append(data)
    return JsonResponse({'affiliates': results, **meta})


@api_view(['POST'])
@admin_required_json
def toggle_affiliate_active(request):
    data, err = read_json(request)
    if err:
        return err

    affiliate_id = parse_id(data.get('affiliateId'))
    if affiliate_id is None:
        return error('A valid affiliateId is required')
    affiliate = Affiliate.objects.select_related('user').filter(pk=affiliate_id).first()
    if affiliate is None:
        return error('Affiliate not found', status=404)
    is_active = data.get('isActive')
    if not isinstance(is_active, bool):
        return error('isActive must be true or false')

    affiliate.is_active = is_active
    affiliate.save(update_fields=['is_active'])
    logger.info(f"Affiliate {affiliate.pk} active={is_active} set by {request.user.email}")
    return JsonResponse({'success': True, 'affiliate': affiliate_data(affiliate)})


# =============================================================================
# Earnings & analytics
# =============================================================================

def _completed_purchases():
    return Purchase.objects.filter(status=Purchase.Status.COMPLETED)


@api_view(['GET'])
@admin_required_json
def earnings(request):
    subscriptions = Subscription.objects.exclude(status=Subscription.Status.CANCELLED).aggregate(
        total=Sum('amount'), count=Count('id')
    )
    direct = _completed_purchases().filter(affiliate__isnull=True).aggregate(
        total=Sum('amount'), count=Count('id')
    )
    affiliate_sales = _completed_purchases().filter(affiliate__isnull=False).aggregate(
        total=Sum('amount'),
        platform_share=Sum('platform_share'),
        commission=Sum('commission'),
        count=Count('id'),
    )
    rate = PlatformSettings.get_commission_rate()

    subscription_total = subscriptions['total'] or 0
    direct_total = direct['total'] or 0
    platform_share = affiliate_sales['platform_share'] or 0

    return JsonResponse({
        'totalEarnings': money(subscription_total + direct_total + platform_share),
        'subscriptions': {
            'total': money(subscription_total),
            'count': subscriptions['count'],
            'monthlyFee': money(settings.SUBSCRIPTION_MONTHLY_FEE),
        },
        'directPurchases': {
            'total': money(direct_total),
            'count': direct['count'],
            'platformRate': 1.0,
        },
        'affiliateSales': {
            'grossRevenue': money(affiliate_sales['total']),
            'platformShare': money(platform_share),
            'commissionPaid': money(affiliate_sales['commission']),
            'count': affiliate_sales['count'],
            'commissionRate': float(rate),
            'platformRate': float(1 - rate),
        },
    })


@api_view(['GET'])
@admin_required_json
def analytics(request):
    period, start, start_date, end_date = period_window(request.GET.get('period'))

    purchases = _completed_purchases().filter(created_at__gte=start)
    new_users = User.objects.filter(date_joined__gte=start)

    totals = purchases.aggregate(revenue=Sum('amount'), sales=Count('id'))
    direct = purchases.filter(affiliate__isnull=True).aggregate(revenue=Sum('amount'), sales=Count('id'))
    referred = purchases.filter(affiliate__isnull=False).aggregate(
        revenue=Sum('amount'), sales=Count('id'), platform_share=Sum('platform_share'),
    )
    revenue = totals['revenue'] or 0

    daily_sales = daily_totals(purchases, 'created_at', sums=('amount',))
    daily_users = daily_totals(new_users, 'date_joined')

    top_courses = purchases.values('course_id', 'course__title').annotate(
        sales=Count('id'), revenue=Sum('amount'),
    ).order_by('-sales', '-revenue')[:5]
    top_affiliates = purchases.filter(affiliate__isnull=False).values(
        'affiliate_id', 'affiliate__referral_code', 'affiliate__user__email', 'affiliate__user__name',
    ).annotate(
        sales=Count('id'), revenue=Sum('amount'), commission_total=Sum('commission'),
    ).order_by('-sales', '-revenue')[:5]

    return JsonResponse({
        'period': period,
        'summary': {
            'totalRevenue': money(revenue),
            'directRevenue': money(direct['revenue']),
            'affiliateRevenue': money(referred['revenue']),
            'affiliatePlatformShare': money(referred['platform_share']),
            'totalSales': totals['sales'],
            'directSales': direct['sales'],
            'affiliateSales': referred['sales'],
            'newUsers': new_users.count(),
            'averageOrderValue': safe_ratio(revenue, totals['sales']),
        },
        'dailyData': fill_days(start_date, end_date, {
            'revenue': (daily_sales, 'amount'),
            'sales': (daily_sales, 'count'),
            'newUsers': (daily_users, 'count'),
        }),
        'topCourses': [
            {
                'courseId': row['course_id'],
                'title': row['course__title'],
                'sales': row['sales'],
                'revenue': money(row['revenue']),
            }
            for row in top_courses
        ],
        'topAffiliates': [
            {
                'affiliateId': row['affiliate_id'],
                'referralCode': row['affiliate__referral_code'],
                'email': row['affiliate__user__email'],
                'name': row['affiliate__user__name'],
                'sales': row['sales'],
                'revenue': money(row['revenue']),
                'commission': money(row['commission_total']),
            }
            for row in top_affiliates
        ],
    })


# =============================================================================
# Grouped listings
# =============================================================================

@api_view(['GET'])
@admin_required_json
def subscription_users(request):
    queryset = Subscription.objects.select_related('affiliate__user')
    queryset = _search_users(queryset, (request.GET.get('search') or '').strip(), 'affiliate__user__')
    items, meta = paginate(request, queryset)
    return JsonResponse({
        'subscriptions': [
            {
                'id': s.pk,
                'user': user_summary(s.affiliate.user),
                'affiliateId': s.affiliate_id,
                'planType': s.plan_type,
                'amount': money(s.amount),
                'status': s.status,
                'paymentReference': s.payment_reference or None,
                'startedAt': iso(s.started_at),
                'expiresAt': iso(s.expires_at),
            }
            for s in items
        ],
        **meta,
    })


def _grouped_buyers(request, purchases):
    """Purchases grouped per buyer with totals."""
    search = (request.GET.get('search') or '').strip()
    grouped = _search_users(purchases, search, 'user__').values(
        'user_id', 'user__email', 'user__name',
    ).annotate(
        purchase_count=Count('id'),
        total_amount=Sum('amount'),
        platform_share_total=Sum('platform_share'),
        commission_total=Sum('commission'),
    ).order_by('-total_amount')
    return paginate(request, grouped)


@api_view(['GET'])
@admin_required_json
def direct_purchase_users(request):
    items, meta = _grouped_buyers(request, _completed_purchases().filter(affiliate__isnull=True))
    return JsonResponse({
        'users': [
            {
                'userId': row['user_id'],
                'email': row['user__email'],
                'name': row['user__name'],
                'purchaseCount': row['purchase_count'],
                'totalAmount': money(row['total_amount']),
            }
            for row in items
        ],
        **meta,
    })


@api_view(['GET'])
@admin_required_json
def affiliate_sales_users(request):
    items, meta = _grouped_buyers(request, _completed_purchases().filter(affiliate__isnull=False))
    return JsonResponse({
        'users': [
            {
                'userId': row['user_id'],
                'email': row['user__email'],
                'name': row['user__name'],
                'purchaseCount': row['purchase_count'],
                'totalAmount': money(row['total_amount']),
                'platformShare': money(row['platform_share_total']),
                'commission': money(row['commission_total']),
            }
            for row in items
        ],
        **meta,
    })


@api_view(['GET'])
@admin_required_json
def earning_affiliates(request):
    queryset = Affiliate.objects.select_related('user', 'wallet').filter(total_earnings__gt=0)
    queryset = _search_users(queryset, (request.GET.get('search') or '').strip(), 'user__')
    items, meta = paginate(request, queryset.order_by('-total_earnings'))
    results = []
    for affiliate in items:
        data = affiliate_data(affiliate)
        wallet = getattr(affiliate, 'wallet', None)
        data['wallet'] = {
            'balance': money(wallet.balance),
            'totalEarned': money(wallet.total_earned),
            'totalPaid': money(wallet.total_paid),
        } if wallet else None
        results.append(data)
    return JsonResponse({'affiliates': results, **meta})
