"""
Affiliate API: link tracking, public profile, dashboard and analytics.
"""
import logging

from django.conf import settings
from django.db.models import Count, Sum, F
from django.http import JsonResponse

from ..analytics import period_window, daily_totals, fill_days, safe_ratio
from ..earnings import AFFILIATE_COOKIE, AFFILIATE_COURSES_COOKIE
from ..models import Affiliate, AffiliateClick, Course, PlatformSettings, Purchase
from ..serializers import (
    affiliate_data, course_data, iso, money, purchase_data, user_summary,
)
from ._helpers import api_view, login_required_json, error, client_ip

logger = logging.getLogger(__name__)


def _track(request, affiliate, course_ids=''):
    if affiliate is None or not affiliate.is_active:
        return error('Affiliate not found', status=404)

    AffiliateClick.objects.create(
        affiliate=affiliate,
        ip_address=client_ip(request),
        user_agent=request.META.get('HTTP_USER_AGENT', '')[:500],
        course_ids=course_ids[:500],
    )
    Affiliate.objects.filter(pk=affiliate.pk).update(total_clicks=F('total_clicks') + 1)

    response = JsonResponse({
        'success': True,
        'affiliateId': affiliate.pk,
        'referralCode': affiliate.referral_code,
        'courseIds': [c for c in course_ids.split(',') if c],
    })
    cookie_options = {
        'max_age': settings.AFFILIATE_COOKIE_MAX_AGE,
        'httponly': True,
        'samesite': settings.SESSION_COOKIE_SAMESITE,
        'secure': settings.SESSION_COOKIE_SECURE,
    }
    response.set_cookie(AFFILIATE_COOKIE, str(affiliate.pk), **cookie_options)
    if course_ids:
        response.set_cookie(AFFILIATE_COURSES_COOKIE, course_ids, **cookie_options)
    return response


@api_view(['GET'])
def track_by_code(request, referral_code):
    affiliate = Affiliate.objects.filter(referral_code=referral_code.strip().upper()).first()
    return _track(request, affiliate)


@api_view(['GET'])
def track_by_id(request, affiliate_id):
    affiliate = Affiliate.objects.filter(pk=affiliate_id).first()
    raw = request.GET.get('courses', '')
    course_ids = ','.join(c.strip() for c in raw.split(',') if c.strip().isdigit())
    return _track(request, affiliate, course_ids)


@api_view(['GET'])
def public_profile(request, affiliate_id):
    affiliate = Affiliate.objects.select_related('user').filter(pk=affiliate_id, is_active=True).first()
    if affiliate is None:
        return error('Affiliate not found', status=404)
    return JsonResponse({
        'id': affiliate.pk,
        'referralCode': affiliate.referral_code,
        'totalClicks': affiliate.total_clicks,
        'totalSignups': affiliate.total_signups,
        'createdAt': iso(affiliate.created_at),
        'user': user_summary(affiliate.user),
    })


@api_view(['GET'])
@login_required_json
def dashboard(request):
    affiliate = Affiliate.ensure_for_user(request.user)

    referrals = affiliate.referred_users.order_by('-date_joined')[:50]
    purchases = affiliate.purchases.select_related('course', 'user')[:50]

    # Affiliates may only promote courses they own
    owned = Course.objects.filter(
        purchases__user=request.user,
        purchases__status=Purchase.Status.COMPLETED,
        is_published=True,
    ).distinct()
    course_links = [
        {
            'course': course_data(course, include_videos=False),
            'link': f"{settings.FRONTEND_URL}/courses/{course.pk}?ref={affiliate.referral_code}",
            'trackingUrl': request.build_absolute_uri(
                f"/api/affiliate/track-by-id/{affiliate.pk}?courses={course.pk}"
            ),
        }
        for course in owned
    ]

    return JsonResponse({
        'affiliate': affiliate_data(affiliate),
        'referrals': [user_summary(u) for u in referrals],
        'purchases': [purchase_data(p) for p in purchases],
        'courseLinks': course_links,
        'commissionRate': float(PlatformSettings.get_commission_rate()),
    })


@api_view(['GET'])
@login_required_json
def analytics(request):
    affiliate = Affiliate.objects.filter(user=request.user).first()
    if affiliate is None:
        return error('Affiliate account not found', status=404)
    period, start, start_date, end_date = period_window(request.GET.get('period'))

    purchases = Purchase.objects.filter(
        affiliate=affiliate,
        status=Purchase.Status.COMPLETED,
        created_at__gte=start,
    )
    clicks = AffiliateClick.objects.filter(affiliate=affiliate, created_at__gte=start)
    signups = affiliate.referred_users.filter(date_joined__gte=start)

    totals = purchases.aggregate(revenue=Sum('amount'), commission=Sum('commission'), sales=Count('id'))
    revenue = totals['revenue'] or 0
    sales = totals['sales']
    click_count = clicks.count()

    daily_sales = daily_totals(purchases, 'created_at', sums=('amount', 'commission'))
    daily_clicks = daily_totals(clicks, 'created_at')
    daily_signups = daily_totals(signups, 'date_joined')

    top_courses = purchases.values('course_id', 'course__title').annotate(
        sales=Count('id'),
        revenue=Sum('amount'),
        commission_total=Sum('commission'),
    ).order_by('-sales', '-revenue')[:5]

    return JsonResponse({
        'period': period,
        'summary': {
            'totalRevenue': money(revenue),
            'totalCommission': money(totals['commission']),
            'totalSales': sales,
            'totalClicks': click_count,
            'totalSignups': signups.count(),
            'conversionRate': safe_ratio(sales, click_count, 100),
            'averageOrderValue': safe_ratio(revenue, sales),
        },
        'dailyData': fill_days(start_date, end_date, {
            'revenue': (daily_sales, 'amount'),
            'commission': (daily_sales, 'commission'),
            'sales': (daily_sales, 'count'),
            'clicks': (daily_clicks, 'count'),
            'signups': (daily_signups, 'count'),
        }),
        'topCourses': [
            {
                'courseId': row['course_id'],
                'title': row['course__title'],
                'sales': row['sales'],
                'revenue': money(row['revenue']),
                'commission': money(row['commission_total']),
            }
            for row in top_courses
        ],
        'recentPurchases': [
            purchase_data(p) for p in purchases.select_related('course', 'user')[:10]
        ],
        'recentSignups': [user_summary(u) for u in signups.order_by('-date_joined')[:10]],
    })
