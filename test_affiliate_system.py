"""
Tests for the affiliate system: link tracking, attribution cookie,
dashboard, analytics and the backfill command.
"""
from decimal import Decimal
from io import StringIO

import pytest
from django.contrib.auth import get_user_model
from django.core.management import call_command

from core.earnings import AFFILIATE_COOKIE, AFFILIATE_COURSES_COOKIE
from core.models import Affiliate, AffiliateClick, Purchase, Wallet

User = get_user_model()

pytestmark = pytest.mark.django_db


def test_referral_code_format(affiliate):
    assert affiliate.referral_code.startswith('LWX-')
    assert len(affiliate.referral_code) == 10


def test_ensure_for_user_promotes_and_creates_wallet(buyer):
    affiliate = Affiliate.ensure_for_user(buyer)

    buyer.refresh_from_db()
    assert buyer.role == User.Role.AFFILIATE
    assert Wallet.objects.filter(affiliate=affiliate).exists()
    assert Affiliate.ensure_for_user(buyer) == affiliate


def test_admin_role_is_never_downgraded(admin):
    Affiliate.ensure_for_user(admin)

    admin.refresh_from_db()
    assert admin.role == User.Role.ADMIN


# =============================================================================
# Tracking
# =============================================================================

def test_track_by_code_sets_cookie_and_counts_click(client, affiliate):
    response = client.get(
        f'/api/affiliate/track/{affiliate.referral_code.lower()}',
        HTTP_USER_AGENT='pytest',
        HTTP_X_FORWARDED_FOR='203.0.113.7, 10.0.0.1',
    )

    assert response.status_code == 200
    assert response.cookies[AFFILIATE_COOKIE].value == str(affiliate.pk)
    assert response.cookies[AFFILIATE_COOKIE]['httponly']
    affiliate.refresh_from_db()
    assert affiliate.total_clicks == 1
    click = AffiliateClick.objects.get()
    assert click.ip_address == '203.0.113.7'
    assert click.user_agent == 'pytest'


def test_track_by_id_keeps_course_list(client, affiliate, course):
    response = client.get(
        f'/api/affiliate/track-by-id/{affiliate.pk}',
        {'courses': f'{course.pk},abc,'},
    )

    assert response.status_code == 200
    assert response.json()['courseIds'] == [str(course.pk)]
    assert response.cookies[AFFILIATE_COURSES_COOKIE].value == str(course.pk)
    assert AffiliateClick.objects.get().course_ids == str(course.pk)


def test_inactive_affiliate_is_not_tracked(client, affiliate):
    affiliate.is_active = False
    affiliate.save()

    response = client.get(f'/api/affiliate/track/{affiliate.referral_code}')

    assert response.status_code == 404
    assert AFFILIATE_COOKIE not in response.cookies
    assert not AffiliateClick.objects.exists()


def test_unknown_code_is_404(client):
    assert client.get('/api/affiliate/track/LWX-NOPE00').status_code == 404


def test_public_profile(client, affiliate):
    response = client.get(f'/api/affiliate/public/{affiliate.pk}')

    assert response.status_code == 200
    data = response.json()
    assert data['referralCode'] == affiliate.referral_code
    assert data['user']['name'] == 'Rahul Partner'
    assert 'balance' not in data


# =============================================================================
# Dashboard & analytics
# =============================================================================

def test_dashboard_creates_affiliate_on_first_visit(buyer_client, buyer):
    response = buyer_client.get('/api/affiliate/me')

    assert response.status_code == 200
    data = response.json()
    assert data['affiliate']['referralCode'].startswith('LWX-')
    assert data['commissionRate'] == 0.3
    buyer.refresh_from_db()
    assert buyer.role == User.Role.AFFILIATE


def test_dashboard_links_only_owned_courses(affiliate_client, affiliate, course, second_course):
    Purchase.objects.create(user=affiliate.user, course=course, amount=course.price)

    data = affiliate_client.get('/api/affiliate/me').json()

    assert [link['course']['id'] for link in data['courseLinks']] == [course.pk]
    link = data['courseLinks'][0]
    assert link['link'].endswith(f'/courses/{course.pk}?ref={affiliate.referral_code}')
    assert link['trackingUrl'].endswith(f'/api/affiliate/track-by-id/{affiliate.pk}?courses={course.pk}')


def test_dashboard_lists_referrals_and_sales(affiliate_client, affiliate, buyer, course):
    buyer.referred_by = affiliate
    buyer.save()
    Purchase.objects.create(
        user=buyer, course=course, amount=course.price, affiliate=affiliate,
        commission=Decimal('299.70'), platform_share=Decimal('699.30'),
    )

    data = affiliate_client.get('/api/affiliate/me').json()

    assert [u['email'] for u in data['referrals']] == ['buyer@example.com']
    assert data['purchases'][0]['commission'] == 299.7


def test_analytics_summary(affiliate_client, affiliate, buyer, course):
    AffiliateClick.objects.create(affiliate=affiliate)
    AffiliateClick.objects.create(affiliate=affiliate)
    Purchase.objects.create(
        user=buyer, course=course, amount=course.price, affiliate=affiliate,
        commission=Decimal('299.70'), platform_share=Decimal('699.30'),
    )

    response = affiliate_client.get('/api/affiliate/analytics', {'period': '7d'})

    assert response.status_code == 200
    data = response.json()
    assert data['period'] == '7d'
    assert len(data['dailyData']) == 7
    summary = data['summary']
    assert summary['totalSales'] == 1
    assert summary['totalClicks'] == 2
    assert summary['totalRevenue'] == 999.0
    assert summary['totalCommission'] == 299.7
    assert summary['conversionRate'] == 50.0
    assert data['dailyData'][-1]['commission'] == 299.7
    assert data['topCourses'][0]['commission'] == 299.7


def test_analytics_unknown_period_defaults_to_30_days(affiliate_client):
    data = affiliate_client.get('/api/affiliate/analytics', {'period': 'forever'}).json()

    assert data['period'] == '30d'
    assert len(data['dailyData']) == 30


# =============================================================================
# Backfill command
# =============================================================================

def test_backfill_affiliates(django_user_model):
    user = django_user_model.objects.create_user(
        email='legacy@example.com', password='secret123', role=User.Role.AFFILIATE,
    )
    orphan_owner = django_user_model.objects.create_user(email='orphan@example.com', password='secret123')
    orphan = Affiliate.objects.create(user=orphan_owner)

    out = StringIO()
    call_command('backfill_affiliates', stdout=out)

    assert Affiliate.objects.filter(user=user).exists()
    assert Wallet.objects.filter(affiliate=orphan).exists()
    assert 'Created 1 affiliate account(s) and 1 wallet(s).' in out.getvalue()
