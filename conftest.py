"""
Shared pytest fixtures: users in each role, a published course, and an
affiliate with an approved KYC.
"""
from decimal import Decimal

import pytest
from django.test import Client
from django.utils import timezone
from django_q.conf import Conf

from core.models import Affiliate, Course, KYCSubmission


@pytest.fixture(autouse=True)
def test_settings(settings, tmp_path, monkeypatch):
    """Keep tests offline and files out of the repository."""
    # Queued tasks run inline instead of waiting for a cluster
    monkeypatch.setattr(Conf, 'SYNC', True)
    settings.MEDIA_ROOT = str(tmp_path / 'media')
    settings.PAYMENT_BYPASS = False
    settings.RAZORPAY_KEY_ID = 'rzp_test_key'
    settings.RAZORPAY_KEY_SECRET = 'rzp_test_secret'
    settings.GOOGLE_VERIFY_TOKENS = True
    settings.BUNNY_API_KEY = ''
    settings.BUNNY_LIBRARY_ID = '12345'
    settings.BUNNY_CDN_HOSTNAME = 'vz-test.b-cdn.net'
    settings.BUNNY_TOKEN_KEY = ''
    settings.PAYOUT_MINIMUM_AMOUNT = Decimal('500')
    return settings


@pytest.fixture
def buyer(django_user_model):
    return django_user_model.objects.create_user(
        email='buyer@example.com',
        password='secret123',
        name='Priya Buyer',
    )


@pytest.fixture
def admin(django_user_model):
    return django_user_model.objects.create_superuser(
        email='admin@example.com',
        password='secret123',
        name='Site Admin',
    )


@pytest.fixture
def affiliate_user(django_user_model):
    return django_user_model.objects.create_user(
        email='partner@example.com',
        password='secret123',
        name='Rahul Partner',
    )


@pytest.fixture
def affiliate(affiliate_user):
    return Affiliate.ensure_for_user(affiliate_user)


@pytest.fixture
def approved_kyc(affiliate):
    return KYCSubmission.objects.create(
        affiliate=affiliate,
        status=KYCSubmission.Status.APPROVED,
        document_type=KYCSubmission.DocumentType.PAN,
        document_number='ABCDE1234F',
        document_front='kyc/test/front.pdf',
        account_holder_name='Rahul Partner',
        bank_account_number='123456789012',
        bank_ifsc='HDFC0001234',
        bank_name='HDFC Bank',
        submitted_at=timezone.now(),
        reviewed_at=timezone.now(),
    )


@pytest.fixture
def course():
    return Course.objects.create(
        title='Stock Market Basics',
        description='Learn how the markets work.',
        mrp=Decimal('1999.00'),
        price=Decimal('999.00'),
        is_published=True,
    )


@pytest.fixture
def second_course():
    return Course.objects.create(
        title='Mutual Funds Masterclass',
        mrp=Decimal('1499.00'),
        price=Decimal('1000.00'),
        is_published=True,
    )


@pytest.fixture
def buyer_client(client, buyer):
    client.force_login(buyer)
    return client


@pytest.fixture
def admin_client(admin):
    client = Client()
    client.force_login(admin)
    return client


@pytest.fixture
def affiliate_client(affiliate):
    client = Client()
    client.force_login(affiliate.user)
    return client
