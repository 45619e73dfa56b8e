"""
Management command to give every affiliate-role user an affiliate account
and every affiliate a wallet.
Run with: python manage.py backfill_affiliates
"""
from django.core.management.base import BaseCommand

from core.models import Affiliate, Wallet
from users.models import User


class Command(BaseCommand):
    help = 'Create missing affiliate accounts and wallets'

    def handle(self, *args, **options):
        users_without_affiliate = User.objects.filter(
            role=User.Role.AFFILIATE,
            affiliate__isnull=True,
        )
        created_affiliates = 0
        for user in users_without_affiliate:
            affiliate = Affiliate.ensure_for_user(user)
            created_affiliates += 1
            self.stdout.write(f'  {user.email} → {affiliate.referral_code}')

        created_wallets = 0
        for affiliate in Affiliate.objects.filter(wallet__isnull=True):
            Wallet.objects.create(affiliate=affiliate)
            created_wallets += 1

        if not created_affiliates and not created_wallets:
            self.stdout.write(self.style.SUCCESS('All affiliates already have accounts and wallets.'))
            return

        self.stdout.write(self.style.SUCCESS(
            f'Created {created_affiliates} affiliate account(s) and {created_wallets} wallet(s).'
        ))
