"""
Management command for the weekly affiliate payout run.

Usage:
    python manage.py generate_weekly_payouts [--dry-run] [--sync]

Schedule it on PAYOUT_DAY_OF_WEEK with the Django-Q scheduler (or cron).
"""

from django.core.management.base import BaseCommand
from django_q.tasks import async_task
import logging

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = 'Create weekly payouts for every affiliate with approved KYC and enough balance'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show which payouts would be created without creating them'
        )
        parser.add_argument(
            '--sync',
            action='store_true',
            help='Send notification emails synchronously instead of using Django-Q'
        )

    def handle(self, *args, **options):
        from core.earnings import generate_weekly_payouts
        from core.tasks import send_payout_status_notification

        dry_run = options['dry_run']
        sync_mode = options['sync']

        payouts = generate_weekly_payouts(dry_run=dry_run)

        if not payouts:
            self.stdout.write(self.style.WARNING('No affiliates qualify for a payout this week.'))
            return

        total = sum((p.amount for p in payouts), start=0)
        self.stdout.write(f'{len(payouts)} payout(s), total ₹{total:,.2f}')

        notified = 0
        error_count = 0

        for payout in payouts:
            email = payout.affiliate.user.email

            if dry_run:
                self.stdout.write(f'  [DRY RUN] Would pay ₹{payout.amount:,.2f} to {email}')
                continue

            try:
                if sync_mode:
                    if send_payout_status_notification(payout.id, 'pending'):
                        notified += 1
                        self.stdout.write(self.style.SUCCESS(f'  Payout #{payout.id} for {email}, notified'))
                    else:
                        error_count += 1
                        self.stdout.write(self.style.ERROR(f'  Payout #{payout.id} for {email}, email failed'))
                else:
                    # Queue with Django-Q
                    async_task(
                        'core.tasks.send_payout_status_notification',
                        payout.id,
                        'pending',
                        task_name=f'weekly_payout_{payout.id}',
                    )
                    notified += 1
                    self.stdout.write(f'  Payout #{payout.id} for {email}, notification queued')
            except Exception as e:
                error_count += 1
                logger.error(f'Error notifying {email} about payout {payout.id}: {e}')
                self.stdout.write(self.style.ERROR(f'  Error for {email}: {e}'))

        # Summary
        mode = '[DRY RUN]' if dry_run else ('sync' if sync_mode else 'queued')
        self.stdout.write(self.style.SUCCESS(
            f'\nCompleted: {len(payouts)} payouts {mode}, {notified} notified, {error_count} errors'
        ))
