"""
Django signals for triggering notification e-mails.

Notifications are queued with Django-Q when a model's status changes, and
only once the transaction that saved the model has committed.
"""

from django.db.models.signals import post_save, pre_save
from django.dispatch import receiver
import logging

from core.tasks import queue_after_commit

logger = logging.getLogger(__name__)


# Store previous status for comparison
_order_previous_status = {}
_kyc_previous_status = {}
_payout_previous_status = {}


def _remember_status(sender, instance, store):
    if instance.pk:
        try:
            store[instance.pk] = sender.objects.only('status').get(pk=instance.pk).status
        except sender.DoesNotExist:
            pass


@receiver(pre_save, sender='core.Order')
def order_pre_save(sender, instance, **kwargs):
    """Store previous status before save for comparison."""
    _remember_status(sender, instance, _order_previous_status)


@receiver(post_save, sender='core.Order')
def order_paid(sender, instance, created, **kwargs):
    """Send the receipt once an order becomes paid."""
    previous_status = _order_previous_status.pop(instance.pk, None)
    if created or previous_status == instance.status:
        return

    from core.models import Order

    if instance.status == Order.Status.PAID:
        logger.info(f"Order {instance.id} paid, queueing receipt")
        queue_after_commit(f'order_receipt_{instance.id}', 'send_purchase_receipt', instance.id)


@receiver(pre_save, sender='core.KYCSubmission')
def kyc_pre_save(sender, instance, **kwargs):
    """Store previous status before save for comparison."""
    _remember_status(sender, instance, _kyc_previous_status)


@receiver(post_save, sender='core.KYCSubmission')
def kyc_status_changed(sender, instance, created, **kwargs):
    """
    Notify the affiliate of a review decision, and admins of new
    submissions.
    """
    from core.models import KYCSubmission

    previous_status = _kyc_previous_status.pop(instance.pk, None)

    if instance.status == KYCSubmission.Status.PENDING and previous_status != instance.status:
        queue_after_commit(
            f'kyc_submitted_{instance.id}',
            'send_admin_notification',
            'New KYC submission',
            f"{instance.affiliate.user.email} submitted KYC documents for review.",
            {'Document type': instance.get_document_type_display()},
        )
        return

    if created or previous_status == instance.status:
        return

    if instance.status in (KYCSubmission.Status.APPROVED, KYCSubmission.Status.REJECTED):
        logger.info(f"KYC {instance.id} {instance.status}, queueing notification")
        queue_after_commit(f'kyc_{instance.status}_{instance.id}', 'send_kyc_status_notification', instance.id)


@receiver(pre_save, sender='core.Payout')
def payout_pre_save(sender, instance, **kwargs):
    """Store previous status before save for comparison."""
    _remember_status(sender, instance, _payout_previous_status)


@receiver(post_save, sender='core.Payout')
def payout_status_changed(sender, instance, created, **kwargs):
    """Send notification when payout status changes."""
    if created:
        return

    previous_status = _payout_previous_status.pop(instance.pk, None)
    if not previous_status or previous_status == instance.status:
        return

    from core.models import Payout

    if previous_status in Payout.OPEN_STATUSES:
        logger.info(f"Payout {instance.id} status changed to {instance.status}, queueing notification")
        queue_after_commit(
            f'payout_{instance.status}_{instance.id}',
            'send_payout_status_notification',
            instance.id,
            instance.status,
        )


@receiver(post_save, sender='core.Contact')
def contact_created(sender, instance, created, **kwargs):
    """Acknowledge the sender and alert admins."""
    if not created:
        return

    queue_after_commit(f'contact_ack_{instance.id}', 'send_contact_acknowledgement', instance.id)
    queue_after_commit(
        f'contact_admin_{instance.id}',
        'send_admin_notification',
        'New contact message',
        f"{instance.name} <{instance.email}> wrote: {instance.subject}",
        {'Phone': instance.phone or '-'},
    )
