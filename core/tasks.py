"""
Notification e-mails.

Plain functions taking primary keys, queued with django_q's async_task()
(see queue_after_commit) or called inline. They log and return False on
failure instead of raising.
"""

from django.core.mail import EmailMultiAlternatives
from django.template.loader import render_to_string
from django.conf import settings
from django.db.models import Q
from django.utils.html import strip_tags
from datetime import datetime
import logging

logger = logging.getLogger(__name__)


def get_email_context():
    """Get common context for all email templates."""
    return {
        'site_url': settings.FRONTEND_URL,
        'current_year': datetime.now().year,
    }


def _send_templated(template, subject, recipients, context):
    html_content = render_to_string(template, context)
    text_content = strip_tags(html_content)

    msg = EmailMultiAlternatives(
        subject=subject,
        body=text_content,
        from_email=settings.DEFAULT_FROM_EMAIL,
        to=recipients,
    )
    msg.attach_alternative(html_content, "text/html")
    msg.send()


def queue_after_commit(task_name, func_name, *args):
    """
    Queue core.tasks.<func_name>(*args) with Django-Q once the surrounding
    transaction commits. Nothing is queued when it rolls back.
    """
    from django.db import transaction
    from django_q.tasks import async_task

    def dispatch():
        try:
            async_task(f"core.tasks.{func_name}", *args, task_name=task_name)
        except Exception as e:
            logger.error(f"Failed to queue {func_name} ({task_name}): {e}")

    transaction.on_commit(dispatch)


def get_admin_emails():
    from django.contrib.auth import get_user_model
    User = get_user_model()

    return list(User.objects.filter(
        Q(is_superuser=True) | Q(role=User.Role.ADMIN),
        is_active=True,
    ).values_list('email', flat=True))


def send_purchase_receipt(order_id):
    """Receipt for a paid order, listing every course in it."""
    from core.models import Order

    try:
        order = Order.objects.select_related('user').get(id=order_id)
        user = order.user

        context = get_email_context()
        context['order'] = order
        context['user'] = user
        context['courses'] = list(order.courses.all())

        _send_templated(
            'emails/purchase_receipt.html',
            'Your LearnWealthX purchase is confirmed',
            [user.email],
            context,
        )
        logger.info(f"Sent purchase receipt for order {order_id} to {user.email}")
        return True

    except Exception as e:
        logger.error(f"Failed to send purchase receipt for order {order_id}: {e}")
        return False


def send_kyc_status_notification(kyc_id):
    """Tell the affiliate their KYC was approved or rejected."""
    from core.models import KYCSubmission

    try:
        kyc = KYCSubmission.objects.select_related('affiliate__user').get(id=kyc_id)
        user = kyc.affiliate.user

        context = get_email_context()
        context['kyc'] = kyc
        context['user'] = user

        subjects = {
            KYCSubmission.Status.APPROVED: 'Your KYC has been approved - LearnWealthX',
            KYCSubmission.Status.REJECTED: 'Action needed: your KYC was not approved - LearnWealthX',
        }
        _send_templated(
            'emails/kyc_status.html',
            subjects.get(kyc.status, 'KYC update - LearnWealthX'),
            [user.email],
            context,
        )
        logger.info(f"Sent KYC {kyc.status} notification for submission {kyc_id} to {user.email}")
        return True

    except Exception as e:
        logger.error(f"Failed to send KYC notification for submission {kyc_id}: {e}")
        return False


def send_payout_status_notification(payout_id, status):
    """
    Send notification email when payout status changes.

    Args:
        payout_id: Payout ID
        status: 'processing', 'completed', or 'failed'
    """
    from core.models import Payout

    try:
        payout = Payout.objects.select_related('affiliate__user').get(id=payout_id)
        user = payout.affiliate.user

        context = get_email_context()
        context['payout'] = payout
        context['status'] = status
        context['user'] = user

        subjects = {
            'processing': 'Your payout is being processed - LearnWealthX',
            'completed': f'Payout completed: ₹{payout.amount:,.2f} - LearnWealthX',
            'failed': 'Payout issue - action needed - LearnWealthX',
        }
        _send_templated(
            'emails/payout_status.html',
            subjects.get(status, 'Payout update - LearnWealthX'),
            [user.email],
            context,
        )
        logger.info(f"Sent payout status ({status}) notification for payout {payout_id} to {user.email}")
        return True

    except Exception as e:
        logger.error(f"Failed to send payout status notification for payout {payout_id}: {e}")
        return False


def send_password_reset_email(token_id):
    from users.models import PasswordResetToken

    try:
        token = PasswordResetToken.objects.select_related('user').get(id=token_id)
        user = token.user

        context = get_email_context()
        context['user'] = user
        context['reset_url'] = f"{settings.FRONTEND_URL}/reset-password?token={token.token}"
        context['expires_at'] = token.expires_at

        _send_templated(
            'emails/password_reset.html',
            'Reset your LearnWealthX password',
            [user.email],
            context,
        )
        logger.info(f"Sent password reset email to {user.email}")
        return True

    except Exception as e:
        logger.error(f"Failed to send password reset email for token {token_id}: {e}")
        return False


def send_contact_acknowledgement(contact_id):
    from core.models import Contact

    try:
        contact = Contact.objects.get(id=contact_id)

        context = get_email_context()
        context['contact'] = contact

        _send_templated(
            'emails/contact_ack.html',
            f'We received your message: {contact.subject}',
            [contact.email],
            context,
        )
        logger.info(f"Sent contact acknowledgement for message {contact_id}")
        return True

    except Exception as e:
        logger.error(f"Failed to send contact acknowledgement for message {contact_id}: {e}")
        return False


def send_admin_notification(title, message, details=None):
    """
    E-mail every admin.

    Args:
        title: Email subject/title
        message: Main notification message
        details: Optional dict of key-value pairs to display
    """
    try:
        admin_emails = get_admin_emails()
        if not admin_emails:
            logger.warning("No admin emails found for notification")
            return False

        context = get_email_context()
        context.update({
            'title': title,
            'message': message,
            'details': details or {},
        })

        _send_templated(
            'emails/admin_notification.html',
            f"{title} - LearnWealthX Admin",
            admin_emails,
            context,
        )
        logger.info(f"Sent admin notification '{title}' to {len(admin_emails)} admins")
        return True

    except Exception as e:
        logger.error(f"Failed to send admin email notification: {e}")
        return False
