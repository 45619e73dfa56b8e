"""
Razorpay payment gateway utilities.

Helpers never raise: they return a dict with 'success' and either the
gateway data or an 'error' message suitable for the client.
"""
import hashlib
import hmac
import logging

import razorpay
import requests
from django.conf import settings

logger = logging.getLogger(__name__)


def get_razorpay_client():
    return razorpay.Client(auth=(settings.RAZORPAY_KEY_ID, settings.RAZORPAY_KEY_SECRET))


def is_configured():
    return bool(settings.RAZORPAY_KEY_ID and settings.RAZORPAY_KEY_SECRET)


def create_order(amount_paise, receipt, notes=None):
    """
    Create a Razorpay order.

    Args:
        amount_paise: Amount in paise (integer)
        receipt: Our reference for the order (max 40 chars)
        notes: Optional dict stored on the gateway order

    Returns:
        dict: {
            'success': bool,
            'order_id': Razorpay order ID (if successful),
            'amount': amount in paise,
            'currency': 'INR',
            'error': error message (if failed)
        }
    """
    if not is_configured():
        logger.error("Razorpay keys are not configured")
        return {
            'success': False,
            'error': 'Payment gateway is not configured.',
        }

    order_data = {
        'amount': int(amount_paise),
        'currency': settings.PAYMENT_CURRENCY,
        'receipt': str(receipt)[:40],
        'notes': notes or {},
    }

    try:
        logger.info(f"Razorpay order create: amount={amount_paise}, receipt={receipt}")
        order = get_razorpay_client().order.create(data=order_data)
        logger.info(f"Razorpay order created: id={order.get('id')}")
        return {
            'success': True,
            'order_id': order['id'],
            'amount': order.get('amount', int(amount_paise)),
            'currency': order.get('currency', settings.PAYMENT_CURRENCY),
        }
    except razorpay.errors.BadRequestError as e:
        logger.error(f"Razorpay rejected order: {e}")
        return {
            'success': False,
            'error': 'Payment gateway rejected the order.',
        }
    except requests.exceptions.Timeout:
        logger.error("Razorpay API timeout")
        return {
            'success': False,
            'error': 'Payment service timeout. Please try again.',
        }
    except requests.exceptions.RequestException as e:
        logger.error(f"Razorpay API error: {e}")
        return {
            'success': False,
            'error': 'Payment service unavailable. Please try again later.',
        }
    except Exception as e:
        logger.error(f"Razorpay unexpected error: {e}")
        return {
            'success': False,
            'error': 'An unexpected error occurred.',
        }


def verify_payment_signature(order_id, payment_id, signature):
    """
    Check the checkout signature: HMAC-SHA256 of "order_id|payment_id"
    keyed with the API secret.
    """
    if not (order_id and payment_id and signature and settings.RAZORPAY_KEY_SECRET):
        return False
    message = f"{order_id}|{payment_id}"
    generated_signature = hmac.new(
        settings.RAZORPAY_KEY_SECRET.encode(),
        message.encode(),
        hashlib.sha256
    ).hexdigest()
    return hmac.compare_digest(generated_signature, str(signature))
