"""
Checkout price arithmetic. All amounts are Decimal rupees rounded half-up
to paise.
"""
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation

from django.conf import settings

PAISE = Decimal('0.01')


def to_money(value):
    return Decimal(value).quantize(PAISE, rounding=ROUND_HALF_UP)


def parse_amount(value):
    """
    Parse a user-supplied amount. Returns a Decimal or None when the value
    is missing, not numeric or negative.
    """
    if value is None or value == '':
        return None
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite() or amount < 0:
        return None
    return to_money(amount)


def price_breakdown(base_amount):
    """
    GST and the gateway fee are both charged on the base amount.

    Returns a dict of Decimals: base, gst, gateway_fee, total.
    """
    base = to_money(base_amount)
    gst = to_money(base * settings.GST_RATE)
    gateway_fee = to_money(base * settings.GATEWAY_FEE_RATE)
    return {
        'base': base,
        'gst': gst,
        'gateway_fee': gateway_fee,
        'total': base + gst + gateway_fee,
    }


def split_commission(price, rate):
    """Returns (commission, platform_share) for one course sale."""
    commission = to_money(Decimal(price) * Decimal(rate))
    return commission, to_money(price) - commission
