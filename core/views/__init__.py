"""
Core API views, one module per area.
"""

from . import (
    admin_api,
    affiliate,
    contacts,
    courses,
    kyc,
    milestones,
    payments,
    payouts,
    site,
    uploads,
    wallet,
)

__all__ = [
    'admin_api',
    'affiliate',
    'contacts',
    'courses',
    'kyc',
    'milestones',
    'payments',
    'payouts',
    'site',
    'uploads',
    'wallet',
]
