"""
Core models package.
All models are re-exported here so callers can import from core.models.
"""

from .course import (
    Course,
    Video,
    CourseReview,
)

from .purchase import (
    Order,
    Purchase,
)

from .affiliate import (
    Affiliate,
    AffiliateClick,
    PlatformSettings,
    Subscription,
    generate_referral_code,
)

from .wallet import (
    Wallet,
    WalletTransaction,
)

from .kyc import (
    KYCSubmission,
    KYC_DOCUMENT_FIELDS,
    kyc_document_upload_path,
)

from .payout import Payout

from .contact import Contact

from .milestone import Milestone

__all__ = [
    # Courses
    'Course',
    'Video',
    'CourseReview',
    # Checkout
    'Order',
    'Purchase',
    # Affiliates
    'Affiliate',
    'AffiliateClick',
    'PlatformSettings',
    'Subscription',
    'generate_referral_code',
    # Wallet
    'Wallet',
    'WalletTransaction',
    # KYC
    'KYCSubmission',
    'KYC_DOCUMENT_FIELDS',
    'kyc_document_upload_path',
    # Payouts
    'Payout',
    # Support
    'Contact',
    'Milestone',
]
