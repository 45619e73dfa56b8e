from django.contrib.sitemaps.views import sitemap
from django.urls import path

from .sitemaps import sitemaps
from .views import (
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

app_name = 'core'

urlpatterns = [
    # Public metadata
    path('sitemap.xml', sitemap, {'sitemaps': sitemaps}, name='sitemap'),
    path('robots.txt', site.robots_txt, name='robots_txt'),
    path('api/health', site.health, name='health'),

    # Courses & videos
    path('api/courses', courses.course_collection, name='courses'),
    path('api/courses/<int:course_id>', courses.course_detail, name='course_detail'),
    path('api/courses/<int:course_id>/videos', courses.create_video, name='course_videos'),
    path('api/courses/<int:course_id>/videos/<int:video_id>', courses.video_detail, name='video_detail'),
    path('api/courses/<int:course_id>/reviews', courses.course_reviews, name='course_reviews'),
    path('api/videos/<int:video_id>/stream', courses.video_stream, name='video_stream'),

    # Uploads
    path('api/upload/thumbnail', uploads.upload_thumbnail, name='upload_thumbnail'),
    path('api/upload/bunny', uploads.upload_bunny_video, name='upload_bunny'),

    # Payments
    path('api/payments/price-breakdown', payments.price_breakdown_view, name='price_breakdown'),
    path('api/payments/create-order', payments.create_order, name='create_order'),
    path('api/payments/verify', payments.verify_payment, name='verify_payment'),

    # Affiliates
    path('api/affiliate/track/<str:referral_code>', affiliate.track_by_code, name='affiliate_track'),
    path('api/affiliate/track-by-id/<int:affiliate_id>', affiliate.track_by_id, name='affiliate_track_by_id'),
    path('api/affiliate/public/<int:affiliate_id>', affiliate.public_profile, name='affiliate_public'),
    path('api/affiliate/me', affiliate.dashboard, name='affiliate_me'),
    path('api/affiliate/analytics', affiliate.analytics, name='affiliate_analytics'),

    # Wallet
    path('api/wallet/balance', wallet.balance, name='wallet_balance'),
    path('api/wallet/transactions', wallet.transactions, name='wallet_transactions'),

    # KYC
    path('api/kyc/status', kyc.status, name='kyc_status'),
    path('api/kyc/submit', kyc.submit, name='kyc_submit'),
    path('api/kyc/admin/all', kyc.admin_list, name='kyc_admin_all'),
    path('api/kyc/admin/approve', kyc.admin_approve, name='kyc_admin_approve'),
    path('api/kyc/admin/reject', kyc.admin_reject, name='kyc_admin_reject'),
    path('api/kyc/admin/under-review', kyc.admin_under_review, name='kyc_admin_under_review'),
    path('api/kyc/admin/document/<int:kyc_id>/<str:field>', kyc.admin_document, name='kyc_admin_document'),

    # Payouts
    path('api/payouts/request', payouts.request_payout_view, name='payout_request'),
    path('api/payouts/history', payouts.history, name='payout_history'),
    path('api/payouts/admin/all', payouts.admin_list, name='payout_admin_all'),
    path('api/payouts/admin/process', payouts.admin_process, name='payout_admin_process'),
    path('api/payouts/admin/generate-weekly', payouts.admin_generate_weekly, name='payout_admin_generate_weekly'),
    path('api/payouts/admin/next-payout-date', payouts.admin_next_payout_date, name='payout_admin_next_date'),

    # Back-office
    path('api/admin/users', admin_api.users, name='admin_users'),
    path('api/admin/users/<int:user_id>', admin_api.user_detail, name='admin_user_detail'),
    path('api/admin/affiliates', admin_api.affiliates, name='admin_affiliates'),
    path('api/admin/affiliates/toggle-active', admin_api.toggle_affiliate_active, name='admin_affiliate_toggle'),
    path('api/admin/earnings', admin_api.earnings, name='admin_earnings'),
    path('api/admin/analytics', admin_api.analytics, name='admin_analytics'),
    path('api/admin/subscription-users', admin_api.subscription_users, name='admin_subscription_users'),
    path('api/admin/direct-purchase-users', admin_api.direct_purchase_users, name='admin_direct_purchase_users'),
    path('api/admin/affiliate-sales-users', admin_api.affiliate_sales_users, name='admin_affiliate_sales_users'),
    path('api/admin/earning-affiliates', admin_api.earning_affiliates, name='admin_earning_affiliates'),

    # Contact
    path('api/contact', contacts.submit, name='contact'),
    path('api/contact/admin', contacts.admin_list, name='contact_admin'),
    path('api/contact/admin/stats/summary', contacts.admin_stats, name='contact_admin_stats'),
    path('api/contact/admin/<int:contact_id>', contacts.admin_detail, name='contact_admin_detail'),
    path('api/contact/admin/<int:contact_id>/status', contacts.admin_update_status, name='contact_admin_status'),

    # Milestones
    path('api/milestones', milestones.progress, name='milestones'),
    path('api/milestones/admin', milestones.admin_collection, name='milestones_admin'),
    path('api/milestones/admin/<int:milestone_id>', milestones.admin_detail, name='milestone_admin_detail'),
]
