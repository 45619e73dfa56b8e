from django.contrib import admin
from django.contrib import messages
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from .earnings import PayoutError, process_payout
from .models import (
    Course, Video, CourseReview, Order, Purchase, Affiliate, AffiliateClick,
    PlatformSettings, Subscription, Wallet, WalletTransaction, KYCSubmission,
    Payout, Contact, Milestone,
)


class VideoInline(admin.TabularInline):
    model = Video
    extra = 0
    fields = ('order', 'title', 'bunny_video_id', 'duration')
    ordering = ('order',)


@admin.register(Course)
class CourseAdmin(admin.ModelAdmin):
    list_display = (
        'title',
        'price_display',
        'mrp',
        'is_published',
        'video_count',
        'created_at',
    )
    list_filter = ('is_published', 'created_at')
    search_fields = ('title', 'description')
    prepopulated_fields = {'slug': ('title',)}
    inlines = [VideoInline]
    actions = ['publish', 'unpublish']

    def price_display(self, obj):
        return f"₹{obj.price:,.2f}"
    price_display.short_description = _('Price')

    def video_count(self, obj):
        return obj.videos.count()
    video_count.short_description = _('Videos')

    @admin.action(description=_('Publish selected courses'))
    def publish(self, request, queryset):
        updated = queryset.update(is_published=True)
        self.message_user(request, f'{updated} course(s) published.', messages.SUCCESS)

    @admin.action(description=_('Unpublish selected courses'))
    def unpublish(self, request, queryset):
        updated = queryset.update(is_published=False)
        self.message_user(request, f'{updated} course(s) unpublished.', messages.SUCCESS)


@admin.register(CourseReview)
class CourseReviewAdmin(admin.ModelAdmin):
    list_display = ('course', 'user', 'rating', 'created_at')
    list_filter = ('rating', 'created_at')
    search_fields = ('course__title', 'user__email', 'comment')
    raw_id_fields = ('user', 'course')


class PurchaseInline(admin.TabularInline):
    model = Purchase
    extra = 0
    can_delete = False
    fields = ('course', 'amount', 'affiliate', 'commission', 'platform_share', 'status')
    readonly_fields = fields


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    """Orders are created by checkout; the admin view is read-only."""

    list_display = (
        'razorpay_order_id',
        'user',
        'total_display',
        'status',
        'affiliate',
        'is_bypass',
        'created_at',
    )
    list_filter = ('status', 'is_bypass', 'created_at')
    search_fields = ('razorpay_order_id', 'razorpay_payment_id', 'user__email')
    readonly_fields = (
        'user', 'courses', 'base_amount', 'gst_amount', 'gateway_fee_amount',
        'total_amount', 'currency', 'razorpay_order_id', 'razorpay_payment_id',
        'razorpay_signature', 'status', 'affiliate', 'is_bypass', 'created_at', 'updated_at',
    )
    date_hierarchy = 'created_at'
    inlines = [PurchaseInline]

    def total_display(self, obj):
        return f"₹{obj.total_amount:,.2f}"
    total_display.short_description = _('Total')

    def has_add_permission(self, request):
        return False


@admin.register(Purchase)
class PurchaseAdmin(admin.ModelAdmin):
    list_display = (
        'user',
        'course',
        'amount',
        'affiliate',
        'commission',
        'platform_share',
        'status',
        'created_at',
    )
    list_filter = ('status', 'created_at')
    search_fields = ('user__email', 'course__title', 'affiliate__referral_code')
    raw_id_fields = ('user', 'course', 'order', 'affiliate')
    date_hierarchy = 'created_at'


class KYCInline(admin.StackedInline):
    model = KYCSubmission
    extra = 0
    can_delete = False
    fk_name = 'affiliate'
    fields = ('status', 'document_type', 'bank_name', 'bank_ifsc', 'submitted_at', 'reviewed_at')
    readonly_fields = fields


@admin.register(Affiliate)
class AffiliateAdmin(admin.ModelAdmin):
    list_display = (
        'referral_code',
        'user',
        'is_active',
        'kyc_status',
        'total_clicks',
        'total_signups',
        'total_earnings',
        'created_at',
    )
    list_filter = ('is_active', 'kyc_status', 'created_at')
    search_fields = ('referral_code', 'user__email', 'user__name')
    readonly_fields = ('referral_code', 'total_clicks', 'total_signups', 'total_earnings', 'created_at')
    raw_id_fields = ('user',)
    inlines = [KYCInline]
    actions = ['activate', 'deactivate']

    @admin.action(description=_('Activate selected affiliates'))
    def activate(self, request, queryset):
        updated = queryset.update(is_active=True)
        self.message_user(request, f'{updated} affiliate(s) activated.', messages.SUCCESS)

    @admin.action(description=_('Deactivate selected affiliates'))
    def deactivate(self, request, queryset):
        updated = queryset.update(is_active=False)
        self.message_user(request, f'{updated} affiliate(s) deactivated.', messages.SUCCESS)


@admin.register(AffiliateClick)
class AffiliateClickAdmin(admin.ModelAdmin):
    list_display = ('affiliate', 'ip_address', 'course_ids', 'created_at')
    list_filter = ('created_at',)
    search_fields = ('affiliate__referral_code', 'ip_address')
    date_hierarchy = 'created_at'


@admin.register(PlatformSettings)
class PlatformSettingsAdmin(admin.ModelAdmin):
    """Admin for platform settings (singleton)."""

    list_display = ('affiliate_commission_rate', 'updated_at')

    def has_add_permission(self, request):
        # Only allow one instance
        return not PlatformSettings.objects.exists()

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Subscription)
class SubscriptionAdmin(admin.ModelAdmin):
    list_display = ('affiliate', 'plan_type', 'amount', 'status', 'started_at', 'expires_at')
    list_filter = ('status', 'plan_type')
    search_fields = ('affiliate__user__email', 'affiliate__referral_code', 'payment_reference')
    raw_id_fields = ('affiliate',)


class WalletTransactionInline(admin.TabularInline):
    model = WalletTransaction
    extra = 0
    can_delete = False
    fields = ('created_at', 'type', 'amount', 'status', 'description', 'reference_id')
    readonly_fields = fields
    ordering = ('-created_at',)

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Wallet)
class WalletAdmin(admin.ModelAdmin):
    """Balances only move through commissions and payouts, never by hand."""

    list_display = ('affiliate', 'balance', 'total_earned', 'total_paid', 'updated_at')
    search_fields = ('affiliate__referral_code', 'affiliate__user__email')
    readonly_fields = ('affiliate', 'balance', 'total_earned', 'total_paid', 'updated_at')
    inlines = [WalletTransactionInline]

    def has_add_permission(self, request):
        return False


@admin.register(KYCSubmission)
class KYCSubmissionAdmin(admin.ModelAdmin):
    list_display = (
        'affiliate',
        'document_type',
        'status',
        'bank_name',
        'submitted_at',
        'reviewed_at',
    )
    list_filter = ('status', 'document_type', 'submitted_at')
    search_fields = ('affiliate__user__email', 'account_holder_name', 'document_number')
    readonly_fields = ('affiliate', 'submitted_at', 'reviewed_at', 'reviewed_by')
    fieldsets = (
        (None, {
            'fields': ('affiliate', 'status', 'rejection_reason')
        }),
        (_('Identity'), {
            'fields': ('document_type', 'document_number', 'dob',
                       'document_front', 'document_back', 'address_proof')
        }),
        (_('Bank account'), {
            'fields': ('account_holder_name', 'bank_account_number', 'bank_ifsc', 'bank_name')
        }),
        (_('Review'), {
            'fields': ('submitted_at', 'reviewed_at', 'reviewed_by')
        }),
    )
    actions = ['approve']

    @admin.action(description=_('Approve selected submissions'))
    def approve(self, request, queryset):
        count = 0
        # Saved one by one so the affiliate status and e-mail signals fire
        for kyc in queryset.filter(status__in=[KYCSubmission.Status.PENDING, KYCSubmission.Status.UNDER_REVIEW]):
            kyc.status = KYCSubmission.Status.APPROVED
            kyc.reviewed_at = timezone.now()
            kyc.reviewed_by = request.user
            kyc.save()
            count += 1
        self.message_user(request, f'{count} submission(s) approved.', messages.SUCCESS)


@admin.register(Payout)
class PayoutAdmin(admin.ModelAdmin):
    """
    Payouts are moved through their states with the actions below so the
    wallet stays consistent.
    """

    list_display = (
        'affiliate',
        'amount_display',
        'payment_method',
        'status',
        'is_weekly',
        'created_at',
        'completed_at',
    )
    list_filter = ('status', 'payment_method', 'is_weekly', 'created_at')
    search_fields = ('affiliate__user__email', 'affiliate__referral_code', 'payment_details')
    readonly_fields = (
        'affiliate', 'amount', 'status', 'payment_method', 'payment_details', 'is_weekly',
        'processed_by', 'created_at', 'processed_at', 'completed_at', 'failure_reason',
    )
    date_hierarchy = 'created_at'
    ordering = ['-created_at']
    actions = ['mark_processing', 'mark_completed']

    def amount_display(self, obj):
        return f"₹{obj.amount:,.2f}"
    amount_display.short_description = _('Amount')

    def has_add_permission(self, request):
        return False

    def _move(self, request, queryset, status):
        moved = 0
        for payout in queryset:
            try:
                process_payout(payout, status, admin_user=request.user)
                moved += 1
            except PayoutError as e:
                self.message_user(request, f'Payout #{payout.pk}: {e}', messages.WARNING)
        return moved

    @admin.action(description=_('Mark as Processing'))
    def mark_processing(self, request, queryset):
        moved = self._move(request, queryset, Payout.Status.PROCESSING)
        self.message_user(request, f'{moved} payout(s) marked as processing.', messages.SUCCESS)

    @admin.action(description=_('Mark as Completed'))
    def mark_completed(self, request, queryset):
        moved = self._move(request, queryset, Payout.Status.COMPLETED)
        self.message_user(request, f'{moved} payout(s) marked as completed.', messages.SUCCESS)


@admin.register(Contact)
class ContactAdmin(admin.ModelAdmin):
    list_display = ('name', 'email', 'subject', 'status', 'created_at')
    list_filter = ('status', 'created_at')
    search_fields = ('name', 'email', 'subject', 'message')
    readonly_fields = ('created_at', 'updated_at')


@admin.register(Milestone)
class MilestoneAdmin(admin.ModelAdmin):
    list_display = ('target_count', 'reward', 'is_active', 'order', 'start_date', 'end_date')
    list_filter = ('is_active',)
    list_editable = ('is_active', 'order')
    ordering = ('order', 'target_count')
