from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.translation import gettext_lazy as _

from .models import User, PasswordResetToken


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """
    Custom admin for the User model.
    Configured for email-based authentication.
    """

    list_display = (
        'email',
        'name',
        'role',
        'provider',
        'referred_by',
        'is_active',
        'date_joined',
    )

    list_filter = (
        'role',
        'provider',
        'is_staff',
        'is_active',
        'date_joined',
    )

    search_fields = (
        'email',
        'name',
    )

    ordering = ('-date_joined',)

    fieldsets = (
        (None, {
            'fields': ('email', 'password')
        }),
        (_('Personal info'), {
            'fields': ('name', 'picture', 'dob')
        }),
        (_('Platform'), {
            'fields': ('role', 'provider', 'referred_by'),
        }),
        (_('OAuth info'), {
            'fields': ('google_account_id',),
            'classes': ('collapse',),
        }),
        (_('Permissions'), {
            'fields': (
                'is_active',
                'is_staff',
                'is_superuser',
                'groups',
                'user_permissions',
            ),
        }),
        (_('Important dates'), {
            'fields': ('last_login', 'date_joined')
        }),
    )

    raw_id_fields = ('referred_by',)

    # Fields for creating a new user in admin
    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': (
                'email',
                'name',
                'role',
                'password1',
                'password2',
                'is_staff',
                'is_active',
            ),
        }),
    )

    readonly_fields = ('date_joined', 'last_login')


@admin.register(PasswordResetToken)
class PasswordResetTokenAdmin(admin.ModelAdmin):
    list_display = ('user', 'created_at', 'expires_at', 'used_at')
    search_fields = ('user__email',)
    readonly_fields = ('user', 'token', 'created_at', 'expires_at', 'used_at')

    def has_add_permission(self, request):
        return False
