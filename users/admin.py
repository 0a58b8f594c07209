from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.translation import gettext_lazy as _

from users.models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    fieldsets = (
        (None, {'fields': ('username', 'password')}),
        (_('Personal info'), {'fields': ('first_name', 'last_name', 'email', 'user_type', 'wallet_address')}),
        (_('Permissions'), {
            'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions'),
        }),
        (_('Important dates'), {'fields': ('last_login', 'date_joined', 'last_seen')}),
    )

    list_display = (
        'username',
        'email',
        'user_type',
        'is_staff',
        'is_active',
        'last_seen',
    )
    search_fields = (
        'username',
        'first_name',
        'last_name',
        'email',
        'wallet_address',
    )
    list_filter = (
        'is_staff',
        'is_superuser',
        'is_active',
        'user_type',
    )
    readonly_fields = ('last_login', 'date_joined', 'last_seen')
    actions = ['activate_users', 'deactivate_users']

    def activate_users(self, request, queryset):
        updated = queryset.update(is_active=True)
        self.message_user(request, f"{updated} users activated.")

    def deactivate_users(self, request, queryset):
        updated = queryset.update(is_active=False)
        self.message_user(request, f"{updated} users deactivated.")
