from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ['id', 'username', 'email', 'full_name', 'role', 'position', 'is_active', 'date_joined']
    list_filter = ['role', 'is_active', 'date_joined']
    search_fields = ['username', 'email', 'first_name', 'last_name', 'phone']
    readonly_fields = ['date_joined', 'updated_at', 'last_login']

    fieldsets = BaseUserAdmin.fieldsets + (
        ('Salon Profile', {
            'fields': ('role', 'phone', 'position', 'profile_image', 'updated_at')
        }),
    )
    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ('Salon Profile', {
            'fields': ('email', 'first_name', 'last_name', 'role', 'phone', 'position')
        }),
    )

    def has_delete_permission(self, request, obj=None):
        if obj is not None and (obj.bookings.exists() or obj.assigned_bookings.exists()):
            return False
        return super().has_delete_permission(request, obj)

    def full_name(self, obj):
        return obj.get_full_name() or '-'
    full_name.short_description = 'Name'
