from django.contrib import admin, messages
from catalog.pricing import format_price
from .lifecycle import update_booking_status
from .models import Booking


def _transition_action(status, label):
    def action(modeladmin, request, queryset):
        updated = 0
        for booking in queryset:
            result = update_booking_status(booking.pk, status)
            if result.ok:
                updated += 1
            else:
                modeladmin.message_user(request, f"Booking #{booking.pk}: {result.message}", level=messages.WARNING)
        if updated:
            modeladmin.message_user(request, f"{updated} booking(s) marked {status.value}.")
    action.__name__ = f'mark_{status.value}'
    action.short_description = label
    return action


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ['id', 'customer', 'service', 'employee', 'booking_date', 'start_time', 'end_time', 'status', 'price_display', 'created_at']
    list_filter = ['status', 'booking_date', 'created_at']
    search_fields = ['customer__username', 'customer__email', 'customer__last_name', 'service__name', 'employee__last_name']
    list_select_related = ['customer', 'service', 'employee']
    actions = [
        _transition_action(Booking.Status.CONFIRMED, 'Mark selected bookings as confirmed'),
        _transition_action(Booking.Status.COMPLETED, 'Mark selected bookings as completed'),
        _transition_action(Booking.Status.CANCELLED, 'Cancel selected bookings'),
    ]

    def get_readonly_fields(self, request, obj=None):
        # edits go through the booking lifecycle, the admin only shows and transitions
        return [f.name for f in self.model._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def price_display(self, obj):
        return f"£{format_price(obj.price)}"
    price_display.short_description = 'Price'
