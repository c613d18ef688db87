from django import forms
from django.contrib import admin
from django.core.exceptions import ValidationError
from .models import Service, Deal
from .deals import overlapping_deals, save_deal
from .pricing import deal_status, discounted_price, format_price


@admin.register(Service)
class ServiceAdmin(admin.ModelAdmin):
    list_display = ['id', 'name', 'category', 'price_display', 'duration', 'is_active', 'created_at']
    list_filter = ['is_active', 'category', 'created_at']
    search_fields = ['name', 'description', 'category']
    readonly_fields = ['created_at', 'updated_at']
    filter_horizontal = ['employees']

    def has_delete_permission(self, request, obj=None):
        # services with bookings are retired through is_active instead
        if obj is not None and obj.bookings.exists():
            return False
        return super().has_delete_permission(request, obj)

    def price_display(self, obj):
        return f"£{format_price(obj.price)}"
    price_display.short_description = 'Price'


class DealAdminForm(forms.ModelForm):
    def clean(self):
        cleaned_data = super().clean()
        deal = self.instance
        for field in ('service', 'start_date', 'end_date'):
            if field in cleaned_data:
                setattr(deal, field, cleaned_data[field])
        if deal.service_id and deal.start_date and deal.end_date:
            clash = overlapping_deals(deal).first()
            if clash:
                raise ValidationError(f'Service already has the deal "{clash.title}" running from {clash.start_date} to {clash.end_date}.')
        return cleaned_data


@admin.register(Deal)
class DealAdmin(admin.ModelAdmin):
    form = DealAdminForm
    list_display = ['id', 'title', 'service', 'discount_display', 'start_date', 'end_date', 'status_display', 'discounted_price_display']
    list_filter = ['start_date', 'end_date']
    search_fields = ['title', 'description', 'service__name']
    readonly_fields = ['created_at', 'updated_at']
    raw_id_fields = ['service']

    def save_model(self, request, obj, form, change):
        save_deal(obj)

    def discount_display(self, obj):
        return f"{obj.discount_percentage}%"
    discount_display.short_description = 'Discount'

    def status_display(self, obj):
        return deal_status(obj).value.title()
    status_display.short_description = 'Status'

    def discounted_price_display(self, obj):
        return f"£{format_price(discounted_price(obj.service.price, obj.discount_percentage))}"
    discounted_price_display.short_description = 'Deal Price'
