"""
Deal discount arithmetic and deal status resolution.

Prices stay at full Decimal precision internally; ``format_price`` is the
only place that rounds, and it is meant for the presentation boundary.
"""
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum

from django.db.models import Prefetch
from django.utils import timezone

from .models import Deal

HUNDRED = Decimal('100')
CENT = Decimal('0.01')


class DealStatus(str, Enum):
    UPCOMING = 'upcoming'
    ACTIVE = 'active'
    EXPIRED = 'expired'


def discounted_price(base_price, discount_percentage):
    base_price = Decimal(str(base_price))
    discount_percentage = Decimal(str(discount_percentage or 0))
    if discount_percentage < 0 or discount_percentage > HUNDRED:
        raise ValueError(f"Discount percentage must be between 0 and 100, got {discount_percentage}")
    return base_price * (1 - discount_percentage / HUNDRED)


def format_price(value):
    return str(Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP))


def deal_status(deal, today=None):
    today = today or timezone.localdate()
    if today < deal.start_date:
        return DealStatus.UPCOMING
    if today > deal.end_date:
        return DealStatus.EXPIRED
    return DealStatus.ACTIVE


def active_deals(queryset, today=None):
    today = today or timezone.localdate()
    return queryset.filter(start_date__lte=today, end_date__gte=today)


def prefetch_active_deals(queryset, today=None):
    """Attach each service's deals running ``today`` as ``active_deal_list``."""
    deals = active_deals(Deal.objects.all(), today).order_by('start_date')
    return queryset.prefetch_related(Prefetch('deals', queryset=deals, to_attr='active_deal_list'))


def active_deal_for_service(service, today=None):
    if hasattr(service, 'active_deal_list'):
        return service.active_deal_list[0] if service.active_deal_list else None
    return active_deals(service.deals.all(), today).order_by('start_date').first()
