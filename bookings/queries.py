from calendar import monthrange
from collections import OrderedDict
from datetime import date, timedelta
from decimal import Decimal

from django.db.models import Count
from django.utils import timezone

from accounts.models import User
from catalog.pricing import format_price
from .models import Booking

PERIODS = ('day', 'week', 'month', 'year')
REVENUE_STATUSES = (Booking.Status.CONFIRMED, Booking.Status.COMPLETED)


def filter_bookings(queryset=None, status=None, date_from=None, date_to=None, employee_id=None, service_id=None, customer_id=None):
    qs = queryset if queryset is not None else Booking.objects.all()
    if status:
        qs = qs.filter(status=status)
    if date_from:
        qs = qs.filter(booking_date__gte=date_from)
    if date_to:
        qs = qs.filter(booking_date__lte=date_to)
    if employee_id:
        qs = qs.filter(employee_id=employee_id)
    if service_id:
        qs = qs.filter(service_id=service_id)
    if customer_id:
        qs = qs.filter(customer_id=customer_id)
    return qs


def count_bookings(**filters):
    return filter_bookings(**filters).count()


def bookings_for_context(context):
    qs = Booking.objects.select_related('customer', 'service', 'employee', 'deal')
    if context.role == User.Role.ADMIN:
        return qs
    if context.role == User.Role.EMPLOYEE:
        return qs.filter(employee_id=context.user_id)
    if context.role == User.Role.CUSTOMER:
        return qs.filter(customer_id=context.user_id)
    raise ValueError(f"Unhandled role: {context.role}")


def period_range(period, today=None):
    today = today or timezone.localdate()
    if period == 'day':
        return today, today
    if period == 'week':
        start = today - timedelta(days=today.weekday())
        return start, start + timedelta(days=6)
    if period == 'month':
        return today.replace(day=1), today.replace(day=monthrange(today.year, today.month)[1])
    if period == 'year':
        return date(today.year, 1, 1), date(today.year, 12, 31)
    raise ValueError(f"Unknown period: {period}")


def booking_statistics(start_date, end_date):
    qs = Booking.objects.filter(booking_date__range=(start_date, end_date))

    by_status = {row['status']: row['count'] for row in qs.values('status').annotate(count=Count('id'))}

    by_service = OrderedDict(
        (row['service__name'], row['count'])
        for row in qs.values('service_id', 'service__name').annotate(count=Count('id')).order_by('-count')[:5]
    )

    by_employee = OrderedDict()
    for row in qs.values('employee_id', 'employee__first_name', 'employee__last_name').annotate(count=Count('id')).order_by('-count')[:5]:
        name = f"{row['employee__first_name']} {row['employee__last_name']}".strip()
        by_employee[name or f"Employee #{row['employee_id']}"] = row['count']

    by_date = OrderedDict(
        (row['booking_date'].isoformat(), row['count'])
        for row in qs.values('booking_date').annotate(count=Count('id')).order_by('booking_date')
    )

    return {
        'start_date': start_date.isoformat(),
        'end_date': end_date.isoformat(),
        'total': qs.count(),
        'by_status': by_status,
        'by_service': by_service,
        'by_employee': by_employee,
        'by_date': by_date,
    }


def revenue_statistics(start_date, end_date):
    """Revenue of confirmed and completed bookings, from the price recorded on each booking."""
    qs = Booking.objects.filter(
        booking_date__range=(start_date, end_date),
        status__in=REVENUE_STATUSES,
    ).select_related('service').order_by('booking_date')

    total = Decimal('0')
    by_category = {}
    by_date = OrderedDict()
    for booking in qs:
        price = booking.price
        total += price
        category = booking.service.category
        by_category[category] = by_category.get(category, Decimal('0')) + price
        day = booking.booking_date.isoformat()
        by_date[day] = by_date.get(day, Decimal('0')) + price

    by_category = OrderedDict(sorted(by_category.items(), key=lambda item: item[1], reverse=True))

    return {
        'start_date': start_date.isoformat(),
        'end_date': end_date.isoformat(),
        'total': format_price(total),
        'by_category': {k: format_price(v) for k, v in by_category.items()},
        'by_date': {k: format_price(v) for k, v in by_date.items()},
    }
