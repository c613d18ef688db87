"""
Slot computation and overlap checks for employee appointments.

Intervals are half-open, so a booking ending at 10:30 does not clash with
one starting at 10:30. All times are salon-local; there is no buffer
between appointments.
"""
from datetime import datetime, time, timedelta

from django.conf import settings
from django.utils import timezone

from catalog.models import Service
from .models import Booking


def parse_clock(value):
    if isinstance(value, time):
        return value
    return datetime.strptime(value, '%H:%M').time()


def opening_hours():
    return parse_clock(settings.SALON_OPENING_TIME), parse_clock(settings.SALON_CLOSING_TIME)


def add_minutes(start, minutes):
    return (datetime.combine(datetime.min, start) + timedelta(minutes=minutes)).time()


def ends_after(start, minutes, limit):
    """True when ``start + minutes`` runs past ``limit`` (or past midnight)."""
    end = datetime.combine(datetime.min, start) + timedelta(minutes=minutes)
    return end > datetime.combine(datetime.min, limit)


def overlaps(a_start, a_end, b_start, b_end):
    return a_start < b_end and b_start < a_end


def format_slot(value):
    return value.strftime('%H:%M')


def active_bookings(employee_id, booking_date, exclude_booking_id=None):
    qs = Booking.objects.filter(
        employee_id=employee_id,
        booking_date=booking_date,
    ).exclude(status=Booking.Status.CANCELLED)
    if exclude_booking_id is not None:
        qs = qs.exclude(pk=exclude_booking_id)
    return qs


def is_employee_available(employee_id, booking_date, start_time, end_time, exclude_booking_id=None):
    return not active_bookings(employee_id, booking_date, exclude_booking_id).filter(
        start_time__lt=end_time,
        end_time__gt=start_time,
    ).exists()


def candidate_starts(opening, closing, step_minutes):
    current = datetime.combine(datetime.min, opening)
    last = datetime.combine(datetime.min, closing)
    step = timedelta(minutes=step_minutes)
    while current < last:
        yield current.time()
        current += step


def get_available_time_slots(employee_id, service_id, booking_date, now=None):
    """
    Bookable start times for an employee, a service and a day, in order.

    Slots that would run past closing time, overlap a non-cancelled booking
    of the employee or (for today) already lie in the past are skipped.
    An empty list means nothing fits.
    """
    service = Service.objects.filter(pk=service_id).only('duration').first()
    if service is None:
        return []

    opening, closing = opening_hours()
    now = timezone.localtime(now) if now else timezone.localtime()
    if booking_date < now.date():
        return []

    booked = list(
        active_bookings(employee_id, booking_date)
        .order_by('start_time')
        .values_list('start_time', 'end_time')
    )

    slots = []
    for start in candidate_starts(opening, closing, settings.SALON_SLOT_MINUTES):
        if ends_after(start, service.duration, closing):
            continue
        if booking_date == now.date() and start < now.time():
            continue
        end = add_minutes(start, service.duration)
        if any(overlaps(start, end, b_start, b_end) for b_start, b_end in booked):
            continue
        slots.append(start)
    return slots
