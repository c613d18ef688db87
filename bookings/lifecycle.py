"""
Booking creation, editing and status changes.

Every operation returns a ``BookingResult``; callers turn the rejection
reason into a message or an HTTP status. The availability check is repeated
inside the write transaction with the employee row locked, and the partial
unique constraint on ``Booking`` rejects any writer that still slips through.
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from django.contrib.auth import get_user_model
from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone
from loguru import logger

from catalog.models import Deal, Service
from catalog.pricing import deal_status, DealStatus
from .availability import add_minutes, ends_after, is_employee_available, opening_hours
from .models import Booking

User = get_user_model()


class RejectionReason(str, Enum):
    SLOT_UNAVAILABLE = 'slot_unavailable'
    SERVICE_NOT_FOUND = 'service_not_found'
    EMPLOYEE_NOT_FOUND = 'employee_not_found'
    CUSTOMER_NOT_FOUND = 'customer_not_found'
    BOOKING_NOT_FOUND = 'booking_not_found'
    DEAL_NOT_APPLICABLE = 'deal_not_applicable'
    EMPLOYEE_NOT_QUALIFIED = 'employee_not_qualified'
    OUTSIDE_OPENING_HOURS = 'outside_opening_hours'
    DATE_IN_PAST = 'date_in_past'
    INVALID_TRANSITION = 'invalid_transition'
    SAVE_FAILED = 'save_failed'

    @property
    def message(self):
        return REJECTION_MESSAGES[self]


REJECTION_MESSAGES = {
    RejectionReason.SLOT_UNAVAILABLE: 'This time slot is no longer available. Please choose another time.',
    RejectionReason.SERVICE_NOT_FOUND: 'Service not found.',
    RejectionReason.EMPLOYEE_NOT_FOUND: 'Employee not found.',
    RejectionReason.CUSTOMER_NOT_FOUND: 'Customer not found.',
    RejectionReason.BOOKING_NOT_FOUND: 'Booking not found.',
    RejectionReason.DEAL_NOT_APPLICABLE: 'This deal cannot be applied to the selected service.',
    RejectionReason.EMPLOYEE_NOT_QUALIFIED: 'The selected employee does not offer this service.',
    RejectionReason.OUTSIDE_OPENING_HOURS: 'The appointment must start and end within opening hours.',
    RejectionReason.DATE_IN_PAST: 'Booking date must be in the future.',
    RejectionReason.INVALID_TRANSITION: 'This status change is not allowed.',
    RejectionReason.SAVE_FAILED: 'Failed to save the booking. Please try again.',
}

# completed and cancelled are terminal
ALLOWED_TRANSITIONS = {
    Booking.Status.PENDING: {Booking.Status.CONFIRMED, Booking.Status.CANCELLED},
    Booking.Status.CONFIRMED: {Booking.Status.COMPLETED, Booking.Status.CANCELLED},
    Booking.Status.COMPLETED: set(),
    Booking.Status.CANCELLED: set(),
}


@dataclass(frozen=True)
class BookingResult:
    ok: bool
    booking: Booking = None
    reason: RejectionReason = None

    @classmethod
    def success(cls, booking):
        return cls(ok=True, booking=booking)

    @classmethod
    def rejected(cls, reason):
        return cls(ok=False, reason=reason)

    @property
    def message(self):
        return self.reason.message if self.reason else ''


def can_transition(current, target):
    try:
        current, target = Booking.Status(current), Booking.Status(target)
    except ValueError:
        return False
    return target in ALLOWED_TRANSITIONS[current]


def load_service(service_id):
    return Service.objects.filter(pk=service_id, is_active=True).first()


def load_employee(employee_id, lock=False):
    qs = User.objects.filter(pk=employee_id, role=User.Role.EMPLOYEE, is_active=True)
    if lock:
        qs = qs.select_for_update()
    return qs.first()


def _check_slot(service, employee, booking_date, start_time, now):
    """Validation shared by create and update; returns a reason or None."""
    if employee is None:
        return RejectionReason.EMPLOYEE_NOT_FOUND
    if not service.employees.filter(pk=employee.pk).exists():
        return RejectionReason.EMPLOYEE_NOT_QUALIFIED

    now = timezone.localtime(now) if now else timezone.localtime()
    if booking_date < now.date():
        return RejectionReason.DATE_IN_PAST
    if datetime.combine(booking_date, start_time) < datetime.combine(now.date(), now.time()):
        return RejectionReason.DATE_IN_PAST

    opening, closing = opening_hours()
    if start_time < opening or ends_after(start_time, service.duration, closing):
        return RejectionReason.OUTSIDE_OPENING_HOURS
    return None


def _resolve_deal(deal_id, service, today):
    """Returns (deal, reason)."""
    if not deal_id:
        return None, None
    deal = Deal.objects.filter(pk=deal_id).first()
    if deal is None or deal.service_id != service.pk or deal_status(deal, today) != DealStatus.ACTIVE:
        return None, RejectionReason.DEAL_NOT_APPLICABLE
    return deal, None


def create_booking(customer_id, service_id, employee_id, booking_date, start_time, notes='', deal_id=None, now=None):
    customer = User.objects.filter(pk=customer_id, is_active=True).first()
    if customer is None:
        return BookingResult.rejected(RejectionReason.CUSTOMER_NOT_FOUND)

    service = load_service(service_id)
    if service is None:
        return BookingResult.rejected(RejectionReason.SERVICE_NOT_FOUND)

    reason = _check_slot(service, load_employee(employee_id), booking_date, start_time, now)
    if reason:
        logger.info(f"Booking request rejected ({reason.value}): customer #{customer_id}, employee #{employee_id}, {booking_date} {start_time:%H:%M}")
        return BookingResult.rejected(reason)

    today = timezone.localdate(now) if now else timezone.localdate()
    deal, reason = _resolve_deal(deal_id, service, today)
    if reason:
        return BookingResult.rejected(reason)

    end_time = add_minutes(start_time, service.duration)

    try:
        with transaction.atomic():
            employee = load_employee(employee_id, lock=True)
            if employee is None:
                return BookingResult.rejected(RejectionReason.EMPLOYEE_NOT_FOUND)

            if not is_employee_available(employee.pk, booking_date, start_time, end_time):
                logger.info(f"Slot {booking_date} {start_time:%H:%M}-{end_time:%H:%M} already taken for employee #{employee.pk}")
                return BookingResult.rejected(RejectionReason.SLOT_UNAVAILABLE)

            booking = Booking.objects.create(
                customer=customer,
                service=service,
                employee=employee,
                deal=deal,
                booking_date=booking_date,
                start_time=start_time,
                end_time=end_time,
                status=Booking.Status.PENDING,
                notes=notes or '',
                base_price=service.price,
                discount_percentage=deal.discount_percentage if deal else 0,
            )
    except IntegrityError:
        logger.warning(f"Concurrent booking for employee #{employee_id} at {booking_date} {start_time:%H:%M} rejected by constraint")
        return BookingResult.rejected(RejectionReason.SLOT_UNAVAILABLE)
    except DatabaseError as e:
        logger.opt(exception=e).error(f"Failed to save booking for customer #{customer_id}")
        return BookingResult.rejected(RejectionReason.SAVE_FAILED)

    logger.info(f"Booking #{booking.pk} created: {service.name} with employee #{employee_id} on {booking_date} {start_time:%H:%M}")
    return BookingResult.success(booking)


def update_booking(booking_id, service_id, employee_id, booking_date, start_time, status, notes='', deal_id=None, now=None):
    booking = Booking.objects.select_related('service').filter(pk=booking_id).first()
    if booking is None:
        return BookingResult.rejected(RejectionReason.BOOKING_NOT_FOUND)

    service_changed = service_id != booking.service_id
    # a deactivated service stays valid for the bookings already made on it
    service = load_service(service_id) if service_changed else booking.service
    if service is None:
        return BookingResult.rejected(RejectionReason.SERVICE_NOT_FOUND)

    if status != booking.status and not can_transition(booking.status, status):
        return BookingResult.rejected(RejectionReason.INVALID_TRANSITION)

    schedule_changed = (
        service_changed
        or employee_id != booking.employee_id
        or booking_date != booking.booking_date
        or start_time != booking.start_time
    )
    if schedule_changed:
        reason = _check_slot(service, load_employee(employee_id), booking_date, start_time, now)
        if reason:
            return BookingResult.rejected(reason)

    deal = booking.deal
    if deal_id != booking.deal_id or service_changed:
        today = timezone.localdate(now) if now else timezone.localdate()
        deal, reason = _resolve_deal(deal_id, service, today)
        if reason:
            return BookingResult.rejected(reason)

    if service_changed or start_time != booking.start_time:
        booking.end_time = add_minutes(start_time, service.duration)
    if service_changed or deal_id != booking.deal_id:
        booking.base_price = service.price
        booking.discount_percentage = deal.discount_percentage if deal else 0

    booking.service = service
    booking.deal = deal
    booking.booking_date = booking_date
    booking.start_time = start_time
    booking.notes = notes or ''

    try:
        with transaction.atomic():
            # status may have moved on since the booking was read above
            current_status = (
                Booking.objects.select_for_update()
                .filter(pk=booking_id)
                .values_list('status', flat=True)
                .first()
            )
            if current_status is None:
                return BookingResult.rejected(RejectionReason.BOOKING_NOT_FOUND)
            if status != current_status and not can_transition(current_status, status):
                logger.info(f"Booking #{booking_id}: edit to {status} rejected, booking is now {current_status}")
                return BookingResult.rejected(RejectionReason.INVALID_TRANSITION)
            booking.status = status

            employee = load_employee(employee_id, lock=True)
            if employee is None:
                return BookingResult.rejected(RejectionReason.EMPLOYEE_NOT_FOUND)
            booking.employee = employee

            if status != Booking.Status.CANCELLED and not is_employee_available(
                employee.pk, booking_date, start_time, booking.end_time, exclude_booking_id=booking.pk
            ):
                return BookingResult.rejected(RejectionReason.SLOT_UNAVAILABLE)

            booking.save()
    except IntegrityError:
        logger.warning(f"Update of booking #{booking_id} rejected by constraint")
        return BookingResult.rejected(RejectionReason.SLOT_UNAVAILABLE)
    except DatabaseError as e:
        logger.opt(exception=e).error(f"Failed to update booking #{booking_id}")
        return BookingResult.rejected(RejectionReason.SAVE_FAILED)

    logger.info(f"Booking #{booking.pk} updated")
    return BookingResult.success(booking)


def update_booking_status(booking_id, new_status):
    try:
        with transaction.atomic():
            booking = Booking.objects.select_for_update().filter(pk=booking_id).first()
            if booking is None:
                return BookingResult.rejected(RejectionReason.BOOKING_NOT_FOUND)

            if not can_transition(booking.status, new_status):
                logger.info(f"Booking #{booking_id}: transition {booking.status} -> {new_status} rejected")
                return BookingResult.rejected(RejectionReason.INVALID_TRANSITION)

            old_status = booking.status
            booking.status = Booking.Status(new_status)
            booking.save(update_fields=['status', 'updated_at'])
    except DatabaseError as e:
        logger.opt(exception=e).error(f"Failed to update status of booking #{booking_id}")
        return BookingResult.rejected(RejectionReason.SAVE_FAILED)

    logger.info(f"Booking #{booking_id}: {old_status} -> {booking.status}")
    return BookingResult.success(booking)


def cancel_booking(context, booking_id):
    booking = Booking.objects.filter(pk=booking_id).first()
    if booking is None or not context.can_cancel_booking(booking):
        return BookingResult.rejected(RejectionReason.BOOKING_NOT_FOUND)
    return update_booking_status(booking_id, Booking.Status.CANCELLED)
