from datetime import date, datetime, time, timedelta
from decimal import Decimal
from unittest.mock import patch
import json

from django.contrib.admin.sites import site
from django.db.models import ProtectedError
from django.test import TestCase, Client, RequestFactory
from django.utils import timezone

from accounts.context import RequestContext
from accounts.models import User
from catalog.models import Deal, Service
from .availability import get_available_time_slots, is_employee_available, overlaps
from .lifecycle import (
    RejectionReason,
    can_transition,
    cancel_booking,
    create_booking,
    update_booking,
    update_booking_status,
)
from .models import Booking
from .queries import booking_statistics, count_bookings, period_range, revenue_statistics


def make_user(username, role=User.Role.CUSTOMER, **extra):
    return User.objects.create_user(
        username=username,
        email=f'{username}@example.com',
        password='secret-pass-123',
        first_name=username.title(),
        last_name='Tester',
        role=role,
        **extra
    )


def make_service(name='Haircut', price='50.00', duration=60, employees=()):
    service = Service.objects.create(
        name=name,
        description=f'{name} description',
        price=Decimal(price),
        duration=duration,
        category='Hair',
    )
    service.employees.add(*employees)
    return service


def make_booking(customer, service, employee, booking_date, start, end, status=Booking.Status.CONFIRMED):
    return Booking.objects.create(
        customer=customer,
        service=service,
        employee=employee,
        booking_date=booking_date,
        start_time=start,
        end_time=end,
        status=status,
        base_price=service.price,
    )


class SalonTestCase(TestCase):
    def setUp(self):
        self.customer = make_user('alice')
        self.other_customer = make_user('bob')
        self.employee = make_user('emma', role=User.Role.EMPLOYEE, position='Stylist')
        self.admin = make_user('root', role=User.Role.ADMIN, is_staff=True)
        self.service = make_service(employees=[self.employee])
        self.short_service = make_service('Fringe Trim', price='15.00', duration=30, employees=[self.employee])
        self.day = timezone.localdate() + timedelta(days=30)


class OverlapTest(TestCase):
    def test_half_open_intervals(self):
        self.assertTrue(overlaps(time(10, 0), time(10, 30), time(10, 15), time(10, 45)))
        self.assertFalse(overlaps(time(10, 0), time(10, 30), time(10, 30), time(11, 0)))
        self.assertFalse(overlaps(time(10, 30), time(11, 0), time(10, 0), time(10, 30)))
        self.assertTrue(overlaps(time(9, 0), time(12, 0), time(10, 0), time(10, 30)))


class EmployeeAvailabilityTest(SalonTestCase):
    def setUp(self):
        super().setUp()
        self.june_first = date(2025, 6, 1)
        make_booking(self.customer, self.short_service, self.employee, self.june_first, time(10, 0), time(10, 30))

    def test_overlapping_interval_is_unavailable(self):
        self.assertFalse(is_employee_available(self.employee.id, self.june_first, time(10, 15), time(10, 45)))

    def test_back_to_back_is_available(self):
        self.assertTrue(is_employee_available(self.employee.id, self.june_first, time(10, 30), time(11, 0)))
        self.assertTrue(is_employee_available(self.employee.id, self.june_first, time(9, 30), time(10, 0)))

    def test_cancelled_bookings_do_not_block(self):
        Booking.objects.update(status=Booking.Status.CANCELLED)
        self.assertTrue(is_employee_available(self.employee.id, self.june_first, time(10, 0), time(10, 30)))

    def test_excluded_booking_is_ignored(self):
        booking = Booking.objects.get()
        self.assertTrue(is_employee_available(
            self.employee.id, self.june_first, time(10, 0), time(10, 30), exclude_booking_id=booking.id
        ))

    def test_other_employee_and_day_are_independent(self):
        other = make_user('olga', role=User.Role.EMPLOYEE)
        self.assertTrue(is_employee_available(other.id, self.june_first, time(10, 0), time(10, 30)))
        self.assertTrue(is_employee_available(self.employee.id, date(2025, 6, 2), time(10, 0), time(10, 30)))


class AvailableTimeSlotsTest(SalonTestCase):
    def test_empty_day_offers_every_slot_that_fits(self):
        slots = get_available_time_slots(self.employee.id, self.service.id, self.day)

        self.assertEqual(slots[0], time(9, 0))
        self.assertEqual(slots[-1], time(18, 0))
        self.assertEqual(len(slots), 19)
        self.assertEqual(slots, sorted(slots))

    def test_slots_skip_existing_bookings(self):
        make_booking(self.customer, self.short_service, self.employee, self.day, time(10, 0), time(10, 30))

        slots = get_available_time_slots(self.employee.id, self.service.id, self.day)

        self.assertNotIn(time(9, 30), slots)
        self.assertNotIn(time(10, 0), slots)
        self.assertIn(time(9, 0), slots)
        self.assertIn(time(10, 30), slots)

    def test_every_slot_fits_before_closing_and_avoids_bookings(self):
        make_booking(self.customer, self.service, self.employee, self.day, time(12, 0), time(13, 0))
        make_booking(self.other_customer, self.short_service, self.employee, self.day, time(15, 30), time(16, 0))
        make_booking(self.other_customer, self.service, self.employee, self.day, time(9, 0), time(10, 0), status=Booking.Status.CANCELLED)

        slots = get_available_time_slots(self.employee.id, self.service.id, self.day)
        booked = Booking.objects.exclude(status=Booking.Status.CANCELLED).values_list('start_time', 'end_time')

        self.assertIn(time(9, 0), slots)
        for slot in slots:
            end = (datetime.combine(self.day, slot) + timedelta(minutes=self.service.duration)).time()
            self.assertLessEqual(end, time(19, 0))
            for b_start, b_end in booked:
                self.assertFalse(overlaps(slot, end, b_start, b_end))

    def test_repeated_calls_return_same_sequence(self):
        make_booking(self.customer, self.service, self.employee, self.day, time(14, 0), time(15, 0))

        first = get_available_time_slots(self.employee.id, self.service.id, self.day)
        second = get_available_time_slots(self.employee.id, self.service.id, self.day)

        self.assertEqual(first, second)

    def test_long_service_is_cut_at_closing_time(self):
        colour = make_service('Full Colour', price='120.00', duration=180, employees=[self.employee])

        slots = get_available_time_slots(self.employee.id, colour.id, self.day)

        self.assertEqual(slots[-1], time(16, 0))

    def test_fully_booked_day_returns_empty_list(self):
        make_booking(self.customer, self.service, self.employee, self.day, time(9, 0), time(19, 0))

        self.assertEqual(get_available_time_slots(self.employee.id, self.service.id, self.day), [])

    def test_unknown_service_returns_empty_list(self):
        self.assertEqual(get_available_time_slots(self.employee.id, 999999, self.day), [])

    def test_past_slots_of_today_are_skipped(self):
        now = timezone.make_aware(datetime.combine(self.day, time(12, 10)))

        slots = get_available_time_slots(self.employee.id, self.short_service.id, self.day, now=now)

        self.assertEqual(slots[0], time(12, 30))

    def test_past_day_has_no_slots(self):
        now = timezone.make_aware(datetime.combine(self.day, time(8, 0)))

        self.assertEqual(get_available_time_slots(self.employee.id, self.service.id, self.day - timedelta(days=1), now=now), [])


class CreateBookingTest(SalonTestCase):
    def test_booking_is_created_pending_with_derived_end_time(self):
        result = create_booking(self.customer.id, self.service.id, self.employee.id, self.day, time(10, 0), notes='First visit')

        self.assertTrue(result.ok)
        booking = Booking.objects.get(id=result.booking.id)
        self.assertEqual(booking.status, Booking.Status.PENDING)
        self.assertEqual(booking.end_time, time(11, 0))
        self.assertEqual(booking.base_price, Decimal('50.00'))
        self.assertEqual(booking.price, Decimal('50.00'))
        self.assertEqual(booking.notes, 'First visit')

    def test_overlapping_request_is_rejected(self):
        create_booking(self.customer.id, self.service.id, self.employee.id, self.day, time(10, 0))

        result = create_booking(self.other_customer.id, self.short_service.id, self.employee.id, self.day, time(10, 30))

        self.assertFalse(result.ok)
        self.assertEqual(result.reason, RejectionReason.SLOT_UNAVAILABLE)
        self.assertEqual(Booking.objects.count(), 1)

    def test_back_to_back_request_is_accepted(self):
        create_booking(self.customer.id, self.service.id, self.employee.id, self.day, time(10, 0))

        result = create_booking(self.other_customer.id, self.service.id, self.employee.id, self.day, time(11, 0))

        self.assertTrue(result.ok)

    def test_concurrent_writer_is_rejected_by_constraint(self):
        first = create_booking(self.customer.id, self.service.id, self.employee.id, self.day, time(10, 0))
        self.assertTrue(first.ok)

        # Second writer passed its availability check before the first one committed
        with patch('bookings.lifecycle.is_employee_available', return_value=True):
            second = create_booking(self.other_customer.id, self.service.id, self.employee.id, self.day, time(10, 0))

        self.assertFalse(second.ok)
        self.assertEqual(second.reason, RejectionReason.SLOT_UNAVAILABLE)
        self.assertEqual(Booking.objects.filter(booking_date=self.day).count(), 1)

    def test_cancelled_slot_can_be_rebooked(self):
        first = create_booking(self.customer.id, self.service.id, self.employee.id, self.day, time(10, 0))
        update_booking_status(first.booking.id, Booking.Status.CANCELLED)

        second = create_booking(self.other_customer.id, self.service.id, self.employee.id, self.day, time(10, 0))

        self.assertTrue(second.ok)

    def test_date_in_past_is_rejected(self):
        yesterday = timezone.localdate() - timedelta(days=1)

        result = create_booking(self.customer.id, self.service.id, self.employee.id, yesterday, time(10, 0))

        self.assertEqual(result.reason, RejectionReason.DATE_IN_PAST)

    def test_outside_opening_hours_is_rejected(self):
        early = create_booking(self.customer.id, self.service.id, self.employee.id, self.day, time(8, 30))
        late = create_booking(self.customer.id, self.service.id, self.employee.id, self.day, time(18, 30))

        self.assertEqual(early.reason, RejectionReason.OUTSIDE_OPENING_HOURS)
        self.assertEqual(late.reason, RejectionReason.OUTSIDE_OPENING_HOURS)

    def test_unknown_references_are_rejected(self):
        self.assertEqual(
            create_booking(self.customer.id, 999999, self.employee.id, self.day, time(10, 0)).reason,
            RejectionReason.SERVICE_NOT_FOUND,
        )
        self.assertEqual(
            create_booking(self.customer.id, self.service.id, 999999, self.day, time(10, 0)).reason,
            RejectionReason.EMPLOYEE_NOT_FOUND,
        )
        self.assertEqual(
            create_booking(999999, self.service.id, self.employee.id, self.day, time(10, 0)).reason,
            RejectionReason.CUSTOMER_NOT_FOUND,
        )

    def test_customer_cannot_be_booked_as_employee(self):
        result = create_booking(self.customer.id, self.service.id, self.other_customer.id, self.day, time(10, 0))

        self.assertEqual(result.reason, RejectionReason.EMPLOYEE_NOT_FOUND)

    def test_employee_must_offer_the_service(self):
        barber = make_user('bert', role=User.Role.EMPLOYEE)

        result = create_booking(self.customer.id, self.service.id, barber.id, self.day, time(10, 0))

        self.assertEqual(result.reason, RejectionReason.EMPLOYEE_NOT_QUALIFIED)

    def test_active_deal_discount_is_snapshotted(self):
        today = timezone.localdate()
        deal = Deal.objects.create(
            title='Spring Offer', service=self.service, discount_percentage=Decimal('20'),
            start_date=today, end_date=today + timedelta(days=60),
        )

        result = create_booking(self.customer.id, self.service.id, self.employee.id, self.day, time(10, 0), deal_id=deal.id)

        self.assertTrue(result.ok)
        self.assertEqual(result.booking.price, Decimal('40.00'))

        # Later edits to the catalogue do not rewrite the price of record
        Service.objects.filter(id=self.service.id).update(price=Decimal('80.00'))
        Deal.objects.filter(id=deal.id).update(discount_percentage=Decimal('50'))
        booking = Booking.objects.get(id=result.booking.id)
        self.assertEqual(booking.price, Decimal('40.00'))

    def test_deal_for_other_service_or_expired_is_rejected(self):
        today = timezone.localdate()
        other_deal = Deal.objects.create(
            title='Trim Deal', service=self.short_service, discount_percentage=Decimal('10'),
            start_date=today, end_date=today,
        )
        expired = Deal.objects.create(
            title='Old Deal', service=self.service, discount_percentage=Decimal('10'),
            start_date=today - timedelta(days=10), end_date=today - timedelta(days=1),
        )

        for deal in (other_deal, expired):
            result = create_booking(self.customer.id, self.service.id, self.employee.id, self.day, time(10, 0), deal_id=deal.id)
            self.assertEqual(result.reason, RejectionReason.DEAL_NOT_APPLICABLE)


class BookingStatusTransitionTest(SalonTestCase):
    def setUp(self):
        super().setUp()
        self.booking = create_booking(self.customer.id, self.service.id, self.employee.id, self.day, time(10, 0)).booking

    def test_transition_table(self):
        self.assertTrue(can_transition('pending', 'confirmed'))
        self.assertTrue(can_transition('pending', 'cancelled'))
        self.assertTrue(can_transition('confirmed', 'completed'))
        self.assertTrue(can_transition('confirmed', 'cancelled'))
        self.assertFalse(can_transition('pending', 'completed'))
        self.assertFalse(can_transition('completed', 'pending'))
        self.assertFalse(can_transition('cancelled', 'confirmed'))
        self.assertFalse(can_transition('pending', 'archived'))

    def test_forward_path_to_completed(self):
        self.assertTrue(update_booking_status(self.booking.id, Booking.Status.CONFIRMED).ok)
        result = update_booking_status(self.booking.id, Booking.Status.COMPLETED)

        self.assertTrue(result.ok)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, Booking.Status.COMPLETED)

    def test_completed_booking_cannot_be_cancelled(self):
        update_booking_status(self.booking.id, Booking.Status.CONFIRMED)
        update_booking_status(self.booking.id, Booking.Status.COMPLETED)

        result = update_booking_status(self.booking.id, Booking.Status.CANCELLED)

        self.assertFalse(result.ok)
        self.assertEqual(result.reason, RejectionReason.INVALID_TRANSITION)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, Booking.Status.COMPLETED)

    def test_unknown_booking(self):
        self.assertEqual(update_booking_status(999999, 'confirmed').reason, RejectionReason.BOOKING_NOT_FOUND)

    def test_owner_can_cancel_but_stranger_cannot(self):
        stranger = RequestContext.from_user(self.other_customer)
        owner = RequestContext.from_user(self.customer)

        self.assertEqual(cancel_booking(stranger, self.booking.id).reason, RejectionReason.BOOKING_NOT_FOUND)
        self.assertTrue(cancel_booking(owner, self.booking.id).ok)
        self.assertEqual(cancel_booking(owner, self.booking.id).reason, RejectionReason.INVALID_TRANSITION)


class UpdateBookingTest(SalonTestCase):
    def setUp(self):
        super().setUp()
        self.booking = create_booking(self.customer.id, self.service.id, self.employee.id, self.day, time(10, 0)).booking

    def update(self, **overrides):
        params = {
            'booking_id': self.booking.id,
            'service_id': self.service.id,
            'employee_id': self.employee.id,
            'booking_date': self.day,
            'start_time': time(10, 0),
            'status': Booking.Status.PENDING,
            'notes': '',
        }
        params.update(overrides)
        return update_booking(**params)

    def test_shift_within_own_slot_ignores_itself(self):
        result = self.update(start_time=time(10, 30))

        self.assertTrue(result.ok)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.start_time, time(10, 30))
        self.assertEqual(self.booking.end_time, time(11, 30))

    def test_service_change_recomputes_end_time_and_price(self):
        result = self.update(service_id=self.short_service.id)

        self.assertTrue(result.ok)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.end_time, time(10, 30))
        self.assertEqual(self.booking.base_price, Decimal('15.00'))

    def test_move_onto_other_booking_is_rejected(self):
        create_booking(self.other_customer.id, self.service.id, self.employee.id, self.day, time(12, 0))

        result = self.update(start_time=time(11, 30))

        self.assertEqual(result.reason, RejectionReason.SLOT_UNAVAILABLE)

    def test_status_change_goes_through_transition_table(self):
        self.assertEqual(self.update(status=Booking.Status.COMPLETED).reason, RejectionReason.INVALID_TRANSITION)
        self.assertTrue(self.update(status=Booking.Status.CONFIRMED, notes='Confirmed by phone').ok)

        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, Booking.Status.CONFIRMED)
        self.assertEqual(self.booking.notes, 'Confirmed by phone')

    def test_unknown_booking(self):
        self.assertEqual(self.update(booking_id=999999).reason, RejectionReason.BOOKING_NOT_FOUND)

    def test_booking_cancelled_during_edit_stays_cancelled(self):
        def cancel_meanwhile(*args):
            Booking.objects.filter(pk=self.booking.pk).update(status=Booking.Status.CANCELLED)
            return None

        with patch('bookings.lifecycle._check_slot', side_effect=cancel_meanwhile):
            result = self.update(start_time=time(10, 30), status=Booking.Status.CONFIRMED)

        self.assertEqual(result.reason, RejectionReason.INVALID_TRANSITION)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, Booking.Status.CANCELLED)
        self.assertEqual(self.booking.start_time, time(10, 0))

    def test_notes_edit_allowed_after_service_is_retired(self):
        Service.objects.filter(pk=self.service.pk).update(is_active=False)

        result = self.update(notes='Running late', status=Booking.Status.CONFIRMED)

        self.assertTrue(result.ok)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.notes, 'Running late')
        self.assertEqual(self.booking.status, Booking.Status.CONFIRMED)

    def test_switching_to_retired_service_is_rejected(self):
        Service.objects.filter(pk=self.short_service.pk).update(is_active=False)

        result = self.update(service_id=self.short_service.id)

        self.assertEqual(result.reason, RejectionReason.SERVICE_NOT_FOUND)


class BookingReferenceProtectionTest(SalonTestCase):
    def setUp(self):
        super().setUp()
        self.booking = create_booking(self.customer.id, self.service.id, self.employee.id, self.day, time(10, 0)).booking
        self.request = RequestFactory().get('/admin/')
        self.request.user = self.admin
        self.admin.is_superuser = True
        self.admin.save()

    def test_booked_service_and_users_cannot_be_deleted(self):
        for obj in (self.service, self.employee, self.customer):
            with self.assertRaises(ProtectedError):
                obj.delete()

        self.assertTrue(Booking.objects.filter(pk=self.booking.pk).exists())

    def test_admin_refuses_delete_only_while_bookings_exist(self):
        service_admin = site._registry[Service]
        user_admin = site._registry[User]

        self.assertFalse(service_admin.has_delete_permission(self.request, self.service))
        self.assertFalse(user_admin.has_delete_permission(self.request, self.employee))
        self.assertFalse(user_admin.has_delete_permission(self.request, self.customer))
        self.assertTrue(service_admin.has_delete_permission(self.request, make_service('Unbooked')))
        self.assertTrue(user_admin.has_delete_permission(self.request, self.other_customer))


class BookingQueriesTest(SalonTestCase):
    def setUp(self):
        super().setUp()
        first = create_booking(self.customer.id, self.service.id, self.employee.id, self.day, time(10, 0)).booking
        create_booking(self.other_customer.id, self.short_service.id, self.employee.id, self.day, time(11, 0))
        update_booking_status(first.id, Booking.Status.CONFIRMED)

    def test_counts_by_filter(self):
        self.assertEqual(count_bookings(), 2)
        self.assertEqual(count_bookings(status=Booking.Status.PENDING), 1)
        self.assertEqual(count_bookings(customer_id=self.customer.id), 1)
        self.assertEqual(count_bookings(service_id=self.short_service.id), 1)
        self.assertEqual(count_bookings(date_from=self.day + timedelta(days=1)), 0)

    def test_period_range(self):
        self.assertEqual(period_range('week', date(2025, 6, 4)), (date(2025, 6, 2), date(2025, 6, 8)))
        self.assertEqual(period_range('month', date(2024, 2, 10)), (date(2024, 2, 1), date(2024, 2, 29)))
        self.assertEqual(period_range('day', date(2025, 6, 4)), (date(2025, 6, 4), date(2025, 6, 4)))

    def test_statistics(self):
        stats = booking_statistics(self.day, self.day)
        revenue = revenue_statistics(self.day, self.day)

        self.assertEqual(stats['total'], 2)
        self.assertEqual(stats['by_status'], {'confirmed': 1, 'pending': 1})
        self.assertEqual(revenue['total'], '50.00')
        self.assertEqual(revenue['by_category'], {'Hair': '50.00'})


class BookingApiTest(SalonTestCase):
    def setUp(self):
        super().setUp()
        self.client = Client()

    def post(self, url, payload):
        return self.client.post(url, data=json.dumps(payload), content_type='application/json')

    def test_availability_endpoint(self):
        response = self.client.get('/api/bookings/availability/', {
            'employee_id': self.employee.id,
            'service_id': self.short_service.id,
            'date': self.day.isoformat(),
        })

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data['slots'][0], '09:00')
        self.assertEqual(data['slots'][-1], '18:30')

    def test_availability_rejects_past_date_and_bad_input(self):
        yesterday = timezone.localdate() - timedelta(days=1)
        response = self.client.get('/api/bookings/availability/', {
            'employee_id': self.employee.id, 'service_id': self.service.id, 'date': yesterday.isoformat(),
        })
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['reason'], 'date_in_past')

        response = self.client.get('/api/bookings/availability/', {'employee_id': 'x', 'date': 'tomorrow'})
        self.assertEqual(response.status_code, 400)
        self.assertIn('fields', response.json())

    def test_availability_rejects_unknown_or_unqualified_staff(self):
        stranger = make_user('sid', role=User.Role.EMPLOYEE)
        query = {'employee_id': self.employee.id, 'service_id': self.service.id, 'date': self.day.isoformat()}

        unknown_service = self.client.get('/api/bookings/availability/', {**query, 'service_id': 999999})
        unknown_employee = self.client.get('/api/bookings/availability/', {**query, 'employee_id': self.customer.id})
        unqualified = self.client.get('/api/bookings/availability/', {**query, 'employee_id': stranger.id})

        self.assertEqual(unknown_service.status_code, 404)
        self.assertEqual(unknown_service.json()['reason'], 'service_not_found')
        self.assertEqual(unknown_employee.status_code, 404)
        self.assertEqual(unknown_employee.json()['reason'], 'employee_not_found')
        self.assertEqual(unqualified.status_code, 400)
        self.assertEqual(unqualified.json()['reason'], 'employee_not_qualified')

    def test_create_booking_requires_login(self):
        response = self.post('/api/bookings/', {
            'service_id': self.service.id, 'employee_id': self.employee.id,
            'booking_date': self.day.isoformat(), 'start_time': '10:00',
        })
        self.assertEqual(response.status_code, 401)

    def test_customer_books_then_slot_conflicts(self):
        self.client.force_login(self.customer)
        payload = {
            'service_id': self.service.id,
            'employee_id': self.employee.id,
            'booking_date': self.day.isoformat(),
            'start_time': '10:00',
            'notes': 'Window seat please',
        }

        response = self.post('/api/bookings/', payload)
        self.assertEqual(response.status_code, 201)
        data = response.json()
        self.assertEqual(data['status'], 'pending')
        self.assertEqual(data['booking']['end_time'], '11:00')
        self.assertEqual(Booking.objects.get(id=data['booking_id']).customer, self.customer)

        response = self.post('/api/bookings/', payload)
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()['reason'], 'slot_unavailable')

    def test_invalid_json(self):
        self.client.force_login(self.customer)
        response = self.client.post('/api/bookings/', data='not json', content_type='application/json')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], 'Invalid JSON')

    def test_listing_is_scoped_by_role(self):
        create_booking(self.customer.id, self.service.id, self.employee.id, self.day, time(10, 0))
        create_booking(self.other_customer.id, self.service.id, self.employee.id, self.day, time(12, 0))

        self.client.force_login(self.customer)
        self.assertEqual(self.client.get('/api/bookings/').json()['count'], 1)

        self.client.force_login(self.employee)
        self.assertEqual(self.client.get('/api/bookings/').json()['count'], 2)

        self.client.force_login(self.admin)
        self.assertEqual(self.client.get('/api/bookings/', {'customer_id': self.other_customer.id}).json()['count'], 1)

    def test_booking_detail_hidden_from_other_customers(self):
        booking = create_booking(self.customer.id, self.service.id, self.employee.id, self.day, time(10, 0)).booking

        self.client.force_login(self.other_customer)
        self.assertEqual(self.client.get(f'/api/bookings/{booking.id}/').status_code, 404)

        self.client.force_login(self.customer)
        response = self.client.get(f'/api/bookings/{booking.id}/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['price'], '50.00')

    def test_status_endpoint_is_admin_only(self):
        booking = create_booking(self.customer.id, self.service.id, self.employee.id, self.day, time(10, 0)).booking

        self.client.force_login(self.customer)
        response = self.post(f'/api/bookings/{booking.id}/status/', {'status': 'confirmed'})
        self.assertEqual(response.status_code, 403)

        self.client.force_login(self.admin)
        response = self.post(f'/api/bookings/{booking.id}/status/', {'status': 'confirmed'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['status'], 'confirmed')

        response = self.post(f'/api/bookings/{booking.id}/status/', {'status': 'pending'})
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()['reason'], 'invalid_transition')

    def test_create_complete_then_cancel_is_rejected(self):
        self.client.force_login(self.customer)
        booking_id = self.post('/api/bookings/', {
            'service_id': self.service.id, 'employee_id': self.employee.id,
            'booking_date': self.day.isoformat(), 'start_time': '14:00',
        }).json()['booking_id']

        self.client.force_login(self.admin)
        self.post(f'/api/bookings/{booking_id}/status/', {'status': 'confirmed'})
        self.post(f'/api/bookings/{booking_id}/status/', {'status': 'completed'})

        self.client.force_login(self.customer)
        response = self.client.post(f'/api/bookings/{booking_id}/cancel/')
        self.assertEqual(response.status_code, 409)
        self.assertEqual(Booking.objects.get(id=booking_id).status, 'completed')

    def test_admin_edit_endpoint(self):
        booking = create_booking(self.customer.id, self.service.id, self.employee.id, self.day, time(10, 0)).booking

        self.client.force_login(self.admin)
        response = self.post(f'/api/bookings/{booking.id}/update/', {
            'service_id': self.short_service.id,
            'employee_id': self.employee.id,
            'booking_date': self.day.isoformat(),
            'start_time': '15:00',
            'status': 'confirmed',
        })

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data['start_time'], '15:00')
        self.assertEqual(data['end_time'], '15:30')
        self.assertEqual(data['status'], 'confirmed')

    def test_stats_endpoint(self):
        self.client.force_login(self.admin)
        response = self.client.get('/api/bookings/stats/', {'period': 'year'})
        self.assertEqual(response.status_code, 200)
        self.assertIn('revenue', response.json())

        self.assertEqual(self.client.get('/api/bookings/stats/', {'period': 'decade'}).status_code, 400)

    def test_stats_endpoint_accepts_custom_range(self):
        create_booking(self.customer.id, self.service.id, self.employee.id, self.day, time(10, 0))
        create_booking(self.other_customer.id, self.service.id, self.employee.id, self.day + timedelta(days=1), time(10, 0))
        self.client.force_login(self.admin)

        response = self.client.get('/api/bookings/stats/', {'start_date': self.day.isoformat(), 'end_date': self.day.isoformat()})

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data['period'], 'custom')
        self.assertEqual(data['bookings']['total'], 1)
        self.assertEqual(data['bookings']['start_date'], self.day.isoformat())

        only_start = self.client.get('/api/bookings/stats/', {'start_date': self.day.isoformat()})
        reversed_range = self.client.get('/api/bookings/stats/', {
            'start_date': self.day.isoformat(), 'end_date': (self.day - timedelta(days=1)).isoformat(),
        })
        self.assertEqual(only_start.status_code, 400)
        self.assertEqual(reversed_range.status_code, 400)
