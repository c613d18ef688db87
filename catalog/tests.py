from datetime import date, time, timedelta
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase, Client
from django.utils import timezone

from accounts.models import User
from bookings.models import Booking
from .deals import save_deal
from .models import Deal, Service
from .pricing import (
    DealStatus,
    active_deal_for_service,
    deal_status,
    discounted_price,
    format_price,
    prefetch_active_deals,
)


class DiscountedPriceTest(TestCase):
    def test_percentage_discount(self):
        self.assertEqual(discounted_price(Decimal('100.00'), 20), Decimal('80.00'))
        self.assertEqual(discounted_price('100.00', Decimal('100')), Decimal('0'))

    def test_zero_discount_keeps_price(self):
        self.assertEqual(discounted_price(Decimal('49.99'), 0), Decimal('49.99'))

    def test_full_precision_until_formatting(self):
        price = discounted_price(Decimal('49.99'), Decimal('15'))
        self.assertEqual(price, Decimal('42.4915'))
        self.assertEqual(format_price(price), '42.49')
        self.assertEqual(format_price(Decimal('0.125')), '0.13')

    def test_out_of_range_percentage_raises(self):
        with self.assertRaises(ValueError):
            discounted_price(Decimal('10.00'), 101)
        with self.assertRaises(ValueError):
            discounted_price(Decimal('10.00'), -5)


class DealStatusTest(TestCase):
    def setUp(self):
        self.service = Service.objects.create(name='Manicure', price=Decimal('30.00'), duration=45, category='Nails')

    def make_deal(self, start, end, **extra):
        return Deal(title='Deal', service=self.service, discount_percentage=Decimal('10'), start_date=start, end_date=end, **extra)

    def test_single_day_deal_is_active_on_that_day(self):
        today = date(2025, 6, 1)
        deal = self.make_deal(today, today)
        self.assertEqual(deal_status(deal, today), DealStatus.ACTIVE)

    def test_upcoming_and_expired(self):
        deal = self.make_deal(date(2025, 6, 10), date(2025, 6, 20))
        self.assertEqual(deal_status(deal, date(2025, 6, 9)), DealStatus.UPCOMING)
        self.assertEqual(deal_status(deal, date(2025, 6, 10)), DealStatus.ACTIVE)
        self.assertEqual(deal_status(deal, date(2025, 6, 20)), DealStatus.ACTIVE)
        self.assertEqual(deal_status(deal, date(2025, 6, 21)), DealStatus.EXPIRED)

    def test_active_deal_for_service(self):
        save_deal(self.make_deal(date(2025, 6, 1), date(2025, 6, 5)))
        later = save_deal(self.make_deal(date(2025, 6, 6), date(2025, 6, 30)))

        self.assertEqual(active_deal_for_service(self.service, date(2025, 6, 10)), later)
        self.assertIsNone(active_deal_for_service(self.service, date(2025, 7, 1)))


class SaveDealTest(TestCase):
    def setUp(self):
        self.service = Service.objects.create(name='Facial', price=Decimal('60.00'), duration=60, category='Skin')

    def deal(self, pct='25', start=date(2025, 6, 1), end=date(2025, 6, 30)):
        return Deal(title='Glow Week', description='', service=self.service, discount_percentage=Decimal(pct), start_date=start, end_date=end)

    def test_valid_deal_is_saved(self):
        deal = save_deal(self.deal())
        self.assertIsNotNone(deal.pk)

    def test_discount_out_of_range_is_rejected(self):
        for pct in ('0', '100.01', '-5'):
            with self.assertRaises(ValidationError):
                save_deal(self.deal(pct=pct))
        self.assertFalse(Deal.objects.exists())

    def test_hundred_percent_is_allowed(self):
        self.assertIsNotNone(save_deal(self.deal(pct='100')).pk)

    def test_end_before_start_is_rejected(self):
        with self.assertRaises(ValidationError):
            save_deal(self.deal(start=date(2025, 6, 10), end=date(2025, 6, 1)))

    def test_overlapping_deal_for_same_service_is_rejected(self):
        save_deal(self.deal())
        with self.assertRaises(ValidationError):
            save_deal(self.deal(start=date(2025, 6, 30), end=date(2025, 7, 10)))

        self.assertIsNotNone(save_deal(self.deal(start=date(2025, 7, 1), end=date(2025, 7, 10))).pk)

    def test_editing_a_deal_does_not_clash_with_itself(self):
        deal = save_deal(self.deal())
        deal.end_date = date(2025, 7, 5)
        save_deal(deal)
        deal.refresh_from_db()
        self.assertEqual(deal.end_date, date(2025, 7, 5))


class CatalogApiTest(TestCase):
    def setUp(self):
        self.client = Client()
        self.employee = User.objects.create_user(
            username='stylist', email='stylist@example.com', password='pw-12345678',
            first_name='Sam', last_name='Style', role=User.Role.EMPLOYEE, position='Senior Stylist',
        )
        self.service = Service.objects.create(name='Blow Dry', price=Decimal('40.00'), duration=30, category='Hair')
        self.service.employees.add(self.employee)
        self.hidden = Service.objects.create(name='Retired', price=Decimal('10.00'), duration=15, category='Hair', is_active=False)
        today = timezone.localdate()
        self.deal = Deal.objects.create(
            title='Blow Dry Friday', service=self.service, discount_percentage=Decimal('25'),
            start_date=today, end_date=today + timedelta(days=3),
        )

    def test_services_show_active_deal_price(self):
        response = self.client.get('/api/catalog/services/')

        self.assertEqual(response.status_code, 200)
        services = response.json()['services']
        self.assertEqual(len(services), 1)
        self.assertEqual(services[0]['price'], '40.00')
        self.assertEqual(services[0]['display_price'], '30.00')
        self.assertEqual(services[0]['deal']['id'], self.deal.id)

    def test_inactive_service_is_not_found(self):
        self.assertEqual(self.client.get(f'/api/catalog/services/{self.hidden.id}/').status_code, 404)

    def test_service_employees(self):
        response = self.client.get(f'/api/catalog/services/{self.service.id}/employees/')

        self.assertEqual(response.status_code, 200)
        employees = response.json()['employees']
        self.assertEqual(employees, [{
            'id': self.employee.id, 'name': 'Sam Style', 'position': 'Senior Stylist', 'profile_image': '',
        }])

    def test_deals_filtered_by_status(self):
        today = timezone.localdate()
        Deal.objects.create(
            title='Next Month', service=self.service, discount_percentage=Decimal('10'),
            start_date=today + timedelta(days=30), end_date=today + timedelta(days=40),
        )

        active = self.client.get('/api/catalog/deals/', {'status': 'active'}).json()['deals']
        upcoming = self.client.get('/api/catalog/deals/', {'status': 'upcoming'}).json()['deals']

        self.assertEqual([d['title'] for d in active], ['Blow Dry Friday'])
        self.assertEqual(active[0]['discounted_price'], '30.00')
        self.assertEqual([d['title'] for d in upcoming], ['Next Month'])
        self.assertEqual(self.client.get('/api/catalog/deals/', {'status': 'bogus'}).status_code, 400)

    def test_search_matches_name_or_description(self):
        Service.objects.create(name='Beard Trim', description='Clipper and razor finish', price=Decimal('20.00'), duration=20, category='Barber')

        by_name = self.client.get('/api/catalog/services/', {'search': 'blow'}).json()['services']
        by_description = self.client.get('/api/catalog/services/', {'search': 'RAZOR'}).json()['services']
        nothing = self.client.get('/api/catalog/services/', {'search': 'retired'}).json()['services']

        self.assertEqual([s['name'] for s in by_name], ['Blow Dry'])
        self.assertEqual([s['name'] for s in by_description], ['Beard Trim'])
        self.assertEqual(nothing, [])

    def test_categories_of_active_services(self):
        Service.objects.create(name='Gel Nails', price=Decimal('35.00'), duration=45, category='Nails')
        Service.objects.create(name='Old Wax', price=Decimal('10.00'), duration=15, category='Waxing', is_active=False)

        response = self.client.get('/api/catalog/categories/')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['categories'], ['Hair', 'Nails'])

    def test_popular_services_ranked_by_bookings(self):
        customer = User.objects.create_user(username='cara', email='cara@example.com', password='pw-12345678')
        colour = Service.objects.create(name='Colour', price=Decimal('90.00'), duration=90, category='Hair')
        day = timezone.localdate() + timedelta(days=7)
        for hour, status in ((9, 'confirmed'), (12, 'pending'), (15, 'cancelled')):
            Booking.objects.create(
                customer=customer, service=colour, employee=self.employee, booking_date=day,
                start_time=time(hour, 0), end_time=time(hour + 1, 30), status=status, base_price=colour.price,
            )
        Booking.objects.create(
            customer=customer, service=self.service, employee=self.employee, booking_date=day + timedelta(days=1),
            start_time=time(9, 0), end_time=time(9, 30), status='completed', base_price=self.service.price,
        )

        services = self.client.get('/api/catalog/services/popular/').json()['services']
        top = self.client.get('/api/catalog/services/popular/', {'limit': 1}).json()['services']

        self.assertEqual([(s['name'], s['booking_count']) for s in services], [('Colour', 2), ('Blow Dry', 1)])
        self.assertEqual(services[1]['display_price'], '30.00')
        self.assertEqual([s['name'] for s in top], ['Colour'])
        self.assertEqual(self.client.get('/api/catalog/services/popular/', {'limit': 'many'}).status_code, 400)


class PrefetchActiveDealsTest(TestCase):
    def test_prefetched_services_resolve_deals_without_queries(self):
        today = date(2025, 6, 10)
        services = []
        for name in ('Cut', 'Colour', 'Perm'):
            services.append(Service.objects.create(name=name, price=Decimal('50.00'), duration=60, category='Hair'))
        running = Deal.objects.create(
            title='June', service=services[0], discount_percentage=Decimal('10'),
            start_date=date(2025, 6, 1), end_date=date(2025, 6, 30),
        )
        Deal.objects.create(
            title='May', service=services[1], discount_percentage=Decimal('10'),
            start_date=date(2025, 5, 1), end_date=date(2025, 5, 31),
        )

        loaded = list(prefetch_active_deals(Service.objects.order_by('name'), today))
        with self.assertNumQueries(0):
            deals = {s.name: active_deal_for_service(s, today) for s in loaded}

        self.assertEqual(deals, {'Colour': None, 'Cut': running, 'Perm': None})
