import os
from io import StringIO
from unittest.mock import patch

from django.core.management import call_command
from django.test import RequestFactory, TestCase
from django.contrib.auth.models import AnonymousUser

from .context import RequestContext
from .models import User


class RequestContextTest(TestCase):
    def setUp(self):
        self.factory = RequestFactory()
        self.customer = User.objects.create_user(username='carla', email='carla@example.com', password='pw-12345678')
        self.employee = User.objects.create_user(
            username='ed', email='ed@example.com', password='pw-12345678', role=User.Role.EMPLOYEE, position='Barber'
        )

    def test_anonymous_request_has_no_context(self):
        request = self.factory.get('/')
        request.user = AnonymousUser()
        self.assertIsNone(RequestContext.from_request(request))

    def test_context_carries_identity_and_role(self):
        request = self.factory.get('/')
        request.user = self.employee

        context = RequestContext.from_request(request)

        self.assertEqual(context.user_id, self.employee.id)
        self.assertEqual(context.role, User.Role.EMPLOYEE)
        self.assertFalse(context.is_admin)

    def test_new_users_default_to_customer(self):
        self.assertEqual(self.customer.role, User.Role.CUSTOMER)
        self.assertTrue(self.customer.is_customer)
        self.assertFalse(self.customer.is_employee)


class EnsureAdminCommandTest(TestCase):
    @patch.dict(os.environ, {'SALON_ADMIN_USERNAME': 'owner', 'SALON_ADMIN_PASSWORD': 'strong-pass-99'})
    def test_creates_admin_once(self):
        out = StringIO()
        call_command('ensure_admin', stdout=out)

        admin = User.objects.get(username='owner')
        self.assertEqual(admin.role, User.Role.ADMIN)
        self.assertTrue(admin.is_superuser)

        call_command('ensure_admin', stdout=out)
        self.assertEqual(User.objects.filter(role=User.Role.ADMIN).count(), 1)
        self.assertIn('already exists', out.getvalue())

    @patch.dict(os.environ, {}, clear=False)
    def test_skips_without_password(self):
        os.environ.pop('SALON_ADMIN_PASSWORD', None)
        out = StringIO()
        call_command('ensure_admin', stdout=out)

        self.assertFalse(User.objects.filter(role=User.Role.ADMIN).exists())
        self.assertIn('not set', out.getvalue())
