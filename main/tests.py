from django.test import TestCase, Client
from django.urls import reverse
from rest_framework import status

from certificates.models import Certificate
from opportunities.models import Application
from users.models import User
from .factories import ApiClientMixin, make_student, make_employer, make_admin, make_opportunity
from . import exceptions as errors


class ErrorPayloadTests(TestCase):
    def test_payload_shape(self):
        payload = errors.NotFound("Opportunity not found").to_dict()
        self.assertEqual(payload, {
            'success': False,
            'message': 'Opportunity not found',
            'code': 'NOT_FOUND',
            'errno': 0x80
        })

    def test_account_not_active_carries_status(self):
        error = errors.AccountNotActive('inactive')
        self.assertEqual(error.status, 403)
        self.assertEqual(error.to_dict()['status'], 'inactive')

    def test_default_messages(self):
        self.assertEqual(errors.Conflict().message, 'Resource already exists.')
        self.assertEqual(errors.InternalError().status, 500)


class AdminDashboardTests(ApiClientMixin, TestCase):
    def setUp(self):
        self.client = Client()
        make_admin('admin@test.com')
        self.acme = make_employer('hr@acme.com', company_name='Acme')
        self.beta = make_employer('hr@beta.com', company_name='Beta')
        self.pending = make_employer('hr@pending.com', company_name='Pending Co', verified=False)
        self.student = make_student('student@test.com')

        self.admin_token = self._get_auth_token('admin@test.com')
        self.student_token = self._get_auth_token('student@test.com')

    def test_stats(self):
        first = make_opportunity(self.acme, 'One', skills=['python', 'sql'])
        make_opportunity(self.acme, 'Two', skills=['python'], is_verified=False)
        make_opportunity(self.beta, 'Three', is_active=False)
        application = Application.objects.create(student=self.student, opportunity=first, status='accepted')
        Certificate.objects.create(
            application=application,
            student=self.student,
            employer=self.acme,
            student_name='Test User',
            employer_name='Acme',
            opportunity_title='One'
        )

        response = self._send('get', reverse('admin-stats'), self.admin_token)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        stats = response.json()['stats']

        self.assertEqual(stats['users'], {'student': 1, 'employer': 3, 'admin': 1, 'total': 5})
        self.assertEqual(stats['opportunities'], {'total': 3, 'active': 2, 'verified': 2})
        self.assertEqual(stats['applications']['accepted'], 1)
        self.assertEqual(stats['applications']['pending'], 0)
        self.assertEqual(stats['certificates'], 1)
        self.assertEqual(stats['pending_employers'], 1)
        self.assertEqual([e['company_name'] for e in stats['top_employers']], ['Acme', 'Beta'])
        self.assertEqual([s['name'] for s in stats['top_skills']], ['python', 'sql'])

    def test_stats_admin_only(self):
        response = self._send('get', reverse('admin-stats'), self.student_token)
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        response = self._send('get', reverse('admin-stats'))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_employer_listing_filter(self):
        response = self._send('get', reverse('admin-employers') + '?verified=false', self.admin_token)
        self.assertEqual([e['company_name'] for e in response.json()['results']], ['Pending Co'])

        response = self._send('get', reverse('admin-employers'), self.admin_token)
        self.assertEqual(response.json()['count'], 3)

        response = self._send('get', reverse('admin-employers') + '?verified=maybe', self.admin_token)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_verify_employer_then_login(self):
        response = self._send('put', reverse('admin-verify-employer', args=[self.pending.id]), self.admin_token)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.json()['employer']['is_verified'])
        self.assertEqual(User.objects.get(email='hr@pending.com').status, 'active')

        self.assertTrue(self._get_auth_token('hr@pending.com'))

    def test_verify_missing_employer(self):
        response = self._send('put', reverse('admin-verify-employer', args=[9999]), self.admin_token)
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
