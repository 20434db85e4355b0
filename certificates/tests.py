from unittest import mock
from uuid import uuid4

from django.test import TestCase, Client
from django.urls import reverse
from rest_framework import status

from main.factories import ApiClientMixin, make_student, make_employer, make_admin, make_opportunity
from opportunities.models import Application
from .models import Certificate


class CertificateIssueTests(ApiClientMixin, TestCase):
    def setUp(self):
        self.client = Client()
        self.employer = make_employer('hr@corp.com', company_name='Acme Analytics')
        self.other_employer = make_employer('hr@other.com', company_name='Other Org')
        self.student = make_student('student@test.com')
        self.student.user.first_name, self.student.user.last_name = 'Amani', 'Uwase'
        self.student.user.save()
        make_admin('admin@test.com')

        self.opportunity = make_opportunity(self.employer, 'Data Intern')
        self.application = Application.objects.create(
            student=self.student,
            opportunity=self.opportunity,
            opportunity_title=self.opportunity.title,
            status='accepted'
        )

        self.employer_token = self._get_auth_token('hr@corp.com')
        self.other_employer_token = self._get_auth_token('hr@other.com')
        self.student_token = self._get_auth_token('student@test.com')
        self.admin_token = self._get_auth_token('admin@test.com')

    def _issue(self, token, **data):
        return self._send('post', reverse('issue-certificate'), token, data)

    def test_issue_completes_application(self):
        response = self._issue(self.employer_token, application_id=self.application.id, description='Great work')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        data = response.json()['certificate']
        self.assertEqual(data['student_name'], 'Amani Uwase')
        self.assertEqual(data['employer_name'], 'Acme Analytics')
        self.assertEqual(data['opportunity_title'], 'Data Intern')

        self.application.refresh_from_db()
        self.assertEqual(self.application.status, 'completed')
        self.assertIsNotNone(self.application.completed_at)
        self.assertEqual(str(self.application.certificate_id), data['id'])

    def test_snapshot_survives_later_edits(self):
        self._issue(self.employer_token, application_id=self.application.id)
        self.employer.company_name = 'Renamed Ltd'
        self.employer.save()
        self.opportunity.title = 'Renamed Role'
        self.opportunity.save()

        certificate = Certificate.objects.get()
        self.assertEqual(certificate.employer_name, 'Acme Analytics')
        self.assertEqual(certificate.opportunity_title, 'Data Intern')

    def test_pending_application_cannot_complete(self):
        self.application.status = 'pending'
        self.application.save()

        response = self._issue(self.employer_token, application_id=self.application.id)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Certificate.objects.exists())

    def test_second_certificate_conflicts(self):
        self._issue(self.employer_token, application_id=self.application.id)
        response = self._issue(self.admin_token, application_id=self.application.id)
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(Certificate.objects.count(), 1)

    def test_other_employer_forbidden(self):
        response = self._issue(self.other_employer_token, application_id=self.application.id)
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.application.refresh_from_db()
        self.assertEqual(self.application.status, 'accepted')

    def test_students_cannot_issue(self):
        response = self._issue(self.student_token, application_id=self.application.id)
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_missing_application(self):
        response = self._issue(self.admin_token, application_id=9999)
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_missing_and_foreign_application_look_the_same_to_employers(self):
        foreign = self._issue(self.other_employer_token, application_id=self.application.id)
        missing = self._issue(self.other_employer_token, application_id=9999)
        self.assertEqual(foreign.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(missing.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(foreign.json(), missing.json())

    def test_failure_rolls_back_certificate(self):
        """Test that the certificate is not kept when completing the application fails"""
        with mock.patch.object(Application, 'save', side_effect=RuntimeError('db down')):
            response = self._issue(self.employer_token, application_id=self.application.id)

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertFalse(Certificate.objects.exists())

    def test_standalone_issue_requires_fields(self):
        response = self._issue(self.admin_token, opportunity_title='Volunteer Day')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        details = response.json()['details']
        self.assertIn('student_id', details)
        self.assertIn('employer_id', details)

    def test_standalone_issue_own_employer_only(self):
        payload = {
            'student_id': self.student.id,
            'opportunity_title': 'Volunteer Day',
        }
        response = self._issue(self.employer_token, employer_id=self.other_employer.id, **payload)
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        response = self._issue(self.employer_token, employer_id=self.employer.id, **payload)
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIsNone(response.json()['certificate']['application_id'])

    def test_end_before_start_rejected(self):
        response = self._issue(
            self.employer_token,
            application_id=self.application.id,
            start_date='2026-06-01',
            end_date='2026-05-01'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class CertificateAccessTests(ApiClientMixin, TestCase):
    def setUp(self):
        self.client = Client()
        self.employer = make_employer('hr@corp.com')
        make_employer('hr@other.com', company_name='Other Org')
        self.student = make_student('student@test.com')
        make_student('other@test.com')
        make_admin('admin@test.com')

        self.certificate = Certificate.objects.create(
            student=self.student,
            employer=self.employer,
            student_name='Test User',
            employer_name='Test Corp',
            opportunity_title='Data Intern'
        )
        self.url = reverse('certificate-detail', args=[self.certificate.id])

    def _get(self, email):
        return self._send('get', self.url, self._get_auth_token(email))

    def test_owner_student_issuer_and_admin_can_view(self):
        for email in ('student@test.com', 'hr@corp.com', 'admin@test.com'):
            self.assertEqual(self._get(email).status_code, status.HTTP_200_OK, email)

    def test_others_are_forbidden(self):
        for email in ('other@test.com', 'hr@other.com'):
            self.assertEqual(self._get(email).status_code, status.HTTP_403_FORBIDDEN, email)

    def test_unknown_certificate(self):
        token = self._get_auth_token('admin@test.com')
        response = self._send('get', reverse('certificate-detail', args=[uuid4()]), token)
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_unknown_and_foreign_certificate_look_the_same(self):
        unknown_url = reverse('certificate-detail', args=[uuid4()])
        for email in ('other@test.com', 'hr@other.com'):
            token = self._get_auth_token(email)
            foreign = self._send('get', self.url, token)
            unknown = self._send('get', unknown_url, token)
            self.assertEqual(foreign.status_code, status.HTTP_403_FORBIDDEN, email)
            self.assertEqual(unknown.status_code, status.HTTP_403_FORBIDDEN, email)

    def test_student_list_newest_first(self):
        newer = Certificate.objects.create(
            student=self.student,
            employer=self.employer,
            student_name='Test User',
            employer_name='Test Corp',
            opportunity_title='Second'
        )
        response = self._send('get', reverse('student-certificates'), self._get_auth_token('student@test.com'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(
            [item['id'] for item in response.json()['results']],
            [str(newer.id), str(self.certificate.id)]
        )
