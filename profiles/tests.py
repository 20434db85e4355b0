from unittest import mock

from django.core.files.uploadedfile import SimpleUploadedFile
from django.contrib import admin
from django.test import TestCase, Client, RequestFactory, override_settings
from django.test.client import encode_multipart, BOUNDARY, MULTIPART_CONTENT
from django.urls import reverse
from rest_framework import status
import json

from main import exceptions as errors
from main.factories import ApiClientMixin, make_student, make_employer, make_admin
from users.models import User
from users.principal import Principal
from .admin import EmployerProfileAdmin
from .models import Skill, StudentSkill, EmployerProfile
from . import services


class SkillServiceTests(TestCase):
    def test_get_or_create_normalizes_name(self):
        """Test that 'Python ' and 'python' resolve to the same skill"""
        first = services.get_or_create_skill('Python ')
        second = services.get_or_create_skill('python')
        self.assertEqual(first.id, second.id)
        self.assertEqual(first.name, 'python')
        self.assertEqual(Skill.objects.count(), 1)

    def test_blank_name_is_rejected(self):
        with self.assertRaises(errors.ValidationError):
            services.get_or_create_skill('   ')

    def test_list_skills_ordered_by_name(self):
        for name in ('sql', 'excel', 'python'):
            Skill.objects.create(name=name)
        self.assertEqual([s.name for s in services.list_skills()], ['excel', 'python', 'sql'])


class StudentSkillServiceTests(TestCase):
    def setUp(self):
        self.profile = make_student()
        self.principal = Principal.for_user(self.profile.user)
        self.python = Skill.objects.create(name='python')
        self.sql = Skill.objects.create(name='sql')

    def test_add_is_additive_and_idempotent(self):
        services.add_student_skills(self.principal, skill_ids=[self.python.id])
        services.add_student_skills(self.principal, skill_ids=[self.python.id, self.sql.id])
        services.add_student_skills(self.principal, skill_ids=[self.python.id])

        self.assertEqual(StudentSkill.objects.filter(student=self.profile).count(), 2)

    def test_add_by_name_creates_skill(self):
        skills = services.add_student_skills(self.principal, skill_names=['  Data Analysis'])
        self.assertEqual([s.name for s in skills], ['data analysis'])

    def test_unknown_skill_id_rejected_without_partial_write(self):
        with self.assertRaises(errors.ValidationError):
            services.add_student_skills(self.principal, skill_ids=[self.python.id, 9999])
        self.assertFalse(StudentSkill.objects.filter(student=self.profile).exists())

    def test_remove_unassociated_skill_is_noop(self):
        services.add_student_skills(self.principal, skill_ids=[self.python.id])
        remaining = services.remove_student_skill(self.principal, self.sql.id)
        self.assertEqual([s.name for s in remaining], ['python'])

        remaining = services.remove_student_skill(self.principal, self.python.id)
        self.assertEqual(remaining, [])

    def test_employer_cannot_manage_student_skills(self):
        employer = make_employer()
        with self.assertRaises(errors.Forbidden):
            services.add_student_skills(Principal.for_user(employer.user), skill_ids=[self.python.id])


class VerifyEmployerTests(TestCase):
    def setUp(self):
        self.employer = make_employer('hr@corp.com', verified=False)
        self.admin = Principal.for_user(make_admin())

    def test_verify_activates_pending_user(self):
        services.verify_employer(self.admin, self.employer.id)

        self.employer.refresh_from_db()
        self.employer.user.refresh_from_db()
        self.assertTrue(self.employer.is_verified)
        self.assertEqual(self.employer.user.status, 'active')

    def test_verify_is_idempotent(self):
        services.verify_employer(self.admin, self.employer.id)
        profile = services.verify_employer(self.admin, self.employer.id)
        self.assertTrue(profile.is_verified)
        self.assertEqual(profile.user.status, 'active')

    def test_verify_does_not_reactivate_banned_user(self):
        self.employer.user.status = 'banned'
        self.employer.user.save()

        services.verify_employer(self.admin, self.employer.id)

        self.employer.user.refresh_from_db()
        self.assertEqual(self.employer.user.status, 'banned')

    def test_both_writes_roll_back_together(self):
        """Test that a failed user update leaves the profile unverified"""
        with mock.patch.object(User, 'save', side_effect=RuntimeError('db down')):
            with self.assertRaises(RuntimeError):
                services.verify_employer(self.admin, self.employer.id)

        self.employer.refresh_from_db()
        self.assertFalse(self.employer.is_verified)

    def test_non_admin_is_forbidden(self):
        other = make_employer('other@corp.com')
        with self.assertRaises(errors.Forbidden):
            services.verify_employer(Principal.for_user(other.user), self.employer.id)

    def test_missing_employer(self):
        with self.assertRaises(errors.NotFound):
            services.verify_employer(self.admin, 9999)

    def test_list_employers_filter(self):
        make_employer('ok@corp.com', company_name='Verified Co')
        unverified = services.list_employers(self.admin, verified=False)
        self.assertEqual([p.id for p in unverified], [self.employer.id])
        self.assertEqual(len(services.list_employers(self.admin)), 2)


class EmployerProfileAdminTests(TestCase):
    def setUp(self):
        self.employer = make_employer('hr@corp.com', verified=False)
        self.model_admin = EmployerProfileAdmin(EmployerProfile, admin.site)
        self.request = RequestFactory().post('/')
        self.request.user = mock.Mock(pk=1)

    def test_verified_flag_is_read_only(self):
        self.assertIn('is_verified', self.model_admin.get_readonly_fields(self.request))

    def test_verify_action_activates_account(self):
        with mock.patch.object(self.model_admin, 'message_user'):
            self.model_admin.verify_selected(self.request, EmployerProfile.objects.filter(pk=self.employer.id))

        self.employer.refresh_from_db()
        self.employer.user.refresh_from_db()
        self.assertTrue(self.employer.is_verified)
        self.assertEqual(self.employer.user.status, 'active')


class ProfileViewTests(ApiClientMixin, TestCase):
    def setUp(self):
        self.client = Client()
        self.student = make_student(institution='University of Rwanda')
        self.employer = make_employer('hr@corp.com', company_name='Corp Ltd')
        self.student_token = self._get_auth_token('student@test.com')
        self.employer_token = self._get_auth_token('hr@corp.com')

    def test_student_can_view_own_profile(self):
        response = self.client.get(reverse('student-profile'), **self._auth_headers(self.student_token))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()['profile']['education']['institution'], 'University of Rwanda')

    def test_employer_cannot_view_student_profile_endpoint(self):
        response = self.client.get(reverse('student-profile'), **self._auth_headers(self.employer_token))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_student_update_uses_allow_list(self):
        python = Skill.objects.create(name='python')
        response = self._send('put', reverse('student-profile'), self.student_token, {
            'program': 'Computer Science',
            'year_of_study': 3,
            'is_profile_visible': False,
            'skills': [python.id],
            'user_id': 999,
            'cv_url': 'http://evil.example/cv.pdf'
        })
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        self.student.refresh_from_db()
        self.assertEqual(self.student.program, 'Computer Science')
        self.assertEqual(self.student.year_of_study, 3)
        self.assertFalse(self.student.is_profile_visible)
        self.assertEqual(self.student.cv_url, '')
        self.assertTrue(self.student.skills.filter(id=python.id).exists())

    def test_year_out_of_range(self):
        response = self._send('put', reverse('student-profile'), self.student_token, {'year_of_study': 6})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('year_of_study', response.json()['details'])

    def test_cv_upload_via_multipart(self):
        cv = SimpleUploadedFile('cv.pdf', b'%PDF-1.4 test', content_type='application/pdf')
        response = self.client.post(
            reverse('student-profile'),
            data={'data': json.dumps({'bio': 'Hello'}), 'cv': cv},
            **self._auth_headers(self.student_token)
        )
        # PUT only
        self.assertEqual(response.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)

        cv.seek(0)
        body = encode_multipart(BOUNDARY, {'data': json.dumps({'bio': 'Hello'}), 'cv': cv})
        response = self.client.put(
            reverse('student-profile'),
            data=body,
            content_type=MULTIPART_CONTENT,
            **self._auth_headers(self.student_token)
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        profile = response.json()['profile']
        self.assertEqual(profile['bio'], 'Hello')
        self.assertTrue(profile['cv_url'].endswith('.pdf'))

    def test_stored_extension_follows_content_type(self):
        cv = SimpleUploadedFile('cv.html', b'%PDF-1.4 test', content_type='application/pdf')
        response = self.client.put(
            reverse('student-profile'),
            data=encode_multipart(BOUNDARY, {'cv': cv}),
            content_type=MULTIPART_CONTENT,
            **self._auth_headers(self.student_token)
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        cv_url = response.json()['profile']['cv_url']
        self.assertTrue(cv_url.endswith('.pdf'))
        self.assertNotIn('.html', cv_url)

    def test_cv_wrong_type_rejected(self):
        image = SimpleUploadedFile('cv.png', b'\x89PNG', content_type='image/png')
        response = self.client.put(
            reverse('student-profile'),
            data=encode_multipart(BOUNDARY, {'cv': image}),
            content_type=MULTIPART_CONTENT,
            **self._auth_headers(self.student_token)
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    @override_settings(KIMCONNECT={'SESSION_HOURS': 1, 'RECOMMENDATION_LIMIT': 5, 'UPLOAD_MAX_BYTES': 4})
    def test_oversized_logo_rejected(self):
        logo = SimpleUploadedFile('logo.png', b'\x89PNG-too-big', content_type='image/png')
        response = self.client.put(
            reverse('employer-profile'),
            data=encode_multipart(BOUNDARY, {'logo': logo}),
            content_type=MULTIPART_CONTENT,
            **self._auth_headers(self.employer_token)
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_employer_update(self):
        response = self._send('put', reverse('employer-profile'), self.employer_token, {
            'industry': 'Agritech',
            'location': 'Huye'
        })
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.employer.refresh_from_db()
        self.assertEqual(self.employer.industry, 'Agritech')

    def test_employer_cannot_self_verify(self):
        unverified = make_employer('new@corp.com', verified=False)
        unverified.user.status = 'active'
        unverified.user.save()
        token = self._get_auth_token('new@corp.com')

        response = self._send('put', reverse('employer-profile'), token, {'is_verified': True})

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        unverified.refresh_from_db()
        self.assertFalse(unverified.is_verified)

    def test_blank_company_name_rejected(self):
        response = self._send('put', reverse('employer-profile'), self.employer_token, {'company_name': ''})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_add_and_remove_skills_endpoints(self):
        sql = Skill.objects.create(name='sql')
        response = self._send('post', reverse('student-skills'), self.student_token, {
            'skill_ids': [sql.id],
            'skill_names': ['Python']
        })
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([s['name'] for s in response.json()['skills']], ['python', 'sql'])

        response = self._send('delete', reverse('student-skill-remove', args=[sql.id]), self.student_token)
        self.assertEqual([s['name'] for s in response.json()['skills']], ['python'])

    def test_add_skills_requires_input(self):
        response = self._send('post', reverse('student-skills'), self.student_token, {})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_public_skill_list(self):
        Skill.objects.create(name='python')
        response = self.client.get(reverse('list-skills'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()['skills'][0]['name'], 'python')
