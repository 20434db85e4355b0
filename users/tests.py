from io import StringIO
from unittest import mock

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase, Client
from django.urls import reverse
from django.utils.timezone import now, timedelta
from rest_framework import status
import json

from main.factories import ApiClientMixin, make_user, make_employer, PASSWORD
from profiles.models import StudentProfile, EmployerProfile, Skill
from .models import User, Session


class UserModelTests(TestCase):
    def setUp(self):
        self.user = make_user('test@example.com')

    def test_password_hashing(self):
        """Test that passwords are properly hashed"""
        self.assertTrue(self.user.check_password(PASSWORD))
        self.assertFalse(self.user.check_password('wrongpass'))
        self.assertNotEqual(self.user.password_hash, PASSWORD)

    def test_user_creation(self):
        """Test user creation and string representation"""
        self.assertEqual(str(self.user), 'test@example.com')
        self.assertEqual(self.user.role, 'student')
        self.assertEqual(self.user.get_full_name(), 'Test User')

    def test_is_active_follows_status(self):
        self.assertTrue(self.user.is_active)
        self.user.status = 'banned'
        self.assertFalse(self.user.is_active)


class SessionModelTests(TestCase):
    def setUp(self):
        self.user = make_user('test@example.com')

    def test_session_creation(self):
        """Test session creation and expiration"""
        session = Session.create_session(self.user)
        self.assertIsNotNone(session.token)
        self.assertFalse(session.is_expired)
        self.assertGreater(session.expires_at, now())

        session.expire()
        session.refresh_from_db()
        self.assertTrue(session.is_expired)

    def test_cleanup_expired(self):
        old = Session.objects.create(user=self.user, expires_at=now() - timedelta(hours=1))
        fresh = Session.create_session(self.user)

        Session.cleanup_expired()

        old.refresh_from_db()
        fresh.refresh_from_db()
        self.assertTrue(old.is_expired)
        self.assertFalse(fresh.is_expired)


class LoginTests(ApiClientMixin, TestCase):
    def setUp(self):
        self.client = Client()
        self.user = make_user('test@example.com')
        self.login_url = reverse('login')

    def _login(self, email, password):
        return self.client.post(
            self.login_url,
            data=json.dumps({'email': email, 'password': password}),
            content_type='application/json'
        )

    def test_successful_login(self):
        """Test successful login returns token"""
        response = self._login('test@example.com', PASSWORD)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.json()
        self.assertTrue(data['success'])
        self.assertEqual(data['user'], {'id': self.user.id, 'email': 'test@example.com', 'role': 'student'})
        self.assertTrue(Session.objects.filter(token=data['token']).exists())

        self.user.refresh_from_db()
        self.assertIsNotNone(self.user.last_login)

    def test_login_email_is_case_insensitive(self):
        response = self._login('  TEST@example.com ', PASSWORD)
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_wrong_password_and_unknown_email_look_the_same(self):
        """Test that a bad password and a missing account give identical errors"""
        wrong_password = self._login('test@example.com', 'wrongpass')
        unknown_email = self._login('nobody@example.com', PASSWORD)

        self.assertEqual(wrong_password.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(unknown_email.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(wrong_password.json(), unknown_email.json())
        self.assertEqual(wrong_password.json()['code'], 'INVALID_CREDENTIALS')

    def test_pending_employer_cannot_login(self):
        make_employer('pending@corp.com', verified=False)

        response = self._login('pending@corp.com', PASSWORD)

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        data = response.json()
        self.assertEqual(data['code'], 'ACCOUNT_NOT_ACTIVE')
        self.assertEqual(data['status'], 'pending')
        self.assertFalse(Session.objects.filter(user__email='pending@corp.com').exists())

    def test_banned_user_cannot_login(self):
        make_user('banned@example.com', status='banned')
        response = self._login('banned@example.com', PASSWORD)
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.json()['status'], 'banned')

    def test_missing_fields(self):
        response = self.client.post(
            self.login_url,
            data=json.dumps({'email': 'test@example.com'}),
            content_type='application/json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()['errno'], 0x10)

    def test_invalid_json(self):
        response = self.client.post(self.login_url, data='{not json', content_type='application/json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unsupported_content_type(self):
        response = self.client.post(self.login_url, data='email=x', content_type='text/plain')
        self.assertEqual(response.status_code, status.HTTP_415_UNSUPPORTED_MEDIA_TYPE)

    def test_login_requires_post(self):
        response = self.client.get(self.login_url)
        self.assertEqual(response.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)


class RegisterTests(TestCase):
    def setUp(self):
        self.client = Client()
        self.register_url = reverse('register')
        self.payload = {
            'email': 'new@student.com',
            'password': 'secret1',
            'first_name': 'Amani',
            'last_name': 'Uwase',
            'role': 'student'
        }

    def _register(self, **overrides):
        return self.client.post(
            self.register_url,
            data=json.dumps({**self.payload, **overrides}),
            content_type='application/json'
        )

    def test_student_registration_returns_session(self):
        response = self._register()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        data = response.json()
        self.assertIn('token', data)
        self.assertEqual(data['user']['status'], 'active')

        user = User.objects.get(email='new@student.com')
        self.assertTrue(StudentProfile.objects.filter(user=user).exists())
        self.assertTrue(Session.objects.filter(token=data['token'], user=user).exists())

    def test_employer_registration_is_pending_without_session(self):
        response = self._register(email='hr@corp.com', role='employer', company_name='Corp Ltd')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        data = response.json()
        self.assertNotIn('token', data)
        self.assertEqual(data['user']['status'], 'pending')

        profile = EmployerProfile.objects.get(user__email='hr@corp.com')
        self.assertEqual(profile.company_name, 'Corp Ltd')
        self.assertFalse(profile.is_verified)
        self.assertFalse(Session.objects.filter(user=profile.user).exists())

    def test_employer_requires_company_name(self):
        response = self._register(email='hr@corp.com', role='employer')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('company_name', response.json()['details'])
        self.assertFalse(User.objects.filter(email='hr@corp.com').exists())

    def test_admin_role_is_rejected(self):
        response = self._register(role='admin')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(User.objects.filter(email='new@student.com').exists())

    def test_short_password_and_bad_email(self):
        self.assertEqual(self._register(password='12345').status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(self._register(email='not-an-email').status_code, status.HTTP_400_BAD_REQUEST)

    def test_missing_fields(self):
        response = self.client.post(
            self.register_url,
            data=json.dumps({'email': 'x@y.com'}),
            content_type='application/json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()['code'], 'VALIDATION_ERROR')

    def test_duplicate_email_conflicts(self):
        make_user('new@student.com')
        response = self._register(email='NEW@student.com')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(User.objects.filter(email='new@student.com').count(), 1)

    def test_profile_failure_rolls_back_user(self):
        """Test that the user row is not kept when the profile insert fails"""
        with mock.patch.object(StudentProfile.objects, 'create', side_effect=RuntimeError('db down')):
            response = self._register()

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.json()['code'], 'INTERNAL_ERROR')
        self.assertFalse(User.objects.filter(email='new@student.com').exists())


class SessionViewTests(ApiClientMixin, TestCase):
    def setUp(self):
        self.client = Client()
        self.user = make_user('test@example.com')
        self.profile = StudentProfile.objects.create(user=self.user, program='Computer Science')
        self.profile.skills.add(Skill.objects.create(name='python'))
        self.token = self._get_auth_token('test@example.com')

    def test_me_returns_user_and_profile(self):
        response = self.client.get(reverse('me'), **self._auth_headers(self.token))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.json()
        self.assertEqual(data['user']['email'], 'test@example.com')
        self.assertEqual(data['profile']['education']['program'], 'Computer Science')
        self.assertEqual([s['name'] for s in data['profile']['skills']], ['python'])

    def test_me_for_employer(self):
        make_employer('hr@corp.com', company_name='Corp Ltd')
        token = self._get_auth_token('hr@corp.com')
        response = self.client.get(reverse('me'), **self._auth_headers(token))
        self.assertEqual(response.json()['profile']['company_name'], 'Corp Ltd')

    def test_me_requires_token(self):
        response = self.client.get(reverse('me'))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.json()['code'], 'UNAUTHENTICATED')

    def test_malformed_token(self):
        response = self.client.get(reverse('me'), **self._auth_headers('not-a-uuid'))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_expired_token_is_marked_expired(self):
        session = Session.objects.get(token=self.token)
        session.expires_at = now() - timedelta(minutes=1)
        session.save()

        response = self.client.get(reverse('me'), **self._auth_headers(self.token))

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.json()['message'], 'Token has expired.')
        session.refresh_from_db()
        self.assertTrue(session.is_expired)

    def test_logout_expires_session(self):
        response = self.client.post(reverse('logout'), **self._auth_headers(self.token))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(Session.objects.get(token=self.token).is_expired)

        response = self.client.get(reverse('me'), **self._auth_headers(self.token))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class ManagementCommandTests(TestCase):
    def test_creates_active_admin(self):
        out = StringIO()
        call_command('create_admin', 'Root@Kim.com', 'adminpass', stdout=out)

        admin = User.objects.get(email='root@kim.com')
        self.assertEqual(admin.role, 'admin')
        self.assertEqual(admin.status, 'active')
        self.assertTrue(admin.check_password('adminpass'))
        self.assertIn('root@kim.com', out.getvalue())

    def test_rejects_existing_email(self):
        make_user('root@kim.com')
        with self.assertRaises(CommandError):
            call_command('create_admin', 'root@kim.com', 'adminpass', stdout=StringIO())

    def test_cleanup_sessions_flags_only_stale_ones(self):
        user = make_user('test@example.com')
        stale = Session.objects.create(user=user, expires_at=now() - timedelta(hours=1))
        fresh = Session.create_session(user)

        out = StringIO()
        call_command('cleanup_sessions', stdout=out)

        stale.refresh_from_db()
        fresh.refresh_from_db()
        self.assertTrue(stale.is_expired)
        self.assertFalse(fresh.is_expired)
        self.assertIn('Expired 1 session', out.getvalue())
