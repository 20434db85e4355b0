"""Fixtures shared by the app test suites."""
import json

from django.urls import reverse

from opportunities.models import Opportunity
from profiles.models import StudentProfile, EmployerProfile, Skill
from users.models import User

PASSWORD = 'testpass123'


def make_user(email, role='student', status='active', first_name='Test', last_name='User'):
    user = User.objects.create(
        email=email,
        first_name=first_name,
        last_name=last_name,
        role=role,
        status=status
    )
    user.set_password(PASSWORD)
    user.save()
    return user


def make_student(email='student@test.com', **profile):
    user = make_user(email, role='student')
    return StudentProfile.objects.create(user=user, **profile)


def make_employer(email='employer@test.com', company_name='Test Corp', verified=True):
    user = make_user(email, role='employer', status='active' if verified else 'pending')
    return EmployerProfile.objects.create(user=user, company_name=company_name, is_verified=verified)


def make_admin(email='admin@test.com'):
    return make_user(email, role='admin')


def make_opportunity(employer, title='Data Intern', skills=(), **fields):
    fields.setdefault('description', f"{title} description")
    fields.setdefault('location', 'Kigali')
    fields.setdefault('is_verified', True)
    opportunity = Opportunity.objects.create(employer=employer, title=title, **fields)
    for name in skills:
        skill, _ = Skill.objects.get_or_create(name=name)
        opportunity.skills.add(skill)
    return opportunity


class ApiClientMixin:
    """Token helpers for ``TestCase`` subclasses."""

    def _get_auth_token(self, email, password=PASSWORD):
        response = self.client.post(
            reverse('login'),
            data=json.dumps({'email': email, 'password': password}),
            content_type='application/json'
        )
        return response.json()['token']

    def _auth_headers(self, token):
        return {'HTTP_AUTHORIZATION': f'Bearer {token}'}

    def _send(self, method, url, token=None, data=None):
        kwargs = self._auth_headers(token) if token else {}
        if data is not None:
            kwargs['data'] = json.dumps(data)
            kwargs['content_type'] = 'application/json'
        return getattr(self.client, method)(url, **kwargs)
