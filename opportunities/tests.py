from django.test import TestCase, Client
from django.urls import reverse
from rest_framework import status

from main import exceptions as errors
from main.factories import ApiClientMixin, make_student, make_employer, make_admin, make_opportunity
from profiles.models import Skill
from .models import Opportunity, OpportunitySkill, SavedOpportunity, Application
from .validations import validate_application_status


class StatusTransitionTests(TestCase):
    def test_allowed_moves(self):
        validate_application_status('pending', 'accepted', 'employer')
        validate_application_status('pending', 'rejected', 'admin')
        validate_application_status('pending', 'withdrawn', 'student')

    def test_terminal_states(self):
        for current in ('rejected', 'withdrawn', 'completed'):
            with self.assertRaises(errors.ValidationError):
                validate_application_status(current, 'accepted', 'employer')

    def test_completed_only_through_certificates(self):
        with self.assertRaises(errors.Forbidden):
            validate_application_status('accepted', 'completed', 'admin')

    def test_student_may_only_withdraw(self):
        with self.assertRaises(errors.Forbidden):
            validate_application_status('pending', 'accepted', 'student')

    def test_employer_cannot_withdraw(self):
        with self.assertRaises(errors.Forbidden):
            validate_application_status('pending', 'withdrawn', 'employer')


class MarketplaceTestCase(ApiClientMixin, TestCase):
    def setUp(self):
        self.client = Client()
        self.employer = make_employer('hr@corp.com', company_name='Acme Analytics')
        self.other_employer = make_employer('hr@other.com', company_name='Other Org')
        self.student = make_student('student@test.com', program='Computer Science', year_of_study=3)
        self.other_student = make_student('other@test.com')
        make_admin('admin@test.com')

        self.employer_token = self._get_auth_token('hr@corp.com')
        self.other_employer_token = self._get_auth_token('hr@other.com')
        self.student_token = self._get_auth_token('student@test.com')
        self.other_student_token = self._get_auth_token('other@test.com')
        self.admin_token = self._get_auth_token('admin@test.com')


class OpportunityCatalogTests(MarketplaceTestCase):
    def test_create_forces_unverified_and_active(self):
        python = Skill.objects.create(name='python')
        response = self._send('post', reverse('opportunity-list'), self.employer_token, {
            'title': 'Backend Intern',
            'description': 'Build APIs',
            'location': 'Kigali',
            'is_verified': True,
            'is_active': False,
            'skills': [python.id]
        })
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        opportunity = Opportunity.objects.get(title='Backend Intern')
        self.assertTrue(opportunity.is_active)
        self.assertFalse(opportunity.is_verified)
        self.assertEqual(opportunity.employer, self.employer)
        self.assertEqual(list(opportunity.skills.values_list('name', flat=True)), ['python'])

    def test_create_requires_location_unless_remote(self):
        url = reverse('opportunity-list')
        response = self._send('post', url, self.employer_token, {'title': 'Field Work', 'description': 'x'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('location', response.json()['details'])

        response = self._send('post', url, self.employer_token, {
            'title': 'Remote Work', 'description': 'x', 'location_type': 'remote'
        })
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_create_with_unknown_skill_rolls_back(self):
        response = self._send('post', reverse('opportunity-list'), self.employer_token, {
            'title': 'Backend Intern', 'description': 'x', 'location': 'Kigali', 'skills': [9999]
        })
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Opportunity.objects.filter(title='Backend Intern').exists())

    def test_only_employers_create(self):
        payload = {'title': 'x', 'description': 'y', 'location': 'z'}
        response = self._send('post', reverse('opportunity-list'), self.student_token, payload)
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        response = self._send('post', reverse('opportunity-list'), None, payload)
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_listing_visibility_by_role(self):
        public = make_opportunity(self.employer, 'Public')
        unverified = make_opportunity(self.employer, 'Unverified', is_verified=False)
        inactive = make_opportunity(self.employer, 'Inactive', is_active=False)
        foreign = make_opportunity(self.other_employer, 'Foreign')

        def titles(token, query=''):
            response = self._send('get', reverse('opportunity-list') + query, token)
            self.assertEqual(response.status_code, status.HTTP_200_OK)
            return {item['title'] for item in response.json()['results']}

        self.assertEqual(titles(self.student_token), {public.title, foreign.title})
        self.assertEqual(titles(None), {public.title, foreign.title})
        self.assertEqual(titles(self.employer_token), {public.title, unverified.title, inactive.title})
        self.assertEqual(titles(self.admin_token), {public.title, foreign.title})
        self.assertEqual(
            titles(self.admin_token, '?show_all=true'),
            {public.title, unverified.title, inactive.title, foreign.title}
        )

    def test_skills_filter_requires_all_ids(self):
        both = make_opportunity(self.employer, 'Both', skills=['python', 'sql'])
        make_opportunity(self.employer, 'Python only', skills=['python'])
        python, sql = Skill.objects.get(name='python'), Skill.objects.get(name='sql')

        response = self.client.get(reverse('opportunity-list'), {'skills': f'{python.id},{sql.id}'})
        self.assertEqual([item['id'] for item in response.json()['results']], [both.id])

    def test_filters_are_conjunctive(self):
        match = make_opportunity(self.employer, 'Data Intern', category='data', location_type='hybrid')
        make_opportunity(self.employer, 'Data Analyst', category='data', location_type='in-person')
        make_opportunity(self.other_employer, 'Designer', category='design', location_type='hybrid')

        response = self.client.get(reverse('opportunity-list'), {'category': 'data', 'location_type': 'hybrid'})
        self.assertEqual([item['id'] for item in response.json()['results']], [match.id])

    def test_search_covers_company_name(self):
        make_opportunity(self.employer, 'Intern')
        make_opportunity(self.other_employer, 'Intern Two')

        response = self.client.get(reverse('opportunity-list'), {'search': 'ACME'})
        results = response.json()['results']
        self.assertEqual(len(results), 1)
        self.assertEqual(results[0]['company_name'], 'Acme Analytics')

    def test_invalid_filters(self):
        self.assertEqual(
            self.client.get(reverse('opportunity-list'), {'location_type': 'moon'}).status_code,
            status.HTTP_400_BAD_REQUEST
        )
        self.assertEqual(
            self.client.get(reverse('opportunity-list'), {'skills': 'abc'}).status_code,
            status.HTTP_400_BAD_REQUEST
        )

    def test_newest_first(self):
        first = make_opportunity(self.employer, 'First')
        second = make_opportunity(self.employer, 'Second')
        response = self.client.get(reverse('opportunity-list'))
        self.assertEqual([item['id'] for item in response.json()['results']], [second.id, first.id])

    def test_employer_update_drops_is_verified(self):
        opportunity = make_opportunity(self.employer, 'Draft', is_verified=False)
        response = self._send('put', reverse('opportunity-detail', args=[opportunity.id]), self.employer_token, {
            'title': 'Renamed',
            'is_verified': True,
            'is_active': False
        })
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        opportunity.refresh_from_db()
        self.assertEqual(opportunity.title, 'Renamed')
        self.assertFalse(opportunity.is_active)
        self.assertFalse(opportunity.is_verified)

    def test_admin_update_may_verify(self):
        opportunity = make_opportunity(self.employer, 'Draft', is_verified=False)
        response = self._send('put', reverse('opportunity-detail', args=[opportunity.id]), self.admin_token, {
            'is_verified': True
        })
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        opportunity.refresh_from_db()
        self.assertTrue(opportunity.is_verified)

    def test_update_adds_skills(self):
        opportunity = make_opportunity(self.employer, 'Data', skills=['python'])
        sql = Skill.objects.create(name='sql')
        self._send('put', reverse('opportunity-detail', args=[opportunity.id]), self.employer_token, {
            'skills': [sql.id]
        })
        self.assertEqual(set(opportunity.skills.values_list('name', flat=True)), {'python', 'sql'})

    def test_update_cannot_blank_location_of_in_person_listing(self):
        opportunity = make_opportunity(self.employer, 'Onsite')
        response = self._send('put', reverse('opportunity-detail', args=[opportunity.id]), self.employer_token, {
            'location': ''
        })
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_non_owner_update_is_forbidden(self):
        opportunity = make_opportunity(self.employer, 'Mine')
        url = reverse('opportunity-detail', args=[opportunity.id])
        response = self._send('put', url, self.other_employer_token, {'title': 'Stolen'})
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        response = self._send('put', url, self.student_token, {'title': 'Stolen'})
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        opportunity.refresh_from_db()
        self.assertEqual(opportunity.title, 'Mine')

    def test_missing_target_forbidden_for_employer_not_found_for_admin(self):
        url = reverse('opportunity-detail', args=[9999])
        self.assertEqual(self._send('delete', url, self.employer_token).status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(self._send('delete', url, self.admin_token).status_code, status.HTTP_404_NOT_FOUND)

    def test_delete_keeps_applications(self):
        opportunity = make_opportunity(self.employer, 'Short Lived', skills=['python'])
        SavedOpportunity.objects.create(student=self.student, opportunity=opportunity)
        application = Application.objects.create(
            student=self.student, opportunity=opportunity, opportunity_title=opportunity.title
        )

        response = self._send('delete', reverse('opportunity-detail', args=[opportunity.id]), self.employer_token)
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        self.assertFalse(Opportunity.objects.filter(id=opportunity.id).exists())
        self.assertFalse(OpportunitySkill.objects.filter(opportunity_id=opportunity.id).exists())
        self.assertFalse(SavedOpportunity.objects.filter(opportunity_id=opportunity.id).exists())

        application.refresh_from_db()
        self.assertIsNone(application.opportunity)
        self.assertEqual(application.opportunity_title, 'Short Lived')

    def test_hidden_listing_detail(self):
        hidden = make_opportunity(self.employer, 'Hidden', is_verified=False)
        url = reverse('opportunity-detail', args=[hidden.id])

        self.assertEqual(self._send('get', url, self.student_token).status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(self._send('get', url, self.other_employer_token).status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(self._send('get', url, None).status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(self._send('get', url, self.employer_token).status_code, status.HTTP_200_OK)
        self.assertEqual(self._send('get', url, self.admin_token).status_code, status.HTTP_200_OK)

    def test_student_detail_carries_saved_and_applied_state(self):
        opportunity = make_opportunity(self.employer, 'Public')
        url = reverse('opportunity-detail', args=[opportunity.id])

        data = self._send('get', url, self.student_token).json()['opportunity']
        self.assertFalse(data['is_saved'])
        self.assertFalse(data['has_applied'])
        self.assertIsNone(data['application_status'])

        SavedOpportunity.objects.create(student=self.student, opportunity=opportunity)
        Application.objects.create(student=self.student, opportunity=opportunity, status='accepted')

        data = self._send('get', url, self.student_token).json()['opportunity']
        self.assertTrue(data['is_saved'])
        self.assertTrue(data['has_applied'])
        self.assertEqual(data['application_status'], 'accepted')

        data = self._send('get', url, self.employer_token).json()['opportunity']
        self.assertNotIn('is_saved', data)

    def test_admin_verify_leaves_is_active(self):
        opportunity = make_opportunity(self.employer, 'Paused', is_verified=False, is_active=False)
        response = self._send(
            'put', reverse('admin-verify-opportunity', args=[opportunity.id]), self.admin_token
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        opportunity.refresh_from_db()
        self.assertTrue(opportunity.is_verified)
        self.assertFalse(opportunity.is_active)

        response = self._send(
            'put', reverse('admin-verify-opportunity', args=[opportunity.id]), self.employer_token
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class SavedOpportunityTests(MarketplaceTestCase):
    def setUp(self):
        super().setUp()
        self.opportunity = make_opportunity(self.employer, 'Public')
        self.url = reverse('save-opportunity', args=[self.opportunity.id])

    def test_save_is_idempotent(self):
        self.assertEqual(self._send('post', self.url, self.student_token).status_code, status.HTTP_200_OK)
        self.assertEqual(self._send('post', self.url, self.student_token).status_code, status.HTTP_200_OK)
        self.assertEqual(SavedOpportunity.objects.filter(student=self.student).count(), 1)

    def test_unsave_missing_is_noop(self):
        response = self._send('delete', self.url, self.student_token)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.json()['saved'])

    def test_saved_list(self):
        other = make_opportunity(self.employer, 'Other')
        self._send('post', self.url, self.student_token)
        self._send('post', reverse('save-opportunity', args=[other.id]), self.student_token)

        response = self._send('get', reverse('saved-opportunities'), self.student_token)
        self.assertEqual([item['id'] for item in response.json()['results']], [other.id, self.opportunity.id])

    def test_cannot_save_hidden_listing(self):
        hidden = make_opportunity(self.employer, 'Hidden', is_verified=False)
        response = self._send('post', reverse('save-opportunity', args=[hidden.id]), self.student_token)
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_students_only(self):
        response = self._send('post', self.url, self.employer_token)
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class ApplicationWorkflowTests(MarketplaceTestCase):
    def setUp(self):
        super().setUp()
        self.opportunity = make_opportunity(self.employer, 'Data Intern')

    def _apply(self, token, opportunity_id=None, **extra):
        return self._send('post', reverse('apply'), token, {
            'opportunity_id': opportunity_id or self.opportunity.id,
            **extra
        })

    def _update(self, token, application, **data):
        return self._send('put', reverse('update-application', args=[application.id]), token, data)

    def _pending(self, student=None):
        return Application.objects.create(
            student=student or self.student,
            opportunity=self.opportunity,
            opportunity_title=self.opportunity.title
        )

    def test_apply_creates_pending_with_title_snapshot(self):
        response = self._apply(self.student_token, cover_letter='Hire me')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        application = Application.objects.get(student=self.student)
        self.assertEqual(application.status, 'pending')
        self.assertEqual(application.cover_letter, 'Hire me')
        self.assertEqual(application.opportunity_title, 'Data Intern')

    def test_duplicate_apply_conflicts(self):
        self._apply(self.student_token)
        response = self._apply(self.student_token)
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(Application.objects.filter(student=self.student).count(), 1)

    def test_reapply_after_withdrawal_conflicts(self):
        application = self._pending()
        self._update(self.student_token, application, status='withdrawn')

        response = self._apply(self.student_token)
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_apply_to_hidden_or_missing_listing(self):
        hidden = make_opportunity(self.employer, 'Hidden', is_verified=False)
        self.assertEqual(self._apply(self.student_token, hidden.id).status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(self._apply(self.student_token, 9999).status_code, status.HTTP_404_NOT_FOUND)

    def test_only_students_apply(self):
        self.assertEqual(self._apply(self.employer_token).status_code, status.HTTP_403_FORBIDDEN)

    def test_owner_accepts(self):
        application = self._pending()
        response = self._update(self.employer_token, application, status='accepted')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        application.refresh_from_db()
        self.assertEqual(application.status, 'accepted')

    def test_reject_with_feedback(self):
        application = self._pending()
        response = self._update(self.employer_token, application, status='rejected', feedback='Not this time')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        application.refresh_from_db()
        self.assertEqual(application.status, 'rejected')
        self.assertEqual(application.feedback, 'Not this time')

    def test_review_drops_keys_outside_status_and_feedback(self):
        application = self._pending()
        application.cover_letter = 'Original letter'
        application.save()

        response = self._update(
            self.employer_token, application,
            status='accepted', cover_letter='x', certificate_id=None, opportunity_title='Renamed'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        application.refresh_from_db()
        self.assertEqual(application.status, 'accepted')
        self.assertEqual(application.cover_letter, 'Original letter')
        self.assertEqual(application.opportunity_title, 'Data Intern')
        self.assertIsNone(application.certificate_id)

    def test_non_owner_employer_forbidden(self):
        application = self._pending()
        response = self._update(self.other_employer_token, application, status='accepted')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        application.refresh_from_db()
        self.assertEqual(application.status, 'pending')

    def test_student_may_only_withdraw_own(self):
        application = self._pending()

        response = self._update(self.student_token, application, status='accepted')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        response = self._update(self.other_student_token, application, status='withdrawn')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        response = self._update(self.student_token, application, status='withdrawn', feedback='ignored')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        application.refresh_from_db()
        self.assertEqual(application.status, 'withdrawn')
        self.assertEqual(application.feedback, '')

    def test_invalid_transition(self):
        application = self._pending()
        self._update(self.employer_token, application, status='rejected')

        response = self._update(self.employer_token, application, status='accepted')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        application.refresh_from_db()
        self.assertEqual(application.status, 'rejected')

    def test_completed_through_update_is_forbidden(self):
        application = self._pending()
        self._update(self.employer_token, application, status='accepted')

        response = self._update(self.admin_token, application, status='completed')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_unknown_status_rejected(self):
        application = self._pending()
        response = self._update(self.employer_token, application, status='hired')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_missing_application(self):
        url = reverse('update-application', args=[9999])
        response = self._send('put', url, self.employer_token, {'status': 'accepted'})
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        response = self._send('put', url, self.admin_token, {'status': 'accepted'})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_orphaned_application_admin_only(self):
        application = self._pending()
        self.opportunity.delete()

        response = self._update(self.employer_token, application, status='accepted')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        response = self._update(self.admin_token, application, status='rejected')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_student_applications_filtered_and_newest_first(self):
        second = make_opportunity(self.employer, 'Second')
        first_app = self._pending()
        second_app = Application.objects.create(student=self.student, opportunity=second, status='rejected')

        response = self._send('get', reverse('student-applications'), self.student_token)
        self.assertEqual([item['id'] for item in response.json()['results']], [second_app.id, first_app.id])

        response = self._send('get', reverse('student-applications') + '?status=pending', self.student_token)
        self.assertEqual([item['id'] for item in response.json()['results']], [first_app.id])

        response = self._send('get', reverse('student-applications') + '?status=bogus', self.student_token)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_opportunity_applications_owner_only(self):
        application = self._pending()
        self._pending(self.other_student)
        url = reverse('opportunity-applications', args=[self.opportunity.id])

        response = self._send('get', url, self.employer_token)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()['count'], 2)
        self.assertIn(application.id, [item['id'] for item in response.json()['results']])

        response = self._send('get', url, self.other_employer_token)
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        response = self._send('get', url, self.admin_token)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
