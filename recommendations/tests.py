from django.test import TestCase, Client
from django.urls import reverse
from rest_framework import status

from main.factories import ApiClientMixin, make_student, make_employer, make_opportunity
from profiles.models import Skill
from .utils import score_opportunity, get_student_recommendations


class ScoreTests(TestCase):
    def setUp(self):
        self.employer = make_employer()
        self.student = make_student(program='Computer Science', year_of_study=3)
        self.python = Skill.objects.create(name='python')
        self.sql = Skill.objects.create(name='sql')
        self.student.skills.add(self.python, self.sql)
        self.skill_ids = {self.python.id, self.sql.id}

    def test_skill_program_and_year_points(self):
        opportunity = make_opportunity(
            self.employer, 'Full Match',
            skills=['python', 'sql', 'excel'],
            required_program='computer science',
            preferred_year=3
        )
        self.assertEqual(score_opportunity(opportunity, self.student, self.skill_ids), 2 * 2 + 3 + 2)

    def test_no_points_without_requirements(self):
        opportunity = make_opportunity(self.employer, 'Plain')
        self.assertEqual(score_opportunity(opportunity, self.student, self.skill_ids), 0)

    def test_year_below_floor_scores_nothing(self):
        opportunity = make_opportunity(self.employer, 'Senior', preferred_year=4)
        self.assertEqual(score_opportunity(opportunity, self.student, self.skill_ids), 0)

    def test_program_mismatch(self):
        opportunity = make_opportunity(self.employer, 'Law', required_program='Law')
        self.assertEqual(score_opportunity(opportunity, self.student, self.skill_ids), 0)


class RecommendationTests(TestCase):
    def setUp(self):
        self.employer = make_employer()
        self.student = make_student(program='Computer Science', year_of_study=2)
        self.python = Skill.objects.create(name='python')
        self.student.skills.add(self.python)

    def test_student_without_skills_gets_nothing(self):
        make_opportunity(self.employer, 'Anything', skills=['python'])
        other = make_student('noskills@test.com')
        self.assertEqual(get_student_recommendations(other), [])

    def test_only_public_listings_are_scored(self):
        public = make_opportunity(self.employer, 'Public', skills=['python'])
        make_opportunity(self.employer, 'Unverified', skills=['python'], is_verified=False)
        make_opportunity(self.employer, 'Inactive', skills=['python'], is_active=False)

        self.assertEqual([o.id for o in get_student_recommendations(self.student)], [public.id])

    def test_ranked_by_score_then_newest(self):
        older_tie = make_opportunity(self.employer, 'Older', skills=['python'])
        best = make_opportunity(self.employer, 'Best', skills=['python'], required_program='computer science')
        newer_tie = make_opportunity(self.employer, 'Newer', skills=['python'])
        unrelated = make_opportunity(self.employer, 'Unrelated')

        results = get_student_recommendations(self.student, limit=10)

        self.assertEqual([o.id for o in results], [best.id, newer_tie.id, older_tie.id, unrelated.id])
        self.assertEqual([o.match_score for o in results], [5, 2, 2, 0])

    def test_limit_truncates(self):
        for i in range(7):
            make_opportunity(self.employer, f'Opportunity {i}', skills=['python'])
        self.assertEqual(len(get_student_recommendations(self.student)), 5)
        self.assertEqual(len(get_student_recommendations(self.student, limit=2)), 2)


class RecommendationViewTests(ApiClientMixin, TestCase):
    def setUp(self):
        self.client = Client()
        self.employer = make_employer('hr@corp.com')
        self.student = make_student('student@test.com')
        self.student.skills.add(Skill.objects.create(name='python'))
        self.opportunity = make_opportunity(self.employer, 'Python Intern', skills=['python'])
        self.student_token = self._get_auth_token('student@test.com')
        self.url = reverse('student-recommendations')

    def test_recommendations_carry_match_score(self):
        response = self._send('get', self.url, self.student_token)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.json()['recommendations']
        self.assertEqual(data[0]['id'], self.opportunity.id)
        self.assertEqual(data[0]['match_score'], 2)

    def test_invalid_limit(self):
        for bad in ('0', '-1', 'abc'):
            response = self._send('get', f'{self.url}?limit={bad}', self.student_token)
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_students_only(self):
        token = self._get_auth_token('hr@corp.com')
        response = self._send('get', self.url, token)
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
