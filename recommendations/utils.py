# recommendations/utils.py
from django.conf import settings

from opportunities.services import public_opportunities

SKILL_POINTS = 2
PROGRAM_POINTS = 3
YEAR_POINTS = 2


def score_opportunity(opportunity, student, student_skill_ids):
    """
    Score how well an opportunity fits a student.

    +2 per required skill the student has, +3 when the required program
    matches (case-insensitive), +2 when the student's year meets the
    preferred year.
    """
    score = 0

    opportunity_skill_ids = {skill.id for skill in opportunity.skills.all()}
    score += len(opportunity_skill_ids & set(student_skill_ids)) * SKILL_POINTS

    required_program = (opportunity.required_program or '').strip().lower()
    if required_program and required_program == (student.program or '').strip().lower():
        score += PROGRAM_POINTS

    if opportunity.preferred_year and student.year_of_study and student.year_of_study >= opportunity.preferred_year:
        score += YEAR_POINTS

    return score


def get_student_recommendations(student, limit=None):
    """
    Get personalized opportunity recommendations for a student profile.

    Students without skills get no recommendations. Equal scores keep the
    newest opportunity first. Each result carries ``match_score``.
    """
    if limit is None:
        limit = settings.KIMCONNECT['RECOMMENDATION_LIMIT']

    student_skill_ids = set(student.skills.values_list('id', flat=True))
    if not student_skill_ids:
        return []

    pool = (
        public_opportunities()
        .select_related('employer')
        .prefetch_related('skills')
        .order_by('-created_at', '-id')
    )

    scored = []
    for opportunity in pool:
        opportunity.match_score = score_opportunity(opportunity, student, student_skill_ids)
        scored.append(opportunity)

    # sort is stable, so ties keep the newest-first pool order
    scored.sort(key=lambda opportunity: opportunity.match_score, reverse=True)
    return scored[:limit]
