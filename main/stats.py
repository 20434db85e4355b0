from django.db.models import Count

from certificates.models import Certificate
from opportunities.models import Opportunity, Application
from opportunities.validations import APPLICATION_STATUSES
from profiles.models import Skill, EmployerProfile
from profiles.services import require_admin
from users.models import User


def _counts_by(queryset, field, keys):
    counts = dict.fromkeys(keys, 0)
    for row in queryset.values(field).annotate(total=Count('id')):
        counts[row[field]] = row['total']
    return counts


def get_stats(principal):
    """Dashboard numbers for admins."""
    require_admin(principal)

    users = _counts_by(User.objects.all(), 'role', ('student', 'employer', 'admin'))
    users['total'] = sum(users.values())

    applications = _counts_by(Application.objects.all(), 'status', APPLICATION_STATUSES)
    applications['total'] = sum(applications.values())

    top_employers = (
        EmployerProfile.objects
        .annotate(listing_count=Count('opportunities'))
        .filter(listing_count__gt=0)
        .order_by('-listing_count', 'company_name')[:5]
    )
    top_skills = (
        Skill.objects
        .annotate(opportunity_count=Count('opportunity_skills'))
        .filter(opportunity_count__gt=0)
        .order_by('-opportunity_count', 'name')[:5]
    )

    return {
        'users': users,
        'opportunities': {
            'total': Opportunity.objects.count(),
            'active': Opportunity.objects.filter(is_active=True).count(),
            'verified': Opportunity.objects.filter(is_verified=True).count(),
        },
        'applications': applications,
        'certificates': Certificate.objects.count(),
        'pending_employers': EmployerProfile.objects.filter(is_verified=False).count(),
        'top_employers': [
            {'id': employer.id, 'company_name': employer.company_name, 'listings': employer.listing_count}
            for employer in top_employers
        ],
        'top_skills': [
            {'id': skill.id, 'name': skill.name, 'opportunities': skill.opportunity_count}
            for skill in top_skills
        ],
    }
