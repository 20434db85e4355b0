import logging

from django.core.exceptions import ValidationError as ModelValidationError
from django.db import IntegrityError, transaction
from django.db.models import Q

from main import exceptions as errors
from profiles.services import get_employer_profile, get_student_profile, require_admin, resolve_skill_ids
from .models import Opportunity, OpportunitySkill, SavedOpportunity, Application
from .serializers import (
    OpportunityCreateSerializer,
    EmployerOpportunityUpdateSerializer,
    AdminOpportunityUpdateSerializer,
)

logger = logging.getLogger(__name__)


def public_opportunities():
    """Listings students can discover: active and verified."""
    return Opportunity.objects.filter(is_active=True, is_verified=True)


def _base_queryset():
    return Opportunity.objects.select_related('employer').prefetch_related('skills')


def _full_clean(opportunity):
    try:
        opportunity.full_clean(exclude=['employer', 'skills'])
    except ModelValidationError as e:
        details = e.message_dict
        message = next(iter(details.values()))[0]
        raise errors.ValidationError(message, details=details)


def _attach_skills(opportunity, skill_ids):
    OpportunitySkill.objects.bulk_create(
        [OpportunitySkill(opportunity=opportunity, skill_id=skill_id) for skill_id in resolve_skill_ids(skill_ids)],
        ignore_conflicts=True
    )


def get_owned_opportunity(principal, opportunity_id, for_update=False):
    """Return the opportunity if the caller owns it or is an admin.

    Non-admins get ``Forbidden`` both for listings they do not own and for
    ones that do not exist.
    """
    queryset = Opportunity.objects.select_related('employer')
    if for_update:
        queryset = queryset.select_for_update()

    if principal is not None and principal.is_admin:
        try:
            return queryset.get(pk=opportunity_id)
        except Opportunity.DoesNotExist:
            raise errors.NotFound("Opportunity not found")

    employer = get_employer_profile(principal)
    opportunity = queryset.filter(pk=opportunity_id).first()
    if opportunity is None or opportunity.employer_id != employer.id:
        raise errors.Forbidden("You can only manage your own opportunities")
    return opportunity


def create_opportunity(principal, data):
    employer = get_employer_profile(principal)

    serializer = OpportunityCreateSerializer(data=data)
    if not serializer.is_valid():
        raise errors.ValidationError.from_serializer(serializer)
    attrs = dict(serializer.validated_data)
    skill_ids = attrs.pop('skills', None)

    with transaction.atomic():
        opportunity = Opportunity(employer=employer, **attrs)
        # New listings start visible but unverified
        opportunity.is_active = True
        opportunity.is_verified = False
        _full_clean(opportunity)
        opportunity.save()

        if skill_ids:
            _attach_skills(opportunity, skill_ids)

    logger.info("Employer %s created opportunity %s", employer.id, opportunity.id)
    return opportunity


def update_opportunity(principal, opportunity_id, data):
    serializer_class = AdminOpportunityUpdateSerializer if principal.is_admin else EmployerOpportunityUpdateSerializer
    serializer = serializer_class(data=data)
    if not serializer.is_valid():
        raise errors.ValidationError.from_serializer(serializer)
    attrs = dict(serializer.validated_data)
    skill_ids = attrs.pop('skills', None)

    with transaction.atomic():
        opportunity = get_owned_opportunity(principal, opportunity_id, for_update=True)
        for field, value in attrs.items():
            setattr(opportunity, field, value)
        _full_clean(opportunity)
        opportunity.save()

        if skill_ids:
            _attach_skills(opportunity, skill_ids)

    logger.info("Opportunity %s updated by %s %s", opportunity.id, principal.role, principal.user_id)
    return opportunity


def delete_opportunity(principal, opportunity_id):
    """Delete the listing. Its applications stay, pointing at nothing."""
    with transaction.atomic():
        opportunity = get_owned_opportunity(principal, opportunity_id, for_update=True)
        retained = Application.objects.filter(opportunity=opportunity).count()
        opportunity.delete()

    logger.info("Opportunity %s deleted by %s %s (%d applications retained)",
                opportunity_id, principal.role, principal.user_id, retained)


def list_opportunities(principal, filters=None):
    """Listings visible to the caller, newest first.

    Filters combine with AND. ``skills`` keeps listings that require every
    given skill id.
    """
    filters = filters or {}
    queryset = _base_queryset()

    if principal is not None and principal.is_employer:
        queryset = queryset.filter(employer=get_employer_profile(principal))
    elif principal is not None and principal.is_admin and filters.get('show_all'):
        pass
    else:
        queryset = queryset.filter(is_active=True, is_verified=True)

    if filters.get('category'):
        queryset = queryset.filter(category=filters['category'])

    if filters.get('location_type'):
        queryset = queryset.filter(location_type=filters['location_type'])

    for skill_id in filters.get('skills') or ():
        queryset = queryset.filter(skills__id=skill_id)

    search = (filters.get('search') or '').strip()
    if search:
        queryset = queryset.filter(
            Q(title__icontains=search) |
            Q(description__icontains=search) |
            Q(employer__company_name__icontains=search)
        )

    return list(queryset.distinct().order_by('-created_at', '-id'))


def get_opportunity(principal, opportunity_id):
    """Return ``(opportunity, extra)``.

    ``extra`` carries the student's saved/applied state for student callers.
    """
    try:
        opportunity = _base_queryset().get(pk=opportunity_id)
    except Opportunity.DoesNotExist:
        raise errors.NotFound("Opportunity not found")

    if not opportunity.is_public:
        is_owner = False
        if principal is not None and principal.is_employer:
            is_owner = opportunity.employer.user_id == principal.user_id
        if not (is_owner or (principal is not None and principal.is_admin)):
            raise errors.NotFound("Opportunity not found")

    extra = {}
    if principal is not None and principal.is_student:
        student = get_student_profile(principal)
        application = Application.objects.filter(student=student, opportunity=opportunity).first()
        extra = {
            'is_saved': SavedOpportunity.objects.filter(student=student, opportunity=opportunity).exists(),
            'has_applied': application is not None,
            'application_status': application.status if application else None,
        }
    return opportunity, extra


def verify_opportunity(principal, opportunity_id):
    """Admin approval. Leaves is_active alone."""
    require_admin(principal)
    with transaction.atomic():
        try:
            opportunity = Opportunity.objects.select_for_update().get(pk=opportunity_id)
        except Opportunity.DoesNotExist:
            raise errors.NotFound("Opportunity not found")
        if not opportunity.is_verified:
            opportunity.is_verified = True
            opportunity.save(update_fields=['is_verified', 'updated_at'])

    logger.info("Opportunity %s verified by admin %s", opportunity.id, principal.user_id)
    return opportunity


# Saved opportunities

def save_opportunity(principal, opportunity_id):
    student = get_student_profile(principal)
    opportunity = public_opportunities().filter(pk=opportunity_id).first()
    if opportunity is None:
        raise errors.NotFound("Opportunity not found")

    try:
        with transaction.atomic():
            SavedOpportunity.objects.get_or_create(student=student, opportunity=opportunity)
    except IntegrityError:
        # Saved concurrently; saving is idempotent
        pass
    return opportunity


def unsave_opportunity(principal, opportunity_id):
    student = get_student_profile(principal)
    SavedOpportunity.objects.filter(student=student, opportunity_id=opportunity_id).delete()


def list_saved_opportunities(principal):
    student = get_student_profile(principal)
    saved = (
        SavedOpportunity.objects
        .filter(student=student)
        .select_related('opportunity__employer')
        .prefetch_related('opportunity__skills')
        .order_by('-saved_at', '-id')
    )
    return [entry.opportunity for entry in saved]
