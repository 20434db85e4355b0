import logging

from django.db import IntegrityError, transaction

from main import exceptions as errors
from .models import Skill, StudentProfile, StudentSkill, EmployerProfile, normalize_skill_name
from .serializers import StudentProfileUpdateSerializer, EmployerProfileUpdateSerializer
from .uploads import store_cv, store_logo

logger = logging.getLogger(__name__)


def get_student_profile(principal, for_update=False):
    if principal is None or not principal.is_student:
        raise errors.Forbidden("Student access only")
    queryset = StudentProfile.objects.select_related('user')
    if for_update:
        queryset = queryset.select_for_update()
    try:
        return queryset.get(user_id=principal.user_id)
    except StudentProfile.DoesNotExist:
        raise errors.NotFound("Student profile not found")


def get_employer_profile(principal, for_update=False):
    if principal is None or not principal.is_employer:
        raise errors.Forbidden("Employer access only")
    queryset = EmployerProfile.objects.select_related('user')
    if for_update:
        queryset = queryset.select_for_update()
    try:
        return queryset.get(user_id=principal.user_id)
    except EmployerProfile.DoesNotExist:
        raise errors.NotFound("Employer profile not found")


def require_admin(principal):
    if principal is None or not principal.is_admin:
        raise errors.Forbidden("Admin access only")


# Skills

def list_skills():
    return list(Skill.objects.order_by('name'))


def get_or_create_skill(name, category=''):
    """Return the skill for ``name`` after trimming and lowercasing it."""
    normalized = normalize_skill_name(name)
    if not normalized:
        raise errors.ValidationError("Skill name cannot be blank.")

    try:
        with transaction.atomic():
            skill, created = Skill.objects.get_or_create(name=normalized, defaults={'category': category or ''})
    except IntegrityError:
        # Another caller inserted the same name first
        return Skill.objects.get(name=normalized)

    if created:
        logger.info("Created skill %r", normalized)
    return skill


def resolve_skill_ids(skill_ids):
    """Check that every id names an existing skill and return the id set."""
    wanted = set(skill_ids)
    found = set(Skill.objects.filter(id__in=wanted).values_list('id', flat=True))
    missing = sorted(wanted - found)
    if missing:
        raise errors.ValidationError(f"Unknown skill id(s): {', '.join(map(str, missing))}")
    return found


def _attach_student_skills(profile, skill_ids):
    StudentSkill.objects.bulk_create(
        [StudentSkill(student=profile, skill_id=skill_id) for skill_id in skill_ids],
        ignore_conflicts=True
    )


def add_student_skills(principal, skill_ids=(), skill_names=()):
    """Additively associate skills with the student. Re-adding is a no-op."""
    profile = get_student_profile(principal)
    with transaction.atomic():
        ids = resolve_skill_ids(skill_ids)
        ids.update(get_or_create_skill(name).id for name in skill_names)
        _attach_student_skills(profile, ids)
    return list(profile.skills.order_by('name'))


def remove_student_skill(principal, skill_id):
    profile = get_student_profile(principal)
    StudentSkill.objects.filter(student=profile, skill_id=skill_id).delete()
    return list(profile.skills.order_by('name'))


# Profiles

def update_student_profile(principal, data, cv_file=None):
    serializer = StudentProfileUpdateSerializer(data=data)
    if not serializer.is_valid():
        raise errors.ValidationError.from_serializer(serializer)
    attrs = dict(serializer.validated_data)
    skill_ids = attrs.pop('skills', None)

    cv_url = store_cv(cv_file) if cv_file is not None else None

    with transaction.atomic():
        profile = get_student_profile(principal, for_update=True)
        for field, value in attrs.items():
            setattr(profile, field, value)
        if cv_url:
            profile.cv_url = cv_url
        profile.save()

        if skill_ids:
            _attach_student_skills(profile, resolve_skill_ids(skill_ids))

    logger.info("Student profile %s updated (%s)", profile.id, ', '.join(sorted(attrs)) or 'no fields')
    return profile


def update_employer_profile(principal, data, logo_file=None):
    if 'is_verified' in data:
        raise errors.Forbidden("Verification status can only be changed by an admin.")

    serializer = EmployerProfileUpdateSerializer(data=data)
    if not serializer.is_valid():
        raise errors.ValidationError.from_serializer(serializer)
    attrs = serializer.validated_data

    logo_url = store_logo(logo_file) if logo_file is not None else None

    with transaction.atomic():
        profile = get_employer_profile(principal, for_update=True)
        for field, value in attrs.items():
            setattr(profile, field, value)
        if logo_url:
            profile.logo_url = logo_url
        profile.save()

    logger.info("Employer profile %s updated", profile.id)
    return profile


# Admin verification

def list_employers(principal, verified=None):
    require_admin(principal)
    queryset = EmployerProfile.objects.select_related('user').order_by('-created_at')
    if verified is not None:
        queryset = queryset.filter(is_verified=verified)
    return list(queryset)


def verify_employer(principal, employer_profile_id):
    """Mark the employer verified and activate its pending account.

    Both writes commit together. Verifying twice is a no-op.
    """
    require_admin(principal)

    with transaction.atomic():
        try:
            profile = EmployerProfile.objects.select_for_update().select_related('user').get(pk=employer_profile_id)
        except EmployerProfile.DoesNotExist:
            raise errors.NotFound("Employer not found")

        if not profile.is_verified:
            profile.is_verified = True
            profile.save(update_fields=['is_verified', 'updated_at'])

        user = profile.user
        if user.status == 'pending':
            user.status = 'active'
            user.save(update_fields=['status', 'updated_at'])

    logger.info("Employer %s verified by admin %s", profile.id, principal.user_id)
    return profile
