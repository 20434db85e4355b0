"""
Application workflow.

    pending -> accepted | rejected   (owning employer, admin)
    pending -> withdrawn             (owning student)
    accepted -> completed            (certificate issuance only)

rejected, withdrawn and completed are terminal. A student gets one
application per opportunity, whatever became of the previous one.
"""
import logging

from django.db import IntegrityError, transaction

from main import exceptions as errors
from profiles.services import get_student_profile
from .models import Application
from .serializers import (
    ApplicationCreateSerializer,
    ReviewerApplicationUpdateSerializer,
    StudentApplicationUpdateSerializer,
)
from .services import public_opportunities, get_owned_opportunity
from .validations import validate_application_status, validate_status_filter

logger = logging.getLogger(__name__)


def _application_queryset():
    return Application.objects.select_related('student__user', 'opportunity__employer')


def create_application(principal, data):
    student = get_student_profile(principal)

    serializer = ApplicationCreateSerializer(data=data)
    if not serializer.is_valid():
        raise errors.ValidationError.from_serializer(serializer)
    attrs = serializer.validated_data

    opportunity = public_opportunities().filter(pk=attrs['opportunity_id']).first()
    if opportunity is None:
        raise errors.NotFound("Opportunity not found")

    try:
        with transaction.atomic():
            application = Application.objects.create(
                student=student,
                opportunity=opportunity,
                opportunity_title=opportunity.title,
                cover_letter=attrs['cover_letter'],
                status='pending',
            )
    except IntegrityError:
        raise errors.Conflict("You have already applied to this opportunity")

    logger.info("Student %s applied to opportunity %s (application %s)",
                student.id, opportunity.id, application.id)
    return application


def _check_actor(principal, application):
    if principal.is_admin:
        return
    if principal.is_student:
        if application.student.user_id != principal.user_id:
            raise errors.Forbidden("You can only update your own applications")
        return
    if principal.is_employer:
        opportunity = application.opportunity
        if opportunity is None or opportunity.employer.user_id != principal.user_id:
            raise errors.Forbidden("You can only review applications to your own opportunities")
        return
    raise errors.Forbidden()


def update_application(principal, application_id, data):
    """Move an application to a new status.

    Employers and admins may also set feedback; students may only withdraw.
    Keys outside the caller's variant are dropped.
    """
    if principal.is_student:
        serializer = StudentApplicationUpdateSerializer(data=data)
    else:
        serializer = ReviewerApplicationUpdateSerializer(data=data)
    if not serializer.is_valid():
        raise errors.ValidationError.from_serializer(serializer)
    attrs = serializer.validated_data

    with transaction.atomic():
        application = _application_queryset().select_for_update(of=('self',)).filter(pk=application_id).first()
        if application is None:
            if principal.is_admin:
                raise errors.NotFound("Application not found")
            raise errors.Forbidden("You are not authorized to update this application")

        _check_actor(principal, application)

        previous = application.status
        validate_application_status(previous, attrs['status'], principal.role)

        application.status = attrs['status']
        update_fields = ['status', 'updated_at']
        if 'feedback' in attrs:
            application.feedback = attrs['feedback']
            update_fields.append('feedback')
        application.save(update_fields=update_fields)

    logger.info("Application %s moved %s -> %s by %s %s",
                application.id, previous, application.status, principal.role, principal.user_id)
    return application


def get_student_applications(principal, status=None):
    student = get_student_profile(principal)
    validate_status_filter(status)

    queryset = _application_queryset().filter(student=student)
    if status:
        queryset = queryset.filter(status=status)
    return list(queryset.order_by('-applied_at', '-id'))


def get_opportunity_applications(principal, opportunity_id, status=None):
    validate_status_filter(status)
    opportunity = get_owned_opportunity(principal, opportunity_id)

    queryset = _application_queryset().filter(opportunity=opportunity)
    if status:
        queryset = queryset.filter(status=status)
    return list(queryset.order_by('-applied_at', '-id'))
