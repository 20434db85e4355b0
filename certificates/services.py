import logging

from django.db import transaction
from django.utils.timezone import now

from main import exceptions as errors
from opportunities.models import Application
from profiles.models import StudentProfile, EmployerProfile
from profiles.services import get_employer_profile, get_student_profile
from .models import Certificate
from .serializers import CertificateCreateSerializer

logger = logging.getLogger(__name__)


def _display_name(user):
    return user.get_full_name() or user.email


def _issue_for_application(principal, attrs):
    """Create the certificate and complete the application in one transaction."""
    with transaction.atomic():
        application = (
            Application.objects
            .select_for_update(of=('self',))
            .select_related('student__user', 'opportunity__employer')
            .filter(pk=attrs['application_id'])
            .first()
        )
        if application is None:
            if principal.is_admin:
                raise errors.NotFound("Application not found")
            raise errors.Forbidden("You are not authorized to issue this certificate")

        opportunity = application.opportunity
        if principal.is_employer:
            if opportunity is None or opportunity.employer.user_id != principal.user_id:
                raise errors.Forbidden("You are not authorized to issue this certificate")

        if application.certificate_id is not None:
            raise errors.Conflict("A certificate has already been issued for this application")

        if application.status != 'accepted':
            raise errors.ValidationError(
                f"Only accepted applications can be completed (current status: {application.status})"
            )

        if opportunity is not None:
            employer = opportunity.employer
        else:
            employer = EmployerProfile.objects.filter(pk=attrs.get('employer_id')).first()
            if employer is None:
                raise errors.ValidationError("employer_id is required once the opportunity has been deleted")

        student = application.student
        certificate = Certificate.objects.create(
            application=application,
            student=student,
            employer=employer,
            student_name=_display_name(student.user),
            employer_name=employer.company_name,
            opportunity_title=opportunity.title if opportunity else application.opportunity_title,
            description=attrs['description'],
            start_date=attrs.get('start_date') or (opportunity.start_date if opportunity else None),
            end_date=attrs.get('end_date'),
        )

        application.status = 'completed'
        application.completed_at = now()
        application.certificate = certificate
        application.save(update_fields=['status', 'completed_at', 'certificate', 'updated_at'])

    logger.info("Certificate %s issued for application %s; application completed", certificate.id, application.id)
    return certificate


def _issue_standalone(principal, attrs):
    if principal.is_employer and get_employer_profile(principal).id != attrs['employer_id']:
        raise errors.Forbidden("You can only issue certificates as your own organisation")

    student = StudentProfile.objects.select_related('user').filter(pk=attrs['student_id']).first()
    if student is None:
        raise errors.NotFound("Student not found")
    employer = EmployerProfile.objects.filter(pk=attrs['employer_id']).first()
    if employer is None:
        raise errors.NotFound("Employer not found")

    certificate = Certificate.objects.create(
        student=student,
        employer=employer,
        student_name=_display_name(student.user),
        employer_name=employer.company_name,
        opportunity_title=attrs['opportunity_title'],
        description=attrs['description'],
        start_date=attrs.get('start_date'),
        end_date=attrs.get('end_date'),
    )
    logger.info("Certificate %s issued to student %s without an application", certificate.id, student.id)
    return certificate


def issue_certificate(principal, data):
    if principal is None or not (principal.is_employer or principal.is_admin):
        raise errors.Forbidden("Employer or Admin access only")

    serializer = CertificateCreateSerializer(data=data)
    if not serializer.is_valid():
        raise errors.ValidationError.from_serializer(serializer)
    attrs = serializer.validated_data

    if attrs.get('application_id'):
        return _issue_for_application(principal, attrs)
    return _issue_standalone(principal, attrs)


def list_student_certificates(principal):
    student = get_student_profile(principal)
    return list(Certificate.objects.filter(student=student).order_by('-issued_at'))


def get_certificate(principal, certificate_id):
    certificate = Certificate.objects.select_related('student', 'employer').filter(pk=certificate_id).first()
    if principal.is_admin:
        if certificate is None:
            raise errors.NotFound("Certificate not found")
        return certificate
    if certificate is None:
        raise errors.Forbidden("You are not authorized to view this certificate")
    if principal.is_student and certificate.student.user_id == principal.user_id:
        return certificate
    if principal.is_employer and certificate.employer.user_id == principal.user_id:
        return certificate
    raise errors.Forbidden("You are not authorized to view this certificate")
