import logging

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils.timezone import now

from main import exceptions as errors
from profiles.models import StudentProfile, EmployerProfile, student_profile_to_dict, employer_profile_to_dict
from .models import User, Session
from .serializers import LoginSerializer, RegisterSerializer

logger = logging.getLogger(__name__)


def user_to_dict(user):
    return {
        'id': user.id,
        'email': user.email,
        'first_name': user.first_name,
        'last_name': user.last_name,
        'role': user.role,
        'status': user.status,
        'profile_image_url': user.profile_image_url or '',
        'last_login': user.last_login.isoformat() if user.last_login else None,
        'created_at': user.created_at.isoformat(),
    }


def authenticate(email, password):
    """Return the active user owning these credentials.

    Unknown emails and wrong passwords raise the same ``InvalidCredentials``.
    """
    try:
        user = User.objects.get(email=email)
    except User.DoesNotExist:
        logger.info("Login failed for unknown email")
        raise errors.InvalidCredentials()

    if not user.check_password(password):
        logger.info("Login failed for user %s: bad password", user.id)
        raise errors.InvalidCredentials()

    if not user.is_active:
        raise errors.AccountNotActive(user.status)

    return user


def start_session(user):
    session = Session.create_session(user, settings.KIMCONNECT['SESSION_HOURS'])
    user.last_login = now()
    user.save(update_fields=['last_login'])
    return session


def login_user(data):
    serializer = LoginSerializer(data=data)
    if not serializer.is_valid():
        raise errors.ValidationError("Email and password are required.", details=serializer.errors)

    user = authenticate(serializer.validated_data['email'], serializer.validated_data['password'])
    session = start_session(user)
    logger.info("User %s logged in", user.id)
    return user, session


def register(data):
    """Create a user with an empty profile.

    Students are active and get a session straight away; employers wait
    for admin verification and get no session.
    """
    serializer = RegisterSerializer(data=data)
    if not serializer.is_valid():
        raise errors.ValidationError.from_serializer(serializer)
    attrs = serializer.validated_data
    role = attrs['role']

    if User.objects.filter(email=attrs['email']).exists():
        raise errors.Conflict("Email already exists.")

    try:
        with transaction.atomic():
            user = User(
                email=attrs['email'],
                first_name=attrs['first_name'].strip(),
                last_name=attrs['last_name'].strip(),
                role=role,
                status='active' if role == 'student' else 'pending',
            )
            user.set_password(attrs['password'])
            user.save()

            if role == 'student':
                StudentProfile.objects.create(user=user)
            else:
                EmployerProfile.objects.create(user=user, company_name=attrs['company_name'].strip())
    except IntegrityError:
        raise errors.Conflict("Email already exists.")

    logger.info("Registered %s %s", role, user.id)

    session = start_session(user) if user.is_active else None
    return user, session


def logout(token):
    updated = Session.objects.filter(token=token, is_expired=False).update(is_expired=True)
    if not updated:
        raise errors.Unauthenticated("Invalid token.")


def current_user_payload(principal):
    try:
        user = User.objects.get(pk=principal.user_id)
    except User.DoesNotExist:
        raise errors.Unauthenticated()

    payload = {'user': user_to_dict(user), 'profile': None}
    if user.role == 'student':
        profile = StudentProfile.objects.filter(user=user).prefetch_related('skills').first()
        if profile:
            payload['profile'] = student_profile_to_dict(profile)
    elif user.role == 'employer':
        profile = EmployerProfile.objects.filter(user=user).first()
        if profile:
            payload['profile'] = employer_profile_to_dict(profile)
    return payload
