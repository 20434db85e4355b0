from django.utils.timezone import now
from django.core.exceptions import ObjectDoesNotExist, ValidationError
from .models import Session
from .principal import Principal


def bearer_token(request):
    auth_header = request.headers.get('Authorization')
    if auth_header and auth_header.startswith('Bearer '):
        return auth_header.split(' ', 1)[1].strip()
    return None


class PrincipalMiddleware:
    """Attach ``request.principal`` from the bearer token, or None.

    Invalid or expired tokens leave the request anonymous; views that require
    authentication reject it through ``authenticate_token``.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request.principal = None
        request.session_token = None
        request.token_expired = False

        token = bearer_token(request)
        if token:
            try:
                session = Session.objects.select_related('user').get(token=token, is_expired=False)

                if session.expires_at and session.expires_at < now():
                    session.expire()
                    request.token_expired = True
                else:
                    request.principal = Principal.for_user(session.user)
                    request.session_token = session.token

            except (ObjectDoesNotExist, ValidationError, ValueError):
                # Malformed or unknown tokens stay anonymous
                pass

        return self.get_response(request)
