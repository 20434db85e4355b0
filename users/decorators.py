from functools import wraps
from django.http import JsonResponse
import json
import logging

from main import exceptions as errors

logger = logging.getLogger(__name__)

BODYLESS_METHODS = ('GET', 'HEAD', 'DELETE', 'OPTIONS')


def error_response(error):
    return JsonResponse(error.to_dict(), status=error.status)


def authenticate_token(view_func):
    """Reject requests without a valid bearer session."""
    @wraps(view_func)
    def _wrapped_view(request, *args, **kwargs):
        if getattr(request, 'principal', None) is None:
            if getattr(request, 'token_expired', False):
                return error_response(errors.Unauthenticated("Token has expired."))
            return error_response(errors.Unauthenticated("Authentication token is missing or invalid."))
        return view_func(request, *args, **kwargs)
    return _wrapped_view


def role_required(*roles):
    """Allow only principals whose role is one of ``roles``."""
    def decorator(view_func):
        @wraps(view_func)
        def wrapper(request, *args, **kwargs):
            principal = getattr(request, 'principal', None)
            if principal is None:
                return error_response(errors.Unauthenticated())
            if principal.role not in roles:
                allowed = ' or '.join(role.capitalize() for role in roles)
                return error_response(errors.Forbidden(f"{allowed} access only"))
            return view_func(request, *args, **kwargs)
        return wrapper
    return decorator


def strict_body_to_json(view_func):
    """Converts JSON/form-data/x-www-form-urlencoded requests to ``request.parsed_data``.

    Multipart bodies may carry their JSON payload in a ``data`` field next to
    uploaded files, which stay on ``request.FILES``.
    """
    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        request.parsed_data = {}
        if request.method in BODYLESS_METHODS:
            return view_func(request, *args, **kwargs)

        content_type = (request.content_type or '').lower()

        if content_type == 'application/json':
            if request.body:
                try:
                    request.parsed_data = json.loads(request.body)
                except json.JSONDecodeError:
                    return error_response(errors.ValidationError("Invalid JSON data"))
                if not isinstance(request.parsed_data, dict):
                    return error_response(errors.ValidationError("JSON body must be an object"))

        elif content_type.startswith('multipart/form-data'):
            if request.method != 'POST':
                # Django only parses multipart bodies for POST
                method = request.method
                request.method = 'POST'
                request._load_post_and_files()
                request.method = method
            if 'data' in request.POST:
                try:
                    request.parsed_data = json.loads(request.POST['data'] or '{}')
                except json.JSONDecodeError:
                    return error_response(errors.ValidationError("Invalid JSON in 'data' field"))
            else:
                request.parsed_data = request.POST.dict()

        elif content_type == 'application/x-www-form-urlencoded':
            request.parsed_data = request.POST.dict()

        elif request.body:
            return JsonResponse({
                "success": False,
                "message": "Unsupported Content-Type. Use JSON, form-data, or x-www-form-urlencoded",
                "code": "UNSUPPORTED_MEDIA_TYPE",
                "errno": 0x62
            }, status=415)

        return view_func(request, *args, **kwargs)
    return wrapper


def service_view(view_func):
    """Map service errors raised by the view to JSON responses."""
    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        try:
            return view_func(request, *args, **kwargs)
        except errors.ServiceError as e:
            if e.status >= 500:
                logger.error("%s %s failed: %s", request.method, request.path, e.message)
            return error_response(e)
        except Exception:
            logger.exception("Unhandled error in %s %s", request.method, request.path)
            return error_response(errors.InternalError())
    return wrapper
