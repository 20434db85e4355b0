from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST, require_GET

from . import services
from .decorators import authenticate_token, strict_body_to_json, service_view


@csrf_exempt
@require_POST
@service_view
@strict_body_to_json
def login(request):
    user, session = services.login_user(request.parsed_data)
    return JsonResponse({
        "success": True,
        "message": "Login successful.",
        "token": str(session.token),
        "user": {
            "id": user.id,
            "email": user.email,
            "role": user.role
        }
    }, status=200)


@csrf_exempt
@require_POST
@authenticate_token
@service_view
def logout(request):
    services.logout(request.session_token)
    return JsonResponse({
        "success": True,
        "message": "Logged out successfully."
    }, status=200)


@csrf_exempt
@require_GET
@authenticate_token
@service_view
def me(request):
    payload = services.current_user_payload(request.principal)
    return JsonResponse({"success": True, **payload}, status=200)


@csrf_exempt
@require_POST
@service_view
@strict_body_to_json
def register(request):
    user, session = services.register(request.parsed_data)

    response = {
        "success": True,
        "user": {
            "id": user.id,
            "email": user.email,
            "role": user.role,
            "status": user.status
        }
    }
    if session is not None:
        response["message"] = "Registration successful."
        response["token"] = str(session.token)
    else:
        response["message"] = "Registration successful. Your account is pending approval."
    return JsonResponse(response, status=201)
