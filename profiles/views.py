from django.http import JsonResponse
from django.views.decorators.http import require_http_methods, require_GET
from django.views.decorators.csrf import csrf_exempt
from users.decorators import authenticate_token, strict_body_to_json, role_required, service_view
from main.exceptions import ValidationError
from . import services
from .serializers import SkillsInputSerializer
from .models import student_profile_to_dict, employer_profile_to_dict, skill_to_dict


@csrf_exempt
@require_GET
@service_view
def list_skills(request):
    return JsonResponse({
        "success": True,
        "skills": [skill_to_dict(skill) for skill in services.list_skills()]
    })


@csrf_exempt
@require_http_methods(["GET", "PUT"])
@authenticate_token
@role_required('student')
@service_view
@strict_body_to_json
def student_profile(request):
    if request.method == 'GET':
        profile = services.get_student_profile(request.principal)
    else:
        profile = services.update_student_profile(
            request.principal,
            request.parsed_data,
            cv_file=request.FILES.get('cv')
        )
    return JsonResponse({
        "success": True,
        "profile": student_profile_to_dict(profile)
    })


@csrf_exempt
@require_http_methods(["POST"])
@authenticate_token
@role_required('student')
@service_view
@strict_body_to_json
def add_skills(request):
    serializer = SkillsInputSerializer(data=request.parsed_data)
    if not serializer.is_valid():
        raise ValidationError.from_serializer(serializer)

    skills = services.add_student_skills(
        request.principal,
        skill_ids=serializer.validated_data['skill_ids'],
        skill_names=serializer.validated_data['skill_names']
    )
    return JsonResponse({
        "success": True,
        "skills": [skill_to_dict(skill) for skill in skills]
    })


@csrf_exempt
@require_http_methods(["DELETE"])
@authenticate_token
@role_required('student')
@service_view
def remove_skill(request, skill_id):
    skills = services.remove_student_skill(request.principal, skill_id)
    return JsonResponse({
        "success": True,
        "skills": [skill_to_dict(skill) for skill in skills]
    })


@csrf_exempt
@require_http_methods(["GET", "PUT"])
@authenticate_token
@role_required('employer')
@service_view
@strict_body_to_json
def employer_profile(request):
    if request.method == 'GET':
        profile = services.get_employer_profile(request.principal)
    else:
        profile = services.update_employer_profile(
            request.principal,
            request.parsed_data,
            logo_file=request.FILES.get('logo')
        )
    return JsonResponse({
        "success": True,
        "profile": employer_profile_to_dict(profile)
    })
