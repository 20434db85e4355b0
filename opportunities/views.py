from django.http import JsonResponse
from django.views.decorators.http import require_http_methods, require_GET
from django.views.decorators.csrf import csrf_exempt
from users.decorators import authenticate_token, strict_body_to_json, role_required, service_view
from main.exceptions import ValidationError
from . import services, workflow
from .models import Opportunity
from .serializers import OpportunitySerializer, ApplicationSerializer


def parse_opportunity_filters(params):
    filters = {
        'category': params.get('category', '').strip(),
        'search': params.get('search', '').strip(),
        'show_all': params.get('show_all', '').lower() == 'true',
        'skills': [],
    }

    location_type = params.get('location_type', '').strip()
    if location_type:
        if location_type not in dict(Opportunity.LOCATION_TYPE_CHOICES):
            raise ValidationError(f"Invalid location_type: {location_type}")
        filters['location_type'] = location_type

    raw_skills = []
    for value in params.getlist('skills'):
        raw_skills.extend(part for part in value.split(',') if part.strip())
    try:
        filters['skills'] = [int(skill_id) for skill_id in raw_skills]
    except ValueError:
        raise ValidationError("Skill filters must be integer ids")

    return filters


# Catalog

@csrf_exempt
@require_http_methods(["GET", "POST"])
@service_view
@strict_body_to_json
def opportunity_list(request):
    if request.method == 'POST':
        return create_opportunity(request)

    filters = parse_opportunity_filters(request.GET)
    opportunities = services.list_opportunities(request.principal, filters)
    return JsonResponse({
        'success': True,
        'count': len(opportunities),
        'results': OpportunitySerializer(opportunities, many=True).data,
        'filters': {key: value for key, value in filters.items() if value}
    })


@authenticate_token
@role_required('employer')
def create_opportunity(request):
    opportunity = services.create_opportunity(request.principal, request.parsed_data)
    return JsonResponse({
        'success': True,
        'message': 'Opportunity created. It will be listed once verified by an admin.',
        'opportunity': OpportunitySerializer(opportunity).data
    }, status=201)


@csrf_exempt
@require_http_methods(["GET", "PUT", "DELETE"])
@service_view
@strict_body_to_json
def opportunity_detail(request, opportunity_id):
    if request.method == 'GET':
        opportunity, extra = services.get_opportunity(request.principal, opportunity_id)
        return JsonResponse({
            'success': True,
            'opportunity': {**OpportunitySerializer(opportunity).data, **extra}
        })
    return manage_opportunity(request, opportunity_id)


@authenticate_token
@role_required('employer', 'admin')
def manage_opportunity(request, opportunity_id):
    if request.method == 'DELETE':
        services.delete_opportunity(request.principal, opportunity_id)
        return JsonResponse({'success': True, 'message': 'Opportunity deleted'})

    opportunity = services.update_opportunity(request.principal, opportunity_id, request.parsed_data)
    return JsonResponse({
        'success': True,
        'opportunity': OpportunitySerializer(opportunity).data
    })


# Saved

@csrf_exempt
@require_http_methods(["POST", "DELETE"])
@authenticate_token
@role_required('student')
@service_view
def save_opportunity(request, opportunity_id):
    if request.method == 'DELETE':
        services.unsave_opportunity(request.principal, opportunity_id)
        return JsonResponse({'success': True, 'saved': False})

    services.save_opportunity(request.principal, opportunity_id)
    return JsonResponse({'success': True, 'saved': True})


@csrf_exempt
@require_GET
@authenticate_token
@role_required('student')
@service_view
def saved_opportunities(request):
    opportunities = services.list_saved_opportunities(request.principal)
    return JsonResponse({
        'success': True,
        'count': len(opportunities),
        'results': OpportunitySerializer(opportunities, many=True).data
    })


# Applications

@csrf_exempt
@require_http_methods(["POST"])
@authenticate_token
@role_required('student')
@service_view
@strict_body_to_json
def apply(request):
    application = workflow.create_application(request.principal, request.parsed_data)
    return JsonResponse({
        'success': True,
        'message': 'Application submitted successfully',
        'application': ApplicationSerializer(application).data
    }, status=201)


@csrf_exempt
@require_GET
@authenticate_token
@role_required('student')
@service_view
def student_applications(request):
    applications = workflow.get_student_applications(request.principal, request.GET.get('status') or None)
    return JsonResponse({
        'success': True,
        'count': len(applications),
        'results': ApplicationSerializer(applications, many=True).data
    })


@csrf_exempt
@require_GET
@authenticate_token
@role_required('employer', 'admin')
@service_view
def opportunity_applications(request, opportunity_id):
    applications = workflow.get_opportunity_applications(
        request.principal,
        opportunity_id,
        request.GET.get('status') or None
    )
    return JsonResponse({
        'success': True,
        'count': len(applications),
        'results': ApplicationSerializer(applications, many=True).data
    })


@csrf_exempt
@require_http_methods(["PUT"])
@authenticate_token
@service_view
@strict_body_to_json
def update_application(request, application_id):
    application = workflow.update_application(request.principal, application_id, request.parsed_data)
    return JsonResponse({
        'success': True,
        'application': ApplicationSerializer(application).data
    })
