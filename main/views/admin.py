from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods, require_GET
from users.decorators import authenticate_token, role_required, service_view
from main.exceptions import ValidationError
from main.stats import get_stats
from opportunities.serializers import OpportunitySerializer
from opportunities.services import verify_opportunity
from profiles.models import employer_profile_to_dict
from profiles.services import list_employers, verify_employer


def parse_verified(raw):
    if raw in (None, ''):
        return None
    value = raw.lower()
    if value not in ('true', 'false'):
        raise ValidationError("verified must be 'true' or 'false'")
    return value == 'true'


@csrf_exempt
@require_GET
@authenticate_token
@role_required('admin')
@service_view
def stats(request):
    return JsonResponse({'success': True, 'stats': get_stats(request.principal)})


@csrf_exempt
@require_GET
@authenticate_token
@role_required('admin')
@service_view
def employers(request):
    profiles = list_employers(request.principal, verified=parse_verified(request.GET.get('verified')))
    return JsonResponse({
        'success': True,
        'count': len(profiles),
        'results': [employer_profile_to_dict(profile) for profile in profiles]
    })


@csrf_exempt
@require_http_methods(["PUT"])
@authenticate_token
@role_required('admin')
@service_view
def verify_employer_view(request, employer_id):
    profile = verify_employer(request.principal, employer_id)
    return JsonResponse({
        'success': True,
        'message': 'Employer verified',
        'employer': employer_profile_to_dict(profile)
    })


@csrf_exempt
@require_http_methods(["PUT"])
@authenticate_token
@role_required('admin')
@service_view
def verify_opportunity_view(request, opportunity_id):
    opportunity = verify_opportunity(request.principal, opportunity_id)
    return JsonResponse({
        'success': True,
        'message': 'Opportunity verified',
        'opportunity': OpportunitySerializer(opportunity).data
    })
