# recommendations/views.py
from django.conf import settings
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods
from users.decorators import authenticate_token, role_required, service_view
from main.exceptions import ValidationError
from opportunities.serializers import OpportunitySerializer
from profiles.services import get_student_profile
from .utils import get_student_recommendations


def parse_limit(raw):
    if raw in (None, ''):
        return settings.KIMCONNECT['RECOMMENDATION_LIMIT']
    try:
        limit = int(raw)
    except (TypeError, ValueError):
        raise ValidationError("limit must be a positive integer")
    if limit < 1:
        raise ValidationError("limit must be a positive integer")
    return limit


@csrf_exempt
@require_http_methods(["GET"])
@authenticate_token
@role_required('student')
@service_view
def student_recommendations(request):
    limit = parse_limit(request.GET.get('limit'))
    student = get_student_profile(request.principal)
    opportunities = get_student_recommendations(student, limit)

    data = []
    for opportunity in opportunities:
        item = OpportunitySerializer(opportunity).data
        item['match_score'] = opportunity.match_score
        data.append(item)

    return JsonResponse({
        'success': True,
        'count': len(data),
        'recommendations': data
    })
