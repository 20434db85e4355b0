from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods, require_GET
from users.decorators import authenticate_token, strict_body_to_json, role_required, service_view
from . import services
from .serializers import CertificateSerializer


@csrf_exempt
@require_http_methods(["POST"])
@authenticate_token
@role_required('employer', 'admin')
@service_view
@strict_body_to_json
def issue_certificate(request):
    certificate = services.issue_certificate(request.principal, request.parsed_data)
    return JsonResponse({
        'success': True,
        'message': 'Certificate issued',
        'certificate': CertificateSerializer(certificate).data
    }, status=201)


@csrf_exempt
@require_GET
@authenticate_token
@role_required('student')
@service_view
def student_certificates(request):
    certificates = services.list_student_certificates(request.principal)
    return JsonResponse({
        'success': True,
        'count': len(certificates),
        'results': CertificateSerializer(certificates, many=True).data
    })


@csrf_exempt
@require_GET
@authenticate_token
@service_view
def certificate_detail(request, certificate_id):
    certificate = services.get_certificate(request.principal, certificate_id)
    return JsonResponse({
        'success': True,
        'certificate': CertificateSerializer(certificate).data
    })
