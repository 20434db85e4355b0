from django.urls import path
from . import views

urlpatterns = [
    path('', views.issue_certificate, name='issue-certificate'),
    path('student/', views.student_certificates, name='student-certificates'),
    path('<uuid:certificate_id>/', views.certificate_detail, name='certificate-detail'),
]
