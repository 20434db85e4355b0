from django.contrib import admin
from .models import Certificate


@admin.register(Certificate)
class CertificateAdmin(admin.ModelAdmin):
    list_display = ('opportunity_title', 'student_name', 'employer_name', 'issued_at')
    search_fields = ('student_name', 'employer_name', 'opportunity_title')
    readonly_fields = ('id', 'issued_at')
    raw_id_fields = ('application', 'student', 'employer')
