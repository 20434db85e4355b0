from uuid import uuid4

from django.db import models
from profiles.models import StudentProfile, EmployerProfile


class Certificate(models.Model):
    """Completion record. Names and title are copied at issue time and never refreshed."""
    id = models.UUIDField(primary_key=True, default=uuid4, editable=False)
    application = models.ForeignKey(
        'opportunities.Application',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='certificates'
    )
    student = models.ForeignKey(StudentProfile, on_delete=models.CASCADE, related_name='certificates')
    employer = models.ForeignKey(EmployerProfile, on_delete=models.CASCADE, related_name='issued_certificates')

    student_name = models.CharField(max_length=255)
    employer_name = models.CharField(max_length=255)
    opportunity_title = models.CharField(max_length=200)

    description = models.TextField(blank=True)
    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)
    issued_at = models.DateTimeField(auto_now_add=True)
    # Rendering happens elsewhere; this only stores where the PDF ends up
    pdf_url = models.CharField(max_length=255, blank=True)

    class Meta:
        ordering = ['-issued_at']

    def __str__(self):
        return f"{self.opportunity_title} certificate for {self.student_name}"
