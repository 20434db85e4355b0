from django.db import models
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator, MaxValueValidator
from profiles.models import Skill, StudentProfile, EmployerProfile


class Opportunity(models.Model):
    LOCATION_TYPE_CHOICES = [
        ('remote', 'Remote'),
        ('in-person', 'In-person'),
        ('hybrid', 'Hybrid')
    ]

    DURATION_TYPE_CHOICES = [
        ('days', 'Days'),
        ('weeks', 'Weeks'),
        ('months', 'Months'),
        ('ongoing', 'Ongoing')
    ]

    employer = models.ForeignKey(EmployerProfile, on_delete=models.CASCADE, related_name='opportunities')
    title = models.CharField(max_length=200)
    description = models.TextField()
    category = models.CharField(max_length=100, blank=True)
    location_type = models.CharField(max_length=20, choices=LOCATION_TYPE_CHOICES, default='in-person')
    location = models.CharField(max_length=255, blank=True)
    deadline = models.DateField(null=True, blank=True)
    start_date = models.DateField(null=True, blank=True)
    duration_value = models.PositiveIntegerField(null=True, blank=True)
    duration_type = models.CharField(max_length=20, choices=DURATION_TYPE_CHOICES, blank=True)
    required_program = models.CharField(max_length=255, blank=True)
    preferred_year = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        validators=[MinValueValidator(1), MaxValueValidator(5)]
    )
    stipend = models.CharField(max_length=100, blank=True)

    # is_active is employer-controlled, is_verified admin-controlled
    is_active = models.BooleanField(default=True)
    is_verified = models.BooleanField(default=False)

    skills = models.ManyToManyField(Skill, through='OpportunitySkill', related_name='opportunities', blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name_plural = "Opportunities"
        ordering = ['-created_at', '-id']

    @property
    def is_public(self):
        return self.is_active and self.is_verified

    def clean(self):
        if self.location_type != 'remote' and not (self.location or '').strip():
            raise ValidationError({'location': "Location is required unless the opportunity is remote"})
        super().clean()

    def __str__(self):
        return f"{self.title} at {self.employer.company_name}"


class OpportunitySkill(models.Model):
    opportunity = models.ForeignKey(Opportunity, on_delete=models.CASCADE, related_name='opportunity_skills')
    skill = models.ForeignKey(Skill, on_delete=models.CASCADE, related_name='opportunity_skills')
    added_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ('opportunity', 'skill')


class SavedOpportunity(models.Model):
    student = models.ForeignKey(StudentProfile, on_delete=models.CASCADE, related_name='saved_opportunities')
    opportunity = models.ForeignKey(Opportunity, on_delete=models.CASCADE, related_name='saved_by')
    saved_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ('student', 'opportunity')
        ordering = ['-saved_at', '-id']


class Application(models.Model):
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('accepted', 'Accepted'),
        ('rejected', 'Rejected'),
        ('completed', 'Completed'),
        ('withdrawn', 'Withdrawn')
    ]

    student = models.ForeignKey(StudentProfile, on_delete=models.CASCADE, related_name='applications')
    # Kept after the opportunity is deleted; opportunity_title preserves what was applied to
    opportunity = models.ForeignKey(
        Opportunity,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='applications'
    )
    opportunity_title = models.CharField(max_length=200, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    cover_letter = models.TextField(blank=True)
    feedback = models.TextField(blank=True)
    certificate = models.OneToOneField(
        'certificates.Certificate',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='completed_application'
    )
    applied_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        unique_together = ('student', 'opportunity')
        ordering = ['-applied_at', '-id']

    def __str__(self):
        return f"{self.student.user.email} application for {self.opportunity_title}"
