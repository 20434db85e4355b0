from django.db import models
from django.core.validators import MinValueValidator, MaxValueValidator
from users.models import User


def normalize_skill_name(name):
    return (name or '').strip().lower()


class Skill(models.Model):
    name = models.CharField(max_length=100, unique=True)
    category = models.CharField(max_length=50, blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['name']

    def save(self, *args, **kwargs):
        self.name = normalize_skill_name(self.name)
        super().save(*args, **kwargs)

    def __str__(self):
        return self.name


class StudentProfile(models.Model):
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='student_profile')

    institution = models.CharField(max_length=255, blank=True)
    program = models.CharField(max_length=255, blank=True)
    # 5 = postgraduate
    year_of_study = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        validators=[MinValueValidator(1), MaxValueValidator(5)]
    )
    bio = models.TextField(blank=True)
    cv_url = models.CharField(max_length=255, blank=True)
    is_profile_visible = models.BooleanField(default=True)

    skills = models.ManyToManyField(Skill, through='StudentSkill', related_name='students', blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Student Profile"
        verbose_name_plural = "Student Profiles"
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.user.email}'s Student Profile"


class StudentSkill(models.Model):
    student = models.ForeignKey(StudentProfile, on_delete=models.CASCADE, related_name='student_skills')
    skill = models.ForeignKey(Skill, on_delete=models.CASCADE, related_name='student_skills')
    added_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ('student', 'skill')


class EmployerProfile(models.Model):
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='employer_profile')

    company_name = models.CharField(max_length=100)
    industry = models.CharField(max_length=100, blank=True)
    description = models.TextField(blank=True)
    location = models.CharField(max_length=255, blank=True)
    website = models.CharField(max_length=255, blank=True)
    logo_url = models.CharField(max_length=255, blank=True)
    contact_phone = models.CharField(max_length=20, blank=True)

    # Only flipped through admin verification
    is_verified = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Employer Profile"
        verbose_name_plural = "Employer Profiles"
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.company_name}'s Profile"


def skill_to_dict(skill):
    return {'id': skill.id, 'name': skill.name, 'category': skill.category}


def student_profile_to_dict(profile: StudentProfile) -> dict:
    """Convert StudentProfile to frontend-friendly dictionary"""
    return {
        'type': 'student',
        'id': profile.id,
        'user_id': profile.user_id,
        'name': profile.user.get_full_name(),
        'email': profile.user.email,
        'education': {
            'institution': profile.institution,
            'program': profile.program,
            'year_of_study': profile.year_of_study,
        },
        'bio': profile.bio,
        'cv_url': profile.cv_url,
        'is_profile_visible': profile.is_profile_visible,
        'skills': [skill_to_dict(skill) for skill in profile.skills.all()],
        'dates': {
            'created': profile.created_at.isoformat(),
            'updated': profile.updated_at.isoformat()
        }
    }


def employer_profile_to_dict(profile: EmployerProfile) -> dict:
    """Convert EmployerProfile to frontend-friendly dictionary"""
    return {
        'type': 'employer',
        'id': profile.id,
        'user_id': profile.user_id,
        'company_name': profile.company_name,
        'industry': profile.industry,
        'description': profile.description,
        'location': profile.location,
        'contact': {
            'website': profile.website,
            'logo': profile.logo_url,
            'phone': profile.contact_phone,
            'email': profile.user.email,
        },
        'is_verified': profile.is_verified,
        'account_status': profile.user.status,
        'dates': {
            'created': profile.created_at.isoformat(),
            'updated': profile.updated_at.isoformat()
        }
    }
