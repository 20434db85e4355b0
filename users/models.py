from django.db import models
from django.contrib.auth.hashers import make_password, check_password
from uuid import uuid4

from datetime import timedelta
from django.utils.timezone import now


class User(models.Model):
    ROLE_CHOICES = (
        ('student', 'Student'),
        ('employer', 'Employer'),
        ('admin', 'Admin'),
    )

    STATUS_CHOICES = (
        ('pending', 'Pending'),
        ('active', 'Active'),
        ('inactive', 'Inactive'),
        ('banned', 'Banned'),
    )

    email = models.EmailField(max_length=255, unique=True)
    password_hash = models.CharField(max_length=255)
    first_name = models.CharField(max_length=50, blank=True)
    last_name = models.CharField(max_length=50, blank=True)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='student')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    profile_image_url = models.CharField(max_length=255, blank=True, null=True)
    last_login = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.email

    def set_password(self, raw_password):
        """Hash and set the password."""
        self.password_hash = make_password(raw_password)

    def check_password(self, raw_password):
        """Check if the raw password matches the hashed password."""
        return check_password(raw_password, self.password_hash)

    @property
    def is_active(self):
        return self.status == 'active'

    def get_full_name(self):
        return f"{self.first_name} {self.last_name}".strip()


class Session(models.Model):
    """Bearer-token session bound to one user."""
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='sessions')
    token = models.UUIDField(default=uuid4, editable=False, unique=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    expires_at = models.DateTimeField(db_index=True, null=True)
    is_expired = models.BooleanField(default=False)

    @classmethod
    def create_session(cls, user, duration_hours=24):
        """Create a new session for the user."""
        expires_at = now() + timedelta(hours=duration_hours)
        return cls.objects.create(user=user, expires_at=expires_at)

    @classmethod
    def cleanup_expired(cls):
        """Flag every session past its expiry. Returns how many were flagged."""
        return cls.objects.filter(expires_at__lt=now(), is_expired=False).update(is_expired=True)

    def expire(self):
        """Mark the session as expired."""
        self.is_expired = True
        self.save(update_fields=['is_expired'])
