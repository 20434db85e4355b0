from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError
from django.core.validators import validate_email

from users.models import User


class Command(BaseCommand):
    help = "Create an active admin account"

    def add_arguments(self, parser):
        parser.add_argument('email')
        parser.add_argument('password')
        parser.add_argument('--first-name', default='Admin')
        parser.add_argument('--last-name', default='')

    def handle(self, *args, **options):
        email = options['email'].strip().lower()
        try:
            validate_email(email)
        except ValidationError:
            raise CommandError(f"Invalid email: {email}")

        if len(options['password']) < 6:
            raise CommandError("Password must be at least 6 characters.")

        if User.objects.filter(email=email).exists():
            raise CommandError(f"A user with email {email} already exists.")

        user = User(
            email=email,
            first_name=options['first_name'],
            last_name=options['last_name'],
            role='admin',
            status='active',
        )
        user.set_password(options['password'])
        user.save()

        self.stdout.write(self.style.SUCCESS(f"Admin {email} created (id={user.id})"))
