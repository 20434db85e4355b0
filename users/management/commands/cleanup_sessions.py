from django.core.management.base import BaseCommand

from users.models import Session


class Command(BaseCommand):
    help = "Mark bearer sessions past their expiry as expired"

    def handle(self, *args, **options):
        flagged = Session.cleanup_expired()
        self.stdout.write(self.style.SUCCESS(f"Expired {flagged} session(s)"))
