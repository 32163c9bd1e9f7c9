"""
Correct lapsed suspensions and subscriptions for every user at once.

Trust state is normally corrected lazily on the affected user's next
request. Schedule this command (cron, a worker) when stored flags must be
accurate without waiting for that request.
"""
from django.core.management.base import BaseCommand

from blog_trust.trust import TrustGate


class Command(BaseCommand):
    help = "Lift lapsed suspensions and downgrade Authors whose plan has expired."

    def handle(self, *args, **options):
        changed = TrustGate().sweep()
        self.stdout.write(self.style.SUCCESS(f"Corrected {changed} trust profile(s)."))
