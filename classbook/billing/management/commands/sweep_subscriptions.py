"""
Management command to apply overdue subscription transitions.

Every entitlement read already sweeps the school it concerns, so this is
optional. Running it from cron keeps statuses current for schools that
nobody has visited recently (admin listings, reports).

Usage:
    python manage.py sweep_subscriptions
    python manage.py sweep_subscriptions --school 42
"""

import logging

from django.core.management.base import BaseCommand

from classbook.billing import lifecycle
from classbook.schools.models import School

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Apply overdue subscription status transitions for every school."

    def add_arguments(self, parser):
        parser.add_argument(
            "--school",
            type=int,
            help="Only sweep the school with this id.",
        )

    def handle(self, *args, **options):
        schools = School.objects.filter(is_active=True).order_by("pk")
        if options["school"]:
            schools = schools.filter(pk=options["school"])

        swept = 0
        changed = 0
        transitions = 0
        for school in schools:
            result = lifecycle.sweep(school)
            swept += 1
            if result.changed:
                changed += 1
                transitions += len(result.transitions)
                self.stdout.write(
                    f"  {school.name}: "
                    + ", ".join(
                        f"#{t.subscription_id} {t.old_status} -> {t.new_status}"
                        for t in result.transitions
                    ),
                )

        logger.info(
            "Swept %d schools, %d changed (%d transitions)",
            swept,
            changed,
            transitions,
        )
        self.stdout.write(
            self.style.SUCCESS(
                f"Swept {swept} schools: {changed} changed, "
                f"{transitions} transitions applied.",
            ),
        )
