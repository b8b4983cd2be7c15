from django.core.management.base import BaseCommand, CommandError

from inventory.exceptions import UnknownPolicy
from inventory.models import CostingPolicy
from inventory.services import DatabasePolicySwitch


class Command(BaseCommand):
    help = 'Switch the active inventory costing policy'

    def add_arguments(self, parser):
        parser.add_argument('policy', help=f"One of {', '.join(CostingPolicy.values)}")

    def handle(self, *args, **options):
        switch = DatabasePolicySwitch()
        try:
            switch.set_policy(options['policy'])
        except UnknownPolicy as exc:
            raise CommandError(str(exc))

        self.stdout.write(self.style.SUCCESS(f"Costing policy is now {switch.get_policy().value}"))
