from django.core.management.base import BaseCommand

from safety.tasks import SWEEPS


class Command(BaseCommand):
    help = "Run the periodic trust & safety sweeps once (suspension expiry, appeal expiry, reputation recovery)."

    def add_arguments(self, parser):
        parser.add_argument("--only", choices=sorted(SWEEPS), action="append", help="Run only the named sweep (repeatable).")

    def handle(self, *args, **options):
        names = options.get("only") or list(SWEEPS)
        for name in names:
            result = SWEEPS[name]()
            self.stdout.write(self.style.SUCCESS(f"[{name}] processed={result['processed']} changed={result['changed']} failed={result['failed']}"))
