from datetime import timedelta

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from careboard.services.dispatcher import Dispatcher, Operation
from careboard.services.ports import build_ports


class Command(BaseCommand):
    help = "Delete completed action plans whose completion is older than --days days."

    def add_arguments(self, parser):
        parser.add_argument('--days', type=int, default=None,
                            help='Age in days after completion (default CAREBOARD_ARCHIVE_AFTER_DAYS)')
        parser.add_argument('--dry-run', action='store_true', help='Only report what would be deleted')

    def handle(self, *args, **options):
        days = options['days'] if options['days'] is not None else settings.CAREBOARD_ARCHIVE_AFTER_DAYS
        if days < 1:
            raise CommandError('--days must be at least 1')
        cutoff = timezone.now() - timedelta(days=days)
        dry_run = options['dry_run']

        dispatcher = Dispatcher.from_ports(build_ports())
        total = 0
        for category in dispatcher.categories:
            n = dispatcher.dispatch(category, Operation.PURGE_COMPLETED, {'before': cutoff, 'dry_run': dry_run})
            total += n
            self.stdout.write(f'{category.value}: {n}')

        verb = 'Would delete' if dry_run else 'Deleted'
        self.stdout.write(self.style.SUCCESS(f'{verb} {total} completed action plans older than {days} days'))
