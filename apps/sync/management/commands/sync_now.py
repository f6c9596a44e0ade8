from django.core.management.base import BaseCommand

from apps.sync.services import run_sync_cycle, get_sync_status


class Command(BaseCommand):
    help = 'Runs one sync cycle against SYNC_AUTHORITY_URL and prints the result.'

    def add_arguments(self, parser):
        parser.add_argument(
            '--status',
            action='store_true',
            help='Only print queue status, do not sync',
        )

    def handle(self, *args, **options):
        if options['status']:
            status = get_sync_status()
            for key, value in status.items():
                self.stdout.write(f'{key}: {value}')
            return

        result = run_sync_cycle()
        summary = (
            f'synced={result.synced_items} failed={result.failed_items} '
            f'conflicts={result.conflicts} dead_lettered={result.dead_lettered}'
        )

        if result.success:
            self.stdout.write(self.style.SUCCESS(f'Sync completed: {summary}'))
        else:
            self.stdout.write(self.style.ERROR(f'Sync failed: {summary}'))

        for error in result.errors:
            self.stdout.write(f' - [{error.operation}] {error.task_id or "-"}: {error.error}')
