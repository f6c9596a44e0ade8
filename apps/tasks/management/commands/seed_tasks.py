from django.core.management.base import BaseCommand

from apps.tasks.dtos import TaskIn
from apps.tasks.models import Task
from apps.sync.models import SyncQueueEntry, DeadLetterEntry
from apps.tasks import services

SAMPLE_TASKS = [
    ('Buy groceries', 'Milk, eggs, bread'),
    ('Renew passport', None),
    ('Book dentist appointment', 'Ask about the cleaning'),
    ('Water the plants', None),
    ('Prepare sprint demo', 'Sync engine walkthrough'),
]


class Command(BaseCommand):
    help = 'Seeds the local replica with sample tasks (each queued for sync).'

    def add_arguments(self, parser):
        parser.add_argument(
            '--clean',
            action='store_true',
            help='Delete existing tasks and sync queue data before seeding',
        )

    def handle(self, *args, **options):
        if options['clean']:
            self.stdout.write(self.style.WARNING('Cleaning tasks and sync queue...'))
            SyncQueueEntry.objects.all().delete()
            DeadLetterEntry.objects.all().delete()
            Task.objects.all().delete()

        self.stdout.write('Seeding Tasks...')
        for title, description in SAMPLE_TASKS:
            task = services.create_task(TaskIn(title=title, description=description))
            self.stdout.write(f' - Created {task.title} ({task.id})')

        self.stdout.write(self.style.SUCCESS('Seeding completed successfully.'))
