# billing/management/commands/load_receipts.py
import csv
import datetime

from django.core.management.base import BaseCommand, CommandError

from billing.services import ReceiptLedger
from core.exceptions import ValidationError


class Command(BaseCommand):
    help = 'Register prepaid receipts from a CSV file with number, amount and optional date (YYYY-MM-DD) columns'

    def add_arguments(self, parser):
        parser.add_argument('path', help='CSV file exported from the bank or bursar')
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Validate the file without registering anything',
        )

    def handle(self, *args, **options):
        path = options['path']
        dry_run = options.get('dry_run')

        try:
            with open(path, newline='', encoding='utf-8-sig') as handle:
                rows = list(csv.DictReader(handle))
        except OSError as e:
            raise CommandError(f"Cannot read {path}: {e}")

        if rows and not {'number', 'amount'} <= set(rows[0]):
            raise CommandError("CSV must have 'number' and 'amount' columns")

        created = skipped = 0
        for line, row in enumerate(rows, start=2):
            number = (row.get('number') or '').strip()
            try:
                date = datetime.date.fromisoformat(row['date'].strip()) if row.get('date') else None
            except ValueError:
                self.stdout.write(self.style.WARNING(f"Line {line}: bad date '{row['date']}', skipped"))
                skipped += 1
                continue

            if dry_run:
                self.stdout.write(f"Would register {number} ({row.get('amount')})")
                continue

            try:
                ReceiptLedger.add(number, row.get('amount'), date)
                created += 1
            except ValidationError as e:
                self.stdout.write(self.style.WARNING(f"Line {line}: {e.message}"))
                skipped += 1

        if dry_run:
            self.stdout.write(self.style.SUCCESS(f"Dry run: {len(rows)} rows read"))
        else:
            self.stdout.write(self.style.SUCCESS(f"Registered {created} receipts, skipped {skipped}"))
