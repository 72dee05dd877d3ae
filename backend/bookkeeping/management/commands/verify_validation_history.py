from django.core.management.base import BaseCommand, CommandError

from bookkeeping.exceptions import TransactionNotFound
from bookkeeping.models import Transaction
from bookkeeping.services.transaction_store import TransactionStore
from bookkeeping.services.validation_history import ValidationHistoryLog


class Command(BaseCommand):
    help = 'Replay validation history and check it reproduces each stored status'

    def add_arguments(self, parser):
        parser.add_argument(
            '--transaction',
            dest='transaction_id',
            help='Only verify this transaction',
        )

    def handle(self, *args, **options):
        history = ValidationHistoryLog()

        if options.get('transaction_id'):
            try:
                transactions = [TransactionStore().get(options['transaction_id'])]
            except TransactionNotFound:
                raise CommandError(f"No transaction with id {options['transaction_id']}")
        else:
            transactions = Transaction.objects.order_by('created_at').iterator()

        checked = 0
        mismatches = 0

        for transaction in transactions:
            checked += 1
            result = history.verify(transaction)
            if result.ok:
                continue

            mismatches += 1
            detail = result.error or f"history replays to {result.replayed_status}"
            self.stdout.write(
                self.style.ERROR(
                    f"❌ {result.transaction_id}: stored {result.stored_status}, {detail}"
                )
            )

        self.stdout.write(f"Checked {checked} transactions")

        if mismatches:
            raise CommandError(f"Found {mismatches} transactions with inconsistent history")

        self.stdout.write(self.style.SUCCESS("✅ Validation history is consistent"))
