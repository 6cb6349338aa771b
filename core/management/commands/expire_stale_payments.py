from django.conf import settings
from django.core.management.base import BaseCommand

from core.services.payments import expire_stale_payments


class Command(BaseCommand):
    help = "Mark pending payments the gateway never completed as failed."

    def add_arguments(self, parser):
        parser.add_argument('--hours', type=int, default=None,
                            help='Age threshold in hours (default: PAYMENT_PENDING_TTL_HOURS).')
        parser.add_argument('--dry-run', action='store_true', help='List stale payments without changing them.')

    def handle(self, *args, **opts):
        hours = opts['hours'] if opts['hours'] is not None else settings.PAYMENT_PENDING_TTL_HOURS
        expired = expire_stale_payments(older_than_hours=hours, dry_run=opts['dry_run'])
        for tran_id in expired:
            self.stdout.write(f"{'would expire' if opts['dry_run'] else 'expired'}: {tran_id}")
        verb = 'Found' if opts['dry_run'] else 'Expired'
        self.stdout.write(self.style.SUCCESS(f"{verb} {len(expired)} pending payment(s) older than {hours}h."))
