"""
communications/management/commands/send_deadline_reminders.py

    python manage.py send_deadline_reminders [--dry-run] [--urgency high]

Runs the deadline urgency classifier for every active student and reminds
them about obligations at or above the chosen urgency.  A student is
reminded about the same obligation at most once a day.
"""

from datetime import timedelta

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.utils import timezone

from finances.models import PaymentObligation
from finances.services import classify_deadlines
from finances.services.deadlines import URGENCY_RANK, Urgency

from communications.models import NotificationLog
from communications.services import send_deadline_reminder


class Command(BaseCommand):
    help = 'Email students about payment deadlines that are close or overdue'

    def add_arguments(self, parser):
        parser.add_argument(
            '--urgency',
            choices=[u.value for u in Urgency],
            default=Urgency.HIGH.value,
            help='Least urgent level that still gets a reminder (default: high).',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='List the reminders without sending anything.',
        )

    def handle(self, *args, **options):
        now = timezone.now()
        cutoff = URGENCY_RANK[options['urgency']]
        dry_run = options['dry_run']

        User = get_user_model()
        students = User.objects.filter(is_active=True, role=User.Role.STUDENT).order_by('pk')
        obligations = {o.pk: o for o in PaymentObligation.objects.filter(is_active=True)}

        sent = skipped = failed = 0
        for student in students:
            for reminder in classify_deadlines(student, now=now):
                if URGENCY_RANK[reminder.urgency] > cutoff or reminder.outstanding <= 0:
                    continue
                if self.recently_reminded(student, reminder.obligation_id, now):
                    skipped += 1
                    continue

                label = f'{student.username}: {reminder.title} ({reminder.urgency}, {reminder.days_left}d)'
                if dry_run:
                    self.stdout.write(f'Would remind {label}')
                    sent += 1
                    continue

                if send_deadline_reminder(student, reminder, obligation=obligations.get(reminder.obligation_id)):
                    self.stdout.write(f'Reminded {label}')
                    sent += 1
                else:
                    self.stdout.write(self.style.ERROR(f'Failed to remind {label}'))
                    failed += 1

        summary = f'{sent} reminder(s) {"listed" if dry_run else "sent"}, {skipped} skipped, {failed} failed.'
        self.stdout.write(self.style.SUCCESS(summary) if not failed else self.style.WARNING(summary))

    def recently_reminded(self, student, obligation_id, now):
        return NotificationLog.objects.filter(
            recipient=student,
            obligation_id=obligation_id,
            notification_type=NotificationLog.NotificationType.PAYMENT_DUE,
            success=True,
            sent_at__gte=now - timedelta(days=1),
        ).exists()
