"""
communications/models.py
─────────────────────────
Models for outbound communication tracking.

NotificationLog – records every email / in-app notice the ledger sends,
                  so the executives can see who was told what and when.
"""

from django.conf import settings
from django.db import models
from django.utils import timezone


class NotificationLog(models.Model):
    """
    One row per notification raised by a ledger event or by the deadline
    reminder command.

    Students without an email address still get an IN_APP row, which is what
    their dashboard reads.
    """

    class NotificationType(models.TextChoices):
        PAYMENT_APPROVED = 'payment_approved', 'Payment Approved'
        PAYMENT_WAIVED   = 'payment_waived',   'Payment Waived'
        PAYMENT_REJECTED = 'payment_rejected', 'Payment Rejected'
        EXPENSE_APPROVED = 'expense_approved', 'Expense Approved'
        EXPENSE_REJECTED = 'expense_rejected', 'Expense Rejected'
        LOW_BALANCE      = 'low_balance',      'Low Balance Alert'
        PAYMENT_DUE      = 'payment_due',      'Payment Due Reminder'

    class Channel(models.TextChoices):
        EMAIL  = 'email',  'Email'
        IN_APP = 'in_app', 'In-app'

    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name='notifications_received',
        help_text='The user who received this notification.',
    )
    notification_type = models.CharField(
        max_length=30,
        choices=NotificationType.choices,
    )
    channel = models.CharField(
        max_length=10,
        choices=Channel.choices,
        default=Channel.EMAIL,
    )
    subject = models.CharField(max_length=255, blank=True)
    body_preview = models.TextField(
        blank=True,
        help_text='First 500 characters of the message body (for the audit log).',
    )
    payment = models.ForeignKey(
        'finances.Payment',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='notifications',
    )
    expense = models.ForeignKey(
        'finances.Expense',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='notifications',
    )
    obligation = models.ForeignKey(
        'finances.PaymentObligation',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='notifications',
        help_text='Set on deadline reminders so repeats can be throttled.',
    )
    sent_at = models.DateTimeField(default=timezone.now)
    success = models.BooleanField(
        default=True,
        help_text='False if the send attempt failed (e.g. bounce, SMTP error).',
    )
    error_message = models.TextField(blank=True)

    class Meta:
        ordering = ['-sent_at']
        verbose_name = 'Notification Log'
        verbose_name_plural = 'Notification Logs'

    def __str__(self):
        recipient_label = str(self.recipient) if self.recipient else 'unknown'
        return (
            f"[{self.get_notification_type_display()}] "
            f"→ {recipient_label} "
            f"({self.sent_at.strftime('%Y-%m-%d %H:%M')})"
        )
