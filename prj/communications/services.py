"""
communications/services.py
──────────────────────────
Service functions that tell people about ledger events.

These are called by the signal receivers and by management commands,
keeping all "talk to the outside world" logic in one place.

Functions
─────────
send_payment_approved(payment, waived)
    Tell the student their payment was approved (or waived).

send_payment_rejected(payment, reason)
    Tell the student their payment was rejected and why.

send_expense_decision(expense, approved, reason)
    Tell whoever recorded the expense how it was decided.

send_low_balance_alert(advisory, expense)
    Warn every active executive that a fund is low or overdrawn.

send_deadline_reminder(user, reminder)
    Remind a student about an obligation that is due soon.
"""

import logging

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.mail import send_mail
from django.template.loader import render_to_string
from django.utils import timezone

from finances.services.thresholds import AdvisoryLevel

from .models import NotificationLog

logger = logging.getLogger(__name__)


def _log(recipient, notification_type, channel, subject, body, payment=None,
         expense=None, obligation=None, success=True, error=''):
    """Internal helper to persist a NotificationLog entry."""
    return NotificationLog.objects.create(
        recipient=recipient,
        notification_type=notification_type,
        channel=channel,
        subject=subject,
        body_preview=body[:500],
        payment=payment,
        expense=expense,
        obligation=obligation,
        sent_at=timezone.now(),
        success=success,
        error_message=error,
    )


def _deliver(recipient, notification_type, subject, template, context, **links):
    """
    Email *recipient* when they have an address, otherwise leave an in-app
    notice.  Returns True unless the email send failed.
    """
    context = {
        **context,
        'user':      recipient,
        'login_url': getattr(settings, 'SITE_URL', '') + '/admin/login/',
    }
    body = render_to_string(template, context)

    if not recipient.email:
        _log(recipient, notification_type, NotificationLog.Channel.IN_APP,
             subject, body, **links)
        return True

    try:
        send_mail(
            subject=subject,
            message=body,
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[recipient.email],
            fail_silently=False,
        )
        _log(recipient, notification_type, NotificationLog.Channel.EMAIL,
             subject, body, **links)
        return True
    except Exception as exc:
        logger.warning('Could not email %s about %s: %s', recipient.email, notification_type, exc)
        _log(recipient, notification_type, NotificationLog.Channel.EMAIL,
             subject, body, success=False, error=str(exc), **links)
        return False


def send_payment_approved(payment, waived=False):
    """
    Notify the student that their payment was approved.
    Returns True on success, False on failure.
    """
    if waived:
        notification_type = NotificationLog.NotificationType.PAYMENT_WAIVED
        subject = f'Payment Waived: {payment.obligation.title}'
    else:
        notification_type = NotificationLog.NotificationType.PAYMENT_APPROVED
        subject = f'Payment Approved: {payment.obligation.title}'

    return _deliver(
        payment.student, notification_type, subject,
        'communications/email/payment_approved.txt',
        {'payment': payment, 'obligation': payment.obligation, 'waived': waived},
        payment=payment,
    )


def send_payment_rejected(payment, reason):
    """
    Notify the student that their payment was rejected.
    Returns True on success, False on failure.
    """
    subject = f'Payment Rejected: {payment.obligation.title}'
    return _deliver(
        payment.student, NotificationLog.NotificationType.PAYMENT_REJECTED, subject,
        'communications/email/payment_rejected.txt',
        {'payment': payment, 'obligation': payment.obligation, 'reason': reason},
        payment=payment,
    )


def send_expense_decision(expense, approved, reason=''):
    """
    Notify the executive who recorded *expense* of the decision.
    Returns False when nobody is on record to notify.
    """
    if expense.recorded_by is None:
        return False

    if approved:
        notification_type = NotificationLog.NotificationType.EXPENSE_APPROVED
        subject = f'Expense Approved: {expense.title}'
    else:
        notification_type = NotificationLog.NotificationType.EXPENSE_REJECTED
        subject = f'Expense Rejected: {expense.title}'

    return _deliver(
        expense.recorded_by, notification_type, subject,
        'communications/email/expense_decision.txt',
        {'expense': expense, 'approved': approved, 'reason': reason},
        expense=expense,
    )


def send_low_balance_alert(advisory, expense=None):
    """
    Warn every active executive that a funding source has dropped below the
    threshold.  Returns the number of executives reached.
    """
    User = get_user_model()
    executives = User.objects.filter(is_active=True).exclude(role=User.Role.STUDENT)

    subject = 'Fund Overdrawn' if advisory.level == AdvisoryLevel.CRITICAL else 'Low Balance Alert'
    context = {'advisory': advisory, 'expense': expense}
    reached = 0
    for executive in executives:
        if _deliver(
            executive, NotificationLog.NotificationType.LOW_BALANCE, subject,
            'communications/email/low_balance.txt', context,
            expense=expense,
        ):
            reached += 1
    return reached


def send_deadline_reminder(user, reminder, obligation=None):
    """
    Remind *user* about one DeadlineStatus from the urgency classifier.
    Returns True on success, False on failure.
    """
    subject = f'Payment Reminder: {reminder.title}'
    return _deliver(
        user, NotificationLog.NotificationType.PAYMENT_DUE, subject,
        'communications/email/payment_due.txt',
        {'reminder': reminder, 'overdue_days': max(-reminder.days_left, 0)},
        obligation=obligation,
    )
