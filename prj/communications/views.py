"""
communications/views.py
────────────────────────
JSON views for the notification log.
"""

from django.contrib.auth.decorators import login_required
from django.http import JsonResponse

from finances.views.utils import treasurer_required

from .models import NotificationLog


def _log_json(log):
    return {
        'id':                log.pk,
        'recipient':         log.recipient_id,
        'notification_type': log.notification_type,
        'channel':           log.channel,
        'subject':           log.subject,
        'payment':           log.payment_id,
        'expense':           log.expense_id,
        'obligation':        log.obligation_id,
        'sent_at':           log.sent_at.isoformat(),
        'success':           log.success,
    }


@treasurer_required
def notification_log_view(req):
    """Treasurer-only: every notification sent, newest first."""
    logs = NotificationLog.objects.all()
    kind = req.GET.get('type')
    if kind:
        logs = logs.filter(notification_type=kind)
    return JsonResponse({'notifications': [_log_json(log) for log in logs[:200]]})


@login_required
def my_notifications_view(req):
    """The logged-in user's own notifications (the in-app inbox)."""
    logs = NotificationLog.objects.filter(recipient=req.user)[:50]
    return JsonResponse({'notifications': [_log_json(log) for log in logs]})
