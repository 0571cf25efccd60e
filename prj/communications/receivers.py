"""
communications/receivers.py
───────────────────────────
Turns the ledger's committed events (finances.signals) into notifications.
Connected in CommunicationsConfig.ready().
"""

from django.dispatch import receiver

from finances import signals

from . import services


@receiver(signals.payment_approved)
def on_payment_approved(sender, payment, waived=False, **kwargs):
    services.send_payment_approved(payment, waived=waived)


@receiver(signals.payment_rejected)
def on_payment_rejected(sender, payment, reason='', **kwargs):
    services.send_payment_rejected(payment, reason)


@receiver(signals.expense_approved)
def on_expense_approved(sender, expense, **kwargs):
    services.send_expense_decision(expense, approved=True)


@receiver(signals.expense_rejected)
def on_expense_rejected(sender, expense, reason='', **kwargs):
    services.send_expense_decision(expense, approved=False, reason=reason)


@receiver(signals.threshold_crossed)
def on_threshold_crossed(sender, advisory, expense=None, **kwargs):
    services.send_low_balance_alert(advisory, expense)
