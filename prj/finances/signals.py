"""
finances/signals.py
───────────────────
The ledger's outbound events.  Receivers (see communications/receivers.py)
only ever observe committed state: the approval functions dispatch these
through transaction.on_commit.

Every signal is sent with the record's model class as ``sender``; amounts in
the payload are integers in minor units (see finances.constants).

payment_approved  – payment, waived, amount_minor
payment_rejected  – payment, reason
expense_approved  – expense, amount_minor
expense_rejected  – expense, reason
threshold_crossed – advisory, expense, level
"""

import logging

from django.db import transaction
from django.dispatch import Signal

logger = logging.getLogger(__name__)

payment_approved  = Signal()
payment_rejected  = Signal()
expense_approved  = Signal()
expense_rejected  = Signal()
threshold_crossed = Signal()


def emit_on_commit(signal, sender, **payload):
    """
    Queue *signal* to fire once the surrounding transaction commits.  Outside
    a transaction Django runs the callback immediately.

    A failing receiver is logged and skipped: by the time it runs the
    transition is already stored.
    """
    def _send():
        logger.debug('Emitting event from %s: %s', sender.__name__, sorted(payload))
        for receiver, result in signal.send_robust(sender=sender, **payload):
            if isinstance(result, Exception):
                logger.warning(
                    'Receiver %r failed on event from %s: %s',
                    receiver, sender.__name__, result,
                    exc_info=(type(result), result, result.__traceback__),
                )

    transaction.on_commit(_send)
