"""
finances/services/deadlines.py
──────────────────────────────
Deadline Urgency Classifier.

For every active obligation with a deadline that applies to a student:

1. amount_paid = Σ approved, non-waived payments by that student.
2. status      = paid     if amount_paid ≥ obligation.amount or a waiver exists
                 partial  if amount_paid > 0 and the obligation allows partials
                 unpaid   otherwise
3. days_left   = ceil((deadline − now) / 1 day)
4. urgency     = critical if days_left < 0, or days_left ≤ 1 and not paid
                 high     if days_left ≤ 3 and not paid
                 medium   if days_left ≤ 7
                 low      otherwise

A reminder is shown while the obligation is not paid, or while a paid one is
at most 3 days out.  Anything more than STALE_REMINDER_DAYS overdue is
dropped.  The list is ordered by urgency, then by days_left.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from django.db import models
from django.utils import timezone

from ..constants import CRITICAL_DAYS, HIGH_DAYS, MEDIUM_DAYS, stale_reminder_days
from ..models import ReviewStatus
from .store import RecordStore

SECONDS_PER_DAY = 24 * 60 * 60


class PaymentState(models.TextChoices):
    PAID    = 'paid',    'Paid'
    PARTIAL = 'partial', 'Partially paid'
    UNPAID  = 'unpaid',  'Unpaid'


class Urgency(models.TextChoices):
    CRITICAL = 'critical', 'Critical'
    HIGH     = 'high',     'High'
    MEDIUM   = 'medium',   'Medium'
    LOW      = 'low',      'Low'


URGENCY_RANK = {
    Urgency.CRITICAL: 0,
    Urgency.HIGH:     1,
    Urgency.MEDIUM:   2,
    Urgency.LOW:      3,
}


@dataclass(frozen=True)
class DeadlineStatus:
    obligation_id: int
    title: str
    amount: Decimal
    deadline: datetime
    amount_paid: Decimal
    status: str
    days_left: int
    urgency: str

    @property
    def outstanding(self):
        if self.status == PaymentState.PAID:
            return Decimal('0')
        return max(self.amount - self.amount_paid, Decimal('0'))

    def as_dict(self):
        return {
            'obligation_id': self.obligation_id,
            'title':         self.title,
            'amount':        str(self.amount),
            'deadline':      self.deadline.isoformat(),
            'amount_paid':   str(self.amount_paid),
            'outstanding':   str(self.outstanding),
            'status':        str(self.status),
            'days_left':     self.days_left,
            'urgency':       str(self.urgency),
        }


# ── Pure building blocks ──────────────────────────────────────────────────────

def payment_state(obligation, payments):
    """
    ``(amount_paid, status)`` of one student's *payments* towards
    *obligation*.  Payments for other obligations are ignored.
    """
    relevant = [p for p in payments if p.obligation_id == obligation.pk]
    amount_paid = sum(
        (p.amount for p in relevant if p.is_collected), Decimal('0'),
    )
    waived = any(p.status == ReviewStatus.APPROVED and p.waived for p in relevant)

    if waived or amount_paid >= obligation.amount:
        return amount_paid, PaymentState.PAID
    if amount_paid > 0 and obligation.allows_partial:
        return amount_paid, PaymentState.PARTIAL
    return amount_paid, PaymentState.UNPAID


def days_until(deadline, now):
    return math.ceil((deadline - now).total_seconds() / SECONDS_PER_DAY)


def urgency_for(days_left, status):
    unpaid = status != PaymentState.PAID
    if days_left < 0 or (days_left <= CRITICAL_DAYS and unpaid):
        return Urgency.CRITICAL
    if days_left <= HIGH_DAYS and unpaid:
        return Urgency.HIGH
    if days_left <= MEDIUM_DAYS:
        return Urgency.MEDIUM
    return Urgency.LOW


def is_visible(days_left, status, stale_after=None):
    if stale_after is None:
        stale_after = stale_reminder_days()
    if days_left < -stale_after:
        return False
    return status != PaymentState.PAID or days_left <= HIGH_DAYS


def build_reminders(obligations, payments, now, student=None):
    """
    Sorted DeadlineStatus list for one student's *payments* over
    *obligations*.  Inactive obligations, obligations without a deadline and
    (when *student* is given) obligations not targeting the student's level
    are skipped.
    """
    reminders = []
    for obligation in obligations:
        if not obligation.is_active or obligation.deadline is None:
            continue
        if student is not None and not obligation.applies_to(student):
            continue

        amount_paid, status = payment_state(obligation, payments)
        days_left = days_until(obligation.deadline, now)
        if not is_visible(days_left, status):
            continue

        reminders.append(DeadlineStatus(
            obligation_id=obligation.pk,
            title=obligation.title,
            amount=obligation.amount,
            deadline=obligation.deadline,
            amount_paid=amount_paid,
            status=status,
            days_left=days_left,
            urgency=urgency_for(days_left, status),
        ))

    reminders.sort(key=lambda r: (URGENCY_RANK[r.urgency], r.days_left))
    return reminders


# ── Store-backed entry point ──────────────────────────────────────────────────

def classify_deadlines(student, now=None, store=None):
    """DeadlineStatus list for *student* against the current records."""
    store = store or RecordStore()
    now = now or timezone.now()
    obligations = store.list_obligations(is_active=True, deadline__isnull=False)
    payments = store.list_payments(student=student, status=ReviewStatus.APPROVED)
    return build_reminders(obligations, payments, now, student=student)
