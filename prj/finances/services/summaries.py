"""
finances/services/summaries.py
──────────────────────────────
Dashboard figures derived from the same records as the ledger engine:
a student's personal summary and per-obligation collection progress.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.utils import timezone

from ..models import ReviewStatus
from .deadlines import PaymentState, payment_state
from .store import RecordStore

ZERO = Decimal('0')


@dataclass(frozen=True)
class PaymentSummary:
    total_paid: Decimal
    total_outstanding: Decimal
    completed_obligations: int
    pending_obligations: int
    next_due_date: datetime | None = None

    def as_dict(self):
        return {
            'total_paid':            str(self.total_paid),
            'total_outstanding':     str(self.total_outstanding),
            'completed_obligations': self.completed_obligations,
            'pending_obligations':   self.pending_obligations,
            'next_due_date':         self.next_due_date.isoformat() if self.next_due_date else None,
        }


@dataclass(frozen=True)
class ObligationProgress:
    obligation_id: int
    total_students: int
    paid_count: int
    pending_count: int
    unpaid_count: int
    total_collected: Decimal
    total_expected: Decimal

    def as_dict(self):
        return {
            'obligation_id':   self.obligation_id,
            'total_students':  self.total_students,
            'paid_count':      self.paid_count,
            'pending_count':   self.pending_count,
            'unpaid_count':    self.unpaid_count,
            'total_collected': str(self.total_collected),
            'total_expected':  str(self.total_expected),
        }


def summarize_student(obligations, payments, now):
    """
    PaymentSummary of one student's *payments* across *obligations*.
    Waived obligations count as completed and owe nothing.
    """
    total_paid = ZERO
    total_outstanding = ZERO
    completed = 0
    pending = 0
    upcoming = []

    for obligation in obligations:
        mine = [p for p in payments if p.obligation_id == obligation.pk]
        approved = [p for p in mine if p.status == ReviewStatus.APPROVED]
        amount_paid, status = payment_state(obligation, approved)

        total_paid += amount_paid
        if status == PaymentState.PAID:
            completed += 1
        else:
            total_outstanding += max(obligation.amount - amount_paid, ZERO)
            if obligation.deadline is not None and obligation.deadline >= now:
                upcoming.append(obligation.deadline)
        if any(p.status == ReviewStatus.PENDING for p in mine):
            pending += 1

    return PaymentSummary(
        total_paid=total_paid,
        total_outstanding=total_outstanding,
        completed_obligations=completed,
        pending_obligations=pending,
        next_due_date=min(upcoming) if upcoming else None,
    )


def payment_summary(student, now=None, store=None):
    store = store or RecordStore()
    now = now or timezone.now()
    obligations = [
        o for o in store.list_obligations(is_active=True) if o.applies_to(student)
    ]
    payments = store.list_payments(student=student)
    return summarize_student(obligations, payments, now)


def obligation_progress(obligation, store=None):
    """Collection progress of *obligation* across the students it targets."""
    store = store or RecordStore()
    User = get_user_model()
    students = [
        s for s in User.objects.filter(role=User.Role.STUDENT, is_active=True)
        if obligation.applies_to(s)
    ]
    student_ids = {s.pk for s in students}
    payments = [
        p for p in store.list_payments(obligation=obligation)
        if p.student_id in student_ids
    ]

    paid = pending = 0
    for student_id in student_ids:
        mine = [p for p in payments if p.student_id == student_id]
        _, status = payment_state(
            obligation, [p for p in mine if p.status == ReviewStatus.APPROVED],
        )
        if status == PaymentState.PAID:
            paid += 1
        elif any(p.status == ReviewStatus.PENDING for p in mine):
            pending += 1

    return ObligationProgress(
        obligation_id=obligation.pk,
        total_students=len(students),
        paid_count=paid,
        pending_count=pending,
        unpaid_count=len(students) - paid - pending,
        total_collected=sum((p.amount for p in payments if p.is_collected), ZERO),
        total_expected=obligation.amount * len(students),
    )
