"""
finances/services/approval.py
─────────────────────────────
Approval State Machine for Payment and Expense records.

    pending ──► approved      (terminal)
        └─────► rejected      (terminal)

A transition is read → checked → committed with a compare-and-set UPDATE
(RecordStore.update_status).  Reading a terminal record raises
InvalidStateError; losing the race between read and write raises
AlreadyResolvedError.

Events are dispatched through finances.signals once the transaction commits.

amend_approved_expense is the one audited exception to terminal
immutability: it changes an expense in place and appends an
ExpenseAmendment row.
"""

import logging
from decimal import Decimal, InvalidOperation

from django.db import transaction
from django.utils import timezone

from .. import signals
from ..constants import to_minor_units
from ..exceptions import (
    ConsistencyError,
    InvalidStateError,
    NotFoundError,
    RiskNotAcknowledgedError,
    ValidationError,
)
from ..models import Expense, Payment, ReviewStatus
from .store import RecordStore
from .thresholds import AdvisoryLevel, classify_threshold

logger = logging.getLogger(__name__)

TRANSITIONS = {
    ReviewStatus.PENDING:  {ReviewStatus.APPROVED, ReviewStatus.REJECTED},
    ReviewStatus.APPROVED: set(),
    ReviewStatus.REJECTED: set(),
}

AMENDABLE_EXPENSE_FIELDS = ('title', 'description', 'amount', 'category', 'funded_by', 'spent_at')


def can_transition(current, target):
    return target in TRANSITIONS.get(current, set())


def ensure_transition(record, target):
    """InvalidStateError unless *record* may move to *target*."""
    if not can_transition(record.status, target):
        label = record._meta.verbose_name.lower()
        raise InvalidStateError(
            f'This {label} is already {record.status} and cannot be {target}.'
        )


def clean_reason(reason):
    reason = (reason or '').strip()
    if not reason:
        raise ValidationError('Please provide a reason.')
    return reason


# ── Payments ──────────────────────────────────────────────────────────────────

def approve_payment(payment_id, waived=False, actor=None, store=None):
    """
    Approve a pending payment.  With waived=True the approval satisfies the
    obligation without counting towards the collected balance.
    """
    store = store or RecordStore()
    payment = store.get_payment(payment_id)
    ensure_transition(payment, ReviewStatus.APPROVED)

    now = timezone.now()
    with transaction.atomic():
        payment = store.update_status(
            Payment, payment.pk,
            expected=ReviewStatus.PENDING,
            status=ReviewStatus.APPROVED,
            waived=bool(waived),
            approved_at=now,
            reviewed_at=now,
            reviewed_by=actor,
        )
        signals.emit_on_commit(
            signals.payment_approved, Payment,
            payment=payment,
            waived=payment.waived,
            amount_minor=0 if payment.waived else to_minor_units(payment.amount),
        )

    logger.info(
        'Payment %s approved%s (obligation %s, student %s)',
        payment.pk, ' as waiver' if payment.waived else '',
        payment.obligation_id, payment.student_id,
    )
    return payment


def reject_payment(payment_id, reason, actor=None, store=None):
    reason = clean_reason(reason)
    store = store or RecordStore()
    payment = store.get_payment(payment_id)
    ensure_transition(payment, ReviewStatus.REJECTED)

    with transaction.atomic():
        payment = store.update_status(
            Payment, payment.pk,
            expected=ReviewStatus.PENDING,
            status=ReviewStatus.REJECTED,
            rejection_reason=reason,
            reviewed_at=timezone.now(),
            reviewed_by=actor,
        )
        signals.emit_on_commit(
            signals.payment_rejected, Payment, payment=payment, reason=reason,
        )

    logger.info('Payment %s rejected: %s', payment.pk, reason)
    return payment


# ── Expenses ──────────────────────────────────────────────────────────────────

def approve_expense(expense_id, admin=None, acknowledged_risk=False, store=None):
    """
    Approve a pending expense.

    The Threshold Advisor is consulted first.  A critical advisory (the fund
    would go negative) requires acknowledged_risk=True, otherwise
    RiskNotAcknowledgedError is raised carrying the advisory.  The returned
    expense has the advisory attached as ``.advisory``.
    """
    store = store or RecordStore()
    expense = store.get_expense(expense_id)
    ensure_transition(expense, ReviewStatus.APPROVED)

    if expense.funded_by_id is not None:
        try:
            store.get_obligation(expense.funded_by_id)
        except NotFoundError:
            logger.warning(
                'Expense %s is funded by missing obligation %s', expense.pk, expense.funded_by_id,
            )
            raise ConsistencyError(
                f'Expense {expense.pk} is funded by obligation {expense.funded_by_id}, '
                f'which no longer exists. Amend its funding source first.',
                record=expense, source_id=expense.funded_by_id,
            )

    advisory = classify_threshold(expense.funded_by_id, expense.amount, store=store)
    if advisory.level == AdvisoryLevel.CRITICAL and not acknowledged_risk:
        raise RiskNotAcknowledgedError(
            f'{advisory.message} Confirm to approve anyway.', advisory=advisory,
        )

    with transaction.atomic():
        expense = store.update_status(
            Expense, expense.pk,
            expected=ReviewStatus.PENDING,
            status=ReviewStatus.APPROVED,
            approved_at=timezone.now(),
            approved_by=admin,
        )
        signals.emit_on_commit(
            signals.expense_approved, Expense,
            expense=expense, amount_minor=to_minor_units(expense.amount),
        )
        if advisory.is_risky:
            signals.emit_on_commit(
                signals.threshold_crossed, Expense,
                advisory=advisory, expense=expense, level=advisory.level,
            )

    expense.advisory = advisory
    logger.info(
        'Expense %s approved (source %s, advisory %s, balance after %s)',
        expense.pk, expense.funded_by_id, advisory.level, advisory.balance_after,
    )
    return expense


def reject_expense(expense_id, reason, actor=None, store=None):
    reason = clean_reason(reason)
    store = store or RecordStore()
    expense = store.get_expense(expense_id)
    ensure_transition(expense, ReviewStatus.REJECTED)

    with transaction.atomic():
        expense = store.update_status(
            Expense, expense.pk,
            expected=ReviewStatus.PENDING,
            status=ReviewStatus.REJECTED,
            rejection_reason=reason,
        )
        signals.emit_on_commit(
            signals.expense_rejected, Expense, expense=expense, reason=reason,
        )

    logger.info('Expense %s rejected: %s', expense.pk, reason)
    return expense


def amend_approved_expense(expense_id, fields, reason, performed_by=None, store=None):
    """
    Change an expense in place, whatever its status, and append an audit row
    with the previous and new values.  Only AMENDABLE_EXPENSE_FIELDS may be
    touched; ``funded_by`` takes an obligation id (or None for the general
    fund).  Returns ``(expense, amendment)``.
    """
    reason = clean_reason(reason)
    store = store or RecordStore()
    if not fields:
        raise ValidationError('Nothing to amend.')

    unknown = sorted(set(fields) - set(AMENDABLE_EXPENSE_FIELDS))
    if unknown:
        raise ValidationError(f'These fields cannot be amended: {", ".join(unknown)}.')

    current = store.get_expense(expense_id)
    changes = {}
    for name, value in fields.items():
        if name == 'amount':
            value = clean_amount(value)
        elif name == 'title':
            value = (value or '').strip()
            if not value:
                raise ValidationError('The expense title cannot be blank.')
        elif name == 'description':
            value = value or ''
        elif name == 'category':
            if value not in Expense.Category.values:
                raise ValidationError(f'Unknown expense category "{value}".')
        elif name == 'spent_at':
            if value is None:
                raise ValidationError('Please give the date the money was spent.')
        elif name == 'funded_by':
            if value is not None:
                store.get_obligation(value)
            name = 'funded_by_id'
        if getattr(current, name) != value:
            changes[name] = value

    if not changes:
        raise ValidationError('The amendment does not change anything.')

    expense, amendment = store.amend_expense(
        current.pk, changes, reason=reason, performed_by=performed_by,
    )
    logger.info(
        'Expense %s amended (%s): %s', expense.pk, ', '.join(sorted(changes)), reason,
    )
    return expense, amendment


def clean_amount(value):
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f'"{value}" is not a valid amount.')
    if not amount.is_finite() or amount <= 0:
        raise ValidationError('Amount must be greater than zero.')
    return amount
