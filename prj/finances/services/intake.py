"""
finances/services/intake.py
───────────────────────────
Creating new records: student payment submissions, recorded expenses and
executive waivers.  Everything enters the ledger as PENDING; waivers are
inserted and then pushed through approve_payment(waived=True) so they take
the same audited path as any other approval.
"""

import logging

from django.db import transaction

from ..exceptions import ValidationError
from ..models import Expense, Payment, ReviewStatus
from .approval import approve_payment, clean_amount
from .deadlines import PaymentState, payment_state
from .store import RecordStore

logger = logging.getLogger(__name__)


def submit_payment(student, obligation, amount, method=Payment.Method.BANK_TRANSFER,
                   paid_by=None, transaction_ref='', note='', store=None):
    """
    Record a pending payment of *amount* towards *obligation* for *student*.

    *paid_by* is the classmate actually paying, when different from the
    student.  Obligations that do not allow partial payments must be settled
    in one go: the amount has to cover everything still outstanding.
    """
    store = store or RecordStore()
    amount = clean_amount(amount)

    if not obligation.is_active:
        raise ValidationError(f'"{obligation.title}" is no longer accepting payments.')
    if not obligation.applies_to(student):
        raise ValidationError(f'"{obligation.title}" does not apply to {student.get_username()}.')
    if method not in Payment.Method.values:
        raise ValidationError(f'Unknown payment method "{method}".')

    approved = store.list_payments(
        student=student, obligation=obligation, status=ReviewStatus.APPROVED,
    )
    amount_paid, status = payment_state(obligation, approved)
    if status == PaymentState.PAID:
        raise ValidationError(f'"{obligation.title}" is already settled.')

    outstanding = obligation.amount - amount_paid
    if not obligation.allows_partial and amount < outstanding:
        raise ValidationError(
            f'"{obligation.title}" must be paid in full ({outstanding} outstanding).'
        )

    if paid_by is not None and paid_by.pk == student.pk:
        paid_by = None

    payment = store.insert_payment(
        student=student,
        obligation=obligation,
        paid_by=paid_by,
        amount=amount,
        method=method,
        transaction_ref=transaction_ref,
        note=note,
    )
    logger.info(
        'Payment %s submitted: student %s → obligation %s (%s)',
        payment.pk, student.pk, obligation.pk, amount,
    )
    return payment


def record_expense(title, amount, category=Expense.Category.OTHER, funded_by=None,
                   recorded_by=None, description='', spent_at=None, is_published=True,
                   store=None):
    """Record a pending expense against *funded_by* (None = general fund)."""
    store = store or RecordStore()
    title = (title or '').strip()
    if not title:
        raise ValidationError('Please give the expense a title.')
    amount = clean_amount(amount)
    if category not in Expense.Category.values:
        raise ValidationError(f'Unknown expense category "{category}".')

    fields = {
        'title':        title,
        'amount':       amount,
        'category':     category,
        'funded_by':    funded_by,
        'recorded_by':  recorded_by,
        'description':  description,
        'is_published': is_published,
    }
    if spent_at is not None:
        fields['spent_at'] = spent_at

    expense = store.insert_expense(**fields)
    logger.info(
        'Expense %s recorded: %s (%s) from source %s',
        expense.pk, title, amount, expense.funded_by_id,
    )
    return expense


def waive_obligation(student, obligation, reason, admin=None, note='', store=None):
    """
    Excuse *student* from *obligation*.  Creates a waiver payment for the
    obligation amount and approves it with waived=True, so it satisfies the
    obligation without adding to the collected balance.
    """
    store = store or RecordStore()
    if not (reason or '').strip():
        raise ValidationError('Please choose a waiver reason.')
    if reason not in Payment.WaiverReason.values:
        raise ValidationError(f'Unknown waiver reason "{reason}".')

    approved = store.list_payments(
        student=student, obligation=obligation, status=ReviewStatus.APPROVED,
    )
    _, status = payment_state(obligation, approved)
    if status == PaymentState.PAID:
        raise ValidationError(f'"{obligation.title}" is already settled for this student.')

    with transaction.atomic():
        waiver = store.insert_payment(
            student=student,
            obligation=obligation,
            amount=obligation.amount,
            method=Payment.Method.CASH,
            waiver_reason=reason,
            note=note,
        )
        waiver = approve_payment(waiver.pk, waived=True, actor=admin, store=store)
    return waiver
