"""
finances/services/store.py
──────────────────────────
The record store the ledger engine reads from and writes to.

RecordStore wraps the Django ORM so the engine only ever talks to a small
contract: fetch by id, filtered listings, inserts, and a compare-and-set
status update.  Every engine entry point takes an optional ``store`` so a
caller (or a test) can hand in a different implementation.
"""

import logging
from datetime import date, datetime
from decimal import Decimal

from django.db import transaction

from ..exceptions import AlreadyResolvedError, NotFoundError
from ..models import Expense, ExpenseAmendment, Payment, PaymentObligation

logger = logging.getLogger(__name__)


class RecordStore:
    """ORM-backed record store.  Stateless; cheap to instantiate."""

    # ── Reads ────────────────────────────────────────────────────────────────

    def get_obligation(self, obligation_id):
        try:
            return PaymentObligation.objects.get(pk=obligation_id)
        except PaymentObligation.DoesNotExist:
            raise NotFoundError(f'Payment obligation {obligation_id} not found.')

    def get_payment(self, payment_id):
        try:
            return Payment.objects.get(pk=payment_id)
        except Payment.DoesNotExist:
            raise NotFoundError(f'Payment {payment_id} not found.')

    def get_expense(self, expense_id):
        try:
            return Expense.objects.get(pk=expense_id)
        except Expense.DoesNotExist:
            raise NotFoundError(f'Expense {expense_id} not found.')

    def list_obligations(self, **filters):
        return list(PaymentObligation.objects.filter(**filters).order_by('pk'))

    def list_payments(self, **filters):
        return list(Payment.objects.filter(**filters).order_by('created_at', 'pk'))

    def list_expenses(self, **filters):
        return list(Expense.objects.filter(**filters).order_by('created_at', 'pk'))

    def obligation_ids(self):
        return set(PaymentObligation.objects.values_list('pk', flat=True))

    # ── Writes ───────────────────────────────────────────────────────────────

    def insert_payment(self, **fields):
        fields.setdefault('status', Payment.Status.PENDING)
        return Payment.objects.create(**fields)

    def insert_expense(self, **fields):
        fields.setdefault('status', Expense.Status.PENDING)
        return Expense.objects.create(**fields)

    def update_status(self, model, pk, expected, status, **fields):
        """
        Move record *pk* from *expected* to *status*, writing *fields* in the
        same UPDATE.  The WHERE clause carries the expected status, so of two
        concurrent callers exactly one sees a row updated.

        Raises NotFoundError if the row is gone, AlreadyResolvedError if its
        status is no longer *expected*.
        """
        updated = (
            model.objects
            .filter(pk=pk, status=expected)
            .update(status=status, **fields)
        )
        if not updated:
            current = model.objects.filter(pk=pk).values_list('status', flat=True).first()
            if current is None:
                raise NotFoundError(f'{model._meta.verbose_name} {pk} not found.')
            logger.info(
                'Lost status race on %s %s: expected %s, found %s',
                model._meta.model_name, pk, expected, current,
            )
            raise AlreadyResolvedError(
                f'This {model._meta.verbose_name.lower()} was already {current} by someone else.'
            )
        return model.objects.get(pk=pk)

    def amend_expense(self, expense_id, changes, reason, performed_by=None):
        """
        Apply *changes* (field name → new value) to the expense and append an
        ExpenseAmendment recording the before/after values, all under a row
        lock in one transaction.
        """
        with transaction.atomic():
            try:
                expense = Expense.objects.select_for_update().get(pk=expense_id)
            except Expense.DoesNotExist:
                raise NotFoundError(f'Expense {expense_id} not found.')
            previous = {field: _jsonable(getattr(expense, field)) for field in changes}
            for field, value in changes.items():
                setattr(expense, field, value)
            expense.save(update_fields=list(changes))
            amendment = ExpenseAmendment.objects.create(
                expense=expense,
                previous_values=previous,
                new_values={field: _jsonable(value) for field, value in changes.items()},
                reason=reason,
                performed_by=performed_by,
            )
        return expense, amendment


def _jsonable(value):
    """Audit rows are JSON; store decimals and dates as strings."""
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value
