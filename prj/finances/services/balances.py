"""
finances/services/balances.py
─────────────────────────────
Balance Calculator.

A funding source is either a PaymentObligation (its id) or the general fund
(None).  For every source:

    collected = Σ approved, non-waived Payment.amount  (obligation = source)
    spent     = Σ approved Expense.amount               (funded_by  = source)
    balance   = collected − spent

Nothing here is cached.  Waivers and amendments can change what a record
contributes, so every call rescans the current rows.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal

from ..constants import to_minor_units
from ..exceptions import ConsistencyError
from ..models import ReviewStatus
from .store import RecordStore

logger = logging.getLogger(__name__)

ZERO = Decimal('0')


@dataclass(frozen=True)
class FundingSourceBalance:
    source_id: int | None
    collected: Decimal = ZERO
    spent: Decimal = ZERO

    @property
    def balance(self):
        return self.collected - self.spent

    @property
    def is_general_fund(self):
        return self.source_id is None

    def as_dict(self):
        return {
            'source_id':       self.source_id,
            'collected':       str(self.collected),
            'spent':           str(self.spent),
            'balance':         str(self.balance),
            'balance_minor':   to_minor_units(self.balance),
        }


@dataclass(frozen=True)
class TreasurySummary:
    """Class-wide totals across every funding source."""
    collected: Decimal
    spent: Decimal
    sources: dict = field(default_factory=dict)

    @property
    def remaining(self):
        return self.collected - self.spent

    def as_dict(self):
        return {
            'collected': str(self.collected),
            'spent':     str(self.spent),
            'remaining': str(self.remaining),
            'sources':   [b.as_dict() for b in self.sources.values()],
        }


# ── Pure aggregation over a snapshot ──────────────────────────────────────────

def summarize_source(source_id, payments, expenses):
    """
    Balance of one source from already-fetched records.  Records belonging to
    other sources, or not in the right status, are ignored.
    """
    collected = sum(
        (p.amount for p in payments
         if p.obligation_id == source_id and p.is_collected),
        ZERO,
    )
    spent = sum(
        (e.amount for e in expenses
         if e.funded_by_id == source_id and e.status == ReviewStatus.APPROVED),
        ZERO,
    )
    return FundingSourceBalance(source_id=source_id, collected=collected, spent=spent)


def aggregate_balances(payments, expenses, known_source_ids):
    """
    Balances for every source referenced by *payments* ∪ *expenses*.

    A record pointing at an obligation id not in *known_source_ids* is
    excluded and reported as a ConsistencyError instead of aborting the whole
    aggregation.  Returns ``(balances, errors)``.
    """
    errors = []
    good_payments = []
    good_expenses = []

    for p in payments:
        if p.obligation_id not in known_source_ids:
            errors.append(ConsistencyError(
                f'Payment {p.pk} references missing obligation {p.obligation_id}.',
                record=p, source_id=p.obligation_id,
            ))
            continue
        good_payments.append(p)

    for e in expenses:
        if e.funded_by_id is not None and e.funded_by_id not in known_source_ids:
            errors.append(ConsistencyError(
                f'Expense {e.pk} is funded by missing obligation {e.funded_by_id}.',
                record=e, source_id=e.funded_by_id,
            ))
            continue
        good_expenses.append(e)

    source_ids = {p.obligation_id for p in good_payments} | {e.funded_by_id for e in good_expenses}
    balances = {
        source_id: summarize_source(source_id, good_payments, good_expenses)
        for source_id in sorted(source_ids, key=lambda s: (s is not None, s or 0))
    }
    return balances, errors


# ── Store-backed entry points ─────────────────────────────────────────────────

def compute_balance(source_id, store=None):
    """
    Current FundingSourceBalance of *source_id* (None = general fund).
    Raises NotFoundError for an obligation id that does not exist.
    """
    store = store or RecordStore()
    if source_id is not None:
        store.get_obligation(source_id)

    payments = []
    if source_id is not None:
        payments = store.list_payments(
            obligation_id=source_id, status=ReviewStatus.APPROVED, waived=False,
        )
    expenses = store.list_expenses(funded_by_id=source_id, status=ReviewStatus.APPROVED)
    return summarize_source(source_id, payments, expenses)


def compute_all_balances(store=None):
    """
    Mapping of every source referenced by any payment or expense to its
    balance.  A source with only pending or rejected rows shows zeros.
    Orphaned records are logged and left out.
    """
    store = store or RecordStore()
    payments = store.list_payments()
    expenses = store.list_expenses()
    balances, errors = aggregate_balances(payments, expenses, store.obligation_ids())
    for err in errors:
        logger.warning('Excluded from balances: %s', err.message)
    return balances


def treasury_summary(store=None):
    balances = compute_all_balances(store=store)
    return TreasurySummary(
        collected=sum((b.collected for b in balances.values()), ZERO),
        spent=sum((b.spent for b in balances.values()), ZERO),
        sources=balances,
    )
