"""
finances/services/thresholds.py
───────────────────────────────
Threshold Advisor.

Before an expense is approved, the approver is told what the funding source
would look like afterwards:

    balance_after <  0                       → critical
    0 ≤ balance_after < LOW_BALANCE_THRESHOLD → warning
    otherwise                                 → normal

The advisory never vetoes anything; approve_expense only insists that a
critical advisory was acknowledged.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal

from django.db import models

from ..constants import low_balance_threshold, to_minor_units
from .balances import compute_balance

logger = logging.getLogger(__name__)


class AdvisoryLevel(models.TextChoices):
    NORMAL   = 'normal',   'Normal'
    WARNING  = 'warning',  'Low balance'
    CRITICAL = 'critical', 'Negative balance'


@dataclass(frozen=True)
class ThresholdAdvisory:
    source_id: int | None
    level: str
    balance_before: Decimal
    candidate_amount: Decimal
    balance_after: Decimal

    @property
    def is_risky(self):
        return self.level != AdvisoryLevel.NORMAL

    @property
    def message(self):
        if self.level == AdvisoryLevel.CRITICAL:
            return (
                f'Approving this expense leaves the fund at {self.balance_after}, '
                f'{-self.balance_after} short.'
            )
        if self.level == AdvisoryLevel.WARNING:
            return f'Approving this expense leaves only {self.balance_after} in the fund.'
        return ''

    def as_dict(self):
        return {
            'source_id':           self.source_id,
            'level':               str(self.level),
            'balance_before':      str(self.balance_before),
            'candidate_amount':    str(self.candidate_amount),
            'balance_after':       str(self.balance_after),
            'balance_after_minor': to_minor_units(self.balance_after),
            'message':             self.message,
        }


def level_for(balance_after, threshold=None):
    """Pure classification of a post-approval balance."""
    if threshold is None:
        threshold = low_balance_threshold()
    if balance_after < 0:
        return AdvisoryLevel.CRITICAL
    if balance_after < threshold:
        return AdvisoryLevel.WARNING
    return AdvisoryLevel.NORMAL


def advise(source_id, current_balance, candidate_amount, threshold=None):
    candidate_amount = Decimal(candidate_amount)
    balance_after = current_balance - candidate_amount
    return ThresholdAdvisory(
        source_id=source_id,
        level=level_for(balance_after, threshold),
        balance_before=current_balance,
        candidate_amount=candidate_amount,
        balance_after=balance_after,
    )


def classify_threshold(source_id, candidate_amount, store=None):
    """
    Classify what approving *candidate_amount* against *source_id* would do to
    its balance.  Raises NotFoundError for an unknown obligation id.
    """
    current = compute_balance(source_id, store=store).balance
    advisory = advise(source_id, current, candidate_amount)
    if advisory.is_risky:
        logger.warning(
            'Threshold advisory %s for source %s: %s → %s',
            advisory.level, source_id, current, advisory.balance_after,
        )
    return advisory
