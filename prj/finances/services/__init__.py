"""
finances/services/
──────────────────
The ledger engine, split by concern:
  store.py        – RecordStore, the ORM-backed read/write contract
  approval.py     – approval state machine and audited expense amendments
  balances.py     – per-funding-source balances and treasury totals
  thresholds.py   – low / negative balance advisories
  deadlines.py    – payment status and urgency per obligation
  achievements.py – payment streaks and badges
  intake.py       – submitting payments, recording expenses, waivers
  summaries.py    – student and obligation dashboard figures
"""
from .achievements import evaluate_achievements
from .approval import (
    amend_approved_expense,
    approve_expense,
    approve_payment,
    reject_expense,
    reject_payment,
)
from .balances import compute_all_balances, compute_balance, treasury_summary
from .deadlines import classify_deadlines
from .intake import record_expense, submit_payment, waive_obligation
from .store import RecordStore
from .summaries import obligation_progress, payment_summary
from .thresholds import classify_threshold

__all__ = [
    'RecordStore',
    # transitions
    'approve_payment',
    'reject_payment',
    'approve_expense',
    'reject_expense',
    'amend_approved_expense',
    # intake
    'submit_payment',
    'record_expense',
    'waive_obligation',
    # derived views
    'compute_balance',
    'compute_all_balances',
    'treasury_summary',
    'classify_threshold',
    'classify_deadlines',
    'evaluate_achievements',
    'payment_summary',
    'obligation_progress',
]
