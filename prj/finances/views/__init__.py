"""
finances/views/
───────────────
Split into sub-modules for clarity:
  utils.py     – shared helpers (decorators, error translation, request parsing)
  student.py   – student-facing summary, deadlines, achievements, payments, budget
  treasurer.py – executive-only review queue, decisions, expenses, balances
"""
from .student import (
    achievements_json,
    budget_json,
    deadlines_json,
    submit_payment_view,
    summary_json,
)
from .treasurer import (
    amend_expense_view,
    approve_expense_view,
    approve_payment_view,
    balances_json,
    obligation_progress_json,
    record_expense_view,
    reject_expense_view,
    reject_payment_view,
    review_queue_json,
    source_balance_json,
    threshold_preview_json,
    waive_payment_view,
)

__all__ = [
    # student
    'summary_json',
    'deadlines_json',
    'achievements_json',
    'submit_payment_view',
    'budget_json',
    # treasurer
    'review_queue_json',
    'approve_payment_view',
    'reject_payment_view',
    'waive_payment_view',
    'record_expense_view',
    'approve_expense_view',
    'reject_expense_view',
    'amend_expense_view',
    'balances_json',
    'source_balance_json',
    'threshold_preview_json',
    'obligation_progress_json',
]
