"""
finances/views/student.py
──────────────────────────
Student-facing JSON endpoints: personal summary, deadline reminders,
achievements, payment submission and the budget transparency feed.

Every figure is derived on request from the current records.
"""

from collections import defaultdict
from decimal import Decimal
from itertools import groupby

from django.contrib.auth.decorators import login_required
from django.http import JsonResponse

from ..forms import PaymentSubmissionForm
from ..models import Expense, ReviewStatus
from ..services import (
    classify_deadlines,
    evaluate_achievements,
    payment_summary,
    submit_payment,
    treasury_summary,
)
from .utils import form_error_response, ledger_errors, request_data, require_POST_or_405


@login_required
def summary_json(req):
    """Totals for the logged-in student's dashboard cards."""
    return JsonResponse(payment_summary(req.user).as_dict())


@login_required
def deadlines_json(req):
    """Deadline reminders, most urgent first."""
    reminders = classify_deadlines(req.user)
    return JsonResponse({'reminders': [r.as_dict() for r in reminders]})


@login_required
def achievements_json(req):
    """Badges and payment streak for the logged-in student."""
    return JsonResponse(evaluate_achievements(req.user).as_dict())


@login_required
@require_POST_or_405
@ledger_errors
def submit_payment_view(req):
    """
    Record a pending payment.  When ``student`` is given the logged-in user
    is paying on that classmate's behalf.
    """
    form = PaymentSubmissionForm(request_data(req))
    if not form.is_valid():
        return form_error_response(form)

    cd = form.cleaned_data
    beneficiary = cd.get('student') or req.user
    payment = submit_payment(
        student=beneficiary,
        obligation=cd['obligation'],
        amount=cd['amount'],
        method=cd['method'],
        paid_by=req.user,
        transaction_ref=cd.get('transaction_ref', ''),
        note=cd.get('note', ''),
    )
    return JsonResponse({
        'ok':      True,
        'payment': {
            'id':         payment.pk,
            'status':     payment.status,
            'amount':     str(payment.amount),
            'obligation': payment.obligation_id,
            'student':    payment.student_id,
        },
    }, status=201)


@login_required
def budget_json(req):
    """
    Transparency feed: approved, published expenses grouped by month with a
    category breakdown, plus the class-wide collected / spent / remaining.
    """
    approved = Expense.objects.filter(is_published=True, status=ReviewStatus.APPROVED)
    expenses = list(approved.order_by('-spent_at', '-created_at'))

    def month_key(e):
        return (e.spent_at.year, e.spent_at.month)

    grouped = []
    for k, g in groupby(expenses, key=month_key):
        items = list(g)
        grouped.append({
            'year':     k[0],
            'month':    k[1],
            'items':    [
                {'id': e.pk, 'title': e.title, 'amount': str(e.amount),
                 'category': e.category, 'spent_at': e.spent_at.isoformat()}
                for e in items
            ],
            'subtotal': str(sum((e.amount for e in items), Decimal('0.00'))),
        })

    total_spent = sum((e.amount for e in expenses), Decimal('0.00'))
    by_category = defaultdict(lambda: Decimal('0.00'))
    for e in expenses:
        by_category[e.category] += e.amount

    category_labels = dict(Expense.Category.choices)
    category_totals = []
    for category, total in sorted(by_category.items(), key=lambda kv: kv[1], reverse=True):
        category_totals.append({
            'category': category,
            'label':    category_labels.get(category, category),
            'total':    str(total),
            'pct':      round(total / total_spent * 100) if total_spent else 0,
        })

    summary = treasury_summary()
    return JsonResponse({
        'grouped':         grouped,
        'category_totals': category_totals,
        'total_spent':     str(total_spent),
        'expense_count':   len(expenses),
        'fund': {
            'collected': str(summary.collected),
            'spent':     str(summary.spent),
            'remaining': str(summary.remaining),
        },
    })
