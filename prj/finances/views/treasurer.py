"""
finances/views/treasurer.py
────────────────────────────
Executive-only JSON endpoints: the review queue, payment and expense
decisions, waivers, expense recording and amendment, balances, threshold
previews and obligation progress.

Engine errors are translated by @ledger_errors; a lost race comes back as
409 already_resolved so the client re-fetches instead of retrying.
"""

from django.http import JsonResponse
from django.shortcuts import get_object_or_404

from ..forms import (
    ExpenseAmendmentForm,
    ExpenseForm,
    RejectionForm,
    ThresholdPreviewForm,
    WaiverForm,
)
from ..models import Expense, Payment, PaymentObligation, ReviewStatus
from ..services import (
    amend_approved_expense,
    approve_expense,
    approve_payment,
    classify_threshold,
    compute_balance,
    obligation_progress,
    record_expense,
    reject_expense,
    reject_payment,
    treasury_summary,
    waive_obligation,
)
from .utils import (
    expense_approver_required,
    form_error_response,
    ledger_errors,
    request_data,
    require_POST_or_405,
    treasurer_required,
    truthy,
)


def _payment_json(payment):
    return {
        'id':               payment.pk,
        'student':          payment.student_id,
        'obligation':       payment.obligation_id,
        'amount':           str(payment.amount),
        'status':           payment.status,
        'waived':           payment.waived,
        'rejection_reason': payment.rejection_reason,
        'approved_at':      payment.approved_at.isoformat() if payment.approved_at else None,
    }


def _expense_json(expense):
    return {
        'id':               expense.pk,
        'title':            expense.title,
        'amount':           str(expense.amount),
        'category':         expense.category,
        'funded_by':        expense.funded_by_id,
        'status':           expense.status,
        'rejection_reason': expense.rejection_reason,
        'approved_at':      expense.approved_at.isoformat() if expense.approved_at else None,
    }


# ── Review queue ──────────────────────────────────────────────────────────────

@treasurer_required
def review_queue_json(req):
    """Everything still waiting for a decision, oldest first."""
    payments = (
        Payment.objects
        .filter(status=ReviewStatus.PENDING)
        .select_related('student', 'obligation')
        .order_by('created_at')
    )
    expenses = Expense.objects.filter(status=ReviewStatus.PENDING).order_by('created_at')
    return JsonResponse({
        'payments': [_payment_json(p) for p in payments],
        'expenses': [_expense_json(e) for e in expenses],
    })


# ── Payment decisions ─────────────────────────────────────────────────────────

@treasurer_required
@require_POST_or_405
@ledger_errors
def approve_payment_view(req, payment_id):
    data = request_data(req)
    payment = approve_payment(
        payment_id, waived=truthy(data.get('waived', False)), actor=req.user,
    )
    return JsonResponse({'ok': True, 'payment': _payment_json(payment)})


@treasurer_required
@require_POST_or_405
@ledger_errors
def reject_payment_view(req, payment_id):
    form = RejectionForm(request_data(req))
    if not form.is_valid():
        return form_error_response(form)
    payment = reject_payment(payment_id, form.cleaned_data['reason'], actor=req.user)
    return JsonResponse({'ok': True, 'payment': _payment_json(payment)})


@treasurer_required
@require_POST_or_405
@ledger_errors
def waive_payment_view(req):
    form = WaiverForm(request_data(req))
    if not form.is_valid():
        return form_error_response(form)
    cd = form.cleaned_data
    waiver = waive_obligation(
        cd['student'], cd['obligation'], cd['reason'],
        admin=req.user, note=cd.get('note', ''),
    )
    return JsonResponse({'ok': True, 'payment': _payment_json(waiver)}, status=201)


# ── Expenses ──────────────────────────────────────────────────────────────────

@treasurer_required
@require_POST_or_405
@ledger_errors
def record_expense_view(req):
    data = request_data(req)
    form = ExpenseForm(data)
    if not form.is_valid():
        return form_error_response(form)
    cd = form.cleaned_data
    expense = record_expense(
        title=cd['title'],
        amount=cd['amount'],
        category=cd['category'],
        funded_by=cd.get('funded_by'),
        recorded_by=req.user,
        description=cd.get('description', ''),
        spent_at=cd.get('spent_at'),
        is_published=cd['is_published'] if 'is_published' in data else True,
    )
    return JsonResponse({'ok': True, 'expense': _expense_json(expense)}, status=201)


@treasurer_required
@expense_approver_required
@require_POST_or_405
@ledger_errors
def approve_expense_view(req, expense_id):
    """
    Approve an expense.  If the fund would go negative the first call answers
    400 risk_not_acknowledged with the advisory; repeat with
    ``acknowledged_risk=true`` to go ahead.
    """
    data = request_data(req)
    expense = approve_expense(
        expense_id,
        admin=req.user,
        acknowledged_risk=truthy(data.get('acknowledged_risk', False)),
    )
    return JsonResponse({
        'ok':       True,
        'expense':  _expense_json(expense),
        'advisory': expense.advisory.as_dict(),
    })


@treasurer_required
@expense_approver_required
@require_POST_or_405
@ledger_errors
def reject_expense_view(req, expense_id):
    form = RejectionForm(request_data(req))
    if not form.is_valid():
        return form_error_response(form)
    expense = reject_expense(expense_id, form.cleaned_data['reason'], actor=req.user)
    return JsonResponse({'ok': True, 'expense': _expense_json(expense)})


@treasurer_required
@expense_approver_required
@require_POST_or_405
@ledger_errors
def amend_expense_view(req, expense_id):
    form = ExpenseAmendmentForm(request_data(req))
    if not form.is_valid():
        return form_error_response(form)
    expense, amendment = amend_approved_expense(
        expense_id,
        form.changed_fields(),
        form.cleaned_data['reason'],
        performed_by=req.user,
    )
    return JsonResponse({
        'ok':      True,
        'expense': _expense_json(expense),
        'amendment': {
            'id':              amendment.pk,
            'previous_values': amendment.previous_values,
            'new_values':      amendment.new_values,
            'reason':          amendment.reason,
            'performed_at':    amendment.performed_at.isoformat(),
        },
    })


# ── Balances & advisories ─────────────────────────────────────────────────────

@treasurer_required
def balances_json(req):
    """Collected vs spent vs remaining, overall and per funding source."""
    return JsonResponse(treasury_summary().as_dict())


@treasurer_required
@ledger_errors
def source_balance_json(req, source_id=None):
    """One funding source; the URL without an id means the general fund."""
    return JsonResponse(compute_balance(source_id).as_dict())


@treasurer_required
@ledger_errors
def threshold_preview_json(req):
    """What would approving ``amount`` against ``source`` do to the balance?"""
    form = ThresholdPreviewForm(req.GET)
    if not form.is_valid():
        return form_error_response(form)
    source = form.cleaned_data.get('source')
    advisory = classify_threshold(source.pk if source else None, form.cleaned_data['amount'])
    return JsonResponse(advisory.as_dict())


@treasurer_required
def obligation_progress_json(req, obligation_id):
    obligation = get_object_or_404(PaymentObligation, pk=obligation_id)
    return JsonResponse(obligation_progress(obligation).as_dict())
