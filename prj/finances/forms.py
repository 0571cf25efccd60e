"""
finances/forms.py
─────────────────
Input validation for the ledger endpoints: payment submissions, recorded
expenses, rejections, waivers, amendments and threshold previews.

Forms only check shape (types, required fields, choices).  Business rules
(partial payments, transitions, reasons) are enforced by finances.services
so they hold no matter who calls the engine.
"""

from django import forms
from django.contrib.auth import get_user_model

from .models import Expense, Payment, PaymentObligation


class PaymentSubmissionForm(forms.Form):
    """
    Student submits a payment.  ``student`` is only set when paying on behalf
    of a classmate; otherwise the logged-in user is the beneficiary.
    """

    obligation = forms.ModelChoiceField(
        queryset=PaymentObligation.objects.filter(is_active=True),
        label='Payment obligation',
    )
    amount = forms.DecimalField(
        max_digits=12, decimal_places=2, min_value=0,
        label='Amount paid',
    )
    method = forms.ChoiceField(
        choices=Payment.Method.choices,
        initial=Payment.Method.BANK_TRANSFER,
    )
    transaction_ref = forms.CharField(required=False, max_length=100)
    note = forms.CharField(required=False)
    student = forms.ModelChoiceField(
        queryset=None,   # set in __init__
        required=False,
        label='Paying for (optional)',
    )

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        User = get_user_model()
        self.fields['student'].queryset = User.objects.filter(
            is_active=True, role=User.Role.STUDENT,
        )


class ExpenseForm(forms.ModelForm):
    """Executive form to record a class fund expense."""

    class Meta:
        model  = Expense
        fields = ['title', 'description', 'amount', 'category', 'funded_by', 'spent_at', 'is_published']

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['funded_by'].required = False
        self.fields['spent_at'].required = False
        self.fields['is_published'].required = False


class RejectionForm(forms.Form):
    reason = forms.CharField(
        label='Reason for rejection',
        error_messages={'required': 'Please provide a reason for rejection.'},
    )


class WaiverForm(forms.Form):
    student = forms.ModelChoiceField(queryset=None)   # set in __init__
    obligation = forms.ModelChoiceField(queryset=PaymentObligation.objects.filter(is_active=True))
    reason = forms.ChoiceField(choices=Payment.WaiverReason.choices)
    note = forms.CharField(required=False, label='Additional notes')

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        User = get_user_model()
        self.fields['student'].queryset = User.objects.filter(
            is_active=True, role=User.Role.STUDENT,
        )


class ExpenseAmendmentForm(forms.Form):
    """
    Every field except ``reason`` is optional; only the fields present in the
    submitted data are amended.
    """

    title = forms.CharField(required=False, max_length=200)
    description = forms.CharField(required=False)
    amount = forms.DecimalField(required=False, max_digits=12, decimal_places=2)
    category = forms.ChoiceField(required=False, choices=Expense.Category.choices)
    funded_by = forms.ModelChoiceField(
        required=False, queryset=PaymentObligation.objects.all(),
    )
    spent_at = forms.DateField(required=False)
    reason = forms.CharField(
        error_messages={'required': 'Please explain why the expense is being amended.'},
    )

    def changed_fields(self):
        """Cleaned values for the fields the client actually sent."""
        changes = {}
        for name in self.fields:
            if name == 'reason' or name not in self.data:
                continue
            value = self.cleaned_data.get(name)
            if name == 'funded_by':
                value = value.pk if value is not None else None
            changes[name] = value
        return changes


class ThresholdPreviewForm(forms.Form):
    """``source`` empty means the general fund."""

    source = forms.ModelChoiceField(
        required=False, queryset=PaymentObligation.objects.all(),
    )
    amount = forms.DecimalField(max_digits=12, decimal_places=2, min_value=0)
