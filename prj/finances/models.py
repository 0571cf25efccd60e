"""
finances/models.py
──────────────────
The money records.  Everything the ledger engine derives (balances, deadline
statuses, streaks, achievements) is computed from these rows on demand and is
never stored back.

PaymentObligation – What is owed, e.g. "Semester Dues – 5,000".
Payment           – A student's submission against an obligation.
Expense           – Money spent from a funding source (an obligation's pot,
                    or the general fund when funded_by is empty).
ExpenseAmendment  – Append-only audit row for every change made to an
                    expense after it was recorded.
"""

from django.conf import settings
from django.db import models
from django.utils import timezone


class ReviewStatus(models.TextChoices):
    """
    Shared lifecycle of Payment and Expense records.

    PENDING is the only non-terminal state; see finances.services.approval for
    the legal transitions.
    """
    PENDING  = 'pending',  'Pending'
    APPROVED = 'approved', 'Approved'
    REJECTED = 'rejected', 'Rejected'


class PaymentObligation(models.Model):
    """
    A due created by the class executives asking students to pay a specific
    amount.  Doubles as a funding source: approved expenses can be charged
    against the money collected for it.

    Immutable once created apart from the is_active toggle.
    """

    class Category(models.TextChoices):
        SEMESTER_DUES = 'semester_dues', 'Semester Dues'
        BOOKS         = 'books',         'Books'
        EVENTS        = 'events',        'Events'
        PROJECTS      = 'projects',      'Projects'
        WELFARE       = 'welfare',       'Welfare'
        CUSTOM        = 'custom',        'Custom'

    title = models.CharField(
        max_length=200,
        help_text='Short description of what the payment is for.',
    )
    description = models.TextField(
        blank=True,
        help_text='Optional longer explanation.',
    )
    category = models.CharField(
        max_length=20,
        choices=Category.choices,
        default=Category.SEMESTER_DUES,
    )
    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text='Amount each targeted student is expected to pay.',
    )
    deadline = models.DateTimeField(
        null=True,
        blank=True,
        help_text='Optional deadline for payment.',
    )
    allows_partial = models.BooleanField(
        default=False,
        help_text='If True, students may pay in instalments.',
    )
    target_levels = models.JSONField(
        default=list,
        blank=True,
        help_text="Cohort tags this obligation applies to, e.g. ['200L', '300L']. "
                  "Empty means every student.",
    )
    is_active = models.BooleanField(
        default=True,
        help_text='Inactive obligations are hidden from students and reminders.',
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_obligations',
        help_text='Executive who created this obligation.',
    )
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['-created_at']
        verbose_name = 'Payment Obligation'
        verbose_name_plural = 'Payment Obligations'

    def __str__(self):
        return f"{self.title} – {self.amount}"

    def applies_to(self, student):
        """True when *student*'s cohort level is targeted by this obligation."""
        if not self.target_levels:
            return True
        return getattr(student, 'level', '') in self.target_levels


class Payment(models.Model):
    """
    Records a single submission made by (or for) a student towards a
    PaymentObligation.

    A waived payment is an approval that satisfies the obligation without any
    money changing hands; it never counts towards collected totals.
    """

    Status = ReviewStatus

    class Method(models.TextChoices):
        BANK_TRANSFER = 'bank_transfer', 'Bank Transfer'
        CASH          = 'cash',          'Cash'
        POS           = 'pos',           'POS'

    class WaiverReason(models.TextChoices):
        FINANCIAL_HARDSHIP   = 'financial_hardship',   'Financial Hardship'
        MEDICAL_EMERGENCY    = 'medical_emergency',    'Medical Emergency'
        CLASS_EXECUTIVE      = 'class_executive',      'Class Executive Role'
        SCHOLARSHIP          = 'scholarship',          'Scholarship/Sponsorship'
        DEPARTMENTAL_SUPPORT = 'departmental_support', 'Departmental Support'
        OTHER                = 'other',                'Other'

    obligation = models.ForeignKey(
        PaymentObligation,
        on_delete=models.PROTECT,
        related_name='payments',
    )
    student = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='payments',
        help_text='Student this payment is credited to.',
    )
    paid_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='payments_made_for_others',
        help_text='Classmate who paid on the student\'s behalf, if any.',
    )
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    method = models.CharField(
        max_length=20,
        choices=Method.choices,
        default=Method.BANK_TRANSFER,
    )
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
    )
    waived = models.BooleanField(
        default=False,
        help_text='Approved without collection.  Only ever set together with APPROVED.',
    )
    waiver_reason = models.CharField(
        max_length=30,
        choices=WaiverReason.choices,
        blank=True,
    )
    transaction_ref = models.CharField(
        max_length=100,
        blank=True,
        help_text='Bank or POS reference supplied by the student.',
    )
    note = models.TextField(blank=True)
    rejection_reason = models.TextField(blank=True)
    reviewed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='reviewed_payments',
    )
    approved_at = models.DateTimeField(null=True, blank=True)
    reviewed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['-created_at']
        verbose_name = 'Payment'
        verbose_name_plural = 'Payments'
        indexes = [
            models.Index(fields=['obligation', 'status'], name='payment_source_status_idx'),
            models.Index(fields=['student', 'status'], name='payment_student_status_idx'),
        ]

    def __str__(self):
        label = 'Waived' if self.waived else self.get_status_display()
        return f"{self.student_id} → {self.obligation_id} ({self.amount}, {label})"

    @property
    def is_collected(self):
        """Approved with real money behind it."""
        return self.status == ReviewStatus.APPROVED and not self.waived

    @property
    def is_paid_for_other(self):
        return self.paid_by_id is not None and self.paid_by_id != self.student_id


class Expense(models.Model):
    """
    Money spent FROM a funding source.

    funded_by points at the obligation whose collections pay for this expense;
    an empty funded_by charges the general fund.  The reference is kept without
    a database constraint so an expense outlives a removed obligation; the
    balance engine reports such orphans instead of crashing.
    """

    Status = ReviewStatus

    class Category(models.TextChoices):
        MATERIALS = 'materials', 'Materials'
        TRANSPORT = 'transport', 'Transport'
        PRINTING  = 'printing',  'Printing'
        FOOD      = 'food',      'Food & Drinks'
        VENUE     = 'venue',     'Venue'
        OTHER     = 'other',     'Other'

    title = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    category = models.CharField(
        max_length=20,
        choices=Category.choices,
        default=Category.OTHER,
    )
    funded_by = models.ForeignKey(
        PaymentObligation,
        on_delete=models.DO_NOTHING,
        db_constraint=False,
        null=True,
        blank=True,
        related_name='expenses',
        help_text='Obligation whose collections fund this expense (empty = general fund).',
    )
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
    )
    spent_at = models.DateField(default=timezone.localdate)
    recorded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='recorded_expenses',
    )
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='approved_expenses',
    )
    approved_at = models.DateTimeField(null=True, blank=True)
    rejection_reason = models.TextField(blank=True)
    is_published = models.BooleanField(
        default=True,
        help_text='If True, all logged-in students can see this expense.',
    )
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['-spent_at', '-created_at']
        verbose_name = 'Expense'
        verbose_name_plural = 'Expenses'
        indexes = [
            models.Index(fields=['funded_by', 'status'], name='expense_source_status_idx'),
        ]

    def __str__(self):
        return f"{self.title} – {self.amount} ({self.get_status_display()})"


class ExpenseAmendment(models.Model):
    """
    One audited change to an expense.  Rows are only ever inserted.
    """

    expense = models.ForeignKey(
        Expense,
        on_delete=models.CASCADE,
        related_name='amendments',
    )
    previous_values = models.JSONField(default=dict)
    new_values = models.JSONField(default=dict)
    reason = models.TextField()
    performed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='expense_amendments',
    )
    performed_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['-performed_at']
        verbose_name = 'Expense Amendment'
        verbose_name_plural = 'Expense Amendments'

    def __str__(self):
        return f"Amendment of expense {self.expense_id} ({self.performed_at:%Y-%m-%d %H:%M})"
