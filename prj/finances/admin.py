"""
finances/admin.py
─────────────────
Admin registrations for PaymentObligation, Payment, Expense and the
read-only ExpenseAmendment audit trail.

Status is read-only here: decisions go through finances.services so the
transition rules and signals apply.
"""

from django.contrib import admin

from .models import Expense, ExpenseAmendment, Payment, PaymentObligation


@admin.register(PaymentObligation)
class PaymentObligationAdmin(admin.ModelAdmin):
    list_display    = ('title', 'category', 'amount', 'deadline', 'allows_partial', 'is_active', 'created_at')
    list_filter     = ('category', 'is_active', 'allows_partial')
    search_fields   = ('title', 'description')
    readonly_fields = ('created_at',)

    fieldsets = (
        (None, {
            'fields': ('title', 'description', 'category', 'amount', 'deadline', 'created_by'),
        }),
        ('Collection', {
            'fields': ('allows_partial', 'target_levels', 'is_active'),
        }),
        ('Metadata', {
            'fields': ('created_at',),
            'classes': ('collapse',),
        }),
    )

    def get_readonly_fields(self, request, obj=None):
        """Once created, only ``is_active`` can change."""
        if obj is None:
            return self.readonly_fields
        return tuple(
            f.name for f in self.model._meta.fields
            if f.name not in ('id', 'is_active')
        )


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display  = ('student', 'obligation', 'amount', 'method', 'status', 'waived', 'approved_at')
    list_filter   = ('status', 'waived', 'method')
    search_fields = ('student__username', 'student__first_name', 'student__last_name',
                     'obligation__title', 'transaction_ref')
    readonly_fields = ('status', 'waived', 'approved_at', 'reviewed_at', 'reviewed_by', 'created_at')


class ExpenseAmendmentInline(admin.TabularInline):
    model           = ExpenseAmendment
    extra           = 0
    can_delete      = False
    readonly_fields = ('previous_values', 'new_values', 'reason', 'performed_by', 'performed_at')


@admin.register(Expense)
class ExpenseAdmin(admin.ModelAdmin):
    list_display  = ('title', 'amount', 'category', 'funded_by', 'status', 'spent_at', 'is_published')
    list_filter   = ('status', 'category', 'is_published', 'spent_at')
    search_fields = ('title', 'description')
    readonly_fields = ('status', 'approved_by', 'approved_at', 'created_at')
    inlines = [ExpenseAmendmentInline]
