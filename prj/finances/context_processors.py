"""
finances/context_processors.py
──────────────────────────────
Global template context injected into every request.

Registered in settings.py → TEMPLATES[0]['OPTIONS']['context_processors'].
"""


def fund_balance(request):
    """
    Injects the class-wide treasury totals into every template context:

        fund_collected    – approved, non-waived payments
        fund_spent        – approved expenses
        fund_balance      – fund_collected minus fund_spent
        show_fund_balance – False when the user has opted to hide it

    Unauthenticated visitors get zeros.
    """
    # Import here to avoid circular imports during app startup
    from .services import treasury_summary

    if not request.user.is_authenticated:
        return {
            'fund_collected':    0,
            'fund_spent':        0,
            'fund_balance':      0,
            'show_fund_balance': True,
        }

    summary = treasury_summary()
    return {
        'fund_collected':    summary.collected,
        'fund_spent':        summary.spent,
        'fund_balance':      summary.remaining,
        'show_fund_balance': not request.user.hide_fund_balance,
    }
