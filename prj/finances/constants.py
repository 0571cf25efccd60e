"""
finances/constants.py
─────────────────────
Engine constants that are part of the observable contract, and the helpers
that let a deployment override them through settings.DUES_LEDGER.
"""

from datetime import timedelta
from decimal import Decimal

from django.conf import settings

LOW_BALANCE_THRESHOLD     = 15000
STREAK_WINDOW_DAYS        = 30
BIG_CONTRIBUTOR_THRESHOLD = 50000
STALE_REMINDER_DAYS       = 7

# Deadline urgency cut-offs, in days left.
CRITICAL_DAYS = 1
HIGH_DAYS     = 3
MEDIUM_DAYS   = 7

MINOR_UNITS_PER_MAJOR = 100

_DEFAULTS = {
    'LOW_BALANCE_THRESHOLD':     LOW_BALANCE_THRESHOLD,
    'STREAK_WINDOW_DAYS':        STREAK_WINDOW_DAYS,
    'BIG_CONTRIBUTOR_THRESHOLD': BIG_CONTRIBUTOR_THRESHOLD,
    'STALE_REMINDER_DAYS':       STALE_REMINDER_DAYS,
}


def ledger_setting(name):
    """Read one DUES_LEDGER value, falling back to the module default."""
    overrides = getattr(settings, 'DUES_LEDGER', None) or {}
    return overrides.get(name, _DEFAULTS[name])


def low_balance_threshold():
    return Decimal(ledger_setting('LOW_BALANCE_THRESHOLD'))


def big_contributor_threshold():
    return Decimal(ledger_setting('BIG_CONTRIBUTOR_THRESHOLD'))


def streak_window():
    return timedelta(days=ledger_setting('STREAK_WINDOW_DAYS'))


def stale_reminder_days():
    return ledger_setting('STALE_REMINDER_DAYS')


def to_minor_units(amount):
    """Express a Decimal amount as an integer count of hundredths."""
    return int((Decimal(amount) * MINOR_UNITS_PER_MAJOR).to_integral_value())
