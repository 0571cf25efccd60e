"""
finances/services/achievements.py
─────────────────────────────────
Streak & Achievement Evaluator.

Works on a student's approved, non-waived payments in chronological order.
Two consecutive payments at most STREAK_WINDOW_DAYS apart extend the running
streak; a longer gap restarts it at 1.  The current streak is whatever is
running after the last payment.

Achievements are plain predicates over those payments and are re-derived on
every call; nothing is ever marked "earned" in the database.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from django.db import models

from ..constants import big_contributor_threshold, streak_window
from ..models import ReviewStatus
from .store import RecordStore

FIRST_PAYMENT_COUNT   = 1
CONSISTENT_COUNT      = 5
STREAK_BADGE_LENGTH   = 3
PERFECT_RECORD_COUNT  = 3
HELPFUL_COUNT         = 1
CHAMPION_HELPED_COUNT = 5


class Rarity(models.TextChoices):
    COMMON    = 'common',    'Common'
    RARE      = 'rare',      'Rare'
    EPIC      = 'epic',      'Epic'
    LEGENDARY = 'legendary', 'Legendary'


@dataclass(frozen=True)
class StreakState:
    current: int = 0
    longest: int = 0
    last_payment_date: datetime | None = None

    def as_dict(self):
        return {
            'current':           self.current,
            'longest':           self.longest,
            'last_payment_date': self.last_payment_date.isoformat() if self.last_payment_date else None,
        }


@dataclass(frozen=True)
class Achievement:
    key: str
    title: str
    description: str
    rarity: str
    earned: bool
    earned_at: datetime | None = None

    def as_dict(self):
        return {
            'key':         self.key,
            'title':       self.title,
            'description': self.description,
            'rarity':      str(self.rarity),
            'earned':      self.earned,
            'earned_at':   self.earned_at.isoformat() if self.earned_at else None,
        }


@dataclass(frozen=True)
class AchievementReport:
    achievements: list = field(default_factory=list)
    streak: StreakState = field(default_factory=StreakState)

    @property
    def earned(self):
        return [a for a in self.achievements if a.earned]

    def as_dict(self):
        return {
            'achievements': [a.as_dict() for a in self.achievements],
            'earned_count': len(self.earned),
            'streak':       self.streak.as_dict(),
        }


# ── Streaks ───────────────────────────────────────────────────────────────────

def contributing_payments(payments):
    """Approved, non-waived payments sorted oldest first."""
    return sorted(
        (p for p in payments if p.is_collected),
        key=lambda p: p.created_at,
    )


def calculate_streak(payments, window=None):
    """
    StreakState for *payments*, which must already be contributing payments
    in ascending created_at order.
    """
    if not payments:
        return StreakState()
    window = window or streak_window()

    running = longest = 1
    for prev, curr in zip(payments, payments[1:]):
        gap_days = (curr.created_at - prev.created_at).days
        if gap_days <= window.days:
            running += 1
            longest = max(longest, running)
        else:
            running = 1

    return StreakState(
        current=running,
        longest=longest,
        last_payment_date=payments[-1].created_at,
    )


# ── Achievements ──────────────────────────────────────────────────────────────

def evaluate(payments, helped_payments=(), rejected_payments=(), deadlines=None, window=None):
    """
    Build the AchievementReport from already-fetched records.

    payments          – the student's own approved payments (any order; waived
                        ones are filtered out here)
    helped_payments   – approved payments the student made for classmates
    rejected_payments – the student's rejected payments
    deadlines         – mapping obligation id → deadline (or None)
    """
    own = contributing_payments(payments)
    streak = calculate_streak(own, window=window)
    deadlines = deadlines or {}

    count = len(own)
    total = sum((p.amount for p in own), Decimal('0'))
    helped = sorted(
        (p for p in helped_payments if p.is_collected and p.is_paid_for_other),
        key=lambda p: p.created_at,
    )
    early = [
        p for p in own
        if deadlines.get(p.obligation_id) is not None
        and p.created_at < deadlines[p.obligation_id]
    ]

    def nth(items, n):
        return items[n - 1].created_at if len(items) >= n else None

    achievements = [
        Achievement(
            'first_payment', 'First Step', 'Made your first payment',
            Rarity.COMMON, count >= FIRST_PAYMENT_COUNT, nth(own, FIRST_PAYMENT_COUNT),
        ),
        Achievement(
            'early_bird', 'Early Bird', 'Paid before the deadline',
            Rarity.RARE, bool(early), nth(early, 1),
        ),
        Achievement(
            'consistent_payer', 'Consistent Payer', 'Made 5+ payments',
            Rarity.RARE, count >= CONSISTENT_COUNT, nth(own, CONSISTENT_COUNT),
        ),
        Achievement(
            'payment_streak_3', 'On Fire!', '3-payment streak',
            Rarity.EPIC, streak.longest >= STREAK_BADGE_LENGTH,
        ),
        Achievement(
            'helpful_classmate', 'Helpful Classmate', 'Paid for others',
            Rarity.EPIC, len(helped) >= HELPFUL_COUNT, nth(helped, HELPFUL_COUNT),
        ),
        Achievement(
            'big_spender', 'Big Contributor', f'Paid {big_contributor_threshold():,}+',
            Rarity.EPIC, total >= big_contributor_threshold(), _crossing(own, big_contributor_threshold()),
        ),
        Achievement(
            'perfect_record', 'Perfect Record', 'All payments approved on first try',
            Rarity.LEGENDARY,
            count >= PERFECT_RECORD_COUNT and not rejected_payments,
        ),
        Achievement(
            'class_champion', 'Class Champion', 'Helped 5+ classmates',
            Rarity.LEGENDARY, len(helped) >= CHAMPION_HELPED_COUNT, nth(helped, CHAMPION_HELPED_COUNT),
        ),
    ]
    return AchievementReport(achievements=achievements, streak=streak)


def _crossing(payments, threshold):
    """Timestamp of the payment that took the running total past *threshold*."""
    running = Decimal('0')
    for p in payments:
        running += p.amount
        if running >= threshold:
            return p.created_at
    return None


def evaluate_achievements(student, store=None):
    """AchievementReport for *student* against the current records."""
    store = store or RecordStore()
    payments = store.list_payments(student=student, status=ReviewStatus.APPROVED, waived=False)
    helped = store.list_payments(
        paid_by=student, status=ReviewStatus.APPROVED, waived=False,
    )
    rejected = store.list_payments(student=student, status=ReviewStatus.REJECTED)
    deadlines = {
        o.pk: o.deadline
        for o in store.list_obligations(pk__in={p.obligation_id for p in payments})
    }
    return evaluate(payments, helped, rejected, deadlines)
