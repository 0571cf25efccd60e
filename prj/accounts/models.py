"""
accounts/models.py
──────────────────
Identity model for the dues ledger.

CustomUser – extends AbstractUser with a role (student vs. the class
             executives who manage the fund), the student's cohort level,
             registration number and a display preference
             (hide_fund_balance).

Authentication itself is Django's; nothing here enforces permissions beyond
the convenience properties the finance views consult.
"""

from django.contrib.auth.models import AbstractUser
from django.db import models


class CustomUser(AbstractUser):
    """
    Custom user model for the class dues ledger.

    Roles
    -----
    STUDENT             – pays dues and sees their own reminders/achievements.
    FINANCIAL_SECRETARY – reviews payments, records and approves expenses.
    CLASS_REP           – same powers as the financial secretary.
    EVENT_COORDINATOR   – may record expenses but not approve them.
    """

    class Role(models.TextChoices):
        STUDENT             = 'student',             'Student'
        FINANCIAL_SECRETARY = 'financial_secretary', 'Financial Secretary'
        CLASS_REP           = 'class_rep',           'Class Representative'
        EVENT_COORDINATOR   = 'event_coordinator',   'Event Coordinator'

    role = models.CharField(
        max_length=30,
        choices=Role.choices,
        default=Role.STUDENT,
        verbose_name='Role',
        help_text='Executives manage the fund; students receive payment obligations.',
    )
    reg_number = models.CharField(
        max_length=30,
        blank=True,
        verbose_name='Registration number',
    )
    level = models.CharField(
        max_length=10,
        blank=True,
        help_text="Cohort tag used to target obligations, e.g. '200L'.",
    )
    hide_fund_balance = models.BooleanField(
        default=False,
        verbose_name='Hide fund balance',
        help_text='When checked, the class fund balance card is hidden on this user\'s dashboard.',
    )

    # ── Convenience properties used by the finance views ─────────────────────
    @property
    def is_treasurer(self):
        return self.role != self.Role.STUDENT

    @property
    def can_approve_expenses(self):
        return self.role in (self.Role.FINANCIAL_SECRETARY, self.Role.CLASS_REP)

    def __str__(self):
        role_label = self.get_role_display()
        return f"{self.get_full_name() or self.username} ({role_label})"

    class Meta:
        verbose_name = 'User'
        verbose_name_plural = 'Users'
