from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import SimpleTestCase, TestCase
from django.utils import timezone

from finances.models import ReviewStatus
from finances.services import classify_deadlines
from finances.services.deadlines import (
    PaymentState,
    Urgency,
    build_reminders,
    days_until,
    payment_state,
    urgency_for,
)

from .factories import create_obligation, create_payment, create_user, obligation_snapshot, payment_snapshot


class PaymentStateTests(SimpleTestCase):

    def test_waiver_alone_satisfies_the_obligation(self):
        obligation = obligation_snapshot(amount='5000')
        waiver = payment_snapshot(1, amount='5000', waived=True)

        amount_paid, status = payment_state(obligation, [waiver])

        self.assertEqual(status, PaymentState.PAID)
        self.assertEqual(amount_paid, Decimal('0'))

    def test_partial_only_when_allowed(self):
        payments = [payment_snapshot(1, amount='2000')]

        _, allowed = payment_state(obligation_snapshot(allows_partial=True), payments)
        _, not_allowed = payment_state(obligation_snapshot(allows_partial=False), payments)

        self.assertEqual(allowed, PaymentState.PARTIAL)
        self.assertEqual(not_allowed, PaymentState.UNPAID)

    def test_instalments_add_up_to_paid(self):
        obligation = obligation_snapshot(allows_partial=True)
        payments = [payment_snapshot(1, amount='2000'), payment_snapshot(2, amount='3000')]
        self.assertEqual(payment_state(obligation, payments), (Decimal('5000'), PaymentState.PAID))

    def test_pending_and_rejected_do_not_count(self):
        payments = [
            payment_snapshot(1, amount='5000', status=ReviewStatus.PENDING),
            payment_snapshot(2, amount='5000', status=ReviewStatus.REJECTED),
        ]
        self.assertEqual(
            payment_state(obligation_snapshot(), payments),
            (Decimal('0'), PaymentState.UNPAID),
        )


class UrgencyTests(SimpleTestCase):

    def test_days_left_rounds_up(self):
        now = timezone.now()
        self.assertEqual(days_until(now + timedelta(days=1, hours=12), now), 2)
        self.assertEqual(days_until(now + timedelta(days=2), now), 2)
        self.assertEqual(days_until(now - timedelta(days=1, hours=12), now), -1)

    def test_urgency_tiers(self):
        self.assertEqual(urgency_for(-1, PaymentState.PAID), Urgency.CRITICAL)
        self.assertEqual(urgency_for(1, PaymentState.UNPAID), Urgency.CRITICAL)
        self.assertEqual(urgency_for(1, PaymentState.PAID), Urgency.MEDIUM)
        self.assertEqual(urgency_for(3, PaymentState.PARTIAL), Urgency.HIGH)
        self.assertEqual(urgency_for(7, PaymentState.UNPAID), Urgency.MEDIUM)
        self.assertEqual(urgency_for(8, PaymentState.UNPAID), Urgency.LOW)


class BuildRemindersTests(SimpleTestCase):

    def setUp(self):
        self.now = timezone.now()

    def obligation(self, pk, days, **fields):
        return obligation_snapshot(pk=pk, deadline=self.now + timedelta(days=days), **fields)

    def test_unpaid_obligation_two_days_out_is_high(self):
        reminders = build_reminders([self.obligation(1, 2)], [], self.now)

        self.assertEqual(len(reminders), 1)
        self.assertEqual(reminders[0].status, PaymentState.UNPAID)
        self.assertEqual(reminders[0].days_left, 2)
        self.assertEqual(reminders[0].urgency, Urgency.HIGH)

    def test_paid_obligations_are_shown_only_when_imminent(self):
        obligations = [self.obligation(1, 2), self.obligation(2, 5)]
        payments = [
            payment_snapshot(1, obligation_id=1, amount='5000'),
            payment_snapshot(2, obligation_id=2, amount='5000'),
        ]

        reminders = build_reminders(obligations, payments, self.now)

        self.assertEqual([r.obligation_id for r in reminders], [1])
        self.assertEqual(reminders[0].urgency, Urgency.MEDIUM)

    def test_stale_overdue_items_are_dropped(self):
        reminders = build_reminders(
            [self.obligation(1, -7), self.obligation(2, -8)], [], self.now,
        )
        self.assertEqual([r.obligation_id for r in reminders], [1])

    def test_sorted_by_urgency_then_days_left(self):
        obligations = [
            self.obligation(1, 20),
            self.obligation(2, 6),
            self.obligation(3, 3),
            self.obligation(4, 1),
            self.obligation(5, -2),
        ]

        reminders = build_reminders(obligations, [], self.now)

        self.assertEqual([r.obligation_id for r in reminders], [5, 4, 3, 2, 1])
        self.assertEqual(
            [r.urgency for r in reminders],
            [Urgency.CRITICAL, Urgency.CRITICAL, Urgency.HIGH, Urgency.MEDIUM, Urgency.LOW],
        )

    def test_skips_inactive_undated_and_other_cohorts(self):
        student = get_user_model()(username='ada', level='200L')
        obligations = [
            self.obligation(1, 2, is_active=False),
            obligation_snapshot(pk=2, deadline=None),
            self.obligation(3, 2, target_levels=['300L']),
            self.obligation(4, 2, target_levels=['200L']),
        ]

        reminders = build_reminders(obligations, [], self.now, student=student)

        self.assertEqual([r.obligation_id for r in reminders], [4])

    def test_outstanding(self):
        obligation = self.obligation(1, 2, allows_partial=True)
        payments = [payment_snapshot(1, amount='1500')]

        reminder = build_reminders([obligation], payments, self.now)[0]

        self.assertEqual(reminder.status, PaymentState.PARTIAL)
        self.assertEqual(reminder.outstanding, Decimal('3500'))


class ClassifyDeadlinesTests(TestCase):

    def test_uses_only_the_students_approved_payments(self):
        ada = create_user('ada')
        bob = create_user('bob')
        obligation = create_obligation(deadline_in=2)
        create_payment(bob, obligation, status=ReviewStatus.APPROVED)
        create_payment(ada, obligation, status=ReviewStatus.PENDING)

        reminders = classify_deadlines(ada)

        self.assertEqual(len(reminders), 1)
        self.assertEqual(reminders[0].status, PaymentState.UNPAID)
        self.assertEqual(reminders[0].urgency, Urgency.HIGH)
