from decimal import Decimal

from django.test import TestCase

from finances import signals
from finances.exceptions import (
    AlreadyResolvedError,
    ConsistencyError,
    InvalidStateError,
    NotFoundError,
    RiskNotAcknowledgedError,
    ValidationError,
)
from finances.models import Expense, ExpenseAmendment, Payment, ReviewStatus
from finances.services import (
    RecordStore,
    amend_approved_expense,
    approve_expense,
    approve_payment,
    compute_balance,
    reject_expense,
    reject_payment,
)
from finances.services.thresholds import AdvisoryLevel

from .factories import create_expense, create_obligation, create_payment, create_user


class StaleReadStore(RecordStore):
    """Hands back records as they were when the caller first looked."""

    def __init__(self, snapshot):
        self.snapshot = snapshot

    def get_payment(self, payment_id):
        return self.snapshot

    def get_expense(self, expense_id):
        return self.snapshot


class SignalRecorder:

    def __init__(self, testcase, *sigs):
        self.events = []
        for sig in sigs:
            sig.connect(self.record)
            testcase.addCleanup(sig.disconnect, self.record)

    def record(self, signal, sender, **payload):
        self.events.append((signal, payload))

    def of(self, signal):
        return [payload for sig, payload in self.events if sig is signal]


class PaymentTransitionTests(TestCase):

    def setUp(self):
        self.admin = create_user('fin', role='financial_secretary')
        self.student = create_user('ada')
        self.obligation = create_obligation(amount='5000')
        self.payment = create_payment(self.student, self.obligation)

    def test_approve(self):
        payment = approve_payment(self.payment.pk, actor=self.admin)

        self.assertEqual(payment.status, ReviewStatus.APPROVED)
        self.assertFalse(payment.waived)
        self.assertIsNotNone(payment.approved_at)
        self.assertEqual(payment.reviewed_by, self.admin)
        self.assertEqual(compute_balance(self.obligation.pk).collected, Decimal('5000'))

    def test_approval_is_final(self):
        approve_payment(self.payment.pk)

        with self.assertRaises(InvalidStateError):
            approve_payment(self.payment.pk)
        with self.assertRaises(InvalidStateError):
            reject_payment(self.payment.pk, 'duplicate')

    def test_rejection_is_final(self):
        payment = reject_payment(self.payment.pk, '  wrong reference  ')

        self.assertEqual(payment.status, ReviewStatus.REJECTED)
        self.assertEqual(payment.rejection_reason, 'wrong reference')
        with self.assertRaises(InvalidStateError):
            approve_payment(self.payment.pk)

    def test_rejection_needs_a_reason(self):
        with self.assertRaises(ValidationError):
            reject_payment(self.payment.pk, '   ')
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, ReviewStatus.PENDING)

    def test_waived_approval_collects_nothing(self):
        payment = approve_payment(self.payment.pk, waived=True)

        self.assertTrue(payment.waived)
        self.assertEqual(compute_balance(self.obligation.pk).collected, Decimal('0'))

    def test_unknown_payment(self):
        with self.assertRaises(NotFoundError):
            approve_payment(424242)

    def test_losing_the_race(self):
        stale = Payment.objects.get(pk=self.payment.pk)
        approve_payment(self.payment.pk)

        with self.assertRaises(AlreadyResolvedError):
            reject_payment(self.payment.pk, 'late', store=StaleReadStore(stale))

        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, ReviewStatus.APPROVED)

    def test_events_fire_after_commit(self):
        recorder = SignalRecorder(self, signals.payment_approved, signals.payment_rejected)
        other = create_payment(self.student, self.obligation)

        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            approve_payment(self.payment.pk, waived=True)
            reject_payment(other.pk, 'bounced')

        self.assertEqual(len(callbacks), 2)
        [approved] = recorder.of(signals.payment_approved)
        self.assertTrue(approved['waived'])
        self.assertEqual(approved['amount_minor'], 0)
        [rejected] = recorder.of(signals.payment_rejected)
        self.assertEqual(rejected['reason'], 'bounced')

    def test_no_event_without_commit(self):
        recorder = SignalRecorder(self, signals.payment_approved)

        with self.captureOnCommitCallbacks(execute=False):
            approve_payment(self.payment.pk)

        self.assertEqual(recorder.events, [])

    def test_failing_receiver_does_not_undo_the_approval(self):
        def broken(sender, **payload):
            raise RuntimeError('notification backend down')

        signals.payment_approved.connect(broken)
        self.addCleanup(signals.payment_approved.disconnect, broken)

        with self.assertLogs('finances.signals', level='WARNING') as logs:
            with self.captureOnCommitCallbacks(execute=True):
                payment = approve_payment(self.payment.pk)

        self.assertEqual(payment.status, ReviewStatus.APPROVED)
        self.assertIn('notification backend down', logs.output[0])
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, ReviewStatus.APPROVED)


class ExpenseTransitionTests(TestCase):

    def setUp(self):
        self.admin = create_user('rep', role='class_rep')
        self.student = create_user('ada')
        self.obligation = create_obligation(amount='20000')
        create_payment(self.student, self.obligation, status=ReviewStatus.APPROVED)

    def test_normal_approval(self):
        expense = create_expense(amount='1000', funded_by=self.obligation)

        approved = approve_expense(expense.pk, admin=self.admin)

        self.assertEqual(approved.status, ReviewStatus.APPROVED)
        self.assertEqual(approved.approved_by, self.admin)
        self.assertEqual(approved.advisory.level, AdvisoryLevel.NORMAL)
        self.assertEqual(compute_balance(self.obligation.pk).balance, Decimal('19000'))

    def test_critical_needs_acknowledgement(self):
        expense = create_expense(amount='25000', funded_by=self.obligation)

        with self.assertRaises(RiskNotAcknowledgedError) as ctx:
            approve_expense(expense.pk, admin=self.admin)

        self.assertEqual(ctx.exception.advisory.level, AdvisoryLevel.CRITICAL)
        self.assertEqual(ctx.exception.advisory.balance_after, Decimal('-5000'))
        expense.refresh_from_db()
        self.assertEqual(expense.status, ReviewStatus.PENDING)

        approved = approve_expense(expense.pk, admin=self.admin, acknowledged_risk=True)
        self.assertEqual(approved.status, ReviewStatus.APPROVED)

    def test_warning_does_not_block(self):
        expense = create_expense(amount='8000', funded_by=self.obligation)

        approved = approve_expense(expense.pk)

        self.assertEqual(approved.advisory.level, AdvisoryLevel.WARNING)
        self.assertEqual(approved.advisory.balance_after, Decimal('12000'))

    def test_risky_approval_emits_threshold_event(self):
        recorder = SignalRecorder(self, signals.expense_approved, signals.threshold_crossed)
        expense = create_expense(amount='8000', funded_by=self.obligation)

        with self.captureOnCommitCallbacks(execute=True):
            approve_expense(expense.pk)

        [approved] = recorder.of(signals.expense_approved)
        self.assertEqual(approved['amount_minor'], 800000)
        [crossed] = recorder.of(signals.threshold_crossed)
        self.assertEqual(crossed['level'], AdvisoryLevel.WARNING)

    def test_only_one_of_two_approvals_succeeds(self):
        expense = create_expense(amount='1000', funded_by=self.obligation)
        stale = Expense.objects.get(pk=expense.pk)

        approve_expense(expense.pk)
        with self.assertRaises(AlreadyResolvedError):
            approve_expense(expense.pk, store=StaleReadStore(stale))

        self.assertEqual(compute_balance(self.obligation.pk).spent, Decimal('1000'))

    def test_missing_funding_source_is_a_consistency_error(self):
        expense = create_expense(amount='100', funded_by_id=999999)

        with self.assertRaises(ConsistencyError) as ctx:
            approve_expense(expense.pk, admin=self.admin, acknowledged_risk=True)

        self.assertEqual(ctx.exception.source_id, 999999)
        self.assertEqual(ctx.exception.record.pk, expense.pk)
        expense.refresh_from_db()
        self.assertEqual(expense.status, ReviewStatus.PENDING)

    def test_reject(self):
        expense = create_expense(amount='1000', funded_by=self.obligation)

        rejected = reject_expense(expense.pk, 'no receipt')

        self.assertEqual(rejected.status, ReviewStatus.REJECTED)
        self.assertEqual(rejected.rejection_reason, 'no receipt')
        with self.assertRaises(InvalidStateError):
            approve_expense(expense.pk)
        with self.assertRaises(ValidationError):
            reject_expense(create_expense().pk, '')


class AmendExpenseTests(TestCase):

    def setUp(self):
        self.admin = create_user('fin', role='financial_secretary')
        self.obligation = create_obligation(amount='5000')
        self.expense = create_expense(amount='300', funded_by=self.obligation)
        self.expense = approve_expense(self.expense.pk, acknowledged_risk=True)

    def test_amendment_is_audited_and_keeps_the_approval(self):
        approved_at = self.expense.approved_at

        expense, amendment = amend_approved_expense(
            self.expense.pk, {'amount': Decimal('250'), 'title': 'Printing'},
            'Receipt total was lower', performed_by=self.admin,
        )

        self.assertEqual(expense.amount, Decimal('250'))
        self.assertEqual(expense.status, ReviewStatus.APPROVED)
        self.assertEqual(expense.approved_at, approved_at)
        self.assertEqual(Decimal(amendment.previous_values['amount']), Decimal('300'))
        self.assertEqual(Decimal(amendment.new_values['amount']), Decimal('250'))
        self.assertEqual(amendment.new_values['title'], 'Printing')
        self.assertEqual(amendment.performed_by, self.admin)
        self.assertEqual(compute_balance(self.obligation.pk).spent, Decimal('250'))

    def test_moving_to_the_general_fund(self):
        expense, amendment = amend_approved_expense(
            self.expense.pk, {'funded_by': None}, 'Wrong pot',
        )

        self.assertIsNone(expense.funded_by_id)
        self.assertEqual(amendment.previous_values, {'funded_by_id': self.obligation.pk})
        self.assertEqual(compute_balance(None).spent, Decimal('300'))

    def test_rejects_bad_amendments(self):
        with self.assertRaises(ValidationError):
            amend_approved_expense(self.expense.pk, {'amount': '100'}, '  ')
        with self.assertRaises(ValidationError):
            amend_approved_expense(self.expense.pk, {'status': 'pending'}, 'sneaky')
        with self.assertRaises(ValidationError):
            amend_approved_expense(self.expense.pk, {'amount': '-5'}, 'typo')
        with self.assertRaises(ValidationError):
            amend_approved_expense(self.expense.pk, {'amount': Decimal('300')}, 'no-op')
        with self.assertRaises(NotFoundError):
            amend_approved_expense(self.expense.pk, {'funded_by': 424242}, 'typo')

        self.assertFalse(ExpenseAmendment.objects.exists())

    def test_blank_fields_are_refused(self):
        for fields in ({'spent_at': None}, {'title': '   '}, {'category': ''}, {'category': 'bribes'}):
            with self.subTest(fields=fields):
                with self.assertRaises(ValidationError):
                    amend_approved_expense(self.expense.pk, fields, 'cleanup')

        self.expense.refresh_from_db()
        self.assertTrue(self.expense.title)
        self.assertIsNotNone(self.expense.spent_at)
        self.assertFalse(ExpenseAmendment.objects.exists())
