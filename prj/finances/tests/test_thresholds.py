from decimal import Decimal

from django.test import SimpleTestCase, TestCase, override_settings

from finances.models import ReviewStatus
from finances.services import classify_threshold
from finances.services.thresholds import AdvisoryLevel, advise, level_for

from .factories import create_expense, create_obligation, create_payment, create_user


class LevelForTests(SimpleTestCase):

    def test_levels(self):
        self.assertEqual(level_for(Decimal('-0.01')), AdvisoryLevel.CRITICAL)
        self.assertEqual(level_for(Decimal('0')), AdvisoryLevel.WARNING)
        self.assertEqual(level_for(Decimal('14999.99')), AdvisoryLevel.WARNING)
        self.assertEqual(level_for(Decimal('15000')), AdvisoryLevel.NORMAL)

    def test_warning_when_balance_drops_below_threshold(self):
        advisory = advise(1, Decimal('15000'), Decimal('3000'))
        self.assertEqual(advisory.level, AdvisoryLevel.WARNING)
        self.assertEqual(advisory.balance_after, Decimal('12000'))

    def test_critical_when_balance_goes_negative(self):
        advisory = advise(1, Decimal('10000'), Decimal('12000'))
        self.assertEqual(advisory.level, AdvisoryLevel.CRITICAL)
        self.assertEqual(advisory.balance_after, Decimal('-2000'))
        self.assertTrue(advisory.is_risky)
        self.assertIn('2000', advisory.message)

    def test_critical_stays_critical_for_larger_amounts(self):
        balance = Decimal('10000')
        first_critical = None
        for amount in range(0, 30001, 500):
            level = advise(1, balance, Decimal(amount)).level
            if first_critical is not None:
                self.assertEqual(level, AdvisoryLevel.CRITICAL, amount)
            elif level == AdvisoryLevel.CRITICAL:
                first_critical = amount
        self.assertEqual(first_critical, 10500)

    @override_settings(DUES_LEDGER={'LOW_BALANCE_THRESHOLD': 100})
    def test_threshold_comes_from_settings(self):
        self.assertEqual(level_for(Decimal('150')), AdvisoryLevel.NORMAL)
        self.assertEqual(level_for(Decimal('50')), AdvisoryLevel.WARNING)


class ClassifyThresholdTests(TestCase):

    def test_reads_the_live_balance(self):
        student = create_user()
        obligation = create_obligation(amount='20000')
        create_payment(student, obligation, status=ReviewStatus.APPROVED)
        create_expense(amount='5000', funded_by=obligation, status=ReviewStatus.APPROVED)

        with self.assertLogs('finances.services.thresholds', level='WARNING'):
            advisory = classify_threshold(obligation.pk, Decimal('3000'))

        self.assertEqual(advisory.balance_before, Decimal('15000'))
        self.assertEqual(advisory.level, AdvisoryLevel.WARNING)
        self.assertEqual(advisory.balance_after, Decimal('12000'))
