import json
from decimal import Decimal

from django.test import TestCase
from django.urls import reverse

from finances.models import Expense, Payment, ReviewStatus

from .factories import create_expense, create_obligation, create_payment, create_user


class ViewTestCase(TestCase):

    def setUp(self):
        self.fin = create_user('fin', role='financial_secretary')
        self.coordinator = create_user('events', role='event_coordinator')
        self.ada = create_user('ada')
        self.bob = create_user('bob')
        self.obligation = create_obligation(amount='5000', deadline_in=2)

    def post_json(self, url, data=None):
        return self.client.post(url, data=json.dumps(data or {}), content_type='application/json')


class AccessTests(ViewTestCase):

    def test_anonymous_gets_401_on_treasurer_endpoints(self):
        response = self.client.get(reverse('balances'))
        self.assertEqual(response.status_code, 401)

    def test_students_get_403(self):
        self.client.force_login(self.ada)
        response = self.client.get(reverse('review_queue'))
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()['error'], 'forbidden')

    def test_coordinator_cannot_decide_expenses(self):
        expense = create_expense()
        self.client.force_login(self.coordinator)

        response = self.post_json(reverse('approve_expense', args=[expense.pk]))

        self.assertEqual(response.status_code, 403)

    def test_state_changes_are_post_only(self):
        payment = create_payment(self.ada, self.obligation)
        self.client.force_login(self.fin)

        response = self.client.get(reverse('approve_payment', args=[payment.pk]))

        self.assertEqual(response.status_code, 405)

    def test_student_endpoints_need_login(self):
        response = self.client.get(reverse('summary'))
        self.assertEqual(response.status_code, 302)


class PaymentViewTests(ViewTestCase):

    def test_submit_then_approve(self):
        self.client.force_login(self.ada)
        response = self.post_json(reverse('submit_payment'), {
            'obligation': self.obligation.pk, 'amount': '5000', 'method': 'bank_transfer',
        })
        self.assertEqual(response.status_code, 201)
        payment_id = response.json()['payment']['id']

        self.client.force_login(self.fin)
        response = self.post_json(reverse('approve_payment', args=[payment_id]))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['payment']['status'], 'approved')

        response = self.post_json(reverse('approve_payment', args=[payment_id]))
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()['error'], 'invalid_state')

    def test_paying_for_a_classmate(self):
        self.client.force_login(self.ada)

        response = self.post_json(reverse('submit_payment'), {
            'obligation': self.obligation.pk, 'amount': '5000',
            'method': 'cash', 'student': self.bob.pk,
        })

        self.assertEqual(response.status_code, 201)
        payment = Payment.objects.get(pk=response.json()['payment']['id'])
        self.assertEqual(payment.student, self.bob)
        self.assertEqual(payment.paid_by, self.ada)

    def test_underpaying_a_strict_obligation(self):
        self.client.force_login(self.ada)

        response = self.post_json(reverse('submit_payment'), {
            'obligation': self.obligation.pk, 'amount': '100', 'method': 'cash',
        })

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], 'validation_error')

    def test_reject_requires_reason(self):
        payment = create_payment(self.ada, self.obligation)
        self.client.force_login(self.fin)

        missing = self.post_json(reverse('reject_payment', args=[payment.pk]))
        rejected = self.post_json(reverse('reject_payment', args=[payment.pk]), {'reason': 'No such transfer'})

        self.assertEqual(missing.status_code, 400)
        self.assertIn('reason', missing.json()['errors'])
        self.assertEqual(rejected.status_code, 200)
        self.assertEqual(rejected.json()['payment']['rejection_reason'], 'No such transfer')

    def test_waiver(self):
        self.client.force_login(self.fin)

        response = self.post_json(reverse('waive_payment'), {
            'student': self.ada.pk, 'obligation': self.obligation.pk, 'reason': 'scholarship',
        })

        self.assertEqual(response.status_code, 201)
        self.assertTrue(response.json()['payment']['waived'])

    def test_unknown_payment(self):
        self.client.force_login(self.fin)
        response = self.post_json(reverse('approve_payment', args=[424242]))
        self.assertEqual(response.status_code, 404)

    def test_bad_json(self):
        self.client.force_login(self.fin)
        payment = create_payment(self.ada, self.obligation)

        response = self.client.post(
            reverse('approve_payment', args=[payment.pk]), data='{nope', content_type='application/json',
        )

        self.assertEqual(response.status_code, 400)


class ExpenseViewTests(ViewTestCase):

    def setUp(self):
        super().setUp()
        create_payment(self.ada, self.obligation, status=ReviewStatus.APPROVED)
        self.client.force_login(self.fin)

    def test_record_and_approve(self):
        response = self.post_json(reverse('record_expense'), {
            'title': 'Printing', 'amount': '1000', 'category': 'printing',
            'funded_by': self.obligation.pk,
        })
        self.assertEqual(response.status_code, 201)
        expense_id = response.json()['expense']['id']

        response = self.post_json(reverse('approve_expense', args=[expense_id]))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['advisory']['level'], 'warning')
        self.assertEqual(response.json()['advisory']['balance_after'], '4000.00')

    def test_overdraft_needs_acknowledgement(self):
        expense = create_expense(amount='6000', funded_by=self.obligation)
        url = reverse('approve_expense', args=[expense.pk])

        first = self.post_json(url)
        second = self.post_json(url, {'acknowledged_risk': True})

        self.assertEqual(first.status_code, 400)
        self.assertEqual(first.json()['error'], 'risk_not_acknowledged')
        self.assertEqual(first.json()['advisory']['level'], 'critical')
        self.assertEqual(second.status_code, 200)

    def test_double_approval_is_a_conflict(self):
        expense = create_expense(amount='10', funded_by=self.obligation)
        url = reverse('approve_expense', args=[expense.pk])

        self.post_json(url)
        response = self.post_json(url)

        self.assertEqual(response.status_code, 409)

    def test_reject(self):
        expense = create_expense(amount='10')

        response = self.post_json(reverse('reject_expense', args=[expense.pk]), {'reason': 'Duplicate'})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(Expense.objects.get(pk=expense.pk).status, ReviewStatus.REJECTED)

    def test_amend(self):
        expense = create_expense(amount='500', funded_by=self.obligation, status=ReviewStatus.APPROVED)

        response = self.post_json(reverse('amend_expense', args=[expense.pk]), {
            'amount': '450', 'reason': 'Refund from vendor',
        })

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body['expense']['status'], 'approved')
        self.assertEqual(list(body['amendment']['new_values']), ['amount'])

    def test_amend_without_reason(self):
        expense = create_expense(amount='500', status=ReviewStatus.APPROVED)
        response = self.post_json(reverse('amend_expense', args=[expense.pk]), {'amount': '450'})
        self.assertEqual(response.status_code, 400)

    def test_amend_with_blank_values(self):
        expense = create_expense(amount='500', status=ReviewStatus.APPROVED)
        url = reverse('amend_expense', args=[expense.pk])

        blank_date = self.post_json(url, {'spent_at': '', 'reason': 'Fix date'})
        blank_title = self.post_json(url, {'title': '', 'reason': 'Rename'})

        self.assertEqual(blank_date.status_code, 400)
        self.assertEqual(blank_date.json()['error'], 'validation_error')
        self.assertEqual(blank_title.status_code, 400)
        expense.refresh_from_db()
        self.assertIsNotNone(expense.spent_at)
        self.assertNotEqual(expense.title, '')

    def test_approving_against_a_deleted_obligation(self):
        expense = create_expense(amount='10', funded_by_id=999999)

        response = self.post_json(
            reverse('approve_expense', args=[expense.pk]), {'acknowledged_risk': True},
        )

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()['error'], 'inconsistent_record')


class ReportingViewTests(ViewTestCase):

    def setUp(self):
        super().setUp()
        create_payment(self.ada, self.obligation, status=ReviewStatus.APPROVED)
        create_expense(amount='1500', funded_by=self.obligation, status=ReviewStatus.APPROVED,
                       is_published=True)
        create_expense(amount='200', status=ReviewStatus.APPROVED, is_published=False)

    def test_balances(self):
        self.client.force_login(self.fin)

        summary = self.client.get(reverse('balances')).json()
        source = self.client.get(reverse('source_balance', args=[self.obligation.pk])).json()
        general = self.client.get(reverse('general_fund_balance')).json()
        missing = self.client.get(reverse('source_balance', args=[424242]))

        self.assertEqual(summary['remaining'], '3300.00')
        self.assertEqual(source['balance'], '3500.00')
        self.assertEqual(general['balance_minor'], -20000)
        self.assertEqual(missing.status_code, 404)

    def test_threshold_preview(self):
        self.client.force_login(self.fin)

        response = self.client.get(reverse('threshold_preview'), {
            'source': self.obligation.pk, 'amount': '4000',
        })

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['level'], 'critical')
        self.assertEqual(response.json()['balance_after'], '-500.00')

    def test_review_queue_and_progress(self):
        create_payment(self.bob, self.obligation)
        self.client.force_login(self.fin)

        queue = self.client.get(reverse('review_queue')).json()
        progress = self.client.get(reverse('obligation_progress', args=[self.obligation.pk])).json()

        self.assertEqual(len(queue['payments']), 1)
        self.assertEqual(queue['expenses'], [])
        self.assertEqual(progress['paid_count'], 1)
        self.assertEqual(progress['pending_count'], 1)

    def test_student_views(self):
        self.client.force_login(self.bob)

        summary = self.client.get(reverse('summary')).json()
        deadlines = self.client.get(reverse('deadlines')).json()
        achievements = self.client.get(reverse('achievements')).json()
        budget = self.client.get(reverse('budget')).json()

        self.assertEqual(Decimal(summary['total_outstanding']), Decimal('5000'))
        self.assertEqual(deadlines['reminders'][0]['urgency'], 'high')
        self.assertEqual(achievements['earned_count'], 0)
        self.assertEqual(budget['expense_count'], 1)
        self.assertEqual(budget['total_spent'], '1500.00')
        self.assertEqual(budget['fund']['remaining'], '3300.00')
