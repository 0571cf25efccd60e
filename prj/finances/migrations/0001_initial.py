# finances/migrations/0001_initial.py
#
# Obligations, payments, expenses and the expense amendment audit trail.
# Expense.funded_by deliberately carries no database constraint.

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


REVIEW_STATUS_CHOICES = [
    ('pending', 'Pending'),
    ('approved', 'Approved'),
    ('rejected', 'Rejected'),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='PaymentObligation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(help_text='Short description of what the payment is for.', max_length=200)),
                ('description', models.TextField(blank=True, help_text='Optional longer explanation.')),
                ('category', models.CharField(
                    choices=[
                        ('semester_dues', 'Semester Dues'),
                        ('books', 'Books'),
                        ('events', 'Events'),
                        ('projects', 'Projects'),
                        ('welfare', 'Welfare'),
                        ('custom', 'Custom'),
                    ],
                    default='semester_dues',
                    max_length=20,
                )),
                ('amount', models.DecimalField(
                    decimal_places=2,
                    help_text='Amount each targeted student is expected to pay.',
                    max_digits=12,
                )),
                ('deadline', models.DateTimeField(blank=True, help_text='Optional deadline for payment.', null=True)),
                ('allows_partial', models.BooleanField(default=False, help_text='If True, students may pay in instalments.')),
                ('target_levels', models.JSONField(
                    blank=True,
                    default=list,
                    help_text="Cohort tags this obligation applies to, e.g. ['200L', '300L']. Empty means every student.",
                )),
                ('is_active', models.BooleanField(
                    default=True,
                    help_text='Inactive obligations are hidden from students and reminders.',
                )),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('created_by', models.ForeignKey(
                    blank=True,
                    help_text='Executive who created this obligation.',
                    null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name='created_obligations',
                    to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={
                'verbose_name': 'Payment Obligation',
                'verbose_name_plural': 'Payment Obligations',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='Payment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('amount', models.DecimalField(decimal_places=2, max_digits=12)),
                ('method', models.CharField(
                    choices=[('bank_transfer', 'Bank Transfer'), ('cash', 'Cash'), ('pos', 'POS')],
                    default='bank_transfer',
                    max_length=20,
                )),
                ('status', models.CharField(choices=REVIEW_STATUS_CHOICES, default='pending', max_length=20)),
                ('waived', models.BooleanField(
                    default=False,
                    help_text='Approved without collection.  Only ever set together with APPROVED.',
                )),
                ('waiver_reason', models.CharField(
                    blank=True,
                    choices=[
                        ('financial_hardship', 'Financial Hardship'),
                        ('medical_emergency', 'Medical Emergency'),
                        ('class_executive', 'Class Executive Role'),
                        ('scholarship', 'Scholarship/Sponsorship'),
                        ('departmental_support', 'Departmental Support'),
                        ('other', 'Other'),
                    ],
                    max_length=30,
                )),
                ('transaction_ref', models.CharField(
                    blank=True,
                    help_text='Bank or POS reference supplied by the student.',
                    max_length=100,
                )),
                ('note', models.TextField(blank=True)),
                ('rejection_reason', models.TextField(blank=True)),
                ('approved_at', models.DateTimeField(blank=True, null=True)),
                ('reviewed_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('obligation', models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name='payments',
                    to='finances.paymentobligation',
                )),
                ('student', models.ForeignKey(
                    help_text='Student this payment is credited to.',
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='payments',
                    to=settings.AUTH_USER_MODEL,
                )),
                ('paid_by', models.ForeignKey(
                    blank=True,
                    help_text="Classmate who paid on the student's behalf, if any.",
                    null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name='payments_made_for_others',
                    to=settings.AUTH_USER_MODEL,
                )),
                ('reviewed_by', models.ForeignKey(
                    blank=True,
                    null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name='reviewed_payments',
                    to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={
                'verbose_name': 'Payment',
                'verbose_name_plural': 'Payments',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['obligation', 'status'], name='payment_source_status_idx'),
                    models.Index(fields=['student', 'status'], name='payment_student_status_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Expense',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=12)),
                ('category', models.CharField(
                    choices=[
                        ('materials', 'Materials'),
                        ('transport', 'Transport'),
                        ('printing', 'Printing'),
                        ('food', 'Food & Drinks'),
                        ('venue', 'Venue'),
                        ('other', 'Other'),
                    ],
                    default='other',
                    max_length=20,
                )),
                ('status', models.CharField(choices=REVIEW_STATUS_CHOICES, default='pending', max_length=20)),
                ('spent_at', models.DateField(default=django.utils.timezone.localdate)),
                ('approved_at', models.DateTimeField(blank=True, null=True)),
                ('rejection_reason', models.TextField(blank=True)),
                ('is_published', models.BooleanField(
                    default=True,
                    help_text='If True, all logged-in students can see this expense.',
                )),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('funded_by', models.ForeignKey(
                    blank=True,
                    db_constraint=False,
                    help_text='Obligation whose collections fund this expense (empty = general fund).',
                    null=True,
                    on_delete=django.db.models.deletion.DO_NOTHING,
                    related_name='expenses',
                    to='finances.paymentobligation',
                )),
                ('recorded_by', models.ForeignKey(
                    blank=True,
                    null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name='recorded_expenses',
                    to=settings.AUTH_USER_MODEL,
                )),
                ('approved_by', models.ForeignKey(
                    blank=True,
                    null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name='approved_expenses',
                    to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={
                'verbose_name': 'Expense',
                'verbose_name_plural': 'Expenses',
                'ordering': ['-spent_at', '-created_at'],
                'indexes': [
                    models.Index(fields=['funded_by', 'status'], name='expense_source_status_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ExpenseAmendment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('previous_values', models.JSONField(default=dict)),
                ('new_values', models.JSONField(default=dict)),
                ('reason', models.TextField()),
                ('performed_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('expense', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='amendments',
                    to='finances.expense',
                )),
                ('performed_by', models.ForeignKey(
                    blank=True,
                    null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name='expense_amendments',
                    to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={
                'verbose_name': 'Expense Amendment',
                'verbose_name_plural': 'Expense Amendments',
                'ordering': ['-performed_at'],
            },
        ),
    ]
