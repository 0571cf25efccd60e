import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('finances', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='NotificationLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('notification_type', models.CharField(choices=[('payment_approved', 'Payment Approved'), ('payment_waived', 'Payment Waived'), ('payment_rejected', 'Payment Rejected'), ('expense_approved', 'Expense Approved'), ('expense_rejected', 'Expense Rejected'), ('low_balance', 'Low Balance Alert'), ('payment_due', 'Payment Due Reminder')], max_length=30)),
                ('channel', models.CharField(choices=[('email', 'Email'), ('in_app', 'In-app')], default='email', max_length=10)),
                ('subject', models.CharField(blank=True, max_length=255)),
                ('body_preview', models.TextField(blank=True, help_text='First 500 characters of the message body (for the audit log).')),
                ('sent_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('success', models.BooleanField(default=True, help_text='False if the send attempt failed (e.g. bounce, SMTP error).')),
                ('error_message', models.TextField(blank=True)),
                ('expense', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='notifications', to='finances.expense')),
                ('obligation', models.ForeignKey(blank=True, help_text='Set on deadline reminders so repeats can be throttled.', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='notifications', to='finances.paymentobligation')),
                ('payment', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='notifications', to='finances.payment')),
                ('recipient', models.ForeignKey(help_text='The user who received this notification.', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='notifications_received', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Notification Log',
                'verbose_name_plural': 'Notification Logs',
                'ordering': ['-sent_at'],
            },
        ),
    ]
