import django.core.validators
import django.db.models.deletion
import uuid
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Grant',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('title', models.CharField(max_length=200)),
                ('description', models.TextField(max_length=5000)),
                ('total_budget', models.DecimalField(decimal_places=7, max_digits=20, validators=[django.core.validators.MinValueValidator(Decimal('1'))])),
                ('rules', models.TextField(max_length=2000)),
                ('status', models.CharField(choices=[('draft', 'Draft'), ('open', 'Open'), ('closed', 'Closed'), ('archived', 'Archived')], default='draft', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('creator', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='grants', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ('-created_at',),
                'indexes': [models.Index(fields=['creator', 'status'], name='grant_creator_status_idx')],
            },
        ),
        migrations.CreateModel(
            name='GrantMilestone',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('index', models.PositiveIntegerField()),
                ('title', models.CharField(max_length=100)),
                ('description', models.TextField(max_length=500)),
                ('expected_payout', models.DecimalField(decimal_places=7, max_digits=20, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('grant', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='milestones', to='grants.grant')),
            ],
            options={
                'ordering': ('grant', 'index'),
                'constraints': [models.UniqueConstraint(fields=('grant', 'index'), name='unique_grant_milestone_index')],
            },
        ),
        migrations.CreateModel(
            name='GrantApplication',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('title', models.CharField(max_length=200)),
                ('summary', models.TextField()),
                ('status', models.CharField(choices=[('submitted', 'Submitted'), ('awaiting_final_approval', 'Awaiting Final Approval'), ('approved', 'Approved'), ('rejected', 'Rejected'), ('in_progress', 'In Progress'), ('completed', 'Completed')], default='submitted', max_length=30)),
                ('escrowed_amount', models.DecimalField(decimal_places=7, default=Decimal('0'), max_digits=20)),
                ('escrow_reference', models.CharField(blank=True, max_length=128, null=True)),
                ('milestones_completed', models.PositiveIntegerField(default=0)),
                ('admin_note', models.TextField(blank=True, default='', null=True)),
                ('archived', models.BooleanField(default=False)),
                ('reviewed_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('applicant', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='grant_applications', to=settings.AUTH_USER_MODEL)),
                ('grant', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='applications', to='grants.grant')),
                ('reviewed_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='reviewed_applications', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ('-created_at',),
                'constraints': [
                    models.UniqueConstraint(condition=models.Q(('archived', False)), fields=('grant', 'applicant'), name='unique_active_application_per_grant'),
                    models.CheckConstraint(condition=models.Q(('escrowed_amount__gte', 0)), name='application_escrowed_amount_non_negative'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ApplicationMilestone',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('index', models.PositiveIntegerField()),
                ('title', models.CharField(max_length=200)),
                ('description', models.TextField()),
                ('expected_payout', models.DecimalField(decimal_places=7, max_digits=20, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('supporting_documents', models.JSONField(blank=True, default=list)),
                ('application', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='milestones', to='grants.grantapplication')),
            ],
            options={
                'ordering': ('application', 'index'),
                'constraints': [models.UniqueConstraint(fields=('application', 'index'), name='unique_application_milestone_index')],
            },
        ),
    ]
