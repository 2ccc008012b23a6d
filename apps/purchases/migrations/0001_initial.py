# Generated manually for the plan fulfilment purchases app

import uuid
from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


PRODUCT_TYPES = [('meal', 'Meal plan'), ('workout', 'Workout plan'), ('combo', 'Meal + workout combo')]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Product',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=200)),
                ('type', models.CharField(choices=PRODUCT_TYPES, max_length=20)),
                ('active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'db_table': 'products',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='Purchase',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('external_id', models.CharField(blank=True, db_index=True, max_length=100)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('approved', 'Approved'), ('cancelled', 'Cancelled'), ('refunded', 'Refunded')], default='approved', max_length=20)),
                ('purchase_date', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='purchases', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'purchases',
                'ordering': ['-purchase_date', '-created_at'],
                'indexes': [
                    models.Index(fields=['user', 'status'], name='purchases_user_status_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='PurchaseItem',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('product_name', models.CharField(max_length=200)),
                ('product_type', models.CharField(choices=PRODUCT_TYPES, max_length=20)),
                ('form_status', models.CharField(choices=[('not_started', 'Not started'), ('pending', 'Pending'), ('in_progress', 'In progress'), ('completed', 'Completed')], default='pending', max_length=20)),
                ('plan_status', models.CharField(choices=[('awaiting', 'Awaiting'), ('ready', 'Ready'), ('active', 'Active')], default='awaiting', max_length=20)),
                ('has_form_response', models.BooleanField(default=False)),
                ('start_date', models.DateField(blank=True, null=True)),
                ('end_date', models.DateField(blank=True, null=True)),
                ('plan_content', models.JSONField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('purchase', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='purchases.purchase')),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='purchase_items', to='purchases.product')),
            ],
            options={
                'db_table': 'purchase_items',
                'ordering': ['created_at', 'id'],
                'indexes': [
                    models.Index(fields=['plan_status', 'created_at'], name='items_plan_status_idx'),
                    models.Index(fields=['plan_status', 'product_type'], name='items_plan_type_idx'),
                    models.Index(fields=['form_status'], name='items_form_status_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='FormResponse',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('form_type', models.CharField(choices=[('meal', 'Dietary questionnaire'), ('workout', 'Training questionnaire')], max_length=20)),
                ('version', models.PositiveIntegerField(default=1)),
                ('responses', models.JSONField(default=dict)),
                ('is_draft', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('item', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='form_response', to='purchases.purchaseitem')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='form_responses', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'form_responses',
                'ordering': ['-updated_at'],
            },
        ),
        migrations.CreateModel(
            name='ActivationRecord',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('plan_type', models.CharField(choices=PRODUCT_TYPES, max_length=20)),
                ('activated_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('item', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='activations', to='purchases.purchaseitem')),
                ('activated_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='plan_activations', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'plan_activations',
                'ordering': ['-activated_at'],
                'indexes': [
                    models.Index(fields=['activated_at'], name='activations_at_idx'),
                ],
            },
        ),
    ]
