"""
Initial migration for Buildman models.
"""

from decimal import Decimal
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    """Create Buildman models: StockMovement, StockBalance, ConsumptionStandard, InventoryUnit."""

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='StockBalance',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('material_id', models.PositiveBigIntegerField(verbose_name='Material')),
                ('project_id', models.PositiveBigIntegerField(verbose_name='Project')),
                ('quantity', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=14, verbose_name='Quantity')),
                ('last_sequence', models.PositiveIntegerField(default=0, help_text='Sequence of the latest movement (0 = none)', verbose_name='Last sequence')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Stock balance',
                'verbose_name_plural': 'Stock balances',
            },
        ),
        migrations.CreateModel(
            name='StockMovement',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('material_id', models.PositiveBigIntegerField(verbose_name='Material')),
                ('project_id', models.PositiveBigIntegerField(verbose_name='Project')),
                ('direction', models.CharField(choices=[('in', 'In'), ('out', 'Out')], max_length=3, verbose_name='Direction')),
                ('quantity', models.DecimalField(decimal_places=3, help_text='Always positive; direction gives the sign', max_digits=14, verbose_name='Quantity')),
                ('reference_kind', models.CharField(choices=[('purchase_order', 'Purchase order'), ('task_consumption', 'Task consumption'), ('manual_adjustment', 'Manual adjustment')], max_length=32, verbose_name='Reference kind')),
                ('reference_id', models.PositiveBigIntegerField(default=0, help_text='0 = no upstream document', verbose_name='Reference ID')),
                ('invoice_id', models.CharField(blank=True, default='', max_length=100, verbose_name='Vendor invoice')),
                ('sequence', models.PositiveIntegerField(verbose_name='Sequence')),
                ('balance_after', models.DecimalField(decimal_places=3, max_digits=14, verbose_name='Balance after')),
                ('occurred_at', models.DateTimeField(default=django.utils.timezone.now, verbose_name='Occurred at')),
                ('notes', models.TextField(blank=True, default='', verbose_name='Notes')),
                ('performed_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL, verbose_name='Performed by')),
            ],
            options={
                'verbose_name': 'Stock movement',
                'verbose_name_plural': 'Stock movements',
                'ordering': ['material_id', 'project_id', 'sequence'],
            },
        ),
        migrations.CreateModel(
            name='ConsumptionStandard',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('project_id', models.PositiveBigIntegerField(verbose_name='Project')),
                ('material_id', models.PositiveBigIntegerField(verbose_name='Material')),
                ('standard_quantity', models.DecimalField(decimal_places=3, max_digits=14, verbose_name='Standard quantity')),
                ('unit', models.CharField(blank=True, default='', max_length=20, verbose_name='Unit')),
                ('tolerance_fraction', models.DecimalField(decimal_places=4, default=Decimal('0.10'), help_text='0.10 = 10% either side of the standard', max_digits=5, verbose_name='Tolerance')),
                ('description', models.TextField(blank=True, default='', verbose_name='Description')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Consumption standard',
                'verbose_name_plural': 'Consumption standards',
                'ordering': ['project_id', 'material_id'],
            },
        ),
        migrations.CreateModel(
            name='InventoryUnit',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('project_id', models.PositiveBigIntegerField(verbose_name='Project')),
                ('unit_number', models.CharField(max_length=30, verbose_name='Unit number')),
                ('unit_type', models.CharField(blank=True, default='', help_text='Ex: 2BHK, Shop, Plot', max_length=30, verbose_name='Unit type')),
                ('floor_area', models.DecimalField(decimal_places=2, max_digits=12, verbose_name='Floor area')),
                ('area_unit', models.CharField(default='sqft', max_length=10, verbose_name='Area unit')),
                ('is_sold', models.BooleanField(default=False, verbose_name='Sold')),
                ('sold_price', models.DecimalField(blank=True, decimal_places=2, max_digits=16, null=True, verbose_name='Sold price')),
                ('sold_at', models.DateField(blank=True, null=True, verbose_name='Sold on')),
                ('buyer_name', models.CharField(blank=True, default='', max_length=150, verbose_name='Buyer')),
                ('allocated_cost', models.DecimalField(blank=True, decimal_places=2, help_text='Written by area-based costing', max_digits=16, null=True, verbose_name='Allocated cost')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Inventory unit',
                'verbose_name_plural': 'Inventory units',
                'ordering': ['project_id', 'unit_number'],
            },
        ),
        # Indexes
        migrations.AddIndex(
            model_name='stockbalance',
            index=models.Index(fields=['project_id'], name='buildman_balance_project_idx'),
        ),
        migrations.AddIndex(
            model_name='stockmovement',
            index=models.Index(fields=['material_id', 'project_id', 'occurred_at'], name='buildman_move_pair_time_idx'),
        ),
        migrations.AddIndex(
            model_name='stockmovement',
            index=models.Index(fields=['reference_kind', 'reference_id'], name='buildman_move_reference_idx'),
        ),
        migrations.AddIndex(
            model_name='stockmovement',
            index=models.Index(fields=['project_id', 'direction'], name='buildman_move_proj_dir_idx'),
        ),
        # Constraints
        migrations.AddConstraint(
            model_name='stockbalance',
            constraint=models.UniqueConstraint(fields=('material_id', 'project_id'), name='unique_balance_pair'),
        ),
        migrations.AddConstraint(
            model_name='stockbalance',
            constraint=models.CheckConstraint(condition=models.Q(('quantity__gte', 0)), name='balance_not_negative'),
        ),
        migrations.AddConstraint(
            model_name='stockmovement',
            constraint=models.UniqueConstraint(fields=('material_id', 'project_id', 'sequence'), name='unique_movement_sequence'),
        ),
        migrations.AddConstraint(
            model_name='stockmovement',
            constraint=models.CheckConstraint(condition=models.Q(('quantity__gt', 0)), name='movement_quantity_positive'),
        ),
        migrations.AddConstraint(
            model_name='stockmovement',
            constraint=models.CheckConstraint(condition=models.Q(('balance_after__gte', 0)), name='movement_balance_not_negative'),
        ),
        migrations.AddConstraint(
            model_name='consumptionstandard',
            constraint=models.UniqueConstraint(fields=('project_id', 'material_id'), name='unique_standard_per_project_material'),
        ),
        migrations.AddConstraint(
            model_name='consumptionstandard',
            constraint=models.CheckConstraint(condition=models.Q(('tolerance_fraction__gte', 0), ('tolerance_fraction__lte', 1)), name='standard_tolerance_range'),
        ),
        migrations.AddConstraint(
            model_name='inventoryunit',
            constraint=models.UniqueConstraint(fields=('project_id', 'unit_number'), name='unique_unit_number_per_project'),
        ),
        migrations.AddConstraint(
            model_name='inventoryunit',
            constraint=models.CheckConstraint(condition=models.Q(('floor_area__gt', 0)), name='unit_floor_area_positive'),
        ),
    ]
