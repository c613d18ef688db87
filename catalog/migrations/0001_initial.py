from decimal import Decimal
from django.conf import settings
import django.core.validators
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Service',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100)),
                ('description', models.TextField(blank=True)),
                ('price', models.DecimalField(decimal_places=2, max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0.01'))])),
                ('duration', models.PositiveIntegerField(help_text='Duration in minutes', validators=[django.core.validators.MinValueValidator(1)])),
                ('category', models.CharField(db_index=True, max_length=50)),
                ('image', models.CharField(blank=True, max_length=255)),
                ('is_active', models.BooleanField(db_index=True, default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('employees', models.ManyToManyField(blank=True, limit_choices_to={'role': 'employee'}, related_name='services', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'catalog_service',
                'ordering': ['name'],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(price__gt=0), name='service_price_positive'),
                    models.CheckConstraint(condition=models.Q(duration__gt=0), name='service_duration_positive'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Deal',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=100)),
                ('description', models.TextField(blank=True)),
                ('discount_percentage', models.DecimalField(decimal_places=2, max_digits=5, validators=[django.core.validators.MinValueValidator(Decimal('0.01')), django.core.validators.MaxValueValidator(Decimal('100'))])),
                ('start_date', models.DateField()),
                ('end_date', models.DateField()),
                ('image', models.CharField(blank=True, max_length=255)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('service', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='deals', to='catalog.service')),
            ],
            options={
                'db_table': 'catalog_deal',
                'ordering': ['-start_date'],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(start_date__lte=models.F('end_date')), name='deal_dates_ordered'),
                    models.CheckConstraint(condition=models.Q(discount_percentage__gt=0) & models.Q(discount_percentage__lte=100), name='deal_discount_in_range'),
                ],
            },
        ),
    ]
