from decimal import Decimal
from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models


class Service(models.Model):
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0.01'))])
    duration = models.PositiveIntegerField(help_text='Duration in minutes', validators=[MinValueValidator(1)])
    category = models.CharField(max_length=50, db_index=True)
    image = models.CharField(max_length=255, blank=True)
    is_active = models.BooleanField(default=True, db_index=True)
    employees = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        related_name='services',
        blank=True,
        limit_choices_to={'role': 'employee'},
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'catalog_service'
        ordering = ['name']
        constraints = [
            models.CheckConstraint(condition=models.Q(price__gt=0), name='service_price_positive'),
            models.CheckConstraint(condition=models.Q(duration__gt=0), name='service_duration_positive'),
        ]

    def __str__(self):
        return f"{self.name} ({self.duration} min)"


class Deal(models.Model):
    title = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    service = models.ForeignKey(Service, on_delete=models.CASCADE, related_name='deals')
    discount_percentage = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01')), MaxValueValidator(Decimal('100'))],
    )
    start_date = models.DateField()
    end_date = models.DateField()
    image = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'catalog_deal'
        ordering = ['-start_date']
        constraints = [
            models.CheckConstraint(condition=models.Q(start_date__lte=models.F('end_date')), name='deal_dates_ordered'),
            models.CheckConstraint(
                condition=models.Q(discount_percentage__gt=0) & models.Q(discount_percentage__lte=100),
                name='deal_discount_in_range',
            ),
        ]

    def __str__(self):
        return f"{self.title} - {self.discount_percentage}% off {self.service.name}"

    def clean(self):
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValidationError({'end_date': 'End date must be on or after the start date.'})
