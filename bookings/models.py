from django.conf import settings
from django.db import models
from catalog.pricing import discounted_price


class Booking(models.Model):
    class Status(models.TextChoices):
        PENDING = 'pending', 'Pending'
        CONFIRMED = 'confirmed', 'Confirmed'
        COMPLETED = 'completed', 'Completed'
        CANCELLED = 'cancelled', 'Cancelled'

    customer = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='bookings')
    service = models.ForeignKey('catalog.Service', on_delete=models.PROTECT, related_name='bookings')
    employee = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='assigned_bookings')
    deal = models.ForeignKey('catalog.Deal', on_delete=models.SET_NULL, null=True, blank=True, related_name='bookings')
    booking_date = models.DateField(db_index=True)
    start_time = models.TimeField()
    end_time = models.TimeField()
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING, db_index=True)
    notes = models.TextField(blank=True)
    # Price of record, copied from the service and deal when the booking is written
    base_price = models.DecimalField(max_digits=10, decimal_places=2)
    discount_percentage = models.DecimalField(max_digits=5, decimal_places=2, default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'bookings_booking'
        ordering = ['-booking_date', '-start_time']
        indexes = [
            models.Index(fields=['employee', 'booking_date'], name='booking_employee_day_idx'),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['employee', 'booking_date', 'start_time'],
                condition=~models.Q(status='cancelled'),
                name='unique_active_booking_start',
            ),
            models.CheckConstraint(condition=models.Q(start_time__lt=models.F('end_time')), name='booking_times_ordered'),
        ]

    def __str__(self):
        return f"{self.customer} - {self.service.name} - {self.booking_date} {self.start_time:%H:%M} - {self.status}"

    @property
    def price(self):
        return discounted_price(self.base_price, self.discount_percentage)

    @property
    def is_terminal(self):
        return self.status in (self.Status.COMPLETED, self.Status.CANCELLED)
