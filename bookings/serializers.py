from rest_framework import serializers
from .models import Booking
from .queries import PERIODS

TIME_FORMATS = ['%H:%M', '%H:%M:%S']


class AvailabilityQuerySerializer(serializers.Serializer):
    employee_id = serializers.IntegerField(min_value=1)
    service_id = serializers.IntegerField(min_value=1)
    date = serializers.DateField(input_formats=['iso-8601'])


class BookingRequestSerializer(serializers.Serializer):
    service_id = serializers.IntegerField(min_value=1)
    employee_id = serializers.IntegerField(min_value=1)
    booking_date = serializers.DateField(input_formats=['iso-8601'])
    start_time = serializers.TimeField(input_formats=TIME_FORMATS)
    deal_id = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    # Only honoured for admins booking on behalf of a customer
    customer_id = serializers.IntegerField(min_value=1, required=False)


class BookingUpdateSerializer(BookingRequestSerializer):
    status = serializers.ChoiceField(choices=Booking.Status.choices)


class StatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Booking.Status.choices)


class BookingFilterSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Booking.Status.choices, required=False)
    date_from = serializers.DateField(input_formats=['iso-8601'], required=False)
    date_to = serializers.DateField(input_formats=['iso-8601'], required=False)
    employee_id = serializers.IntegerField(min_value=1, required=False)
    service_id = serializers.IntegerField(min_value=1, required=False)
    customer_id = serializers.IntegerField(min_value=1, required=False)


class StatsQuerySerializer(serializers.Serializer):
    period = serializers.ChoiceField(choices=PERIODS, required=False, default='month')
    start_date = serializers.DateField(input_formats=['iso-8601'], required=False)
    end_date = serializers.DateField(input_formats=['iso-8601'], required=False)

    def validate(self, attrs):
        start, end = attrs.get('start_date'), attrs.get('end_date')
        if (start is None) != (end is None):
            raise serializers.ValidationError('start_date and end_date must be given together.')
        if start and start > end:
            raise serializers.ValidationError('start_date must not be after end_date.')
        return attrs
