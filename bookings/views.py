import json
from django.http import JsonResponse
from django.utils import timezone
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods
from accounts.context import RequestContext
from catalog.pricing import format_price
from .availability import format_slot, get_available_time_slots
from .lifecycle import (
    BookingResult,
    RejectionReason,
    cancel_booking,
    create_booking,
    load_employee,
    load_service,
    update_booking,
    update_booking_status,
)
from .models import Booking
from .queries import booking_statistics, bookings_for_context, filter_bookings, period_range, revenue_statistics
from .serializers import (
    AvailabilityQuerySerializer,
    BookingFilterSerializer,
    BookingRequestSerializer,
    BookingUpdateSerializer,
    StatsQuerySerializer,
    StatusUpdateSerializer,
)

REJECTION_STATUS_CODES = {
    RejectionReason.SERVICE_NOT_FOUND: 404,
    RejectionReason.EMPLOYEE_NOT_FOUND: 404,
    RejectionReason.CUSTOMER_NOT_FOUND: 404,
    RejectionReason.BOOKING_NOT_FOUND: 404,
    RejectionReason.SLOT_UNAVAILABLE: 409,
    RejectionReason.INVALID_TRANSITION: 409,
    RejectionReason.SAVE_FAILED: 500,
}


def rejection_response(result):
    return JsonResponse({
        'error': result.message,
        'reason': result.reason.value,
    }, status=REJECTION_STATUS_CODES.get(result.reason, 400))


def validation_error(serializer):
    return JsonResponse({'error': 'Invalid input', 'fields': serializer.errors}, status=400)


def serialize_booking(booking):
    return {
        'booking_id': booking.id,
        'customer_id': booking.customer_id,
        'customer_name': str(booking.customer),
        'service_id': booking.service_id,
        'service_name': booking.service.name,
        'employee_id': booking.employee_id,
        'employee_name': str(booking.employee),
        'deal_id': booking.deal_id,
        'booking_date': booking.booking_date.isoformat(),
        'start_time': format_slot(booking.start_time),
        'end_time': format_slot(booking.end_time),
        'status': booking.status,
        'notes': booking.notes,
        'base_price': format_price(booking.base_price),
        'discount_percentage': str(booking.discount_percentage),
        'price': format_price(booking.price),
    }


def parse_body(request):
    try:
        return json.loads(request.body)
    except json.JSONDecodeError:
        return None


@require_http_methods(["GET"])
def available_slots(request):
    serializer = AvailabilityQuerySerializer(data=request.GET)
    if not serializer.is_valid():
        return validation_error(serializer)

    data = serializer.validated_data
    if data['date'] < timezone.localdate():
        return JsonResponse({'error': 'Booking date must be in the future.', 'reason': RejectionReason.DATE_IN_PAST.value}, status=400)

    service = load_service(data['service_id'])
    if service is None:
        return rejection_response(BookingResult.rejected(RejectionReason.SERVICE_NOT_FOUND))
    employee = load_employee(data['employee_id'])
    if employee is None:
        return rejection_response(BookingResult.rejected(RejectionReason.EMPLOYEE_NOT_FOUND))
    if not service.employees.filter(pk=employee.pk).exists():
        return rejection_response(BookingResult.rejected(RejectionReason.EMPLOYEE_NOT_QUALIFIED))

    slots = get_available_time_slots(employee.pk, service.pk, data['date'])
    response = {
        'employee_id': data['employee_id'],
        'service_id': data['service_id'],
        'date': data['date'].isoformat(),
        'slots': [format_slot(s) for s in slots],
    }
    if not slots:
        response['message'] = 'No available time slots for the selected date. Please choose another date.'
    return JsonResponse(response)


@csrf_exempt
@require_http_methods(["GET", "POST"])
def bookings(request):
    if request.method == 'POST':
        return _create_booking(request)
    return _list_bookings(request)


def _create_booking(request):
    context = RequestContext.from_request(request)
    if context is None:
        return JsonResponse({'error': 'Authentication required'}, status=401)

    data = parse_body(request)
    if data is None:
        return JsonResponse({'error': 'Invalid JSON'}, status=400)

    serializer = BookingRequestSerializer(data=data)
    if not serializer.is_valid():
        return validation_error(serializer)
    data = serializer.validated_data

    customer_id = context.user_id
    if context.is_admin and data.get('customer_id'):
        customer_id = data['customer_id']

    result = create_booking(
        customer_id=customer_id,
        service_id=data['service_id'],
        employee_id=data['employee_id'],
        booking_date=data['booking_date'],
        start_time=data['start_time'],
        notes=data.get('notes', ''),
        deal_id=data.get('deal_id'),
    )
    if not result.ok:
        return rejection_response(result)

    return JsonResponse({
        'booking_id': result.booking.id,
        'status': result.booking.status,
        'message': 'Booking created',
        'booking': serialize_booking(result.booking),
    }, status=201)


def _list_bookings(request):
    context = RequestContext.from_request(request)
    if context is None:
        return JsonResponse({'error': 'Authentication required'}, status=401)

    serializer = BookingFilterSerializer(data=request.GET)
    if not serializer.is_valid():
        return validation_error(serializer)

    qs = filter_bookings(bookings_for_context(context), **serializer.validated_data)
    return JsonResponse({
        'count': qs.count(),
        'bookings': [serialize_booking(b) for b in qs],
    })


@require_http_methods(["GET"])
def get_booking(request, booking_id):
    context = RequestContext.from_request(request)
    if context is None:
        return JsonResponse({'error': 'Authentication required'}, status=401)

    try:
        booking = Booking.objects.select_related('customer', 'service', 'employee').get(id=booking_id)
    except Booking.DoesNotExist:
        return JsonResponse({'error': 'Booking not found'}, status=404)

    if not context.can_view_booking(booking):
        return JsonResponse({'error': 'Booking not found'}, status=404)

    return JsonResponse(serialize_booking(booking))


@csrf_exempt
@require_http_methods(["POST"])
def edit_booking(request, booking_id):
    context = RequestContext.from_request(request)
    if context is None or not context.is_admin:
        return JsonResponse({'error': 'Admin access required'}, status=403)

    data = parse_body(request)
    if data is None:
        return JsonResponse({'error': 'Invalid JSON'}, status=400)

    serializer = BookingUpdateSerializer(data=data)
    if not serializer.is_valid():
        return validation_error(serializer)
    data = serializer.validated_data

    result = update_booking(
        booking_id=booking_id,
        service_id=data['service_id'],
        employee_id=data['employee_id'],
        booking_date=data['booking_date'],
        start_time=data['start_time'],
        status=data['status'],
        notes=data.get('notes', ''),
        deal_id=data.get('deal_id'),
    )
    if not result.ok:
        return rejection_response(result)

    return JsonResponse(serialize_booking(result.booking))


@csrf_exempt
@require_http_methods(["POST"])
def change_booking_status(request, booking_id):
    context = RequestContext.from_request(request)
    if context is None or not context.is_admin:
        return JsonResponse({'error': 'Admin access required'}, status=403)

    data = parse_body(request)
    if data is None:
        return JsonResponse({'error': 'Invalid JSON'}, status=400)

    serializer = StatusUpdateSerializer(data=data)
    if not serializer.is_valid():
        return validation_error(serializer)

    result = update_booking_status(booking_id, serializer.validated_data['status'])
    if not result.ok:
        return rejection_response(result)

    return JsonResponse({
        'booking_id': result.booking.id,
        'status': result.booking.status,
        'message': f'Booking status updated to {result.booking.get_status_display()}',
    })


@csrf_exempt
@require_http_methods(["POST"])
def cancel(request, booking_id):
    context = RequestContext.from_request(request)
    if context is None:
        return JsonResponse({'error': 'Authentication required'}, status=401)

    result = cancel_booking(context, booking_id)
    if not result.ok:
        return rejection_response(result)

    return JsonResponse({
        'booking_id': result.booking.id,
        'status': result.booking.status,
        'message': 'Booking cancelled',
    })


@require_http_methods(["GET"])
def stats(request):
    context = RequestContext.from_request(request)
    if context is None or not context.is_admin:
        return JsonResponse({'error': 'Admin access required'}, status=403)

    serializer = StatsQuerySerializer(data=request.GET)
    if not serializer.is_valid():
        return validation_error(serializer)
    data = serializer.validated_data

    if data.get('start_date'):
        period = 'custom'
        start_date, end_date = data['start_date'], data['end_date']
    else:
        period = data['period']
        start_date, end_date = period_range(period)

    return JsonResponse({
        'period': period,
        'bookings': booking_statistics(start_date, end_date),
        'revenue': revenue_statistics(start_date, end_date),
        'pending': filter_bookings(status=Booking.Status.PENDING).count(),
    })
