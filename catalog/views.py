from django.db.models import Count, Q
from django.http import JsonResponse
from django.utils import timezone
from django.views.decorators.http import require_http_methods
from .models import Deal, Service
from .pricing import (
    DealStatus,
    active_deal_for_service,
    active_deals,
    deal_status,
    discounted_price,
    format_price,
    prefetch_active_deals,
)

POPULAR_LIMIT = 5
POPULAR_MAX = 20
BOOKED_STATUSES = ('pending', 'confirmed', 'completed')


def serialize_service(service, today=None):
    deal = active_deal_for_service(service, today)
    data = {
        'id': service.id,
        'name': service.name,
        'description': service.description,
        'category': service.category,
        'duration': service.duration,
        'price': format_price(service.price),
        'image': service.image,
        'deal': None,
        'display_price': format_price(service.price),
    }
    if deal:
        data['deal'] = {
            'id': deal.id,
            'title': deal.title,
            'discount_percentage': str(deal.discount_percentage),
            'end_date': deal.end_date.isoformat(),
        }
        data['display_price'] = format_price(discounted_price(service.price, deal.discount_percentage))
    return data


def serialize_deal(deal, today=None):
    return {
        'id': deal.id,
        'title': deal.title,
        'description': deal.description,
        'service_id': deal.service_id,
        'service_name': deal.service.name,
        'discount_percentage': str(deal.discount_percentage),
        'start_date': deal.start_date.isoformat(),
        'end_date': deal.end_date.isoformat(),
        'status': deal_status(deal, today).value,
        'original_price': format_price(deal.service.price),
        'discounted_price': format_price(discounted_price(deal.service.price, deal.discount_percentage)),
    }


@require_http_methods(["GET"])
def list_services(request):
    today = timezone.localdate()
    services = prefetch_active_deals(Service.objects.filter(is_active=True), today)

    category = request.GET.get('category')
    if category:
        services = services.filter(category=category)

    search = request.GET.get('search', '').strip()
    if search:
        services = services.filter(Q(name__icontains=search) | Q(description__icontains=search))

    return JsonResponse({'services': [serialize_service(s, today) for s in services]})


@require_http_methods(["GET"])
def list_categories(request):
    categories = (
        Service.objects.filter(is_active=True)
        .exclude(category='')
        .order_by('category')
        .values_list('category', flat=True)
        .distinct()
    )
    return JsonResponse({'categories': list(categories)})


@require_http_methods(["GET"])
def popular_services(request):
    try:
        limit = int(request.GET.get('limit', POPULAR_LIMIT))
    except ValueError:
        limit = 0
    if not 1 <= limit <= POPULAR_MAX:
        return JsonResponse({'error': f'limit must be between 1 and {POPULAR_MAX}'}, status=400)

    today = timezone.localdate()
    services = prefetch_active_deals(
        Service.objects.filter(is_active=True).annotate(
            booking_count=Count('bookings', filter=Q(bookings__status__in=BOOKED_STATUSES))
        ).order_by('-booking_count', 'name'),
        today,
    )[:limit]

    payload = []
    for service in services:
        data = serialize_service(service, today)
        data['booking_count'] = service.booking_count
        payload.append(data)
    return JsonResponse({'services': payload})


@require_http_methods(["GET"])
def get_service(request, service_id):
    try:
        service = Service.objects.get(id=service_id, is_active=True)
    except Service.DoesNotExist:
        return JsonResponse({'error': 'Service not found'}, status=404)

    return JsonResponse(serialize_service(service))


@require_http_methods(["GET"])
def list_service_employees(request, service_id):
    try:
        service = Service.objects.get(id=service_id, is_active=True)
    except Service.DoesNotExist:
        return JsonResponse({'error': 'Service not found'}, status=404)

    employees = service.employees.filter(role='employee', is_active=True)
    return JsonResponse({
        'service_id': service.id,
        'employees': [
            {
                'id': e.id,
                'name': e.get_full_name() or e.username,
                'position': e.position,
                'profile_image': e.profile_image,
            }
            for e in employees
        ],
    })


@require_http_methods(["GET"])
def list_deals(request):
    deals = Deal.objects.select_related('service')

    status = request.GET.get('status')
    if status:
        try:
            status = DealStatus(status)
        except ValueError:
            return JsonResponse({'error': 'status must be one of: upcoming, active, expired'}, status=400)
        if status == DealStatus.ACTIVE:
            deals = active_deals(deals)

    payload = [serialize_deal(d) for d in deals]
    if status and status != DealStatus.ACTIVE:
        payload = [d for d in payload if d['status'] == status.value]

    return JsonResponse({'deals': payload})
