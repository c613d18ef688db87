from django.core.exceptions import ValidationError
from django.db import transaction
from loguru import logger

from .models import Deal, Service


def overlapping_deals(deal):
    qs = Deal.objects.filter(
        service_id=deal.service_id,
        start_date__lte=deal.end_date,
        end_date__gte=deal.start_date,
    )
    if deal.pk:
        qs = qs.exclude(pk=deal.pk)
    return qs


def save_deal(deal):
    """
    Validate and persist a deal.

    A service may only carry one deal per day, so the service row is locked
    while the overlap check and the write happen.
    """
    deal.full_clean()

    with transaction.atomic():
        Service.objects.select_for_update().get(pk=deal.service_id)

        clash = overlapping_deals(deal).first()
        if clash:
            logger.warning(f"Deal '{deal.title}' rejected: overlaps deal #{clash.pk} for service #{deal.service_id}")
            raise ValidationError({
                'start_date': f'Service already has the deal "{clash.title}" running from {clash.start_date} to {clash.end_date}.'
            })

        deal.save()

    logger.info(f"Deal #{deal.pk} saved for service #{deal.service_id} ({deal.discount_percentage}% off)")
    return deal
