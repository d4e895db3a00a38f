"""
Active quarter state.

The active quarter is read lazily from the cache and refreshed from the
database on a miss. Views resolve it once per request and pass it to the
attendance, grading and report services.
"""
import logging

from django.conf import settings
from django.core.cache import cache
from django.db import transaction

from .exceptions import NoActiveQuarter
from .models import Quarter

logger = logging.getLogger(__name__)

ACTIVE_QUARTER_CACHE_KEY = 'active_quarter'


def _serialize(quarter):
    return {
        'id': quarter.pk,
        'name': quarter.name,
        'start_date': quarter.start_date.isoformat(),
        'end_date': quarter.end_date.isoformat(),
        'break_dates': list(quarter.break_dates or []),
    }


def set_active_quarter(quarter):
    """Write the active quarter to the cache, or clear it with ``None``."""
    if quarter is None:
        cache.delete(ACTIVE_QUARTER_CACHE_KEY)
        return
    cache.set(ACTIVE_QUARTER_CACHE_KEY, _serialize(quarter), settings.ACTIVE_QUARTER_CACHE_TIMEOUT)


def get_active_quarter():
    """Return the active Quarter or ``None``."""
    cached = cache.get(ACTIVE_QUARTER_CACHE_KEY)
    if cached:
        quarter = Quarter.objects.filter(pk=cached['id'], active=True).first()
        if quarter is not None:
            return quarter
        cache.delete(ACTIVE_QUARTER_CACHE_KEY)

    quarter = Quarter.objects.filter(active=True).first()
    if quarter is not None:
        set_active_quarter(quarter)
    return quarter


def require_active_quarter():
    quarter = get_active_quarter()
    if quarter is None:
        raise NoActiveQuarter()
    return quarter


def activate_quarter(quarter):
    """Make ``quarter`` the only active quarter."""
    with transaction.atomic():
        Quarter.objects.exclude(pk=quarter.pk).filter(active=True).update(active=False)
        Quarter.objects.filter(pk=quarter.pk).update(active=True)

    quarter.refresh_from_db()
    set_active_quarter(quarter)
    logger.info("Activated quarter %s (%s)", quarter.pk, quarter.name)
    return quarter
