from datetime import date

import pytest
from django.core.cache import cache

from academics.exceptions import NoActiveQuarter
from academics.models import Quarter
from academics.quarters import (
    ACTIVE_QUARTER_CACHE_KEY, activate_quarter, get_active_quarter, require_active_quarter,
)


@pytest.fixture
def spring(db):
    return Quarter.objects.create(name='Spring 2024', start_date=date(2024, 3, 1), end_date=date(2024, 5, 31))


@pytest.mark.django_db
def test_no_active_quarter():
    assert get_active_quarter() is None
    with pytest.raises(NoActiveQuarter) as excinfo:
        require_active_quarter()
    assert str(excinfo.value) == 'No active quarter. Activate a quarter first.'


def test_active_quarter_is_cached(quarter):
    assert get_active_quarter() == quarter
    assert cache.get(ACTIVE_QUARTER_CACHE_KEY)['id'] == quarter.pk


def test_activate_quarter_leaves_exactly_one_active(quarter, spring):
    activate_quarter(spring)

    quarter.refresh_from_db()
    assert not quarter.active
    assert list(Quarter.objects.filter(active=True)) == [spring]
    assert get_active_quarter() == spring
    assert cache.get(ACTIVE_QUARTER_CACHE_KEY)['name'] == 'Spring 2024'


def test_saving_an_active_quarter_deactivates_the_rest(quarter, spring):
    spring.active = True
    spring.save()

    assert Quarter.objects.filter(active=True).count() == 1
    assert get_active_quarter() == spring


def test_deleting_the_active_quarter_clears_the_cache(quarter):
    get_active_quarter()
    quarter.delete()

    assert cache.get(ACTIVE_QUARTER_CACHE_KEY) is None
    assert get_active_quarter() is None
