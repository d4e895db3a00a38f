"""
Grading capture: one record per (student, classroom, quarter).
"""
import logging

from django.conf import settings
from django.core.cache import cache
from django.db import transaction

from .models import GradingRecord

logger = logging.getLogger(__name__)

SKILLS = GradingRecord.SKILLS
SKILL_LABELS = {
    'listening': 'Listening',
    'reading': 'Reading',
    'writing': 'Writing',
    'speaking': 'Speaking',
    'grammar_vocab': 'Grammar & Vocabulary',
    'project': 'Project',
    'conversation': 'Conversation',
}

_MISSING = 'missing'


def _pk(value):
    return getattr(value, 'pk', value)


def cache_key(student, classroom, quarter):
    return f"grades:{_pk(student)}:{_pk(classroom)}:{_pk(quarter)}"


def clamp_score(value):
    """Coerce a score into the 0-100 range."""
    try:
        score = int(round(float(value)))
    except (TypeError, ValueError, OverflowError):
        return 0
    return max(0, min(100, score))


def load_grade(student, classroom, quarter):
    """Return the GradingRecord or ``None`` when none exists yet."""
    key = cache_key(student, classroom, quarter)
    cached = cache.get(key)
    if cached == _MISSING:
        return None
    if cached is not None:
        return cached

    record = GradingRecord.objects.filter(student=student, classroom=classroom, quarter=quarter).first()
    cache.set(key, record if record is not None else _MISSING, settings.RECORD_CACHE_TIMEOUT)
    return record


def initial_for(record):
    """Form initial data: all zeros and no comment when there is no record."""
    if record is None:
        initial = {skill: 0 for skill in SKILLS}
        initial['comment'] = ''
        return initial
    initial = record.scores
    initial['comment'] = record.comment
    return initial


def save_grade(student, classroom, quarter, scores, comment=''):
    """Upsert the record, overwriting all seven skills and the comment."""
    defaults = {skill: clamp_score(scores.get(skill, 0)) for skill in SKILLS}
    defaults['comment'] = comment or ''

    with transaction.atomic():
        record, created = GradingRecord.objects.update_or_create(
            student=student,
            classroom=classroom,
            quarter=quarter,
            defaults=defaults,
        )

    cache.delete(cache_key(student, classroom, quarter))
    logger.info(
        "%s grade for %s in %s (%s)",
        'Created' if created else 'Updated', student.full_name, classroom.name, quarter.name
    )
    return record
