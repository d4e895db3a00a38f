"""
Attendance capture for one classroom, class date and quarter.
"""
import logging

from django.conf import settings
from django.core.cache import cache
from django.db import transaction

from .exceptions import InvalidAttendanceStatus, InvalidClassDate
from .models import AttendanceRecord
from .schedule import to_date, is_class_date

logger = logging.getLogger(__name__)

VALID_STATUSES = tuple(choice for choice, _ in AttendanceRecord.STATUS_CHOICES)


def _pk(value):
    return getattr(value, 'pk', value)


def cache_key(classroom, class_date, quarter):
    """Cache key of one slice; models or primary keys are accepted."""
    return f"attendance:{_pk(classroom)}:{to_date(class_date).isoformat()}:{_pk(quarter)}"


def load_statuses(classroom, class_date, quarter):
    """
    Return ``{student_id: status}`` for the persisted records.

    Students without a record are missing from the mapping.
    """
    key = cache_key(classroom, class_date, quarter)
    statuses = cache.get(key)
    if statuses is None:
        statuses = dict(
            AttendanceRecord.objects.filter(
                classroom=classroom,
                quarter=quarter,
                class_date=to_date(class_date),
            ).values_list('student_id', 'status')
        )
        cache.set(key, statuses, settings.RECORD_CACHE_TIMEOUT)
    return statuses


def load_comments(classroom, class_date, quarter):
    return dict(
        AttendanceRecord.objects.filter(
            classroom=classroom,
            quarter=quarter,
            class_date=to_date(class_date),
        ).values_list('student_id', 'comment')
    )


def save_statuses(classroom, class_date, quarter, statuses, comments=None):
    """
    Upsert one record per student holding a status.

    ``statuses`` maps student id to a status; entries with an empty status
    are skipped. Returns the number of records written.
    """
    day = to_date(class_date)
    if not is_class_date(day, quarter, classroom):
        raise InvalidClassDate(f"{day.isoformat()} is not a class date for {classroom.name}.")

    comments = comments or {}
    member_ids = set(classroom.students.values_list('id', flat=True))
    pending = {}
    for student_id, status in statuses.items():
        if not status:
            continue
        if status not in VALID_STATUSES:
            raise InvalidAttendanceStatus(f"Unknown attendance status '{status}'.")
        student_id = int(student_id)
        if student_id not in member_ids:
            raise InvalidAttendanceStatus(f"Student {student_id} is not in {classroom.name}.")
        pending[student_id] = status

    with transaction.atomic():
        for student_id, status in pending.items():
            AttendanceRecord.objects.update_or_create(
                classroom=classroom,
                student_id=student_id,
                quarter=quarter,
                class_date=day,
                defaults={
                    'status': status,
                    'comment': comments.get(student_id, comments.get(str(student_id), '')) or '',
                },
            )

    cache.delete(cache_key(classroom, day, quarter))
    logger.info("Saved %s attendance records for %s on %s", len(pending), classroom.name, day.isoformat())
    return len(pending)
