from django.core.cache import cache
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from . import attendance, grading
from .models import AttendanceRecord, GradingRecord, Quarter
from .quarters import ACTIVE_QUARTER_CACHE_KEY


@receiver(post_save, sender=Quarter)
def handle_quarter_saved(sender, instance, **kwargs):
    cache.delete(ACTIVE_QUARTER_CACHE_KEY)


@receiver(post_delete, sender=Quarter)
def handle_quarter_deleted(sender, instance, **kwargs):
    cache.delete(ACTIVE_QUARTER_CACHE_KEY)


@receiver([post_save, post_delete], sender=AttendanceRecord)
def handle_attendance_changed(sender, instance, **kwargs):
    # Covers API deletes and admin edits that bypass the attendance service
    cache.delete(attendance.cache_key(instance.classroom_id, instance.class_date, instance.quarter_id))


@receiver([post_save, post_delete], sender=GradingRecord)
def handle_grade_changed(sender, instance, **kwargs):
    cache.delete(grading.cache_key(instance.student_id, instance.classroom_id, instance.quarter_id))
