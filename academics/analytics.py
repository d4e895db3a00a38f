"""
Dashboard statistics for the active quarter.
"""
from django.db.models import Count, Q

from .grading import SKILL_LABELS, SKILLS
from .models import AttendanceRecord, Classroom, GradingRecord

AT_RISK_AVERAGE = 70
ABSENCE_COUNT_LIMIT = 3
ABSENCE_RATE_LIMIT = 20
TOP_N = 5
TREND_DAYS = 10


def at_risk_students(quarter, limit=TOP_N):
    """Grade records whose skill average is below 70, lowest first."""
    rows = []
    records = GradingRecord.objects.filter(quarter=quarter).select_related('student', 'classroom')
    for record in records:
        average = record.average
        if average < AT_RISK_AVERAGE:
            rows.append({
                'student_id': record.student_id,
                'student_name': record.student.full_name,
                'classroom_name': record.classroom.name,
                'average': round(average, 1),
            })
    rows.sort(key=lambda row: row['average'])
    return rows[:limit]


def attendance_risk_students(quarter, limit=TOP_N):
    """Students with three or more absences or more than 20% absences, most absences first."""
    stats = AttendanceRecord.objects.filter(quarter=quarter).values(
        'student_id', 'student__first_name', 'student__last_name'
    ).annotate(
        total=Count('id'),
        present=Count('id', filter=Q(status='present')),
        absent=Count('id', filter=Q(status='absent')),
        tardy=Count('id', filter=Q(status='tardy')),
    )

    rows = []
    for row in stats:
        absent_percentage = (row['absent'] / row['total']) * 100 if row['total'] else 0
        if row['absent'] >= ABSENCE_COUNT_LIMIT or absent_percentage > ABSENCE_RATE_LIMIT:
            rows.append({
                'student_id': row['student_id'],
                'student_name': f"{row['student__first_name']} {row['student__last_name']}",
                'present': row['present'],
                'absent': row['absent'],
                'tardy': row['tardy'],
                'total': row['total'],
                'absent_percentage': round(absent_percentage, 1),
            })
    rows.sort(key=lambda row: row['absent'], reverse=True)
    return rows[:limit]


def skill_averages(quarter):
    records = list(GradingRecord.objects.filter(quarter=quarter).values(*SKILLS))
    averages = []
    for skill in SKILLS:
        total = sum(record[skill] or 0 for record in records)
        averages.append({
            'key': skill,
            'name': SKILL_LABELS[skill],
            'average': round(total / len(records), 1) if records else 0,
        })
    return averages


def classroom_distribution():
    return [
        {'name': classroom.name, 'value': classroom.student_count}
        for classroom in Classroom.objects.annotate(student_count=Count('students'))
    ]


def attendance_trend(quarter, days=TREND_DAYS):
    """Per-date status counts for the last ``days`` dates with records."""
    per_date = AttendanceRecord.objects.filter(quarter=quarter).values('class_date').annotate(
        present=Count('id', filter=Q(status='present')),
        absent=Count('id', filter=Q(status='absent')),
        tardy=Count('id', filter=Q(status='tardy')),
    ).order_by('-class_date')[:days]

    return [
        {
            'date': row['class_date'],
            'present': row['present'],
            'absent': row['absent'],
            'tardy': row['tardy'],
        }
        for row in reversed(list(per_date))
    ]


def dashboard_statistics(quarter):
    skills = skill_averages(quarter)
    distribution = classroom_distribution()
    return {
        'at_risk_students': at_risk_students(quarter),
        'attendance_risk_students': attendance_risk_students(quarter),
        'skill_performance': skills,
        'classroom_distribution': distribution,
        'attendance_trend': attendance_trend(quarter),
        'weakest_skill': min(skills, key=lambda s: s['average']) if skills else None,
        'largest_classroom': max(distribution, key=lambda c: c['value']) if distribution else None,
    }
