"""
Report pivoting.

Attendance records become one row per student with one column per class
date; grading records become one row per student with one column per
skill plus the comment. Cells are typed so the exporters and templates can
render them without guessing.
"""
from dataclasses import dataclass, field
from typing import List, Optional, Union

from django.conf import settings

from .grading import SKILL_LABELS, SKILLS
from .models import AttendanceRecord, GradingRecord
from .schedule import month_bounds, to_date

NO_RECORD = "No Record"

POSITIVE = 'positive'
NEGATIVE = 'negative'
CAUTION = 'caution'
NEUTRAL = 'neutral'
MUTED = 'muted'


@dataclass(frozen=True)
class StatusCell:
    status: str
    kind: str = field(default='status', init=False)

    @property
    def display(self):
        return status_display(self.status)

    @property
    def text(self):
        return self.display[0]


@dataclass(frozen=True)
class ScoreCell:
    score: Optional[int]
    kind: str = field(default='score', init=False)

    @property
    def low(self):
        return is_low_score(self.score)

    @property
    def text(self):
        return 'N/A' if self.score is None else str(self.score)


@dataclass(frozen=True)
class TextCell:
    value: str
    kind: str = field(default='text', init=False)

    @property
    def text(self):
        return self.value


Cell = Union[StatusCell, ScoreCell, TextCell]


@dataclass
class ReportRow:
    student_id: int
    student_name: str
    cells: dict = field(default_factory=dict)

    def cells_in(self, columns):
        return [self.cells[key] for key in columns]


@dataclass
class ReportTable:
    report_type: str
    columns: List[str] = field(default_factory=list)
    headers: List[str] = field(default_factory=list)
    rows: List[ReportRow] = field(default_factory=list)

    @property
    def is_empty(self):
        return not self.rows

    @property
    def ordered_rows(self):
        """(row, cells in column order) pairs for templates."""
        return [(row, row.cells_in(self.columns)) for row in self.rows]

    def header_row(self):
        return ['Student Name'] + list(self.headers)

    def text_rows(self):
        """Plain text rows, header first, for the exporters."""
        return [self.header_row()] + [
            [row.student_name] + [cell.text for cell in row.cells_in(self.columns)]
            for row in self.rows
        ]


def status_display(status):
    """
    Map a status to a (glyph, tone) pair.

    Known statuses are compared case-insensitively; any other value keeps
    its own first character.
    """
    if not status or status == NO_RECORD:
        return '-', MUTED
    lowered = status.lower()
    if lowered == 'present':
        return 'P', POSITIVE
    if lowered == 'absent':
        return 'A', NEGATIVE
    if lowered in ('late', 'tardy'):
        return 'T', CAUTION
    return status[0].upper(), NEUTRAL


def is_low_score(score):
    if score is None:
        return False
    return score < settings.LOW_SCORE_THRESHOLD


def _value(row, name):
    if isinstance(row, dict):
        return row.get(name)
    return getattr(row, name)


def pivot_attendance(rows):
    """
    Pivot attendance rows into a ReportTable.

    Each row needs ``student_id``, ``student_name``, ``class_date`` and
    ``status``. Dates are sorted ascending, students keep the order in which
    they first appear.
    """
    dates = sorted({to_date(_value(row, 'class_date')).isoformat() for row in rows})
    students = {}
    statuses = {}
    for row in rows:
        student_id = _value(row, 'student_id')
        students.setdefault(student_id, _value(row, 'student_name'))
        statuses[(student_id, to_date(_value(row, 'class_date')).isoformat())] = _value(row, 'status')

    table = ReportTable(
        report_type='attendance',
        columns=dates,
        headers=[to_date(d).strftime('%b %d') for d in dates],
    )
    for student_id, name in students.items():
        cells = {d: StatusCell(statuses.get((student_id, d)) or NO_RECORD) for d in dates}
        table.rows.append(ReportRow(student_id=student_id, student_name=name, cells=cells))
    return table


def pivot_grades(records):
    """Pivot grading records: one ScoreCell per skill, then the comment."""
    table = ReportTable(
        report_type='grading',
        columns=list(SKILLS) + ['comment'],
        headers=[SKILL_LABELS[skill] for skill in SKILLS] + ['Comment'],
    )
    for record in records:
        cells = {skill: ScoreCell(_value(record, skill)) for skill in SKILLS}
        cells['comment'] = TextCell(_value(record, 'comment') or '')
        table.rows.append(ReportRow(
            student_id=_value(record, 'student_id'),
            student_name=_value(record, 'student_name'),
            cells=cells,
        ))
    return table


def attendance_rows(quarter, classroom=None, month=None):
    """Attendance rows of a quarter, optionally narrowed to a classroom and a 'YYYY-MM' month."""
    records = AttendanceRecord.objects.filter(quarter=quarter).select_related('student')
    if classroom is not None:
        records = records.filter(classroom=classroom)
    if month:
        first_day, last_day = month_bounds(month)
        records = records.filter(class_date__gte=first_day, class_date__lte=last_day)

    return [
        {
            'student_id': record.student_id,
            'student_name': record.student.full_name,
            'class_date': record.class_date,
            'status': record.status,
        }
        for record in records.order_by('class_date', 'id')
    ]


def grading_rows(quarter, classroom=None):
    records = GradingRecord.objects.filter(quarter=quarter).select_related('student')
    if classroom is not None:
        records = records.filter(classroom=classroom)

    rows = []
    for record in records.order_by('student__last_name', 'student__first_name'):
        row = record.scores
        row.update({
            'student_id': record.student_id,
            'student_name': record.student.full_name,
            'comment': record.comment,
        })
        rows.append(row)
    return rows


def build_report(report_type, quarter, classroom=None, month=None):
    if report_type == 'attendance':
        return pivot_attendance(attendance_rows(quarter, classroom, month))
    if report_type == 'grading':
        return pivot_grades(grading_rows(quarter, classroom))
    raise ValueError(f"Unknown report type '{report_type}'")
