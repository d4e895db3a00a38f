from datetime import date

import pytest

from academics import attendance, grading
from academics.reports import (
    CAUTION, MUTED, NEGATIVE, NEUTRAL, NO_RECORD, POSITIVE, ScoreCell, StatusCell, build_report, is_low_score,
    pivot_attendance, pivot_grades, status_display,
)


def attendance_row(student_id, name, class_date, status):
    return {'student_id': student_id, 'student_name': name, 'class_date': class_date, 'status': status}


def test_pivot_attendance_fills_missing_cells():
    rows = [
        attendance_row(1, 'A', date(2024, 1, 3), 'absent'),
        attendance_row(1, 'A', date(2024, 1, 1), 'present'),
        attendance_row(2, 'B', '2024-01-01', 'tardy'),
    ]
    table = pivot_attendance(rows)

    assert table.columns == ['2024-01-01', '2024-01-03']
    assert table.headers == ['Jan 01', 'Jan 03']
    assert [row.student_name for row in table.rows] == ['A', 'B']

    a, b = table.rows
    assert a.cells_in(table.columns) == [StatusCell('present'), StatusCell('absent')]
    assert b.cells['2024-01-03'] == StatusCell(NO_RECORD)
    assert b.cells['2024-01-03'].display == ('-', MUTED)


def test_pivot_attendance_of_nothing_is_empty():
    table = pivot_attendance([])
    assert table.is_empty
    assert table.columns == []
    assert table.text_rows() == [['Student Name']]


@pytest.mark.parametrize('status, expected', [
    ('present', ('P', POSITIVE)),
    ('Absent', ('A', NEGATIVE)),
    ('tardy', ('T', CAUTION)),
    ('late', ('T', CAUTION)),
    ('excused', ('E', NEUTRAL)),
    (NO_RECORD, ('-', MUTED)),
    ('', ('-', MUTED)),
])
def test_status_display(status, expected):
    assert status_display(status) == expected


def test_low_score_threshold():
    assert is_low_score(65)
    assert is_low_score(0)
    assert not is_low_score(70)
    assert not is_low_score(None)
    assert ScoreCell(None).text == 'N/A'
    assert ScoreCell(65).low


def test_pivot_grades_adds_comment_column():
    records = [dict(
        student_id=1, student_name='A', listening=65, reading=70, writing=90, speaking=80,
        grammar_vocab=75, project=85, conversation=None, comment='Needs practice',
    )]
    table = pivot_grades(records)

    assert table.columns[-1] == 'comment'
    assert table.header_row()[0] == 'Student Name'
    assert table.header_row()[5] == 'Grammar & Vocabulary'
    assert table.header_row()[-1] == 'Comment'
    assert table.text_rows()[1] == ['A', '65', '70', '90', '80', '75', '85', 'N/A', 'Needs practice']
    assert [cell.low for cell in table.rows[0].cells_in(table.columns[:2])] == [True, False]


def test_build_attendance_report_filters_by_classroom_and_month(classroom, quarter, students):
    alice, bob = students
    attendance.save_statuses(classroom, '2024-01-01', quarter, {alice.pk: 'present', bob.pk: 'absent'})
    attendance.save_statuses(classroom, '2024-01-10', quarter, {alice.pk: 'tardy'})

    table = build_report('attendance', quarter, classroom, '2024-01')
    assert table.columns == ['2024-01-01', '2024-01-10']
    assert [row.student_name for row in table.rows] == ['Alice Anders', 'Bob Brown']
    assert table.rows[1].cells['2024-01-10'].status == NO_RECORD

    assert build_report('attendance', quarter, classroom, '2024-02').is_empty


def test_build_grading_report(classroom, quarter, students):
    grading.save_grade(students[1], classroom, quarter, {'listening': 50}, 'Quiet')
    grading.save_grade(students[0], classroom, quarter, {'listening': 95})

    table = build_report('grading', quarter, classroom)
    assert [row.student_name for row in table.rows] == ['Alice Anders', 'Bob Brown']
    assert table.rows[1].cells['comment'].text == 'Quiet'
    assert table.rows[1].cells['listening'].low


def test_build_report_rejects_unknown_type(quarter):
    with pytest.raises(ValueError):
        build_report('behaviour', quarter)
