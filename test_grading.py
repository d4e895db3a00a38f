import pytest

from academics import grading
from academics.models import GradingRecord


@pytest.mark.parametrize('value, expected', [
    (150, 100),
    (-5, 0),
    ('87.6', 88),
    ('abc', 0),
    (None, 0),
    (70, 70),
])
def test_clamp_score(value, expected):
    assert grading.clamp_score(value) == expected


def test_initial_for_missing_record():
    initial = grading.initial_for(None)
    assert all(initial[skill] == 0 for skill in grading.SKILLS)
    assert initial['comment'] == ''


def test_save_grade_overwrites_existing_record(classroom, quarter, students):
    alice, _ = students
    assert grading.load_grade(alice, classroom, quarter) is None

    grading.save_grade(alice, classroom, quarter, {'listening': 80, 'reading': 120}, 'Good start')
    record = grading.save_grade(alice, classroom, quarter, {'listening': 90}, '')

    assert GradingRecord.objects.filter(student=alice, classroom=classroom, quarter=quarter).count() == 1
    assert record.listening == 90
    # skills missing from the payload are reset
    assert record.reading == 0
    assert record.comment == ''

    loaded = grading.load_grade(alice, classroom, quarter)
    assert loaded.pk == record.pk
    assert grading.initial_for(loaded)['listening'] == 90


def test_scores_are_clamped(classroom, quarter, students):
    record = grading.save_grade(students[0], classroom, quarter, {'writing': 250, 'speaking': -10})
    assert record.writing == 100
    assert record.speaking == 0


def test_average_covers_all_seven_skills(classroom, quarter, students):
    scores = {skill: 70 for skill in grading.SKILLS}
    scores['project'] = 0
    record = grading.save_grade(students[0], classroom, quarter, scores)
    assert record.average == pytest.approx(60.0)
