import pytest

from academics import attendance
from academics.exceptions import InvalidAttendanceStatus, InvalidClassDate
from academics.models import AttendanceRecord, Student


def test_save_statuses_upserts_one_record_per_student(classroom, quarter, students):
    alice, bob = students
    saved = attendance.save_statuses(classroom, '2024-01-01', quarter, {alice.pk: 'present', bob.pk: 'absent'})
    assert saved == 2

    saved = attendance.save_statuses(
        classroom, '2024-01-01', quarter, {alice.pk: 'tardy'}, {alice.pk: 'Bus was late'}
    )
    assert saved == 1
    assert AttendanceRecord.objects.filter(classroom=classroom, quarter=quarter).count() == 2

    record = AttendanceRecord.objects.get(student=alice)
    assert record.status == 'tardy'
    assert record.comment == 'Bus was late'


def test_empty_statuses_are_skipped(classroom, quarter, students):
    alice, bob = students
    saved = attendance.save_statuses(classroom, '2024-01-03', quarter, {alice.pk: 'present', bob.pk: ''})
    assert saved == 1
    assert not AttendanceRecord.objects.filter(student=bob).exists()


@pytest.mark.parametrize('class_date', ['2024-01-08', '2024-01-02', '2024-01-06', '2024-02-05'])
def test_rejects_dates_that_are_not_class_dates(classroom, quarter, students, class_date):
    with pytest.raises(InvalidClassDate):
        attendance.save_statuses(classroom, class_date, quarter, {students[0].pk: 'present'})
    assert not AttendanceRecord.objects.exists()


def test_rejects_unknown_status(classroom, quarter, students):
    with pytest.raises(InvalidAttendanceStatus):
        attendance.save_statuses(classroom, '2024-01-01', quarter, {students[0].pk: 'late'})


def test_rejects_students_outside_the_classroom(classroom, quarter):
    outsider = Student.objects.create(first_name='Olga', last_name='Outside', email='olga@example.com')
    with pytest.raises(InvalidAttendanceStatus):
        attendance.save_statuses(classroom, '2024-01-01', quarter, {outsider.pk: 'present'})


def test_load_statuses_sees_saved_changes(classroom, quarter, students):
    alice, _ = students
    assert attendance.load_statuses(classroom, '2024-01-01', quarter) == {}

    attendance.save_statuses(classroom, '2024-01-01', quarter, {alice.pk: 'absent'})
    assert attendance.load_statuses(classroom, '2024-01-01', quarter) == {alice.pk: 'absent'}
    assert attendance.load_comments(classroom, '2024-01-01', quarter) == {alice.pk: ''}
