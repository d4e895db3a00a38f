import pytest

from academics import attendance, grading
from academics.models import AttendanceRecord, Quarter, Student, User


@pytest.fixture
def teacher_api(api_client, teacher_user):
    api_client.force_authenticate(user=teacher_user)
    return api_client


def test_unauthenticated_requests_are_refused(api_client, classroom):
    assert api_client.get('/api/classrooms/').status_code in (401, 403)


def test_students_cannot_use_staff_endpoints(api_client, student_user, classroom):
    api_client.force_authenticate(user=student_user)
    assert api_client.get('/api/classrooms/').status_code == 403


def test_list_classrooms_with_schedule(teacher_api, classroom):
    response = teacher_api.get('/api/classrooms/')
    assert response.status_code == 200
    data = response.json()
    assert data[0]['name'] == 'Room A'
    assert data[0]['schedule']['days'] == ['Monday', 'Wednesday']
    assert data[0]['teacher_name'] == 'Tom Teacher'


def test_create_classroom_with_schedule(api_client, coordinator_user, level, teacher):
    api_client.force_authenticate(user=coordinator_user)
    response = api_client.post('/api/classrooms/', {
        'name': 'Room B',
        'proficiency_level': level.pk,
        'teacher': teacher.pk,
        'students': [],
        'schedule': {'days': ['Tuesday', 'Thursday'], 'start_time': '14:00', 'end_time': '15:00'},
    }, format='json')
    assert response.status_code == 201
    assert response.json()['schedule']['days'] == ['Tuesday', 'Thursday']


def test_search_students(teacher_api, students):
    response = teacher_api.get('/api/students/', {'search': 'ali'})
    assert [s['first_name'] for s in response.json()] == ['Alice']


def test_class_dates_endpoint(teacher_api, classroom, quarter):
    response = teacher_api.get('/api/attendance/dates/', {'classroom': classroom.pk})
    assert response.status_code == 200
    assert response.json()['dates'] == ['2024-01-01', '2024-01-03', '2024-01-10']


def test_bulk_attendance(teacher_api, classroom, quarter, students):
    alice, bob = students
    response = teacher_api.post('/api/attendance/', {
        'classroom': classroom.pk,
        'class_date': '2024-01-03',
        'records': [
            {'student': alice.pk, 'status': 'present'},
            {'student': bob.pk, 'status': 'tardy', 'comment': 'Traffic'},
        ],
    }, format='json')
    assert response.status_code == 201
    assert response.json() == {'saved': 2}
    assert AttendanceRecord.objects.get(student=bob).comment == 'Traffic'

    listed = teacher_api.get('/api/attendance/', {'classroom': classroom.pk}).json()
    assert len(listed) == 2


def test_bulk_attendance_on_a_break_date(teacher_api, classroom, quarter, students):
    response = teacher_api.post('/api/attendance/', {
        'classroom': classroom.pk,
        'class_date': '2024-01-08',
        'records': [{'student': students[0].pk, 'status': 'present'}],
    }, format='json')
    assert response.status_code == 400
    assert 'not a class date' in response.json()['error']
    assert not AttendanceRecord.objects.exists()


def test_attendance_requires_an_active_quarter(teacher_api, classroom, students):
    response = teacher_api.post('/api/attendance/', {
        'classroom': classroom.pk,
        'class_date': '2024-01-03',
        'records': [{'student': students[0].pk, 'status': 'present'}],
    }, format='json')
    assert response.status_code == 400
    assert response.json() == {'error': 'No active quarter. Activate a quarter first.'}


def test_grade_upsert_clamps_scores(teacher_api, classroom, quarter, students):
    payload = {'student': students[0].pk, 'classroom': classroom.pk, 'listening': 120, 'reading': 75}
    response = teacher_api.post('/api/grading/', payload, format='json')
    assert response.status_code == 200
    data = response.json()
    assert data['listening'] == 100
    assert data['reading'] == 75
    assert data['writing'] == 0

    payload['reading'] = 80
    teacher_api.post('/api/grading/', payload, format='json')
    assert len(teacher_api.get('/api/grading/').json()) == 1


def test_grade_upsert_rejects_students_outside_the_classroom(teacher_api, classroom, quarter):
    outsider = Student.objects.create(first_name='Olga', last_name='Outside', email='olga@example.com')
    response = teacher_api.post('/api/grading/', {
        'student': outsider.pk, 'classroom': classroom.pk, 'listening': 80,
    }, format='json')
    assert response.status_code == 400


def test_quarter_writes_need_a_manager(teacher_api, coordinator_user, quarter):
    payload = {'name': 'Spring 2024', 'start_date': '2024-03-01', 'end_date': '2024-05-31'}
    assert teacher_api.get('/api/quarters/').status_code == 200
    assert teacher_api.post('/api/quarters/', payload, format='json').status_code == 403

    teacher_api.force_authenticate(user=coordinator_user)
    response = teacher_api.post('/api/quarters/', dict(payload, break_dates=['2024-04-01']), format='json')
    assert response.status_code == 201
    assert response.json()['active'] is False

    spring = Quarter.objects.get(name='Spring 2024')
    response = teacher_api.post(f'/api/quarters/{spring.pk}/activate/')
    assert response.json()['active'] is True
    assert Quarter.objects.filter(active=True).get() == spring


def test_quarter_end_must_follow_start(api_client, coordinator_user):
    api_client.force_authenticate(user=coordinator_user)
    response = api_client.post('/api/quarters/', {
        'name': 'Backwards', 'start_date': '2024-05-01', 'end_date': '2024-03-01',
    }, format='json')
    assert response.status_code == 400
    assert 'end_date' in response.json()


def test_attendance_report(teacher_api, classroom, quarter, students):
    alice, _ = students
    AttendanceRecord.objects.create(
        classroom=classroom, student=alice, quarter=quarter, class_date='2024-01-01', status='absent'
    )
    response = teacher_api.get('/api/reports/attendance/', {'classroom': classroom.pk})
    assert response.status_code == 200
    data = response.json()
    assert data['columns'] == ['2024-01-01']
    assert data['rows'][0]['cells'] == [{'kind': 'status', 'text': 'A', 'status': 'absent', 'tone': 'negative'}]



def test_attendance_report_rejects_a_bad_month(teacher_api, quarter):
    for month in ('2024-13', 'abc', '2023-12'):
        response = teacher_api.get('/api/reports/attendance/', {'month': month})
        assert response.status_code == 400
        assert 'error' in response.json()

    assert teacher_api.get('/api/reports/attendance/', {'month': '2024-01'}).status_code == 200


def test_role_assignment(api_client, coordinator_user, admin_user, pending_user):
    api_client.force_authenticate(user=coordinator_user)
    response = api_client.post(f'/api/users/{pending_user.pk}/set_role/', {'role': 'teacher'}, format='json')
    assert response.status_code == 200
    assert response.json()['role'] == 'teacher'

    response = api_client.post(f'/api/users/{pending_user.pk}/set_role/', {'role': 'admin'}, format='json')
    assert response.status_code == 403

    api_client.force_authenticate(user=admin_user)
    response = api_client.post(f'/api/users/{pending_user.pk}/set_role/', {'role': 'admin'}, format='json')
    assert response.status_code == 200
    assert User.objects.get(pk=pending_user.pk).role == 'admin'


def test_users_endpoint_is_for_managers(api_client, teacher_user):
    api_client.force_authenticate(user=teacher_user)
    assert api_client.get('/api/users/').status_code == 403


def test_active_quarter_is_readable_by_students(api_client, student_user, quarter):
    api_client.force_authenticate(user=student_user)
    response = api_client.get('/api/quarters/active/')
    assert response.status_code == 200
    assert response.json()['name'] == 'Winter 2024'


def test_active_quarter_missing(api_client, student_user):
    api_client.force_authenticate(user=student_user)
    response = api_client.get('/api/quarters/active/')
    assert response.status_code == 404
    assert response.json() == {'error': 'No active quarter. Activate a quarter first.'}


def test_pending_users_cannot_read_the_active_quarter(api_client, pending_user, quarter):
    api_client.force_authenticate(user=pending_user)
    assert api_client.get('/api/quarters/active/').status_code == 403


def test_deleting_attendance_clears_the_cached_statuses(teacher_api, classroom, quarter, students):
    alice, _ = students
    attendance.save_statuses(classroom, '2024-01-03', quarter, {alice.pk: 'present'})
    assert attendance.load_statuses(classroom, '2024-01-03', quarter) == {alice.pk: 'present'}

    record = AttendanceRecord.objects.get(student=alice)
    assert teacher_api.delete(f'/api/attendance/{record.pk}/').status_code == 204
    assert attendance.load_statuses(classroom, '2024-01-03', quarter) == {}


def test_deleting_a_grade_clears_the_cached_record(teacher_api, classroom, quarter, students):
    alice, _ = students
    record = grading.save_grade(alice, classroom, quarter, {'reading': 90})
    assert grading.load_grade(alice, classroom, quarter) == record

    assert teacher_api.delete(f'/api/grading/{record.pk}/').status_code == 204
    assert grading.load_grade(alice, classroom, quarter) is None
