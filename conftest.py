from datetime import date, time

import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from academics.models import ClassSchedule, Classroom, ProficiencyLevel, Quarter, Student, Teacher, User

PASSWORD = 'testpass123'


@pytest.fixture(autouse=True)
def clear_cache():
    cache.clear()
    yield
    cache.clear()


def make_user(username, role, **extra):
    return User.objects.create_user(
        username=username,
        email=f'{username}@example.com',
        password=PASSWORD,
        role=role,
        **extra
    )


@pytest.fixture
def admin_user(db):
    return make_user('admin', 'admin', full_name='Ada Admin')


@pytest.fixture
def coordinator_user(db):
    return make_user('coordinator', 'coordinator', full_name='Cora Coordinator')


@pytest.fixture
def teacher_user(db):
    return make_user('teacher', 'teacher', full_name='Tom Teacher')


@pytest.fixture
def student_user(db):
    return make_user('student', 'student', full_name='Sam Student')


@pytest.fixture
def pending_user(db):
    return make_user('pending', 'pending', full_name='Pat Pending')


@pytest.fixture
def logged_in(client):
    def _login(user):
        client.force_login(user)
        return client
    return _login


@pytest.fixture
def quarter(db):
    return Quarter.objects.create(
        name='Winter 2024',
        start_date=date(2024, 1, 1),
        end_date=date(2024, 1, 14),
        break_dates=['2024-01-08'],
        active=True,
    )


@pytest.fixture
def level(db):
    return ProficiencyLevel.objects.create(name='Intermediate')


@pytest.fixture
def teacher(teacher_user):
    return Teacher.objects.create(
        user=teacher_user, first_name='Tom', last_name='Teacher', email='tom@example.com'
    )


@pytest.fixture
def students(db):
    return [
        Student.objects.create(first_name='Alice', last_name='Anders', email='alice@example.com'),
        Student.objects.create(first_name='Bob', last_name='Brown', email='bob@example.com'),
    ]


@pytest.fixture
def classroom(level, teacher, students):
    room = Classroom.objects.create(name='Room A', proficiency_level=level, teacher=teacher)
    room.students.set(students)
    ClassSchedule.objects.create(
        classroom=room, days=['Monday', 'Wednesday'], start_time=time(9, 0), end_time=time(10, 0)
    )
    return room


@pytest.fixture
def api_client():
    return APIClient()
