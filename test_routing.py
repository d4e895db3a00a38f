import pytest
from django.contrib.auth.models import AnonymousUser

from academics.models import User
from authentication.routing import ADMIT, WAIT, AccessState, resolve_access, route


@pytest.mark.parametrize('role, expected', [
    ('pending', AccessState.PENDING),
    ('student', AccessState.ACTIVE_ROLE),
    ('teacher', AccessState.ACTIVE_ROLE),
    ('coordinator', AccessState.ACTIVE_ROLE),
    ('admin', AccessState.ADMIN),
    ('janitor', AccessState.UNAUTHENTICATED),
])
def test_resolve_access_by_role(role, expected):
    assert resolve_access(User(username='u', role=role)) is expected


def test_resolve_access_special_cases():
    assert resolve_access(None) is AccessState.LOADING
    assert resolve_access(AnonymousUser()) is AccessState.UNAUTHENTICATED
    assert resolve_access(User(username='root', role='pending', is_superuser=True)) is AccessState.ADMIN
    assert resolve_access(User(username='u', role='pending'), role='teacher') is AccessState.ACTIVE_ROLE


def test_route_decisions():
    assert route(AccessState.LOADING, '/dashboard/') == WAIT
    assert route(AccessState.LOADING, '/dashboard/').waiting

    decision = route(AccessState.UNAUTHENTICATED, '/dashboard/reports/')
    assert not decision.admitted
    assert decision.redirect_to == '/?next=%2Fdashboard%2Freports%2F'

    assert route(AccessState.PENDING, '/dashboard/').redirect_to == '/pending-activation/'
    assert route(AccessState.PENDING, '/dashboard/grading/').redirect_to == '/pending-activation/'
    assert route(AccessState.ACTIVE_ROLE, '/dashboard/') == ADMIT
    assert route(AccessState.ADMIN, '/dashboard/users/') == ADMIT



def test_pending_redirect_follows_settings(settings):
    settings.PENDING_ACTIVATION_URL = 'signin'
    assert route(AccessState.PENDING, '/dashboard/').redirect_to == '/'

@pytest.mark.django_db
def test_anonymous_user_is_sent_to_sign_in(client):
    response = client.get('/dashboard/classrooms/')
    assert response.status_code == 302
    assert response.url == '/?next=%2Fdashboard%2Fclassrooms%2F'


def test_pending_user_is_held_at_activation_page(logged_in, pending_user):
    client = logged_in(pending_user)
    response = client.get('/dashboard/')
    assert response.status_code == 302
    assert response.url == '/pending-activation/'

    assert client.get('/pending-activation/').status_code == 200


def test_active_roles_reach_the_dashboard(logged_in, teacher_user, student_user):
    assert logged_in(teacher_user).get('/dashboard/').status_code == 200
    assert logged_in(student_user).get('/dashboard/').status_code == 200


def test_role_change_takes_effect_on_next_request(logged_in, pending_user):
    client = logged_in(pending_user)
    assert client.get('/dashboard/').status_code == 302

    pending_user.role = 'teacher'
    pending_user.save()
    assert client.get('/dashboard/').status_code == 200
    assert client.session['role'] == 'teacher'


def test_unknown_role_is_signed_out(logged_in, db):
    user = User.objects.create_user(username='odd', password='testpass123', role='janitor')
    client = logged_in(user)

    response = client.get('/dashboard/')
    assert response.status_code == 302
    assert response.url.startswith('/?next=')
    assert '_auth_user_id' not in client.session
