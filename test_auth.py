import pytest
from rest_framework_simplejwt.tokens import AccessToken

from academics.models import User

PASSWORD = 'testpass123'


@pytest.mark.django_db
def test_sign_up_creates_pending_account(client):
    response = client.post('/auth/signup/', {
        'full_name': 'Nina New',
        'email': 'Nina@Example.com',
        'password1': 'secret123',
        'password2': 'secret123',
    })
    assert response.status_code == 302
    assert response.url == '/pending-activation/'

    user = User.objects.get(email='nina@example.com')
    assert user.username == 'nina@example.com'
    assert user.role == 'pending'
    assert user.check_password('secret123')
    assert client.session['_auth_user_id'] == str(user.pk)


@pytest.mark.django_db
def test_sign_up_rejects_mismatched_passwords(client):
    response = client.post('/auth/signup/', {
        'full_name': 'Nina New',
        'email': 'nina@example.com',
        'password1': 'secret123',
        'password2': 'secret124',
    })
    assert response.status_code == 200
    assert "Passwords don't match" in response.context['form'].errors['password2']
    assert not User.objects.filter(email='nina@example.com').exists()


def test_sign_up_rejects_duplicate_email(client, teacher_user):
    response = client.post('/auth/signup/', {
        'full_name': 'Tom Again',
        'email': teacher_user.email,
        'password1': 'secret123',
        'password2': 'secret123',
    })
    assert response.status_code == 200
    assert 'email' in response.context['form'].errors


def test_sign_in_with_email(client, teacher_user):
    response = client.post('/', {'email': teacher_user.email, 'password': PASSWORD})
    assert response.status_code == 302
    assert response.url == '/dashboard/'
    assert client.session['role'] == 'teacher'


def test_sign_in_honors_next(client, teacher_user):
    response = client.post('/', {'email': teacher_user.email, 'password': PASSWORD, 'next': '/dashboard/reports/'})
    assert response.url == '/dashboard/reports/'


def test_sign_in_failure(client, teacher_user):
    response = client.post('/', {'email': teacher_user.email, 'password': 'wrong'})
    assert response.status_code == 200
    assert '_auth_user_id' not in client.session


def test_pending_user_signs_in_to_activation_page(client, pending_user):
    response = client.post('/', {'email': pending_user.email, 'password': PASSWORD})
    assert response.url == '/pending-activation/'


def test_sign_out(logged_in, teacher_user):
    client = logged_in(teacher_user)
    response = client.get('/auth/signout/')
    assert response.status_code == 302
    assert response.url == '/'
    assert '_auth_user_id' not in client.session


def test_activated_user_leaves_activation_page(logged_in, teacher_user):
    response = logged_in(teacher_user).get('/pending-activation/')
    assert response.url == '/dashboard/'


@pytest.mark.django_db
def test_session_endpoint(client, teacher_user):
    assert client.get('/auth/api/session/').json() == {'user': None, 'role': None, 'state': 'unauthenticated'}

    client.force_login(teacher_user)
    data = client.get('/auth/api/session/').json()
    assert data['role'] == 'teacher'
    assert data['state'] == 'active_role'
    assert data['user']['username'] == 'teacher'


def test_token_carries_role(client, coordinator_user):
    response = client.post(
        '/auth/api/token/',
        {'username': 'coordinator', 'password': PASSWORD},
        content_type='application/json',
    )
    assert response.status_code == 200
    assert AccessToken(response.json()['access'])['role'] == 'coordinator'
