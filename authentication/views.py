"""
Authentication views for sign-in, sign-up, sign-out, pending activation and tokens.
"""
import logging

from django.contrib import messages
from django.contrib.auth import login, logout
from django.contrib.auth.decorators import login_required
from django.shortcuts import redirect, render
from django.utils.http import url_has_allowed_host_and_scheme
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer
from rest_framework_simplejwt.views import TokenObtainPairView

from .forms import SignInForm, SignUpForm
from .routing import AccessState, resolve_access

logger = logging.getLogger(__name__)


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    """
    JWT serializer that carries the user's role in the token claims.
    """

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['role'] = user.effective_role
        return token


class CustomTokenObtainPairView(TokenObtainPairView):
    serializer_class = CustomTokenObtainPairSerializer


def _landing_for(user):
    if resolve_access(user) is AccessState.PENDING:
        return redirect('pending_activation')
    return redirect('dashboard')


def signin_view(request):
    """
    Sign in with email and password.
    - Signed-in users go straight to their landing page
    - Honors a safe 'next' parameter
    """
    if request.user.is_authenticated and resolve_access(request.user) is not AccessState.UNAUTHENTICATED:
        return _landing_for(request.user)

    if request.method == 'POST':
        form = SignInForm(request.POST, request=request)
        if form.is_valid():
            user = form.get_user()
            login(request, user)
            messages.success(request, f'Welcome back, {user.full_name or user.username}!')

            next_url = request.POST.get('next') or request.GET.get('next')
            if next_url and url_has_allowed_host_and_scheme(next_url, allowed_hosts={request.get_host()}):
                if resolve_access(user) is not AccessState.PENDING:
                    return redirect(next_url)
            return _landing_for(user)
        messages.error(request, 'Invalid email or password.')
    else:
        form = SignInForm(request=request)

    return render(request, 'auth/signin.html', {
        'form': form,
        'next': request.GET.get('next', ''),
        'title': 'Sign In',
    })


def signup_view(request):
    """
    Create an account in the pending role and sign it in.
    """
    if request.user.is_authenticated:
        return _landing_for(request.user)

    if request.method == 'POST':
        form = SignUpForm(request.POST)
        if form.is_valid():
            user = form.save()
            logger.info("New account %s awaiting activation", user.username)
            login(request, user, backend='django.contrib.auth.backends.ModelBackend')
            messages.success(request, 'Account created. An administrator will activate it shortly.')
            return redirect('pending_activation')
        messages.error(request, 'Please correct the errors below.')
    else:
        form = SignUpForm()

    return render(request, 'auth/signup.html', {'form': form, 'title': 'Sign Up'})


def signout_view(request):
    """
    Sign out and return to the sign-in page.
    """
    logout(request)
    messages.info(request, 'You have been signed out.')

    response = redirect('signin')
    response['Cache-Control'] = 'no-cache, no-store, must-revalidate'
    response['Pragma'] = 'no-cache'
    response['Expires'] = '0'
    return response


@login_required
def pending_activation_view(request):
    if resolve_access(request.user) is not AccessState.PENDING:
        return redirect('dashboard')
    return render(request, 'auth/pending_activation.html', {'title': 'Pending Activation'})


@api_view(['GET'])
@permission_classes([AllowAny])
def session_view(request):
    """
    Current session: user, role and access state.
    """
    user = request.user
    state = resolve_access(user)
    if not user.is_authenticated:
        return Response({'user': None, 'role': None, 'state': state.value})
    return Response({
        'user': {
            'id': user.id,
            'username': user.username,
            'email': user.email,
            'full_name': user.full_name,
        },
        'role': user.effective_role,
        'state': state.value,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def verify_token_view(request):
    """
    Returns the user behind a valid token.
    """
    return Response({
        'user_id': request.user.id,
        'username': request.user.username,
        'email': request.user.email,
        'role': request.user.effective_role,
        'is_authenticated': True,
    })
