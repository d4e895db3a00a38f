"""
Authentication URL routing.
Handles sign-in, sign-out, sign-up, session and JWT token endpoints.
"""

from django.urls import path
from rest_framework_simplejwt.views import TokenRefreshView

from . import views

app_name = 'auth'

urlpatterns = [
    # Web-based authentication
    path('signin/', views.signin_view, name='signin'),
    path('signout/', views.signout_view, name='signout'),
    path('signup/', views.signup_view, name='signup'),

    # Session and API tokens (JWT)
    path('api/session/', views.session_view, name='session'),
    path('api/token/', views.CustomTokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('api/token/refresh/', TokenRefreshView.as_view(), name='token_refresh'),
    path('api/token/verify/', views.verify_token_view, name='token_verify'),
]
