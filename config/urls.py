from django.contrib import admin
from django.urls import path, include
from django.conf import settings
from django.conf.urls.static import static

from academics.urls import api_urlpatterns
from authentication.views import pending_activation_view, signin_view

urlpatterns = [
    path("admin/", admin.site.urls),

    # Sign-in page at the root; the rest of authentication under /auth/
    path("", signin_view, name='signin'),
    path("auth/", include("authentication.urls", namespace="auth")),
    path("pending-activation/", pending_activation_view, name='pending_activation'),

    # Dashboard pages and REST API
    path("dashboard/", include("academics.urls")),
    path("api/", include(api_urlpatterns)),
]

if settings.DEBUG:
    urlpatterns += static(settings.STATIC_URL, document_root=settings.STATIC_ROOT)
