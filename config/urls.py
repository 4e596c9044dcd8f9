from django.contrib import admin
from django.urls import path, include
from rest_framework import permissions

from drf_spectacular.views import (
    SpectacularSwaggerView,
    SpectacularRedocView,
)
from config.schema_view import CustomSpectacularAPIView

# ================================
# URL PATTERNS
# ================================
urlpatterns = [

    # -------------------------
    # Django Admin
    # -------------------------
    path("admin/", admin.site.urls),

    # -------------------------
    # Platform services
    # Base: /api/v1/
    # -------------------------
    path("api/v1/", include("app.platform.accounts.urls")),
    path("api/v1/", include("app.platform.flac.urls")),
    path("api/v1/", include("app.core.urls")),

    # -------------------------
    # Workspace modules
    # -------------------------
    path("api/v1/", include("app.workspace.projects.urls")),
    path("api/v1/", include("app.workspace.inbox.urls")),
    path("api/v1/", include("app.workspace.dashboard.urls")),

    # -------------------------
    # OpenAPI / Swagger / Redoc
    # -------------------------
    path("api/v1/schema/", CustomSpectacularAPIView.as_view(), name="schema"),
    path(
        "api/v1/schema/swagger-ui/",
        SpectacularSwaggerView.as_view(url_name="schema", permission_classes=[permissions.AllowAny]),
        name="swagger-ui",
    ),
    path(
        "api/v1/schema/redoc/",
        SpectacularRedocView.as_view(url_name="schema", permission_classes=[permissions.AllowAny]),
        name="redoc",
    ),
]
