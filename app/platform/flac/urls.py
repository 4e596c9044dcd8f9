from django.urls import path
from rest_framework.routers import DefaultRouter

from .views import AdminParameterViewSet, AdminPermissionViewSet

router = DefaultRouter()
router.register(r"admin/parameters", AdminParameterViewSet, basename="admin-parameters")

permission_matrix = AdminPermissionViewSet.as_view({"get": "list", "patch": "bulk_update"})

urlpatterns = [
    path("admin/permissions/", permission_matrix, name="admin-permissions"),
] + router.urls
