# app/platform/accounts/urls.py
from django.urls import path
from rest_framework.routers import DefaultRouter

from .views import AccountViewSet, AuthViewSet, UserAdminViewSet

router = DefaultRouter()
router.register(r"users", AuthViewSet, basename="auth")
router.register(r"users", UserAdminViewSet, basename="users")

account = AccountViewSet.as_view({"get": "retrieve", "patch": "partial_update"})

urlpatterns = [
    path("account/", account, name="account"),
] + router.urls
