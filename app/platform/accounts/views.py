import logging

from django.conf import settings
from django.contrib.auth import authenticate
from django.utils import timezone
from rest_framework import permissions, viewsets
from rest_framework.decorators import action
from rest_framework_simplejwt.tokens import RefreshToken, TokenError
from drf_spectacular.utils import extend_schema

from app.core.services.audit import client_context
from app.platform.accounts import services
from app.platform.accounts.models import User
from app.platform.accounts.serializers import (
    AccountUpdateSerializer,
    SignInSerializer,
    TokenRefreshSerializer,
    UserCreateSerializer,
    UserSerializer,
    UserUpdateSerializer,
)
from app.platform.rbac.permissions import IsAdminRole
from app.utils.pagination import paginate, parse_page_params
from app.utils.response import api_response

logger = logging.getLogger(__name__)


def _cookie_settings():
    return (
        settings.SIMPLE_JWT.get("AUTH_COOKIE", "pb_refresh_token"),
        settings.SIMPLE_JWT.get("AUTH_COOKIE_PATH", "/"),
    )


def _set_refresh_cookie(response, refresh_token: str):
    cookie_name, cookie_path = _cookie_settings()
    response.set_cookie(
        key=cookie_name,
        value=refresh_token,
        httponly=True,
        secure=settings.SIMPLE_JWT.get("AUTH_COOKIE_SECURE", False),
        samesite=settings.SIMPLE_JWT.get("AUTH_COOKIE_SAMESITE", "Lax"),
        path=cookie_path,
    )


class AuthViewSet(viewsets.ViewSet):
    """
    Sign-in, token refresh and sign-out.

    The access token travels in the response body; the refresh token is
    kept in an HttpOnly cookie.
    """

    def get_permissions(self):
        if getattr(self, "action", None) in ("signin", "token_refresh"):
            return [permissions.AllowAny()]
        return [permissions.IsAuthenticated()]

    # -------------------------------------------------------
    # Sign In
    # -------------------------------------------------------
    @extend_schema(tags=["Auth"], summary="Sign in", request=SignInSerializer)
    @action(detail=False, methods=["post"], url_path="signin")
    def signin(self, request):
        serializer = SignInSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        email = serializer.validated_data["email"]
        password = serializer.validated_data["password"]

        user = authenticate(request=request, username=email, password=password)
        if not user:
            # ModelBackend refuses inactive users; report them distinctly
            inactive = User.objects.filter(email__iexact=email, is_active=False).first()
            if inactive is not None and inactive.check_password(password):
                return api_response(
                    403, "failure", {},
                    "INACTIVE_ACCOUNT",
                    "This account is inactive."
                )
            logger.info(f"Failed sign-in for {email}")
            return api_response(
                401, "failure", {},
                "INVALID_CREDENTIALS",
                "Invalid email or password."
            )

        refresh = RefreshToken.for_user(user)
        user.last_login = timezone.now()
        user.save(update_fields=["last_login"])

        payload = {"user": UserSerializer(user).data, "access": str(refresh.access_token)}
        res = api_response(200, "success", payload)
        _set_refresh_cookie(res, str(refresh))
        return res

    # -------------------------------------------------------
    # Refresh Token
    # -------------------------------------------------------
    @extend_schema(tags=["Auth"], summary="Refresh JWT access token", request=TokenRefreshSerializer)
    @action(detail=False, methods=["post"], url_path="token-refresh")
    def token_refresh(self, request):
        cookie_name, _ = _cookie_settings()
        refresh_token = request.COOKIES.get(cookie_name) or request.data.get("refresh")

        if not refresh_token:
            return api_response(400, "failure", {}, "NO_REFRESH_TOKEN", "Refresh cookie missing")

        try:
            old = RefreshToken(refresh_token)
        except TokenError:
            return api_response(401, "failure", {}, "INVALID_REFRESH", "Invalid refresh token")

        user_id = old.payload.get(settings.SIMPLE_JWT.get("USER_ID_CLAIM", "userId"))
        user = User.objects.filter(userId=user_id, is_active=True).first() if user_id else None
        if not user:
            return api_response(401, "failure", {}, "INVALID_TOKEN", "Token does not match an active user")

        if settings.SIMPLE_JWT.get("BLACKLIST_AFTER_ROTATION"):
            old.blacklist()

        new_refresh = RefreshToken.for_user(user)
        res = api_response(200, "success", {"access": str(new_refresh.access_token)})
        _set_refresh_cookie(res, str(new_refresh))
        return res

    # -------------------------------------------------------
    # Sign Out
    # -------------------------------------------------------
    @extend_schema(tags=["Auth"], summary="Sign out", request=None)
    @action(detail=False, methods=["post"], url_path="signout")
    def signout(self, request):
        cookie_name, cookie_path = _cookie_settings()
        refresh_token = request.COOKIES.get(cookie_name) or request.data.get("refresh")
        if refresh_token:
            try:
                RefreshToken(refresh_token).blacklist()
            except TokenError:
                logger.info("Sign-out with an already invalid refresh token")

        res = api_response(200, "success", {"message": "Signed out"})
        res.delete_cookie(cookie_name, path=cookie_path)
        return res


class AccountViewSet(viewsets.ViewSet):
    """The caller's own profile."""

    permission_classes = [permissions.IsAuthenticated]

    @extend_schema(tags=["Account"], summary="Get authenticated user")
    def retrieve(self, request):
        return api_response(200, "success", UserSerializer(request.user).data)

    @extend_schema(tags=["Account"], summary="Update own profile, password or dashboard columns", request=AccountUpdateSerializer)
    def partial_update(self, request):
        serializer = AccountUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        user = services.update_account(
            request.user,
            serializer.validated_data,
            audit_context=client_context(request),
        )
        return api_response(200, "success", UserSerializer(user).data)


class UserAdminViewSet(viewsets.ViewSet):
    """User management (ADMIN only)."""

    permission_classes = [permissions.IsAuthenticated, IsAdminRole]

    @extend_schema(tags=["Users"], summary="List users, newest first")
    def list(self, request):
        page, limit = parse_page_params(request.query_params)
        qs = User.objects.all().order_by("-created_at")
        rows, pagination = paginate(qs, page, limit)
        return api_response(200, "success", {
            "results": UserSerializer(rows, many=True).data,
            "pagination": pagination,
        })

    @extend_schema(tags=["Users"], summary="Create a user", request=UserCreateSerializer)
    def create(self, request):
        serializer = UserCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = services.create_user(
            actor=request.user,
            audit_context=client_context(request),
            **serializer.validated_data,
        )
        return api_response(201, "success", UserSerializer(user).data)

    @extend_schema(tags=["Users"], summary="Retrieve a user")
    def retrieve(self, request, pk=None):
        return api_response(200, "success", UserSerializer(services.get_user(pk)).data)

    @extend_schema(tags=["Users"], summary="Update a user", request=UserUpdateSerializer)
    def partial_update(self, request, pk=None):
        serializer = UserUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        user = services.update_user(
            pk,
            serializer.validated_data,
            actor=request.user,
            audit_context=client_context(request),
        )
        return api_response(200, "success", UserSerializer(user).data)

    @extend_schema(tags=["Users"], summary="Delete a user")
    def destroy(self, request, pk=None):
        services.delete_user(pk, actor=request.user, audit_context=client_context(request))
        return api_response(200, "success", {"message": "User deleted"})
