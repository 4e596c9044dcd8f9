from rest_framework.routers import DefaultRouter

from .views import MessageViewSet, NotificationViewSet

router = DefaultRouter()
router.register(r"messages", MessageViewSet, basename="messages")
router.register(r"notifications", NotificationViewSet, basename="notifications")

urlpatterns = router.urls
