from rest_framework.routers import DefaultRouter

from .views import ParameterViewSet, ProjectViewSet

router = DefaultRouter()
router.register(r"projects", ProjectViewSet, basename="projects")
router.register(r"parameters", ParameterViewSet, basename="parameters")

urlpatterns = router.urls
