from django.urls import include, path
from rest_framework.routers import SimpleRouter

from .views import AppealsViewSet

router = SimpleRouter()
router.register(r"appeals", AppealsViewSet, basename="appeals")

urlpatterns = [
    path("", include(router.urls)),
]
