from django.urls import include, path
from rest_framework.routers import SimpleRouter

from .views import SuspensionsViewSet

router = SimpleRouter()
router.register(r"suspensions", SuspensionsViewSet, basename="suspensions")

urlpatterns = [
    path("", include(router.urls)),
]
