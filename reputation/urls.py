from django.urls import include, path
from rest_framework.routers import SimpleRouter

from .views import ReputationViewSet

router = SimpleRouter()
router.register(r"reputation", ReputationViewSet, basename="reputation")

urlpatterns = [
    path("", include(router.urls)),
]
