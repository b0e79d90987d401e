from rest_framework.routers import SimpleRouter

from .views import ReportsViewSet

# api/v1/ 아래에 여러 앱 라우터가 함께 붙으므로 api-root 뷰가 없는 SimpleRouter 사용
router = SimpleRouter()
router.register(r"reports", ReportsViewSet, basename="reports")

urlpatterns = router.urls
