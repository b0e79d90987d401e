from rest_framework import status
from rest_framework.exceptions import APIException


class InvalidScore(ValueError):
    """Raised when a reputation score is negative, NaN or infinite."""


class StoreUnavailable(APIException):
    # hot path 쓰기 실패: 호출자가 재시도할 수 있도록 503으로 노출
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "Backing store is temporarily unavailable."
    default_code = "store_unavailable"
