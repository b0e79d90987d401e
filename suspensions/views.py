from asgiref.sync import async_to_sync
from drf_spectacular.utils import OpenApiExample, OpenApiResponse, extend_schema
from rest_framework import serializers, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.response import Response

from common.schema import ErrorOut, SuspensionStatsOut, SuspensionStatusOut
from safety.container import build_services

from .entities import SuspensionRequest
from .serializers import SuspensionIn, SuspensionOut, SuspensionReviewIn


class SuspensionsViewSet(viewsets.ViewSet):
    permission_classes = [IsAuthenticated]
    serializer_class = serializers.Serializer

    def get_permissions(self):
        if self.action != "me":
            return [IsAdminUser()]
        return super().get_permissions()

    @extend_schema(
        tags=["Suspensions"],
        summary="내 정지 상태",
        description="활성 정지 목록과 이의제기 가능 여부(영구 정지가 아닌 활성 정지가 있을 때)를 반환합니다.",
        operation_id="suspensions_me",
        responses={200: OpenApiResponse(response=SuspensionStatusOut), 401: OpenApiResponse(response=ErrorOut)},
    )
    @action(detail=False, methods=["get"], url_path="me")
    def me(self, request):
        state = async_to_sync(build_services().suspensions.is_user_suspended)(request.user.id)
        return Response(
            {
                "suspended": state.suspended,
                "can_appeal": state.can_appeal,
                "suspensions": SuspensionOut.from_entity(state.suspensions, many=True).data,
            }
        )

    @extend_schema(
        tags=["Suspensions"],
        summary="정지 생성 (모더레이터)",
        description="warning 은 이력으로만 남고, temporary 는 `duration_hours` 가 필요하며 permanent 는 기간을 가질 수 없습니다.",
        operation_id="suspensions_create",
        request=SuspensionIn,
        responses={
            201: OpenApiResponse(response=SuspensionOut),
            400: OpenApiResponse(response=ErrorOut),
            403: OpenApiResponse(response=ErrorOut),
        },
        examples=[OpenApiExample("요청 예시", value={"user_id": "2f0c...", "reason": "harassment", "type": "temporary", "duration_hours": 24}, request_only=True)],
    )
    def create(self, request):
        ser = SuspensionIn(data=request.data)
        ser.is_valid(raise_exception=True)
        data = SuspensionRequest(
            user_id=ser.validated_data["user_id"],
            reason=ser.validated_data["reason"],
            type=ser.validated_data["type"],
            moderator_id=str(request.user.id),
            duration=ser.duration(),
        )
        suspension = async_to_sync(build_services().suspensions.create)(data)
        return Response(SuspensionOut.from_entity(suspension).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        tags=["Suspensions"],
        summary="정지 검토 (모더레이터)",
        description="extend/reduce 는 기간 조정(영구 정지 불가), remove 는 즉시 해제, make_permanent 는 영구 정지로 전환합니다.",
        operation_id="suspensions_review",
        request=SuspensionReviewIn,
        responses={
            200: OpenApiResponse(response=SuspensionOut),
            400: OpenApiResponse(response=ErrorOut),
            403: OpenApiResponse(response=ErrorOut),
            404: OpenApiResponse(response=ErrorOut),
        },
    )
    @action(detail=True, methods=["post"], url_path="review")
    def review(self, request, pk=None):
        ser = SuspensionReviewIn(data=request.data)
        ser.is_valid(raise_exception=True)
        suspension = async_to_sync(build_services().suspensions.review)(
            pk,
            ser.validated_data["action"],
            ser.validated_data.get("reason", ""),
            request.user.id,
            ser.duration(),
        )
        return Response(SuspensionOut.from_entity(suspension).data)

    @extend_schema(
        tags=["Suspensions"],
        summary="정지 통계 (모더레이터)",
        operation_id="suspensions_stats",
        responses={200: OpenApiResponse(response=SuspensionStatsOut), 403: OpenApiResponse(response=ErrorOut)},
    )
    @action(detail=False, methods=["get"], url_path="stats")
    def stats(self, request):
        stats = async_to_sync(build_services().suspensions.get_suspension_stats)()
        return Response({"total": stats.total, "active": stats.active, "by_type": stats.by_type})
