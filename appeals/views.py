from asgiref.sync import async_to_sync
from drf_spectacular.utils import OpenApiExample, OpenApiResponse, extend_schema
from rest_framework import serializers, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.response import Response

from common.schema import AppealStatsOut, ErrorOut
from safety.container import build_services

from .serializers import AppealIn, AppealOut, AppealReviewIn


class AppealsViewSet(viewsets.ViewSet):
    permission_classes = [IsAuthenticated]
    serializer_class = serializers.Serializer

    def get_permissions(self):
        if self.action in ("pending", "review", "stats"):
            return [IsAdminUser()]
        return super().get_permissions()

    @extend_schema(
        tags=["Appeals"],
        summary="이의제기 제출",
        description=(
            "위반 기록에 대해 이의제기를 제출합니다. 평판 등급별 기한(trusted 30일 ~ flagged 3일)이 지나면 거절되며, "
            "banned 사용자는 제출할 수 없습니다. trusted 사용자의 low 위반은 즉시 자동 승인됩니다."
        ),
        operation_id="appeals_create",
        request=AppealIn,
        responses={
            201: OpenApiResponse(response=AppealOut),
            400: OpenApiResponse(response=ErrorOut),
            403: OpenApiResponse(response=ErrorOut),
            404: OpenApiResponse(response=ErrorOut),
        },
        examples=[OpenApiExample("요청 예시", value={"violation_id": "6c1e...", "reason": "오탐입니다"}, request_only=True)],
    )
    def create(self, request):
        ser = AppealIn(data=request.data)
        ser.is_valid(raise_exception=True)
        appeal = async_to_sync(build_services().appeals.create)(
            request.user.id,
            ser.validated_data.get("whisper_id", ""),
            ser.validated_data["violation_id"],
            ser.validated_data["reason"],
            ser.validated_data.get("evidence", ""),
        )
        return Response(AppealOut.from_entity(appeal).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        tags=["Appeals"],
        summary="내 이의제기 목록",
        operation_id="appeals_list",
        responses={200: OpenApiResponse(response=AppealOut(many=True))},
    )
    def list(self, request):
        appeals = async_to_sync(build_services().appeals.get_user_appeals)(request.user.id)
        return Response(AppealOut.from_entity(appeals, many=True).data)

    @extend_schema(
        tags=["Appeals"],
        summary="이의제기 상세",
        description="본인 또는 모더레이터만 조회할 수 있습니다.",
        operation_id="appeals_retrieve",
        responses={200: OpenApiResponse(response=AppealOut), 404: OpenApiResponse(response=ErrorOut)},
    )
    def retrieve(self, request, pk=None):
        appeal = async_to_sync(build_services().appeals.get_appeal)(pk)
        # 타인의 이의제기는 존재 여부도 노출하지 않음
        if appeal is None or (appeal.user_id != str(request.user.id) and not request.user.is_staff):
            raise NotFound({"detail": "Appeal not found."})
        return Response(AppealOut.from_entity(appeal).data)

    @extend_schema(
        tags=["Appeals"],
        summary="대기 중 이의제기 (모더레이터)",
        operation_id="appeals_pending",
        responses={200: OpenApiResponse(response=AppealOut(many=True)), 403: OpenApiResponse(response=ErrorOut)},
    )
    @action(detail=False, methods=["get"], url_path="pending")
    def pending(self, request):
        appeals = async_to_sync(build_services().appeals.get_pending_appeals)()
        return Response(AppealOut.from_entity(appeals, many=True).data)

    @extend_schema(
        tags=["Appeals"],
        summary="이의제기 검토 (모더레이터)",
        description="pending 상태에서만 가능합니다. 승인 시 평판 보정은 0 이상, 거절 시 0 이하여야 합니다.",
        operation_id="appeals_review",
        request=AppealReviewIn,
        responses={
            200: OpenApiResponse(response=AppealOut),
            400: OpenApiResponse(response=ErrorOut),
            403: OpenApiResponse(response=ErrorOut),
            404: OpenApiResponse(response=ErrorOut),
        },
    )
    @action(detail=True, methods=["post"], url_path="review")
    def review(self, request, pk=None):
        ser = AppealReviewIn(data=request.data)
        ser.is_valid(raise_exception=True)
        appeal = async_to_sync(build_services().appeals.review)(
            pk,
            ser.validated_data["action"],
            ser.validated_data.get("reason", ""),
            request.user.id,
            ser.validated_data.get("reputation_adjustment"),
        )
        return Response(AppealOut.from_entity(appeal).data)

    @extend_schema(
        tags=["Appeals"],
        summary="이의제기 통계 (모더레이터)",
        operation_id="appeals_stats",
        responses={200: OpenApiResponse(response=AppealStatsOut), 403: OpenApiResponse(response=ErrorOut)},
    )
    @action(detail=False, methods=["get"], url_path="stats")
    def stats(self, request):
        stats = async_to_sync(build_services().appeals.get_appeal_stats)()
        return Response({"total": stats.total, "by_status": stats.by_status, "approval_rate": stats.approval_rate})
