from asgiref.sync import async_to_sync
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, OpenApiTypes, extend_schema
from rest_framework import serializers, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.response import Response

from common.schema import ErrorOut, ReputationStatsOut
from safety.container import build_services

from .choices import ReputationLevel
from .serializers import RecentViolationsQueryIn, ReputationOut

USER_ID_RE = r"(?P<user_id>[0-9a-fA-F-]{36})"
LEVEL_RE = r"(?P<level>[a-z]+)"
STAFF_ACTIONS = {"stats", "for_user", "by_level", "recent_violations"}


class ReputationViewSet(viewsets.ViewSet):
    permission_classes = [IsAuthenticated]
    serializer_class = serializers.Serializer

    def get_permissions(self):
        if self.action in STAFF_ACTIONS:
            return [IsAdminUser()]
        return super().get_permissions()

    @extend_schema(
        tags=["Reputation"],
        summary="내 평판 조회",
        description="현재 사용자의 평판 점수/등급/위반 이력을 반환합니다. 기록이 없으면 기본값(50, standard)으로 생성됩니다.",
        operation_id="reputation_me",
        responses={200: OpenApiResponse(response=ReputationOut), 401: OpenApiResponse(response=ErrorOut)},
    )
    @action(detail=False, methods=["get"], url_path="me")
    def me(self, request):
        reputation = async_to_sync(build_services().reputation.get_user_reputation)(request.user.id)
        return Response(ReputationOut.from_entity(reputation).data)

    @extend_schema(
        tags=["Reputation"],
        summary="사용자 평판 조회 (모더레이터)",
        operation_id="reputation_user",
        parameters=[OpenApiParameter(name="user_id", location=OpenApiParameter.PATH, type=OpenApiTypes.UUID, description="대상 사용자 ID (UUID)")],
        responses={200: OpenApiResponse(response=ReputationOut), 403: OpenApiResponse(response=ErrorOut)},
    )
    @action(detail=False, methods=["get"], url_path=rf"users/{USER_ID_RE}")
    def for_user(self, request, user_id=None):
        reputation = async_to_sync(build_services().reputation.get_user_reputation)(user_id)
        return Response(ReputationOut.from_entity(reputation).data)

    @extend_schema(
        tags=["Reputation"],
        summary="평판 통계 (모더레이터)",
        description="등급별 사용자 수와 평균 점수.",
        operation_id="reputation_stats",
        responses={200: OpenApiResponse(response=ReputationStatsOut), 403: OpenApiResponse(response=ErrorOut)},
    )
    @action(detail=False, methods=["get"], url_path="stats")
    def stats(self, request):
        stats = async_to_sync(build_services().reputation.get_reputation_stats)()
        return Response({"total_users": stats.total_users, "average_score": stats.average_score, "by_level": stats.by_level})

    @extend_schema(
        tags=["Reputation"],
        summary="등급별 사용자 목록 (모더레이터)",
        description="점수 오름차순. 알 수 없는 등급은 400.",
        operation_id="reputation_by_level",
        parameters=[OpenApiParameter(name="level", location=OpenApiParameter.PATH, enum=ReputationLevel.values, description="평판 등급")],
        responses={200: OpenApiResponse(response=ReputationOut(many=True)), 400: OpenApiResponse(response=ErrorOut), 403: OpenApiResponse(response=ErrorOut)},
    )
    @action(detail=False, methods=["get"], url_path=rf"levels/{LEVEL_RE}")
    def by_level(self, request, level=None):
        rows = async_to_sync(build_services().reputation.get_users_by_level)(level)
        return Response([ReputationOut.from_entity(r).data for r in rows])

    @extend_schema(
        tags=["Reputation"],
        summary="최근 위반 사용자 목록 (모더레이터)",
        description="최근 N일(기본 7일) 안에 위반이 기록된 사용자. 최근 위반 순.",
        operation_id="reputation_recent_violations",
        parameters=[RecentViolationsQueryIn],
        responses={200: OpenApiResponse(response=ReputationOut(many=True)), 400: OpenApiResponse(response=ErrorOut), 403: OpenApiResponse(response=ErrorOut)},
    )
    @action(detail=False, methods=["get"], url_path="recent-violations")
    def recent_violations(self, request):
        q = RecentViolationsQueryIn(data=request.query_params)
        q.is_valid(raise_exception=True)
        rows = async_to_sync(build_services().reputation.get_users_with_recent_violations)(q.validated_data["days"])
        return Response([ReputationOut.from_entity(r).data for r in rows])
