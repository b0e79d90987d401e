from asgiref.sync import async_to_sync
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, OpenApiResponse, OpenApiTypes, extend_schema
from rest_framework import serializers, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.response import Response

from common.schema import ErrorOut, ReportLookupOut
from safety.container import build_services

from .entities import CommentReportRequest, ReportRequest, ReportResolution
from .serializers import (
    CommentReportOut,
    CommentResolutionIn,
    EscalationStatsOut,
    ReportIn,
    ReportOut,
    ReportQueryIn,
    ReportStatsBundleOut,
    ReportStatsOut,
    ReportStatusIn,
    ResolutionIn,
    ResolutionStatsOut,
    TargetReportStatsOut,
    UserReportStatsOut,
    UserResolutionHistoryOut,
)

UUID_RE = r"(?P<obj_id>[0-9a-fA-F-]{36})"

# 신고 제출/본인 조회 외에는 모두 모더레이터 전용
USER_ACTIONS = {"whispers", "whisper_mine", "comments", "comment_mine"}


def _stats_payload(stats):
    return ReportStatsOut(stats).data


def _lookup_payload(lookup):
    return {"has_reported": lookup.has_reported, "report_id": lookup.existing_report.id if lookup.existing_report else None}


def _resolution(request, ser) -> ReportResolution:
    return ReportResolution(
        action=ser.validated_data["action"],
        reason=ser.validated_data.get("reason", ""),
        moderator_id=str(request.user.id),
        notes=ser.validated_data.get("notes", ""),
    )


class ReportsViewSet(viewsets.ViewSet):
    permission_classes = [IsAuthenticated]
    serializer_class = serializers.Serializer

    def get_permissions(self):
        if self.action not in USER_ACTIONS:
            return [IsAdminUser()]
        return super().get_permissions()

    def _display_name(self):
        return getattr(self.request.user, "display_name", "") or ""

    # ---------- 위스퍼 신고 ----------
    @extend_schema(
        tags=["Reports"],
        summary="위스퍼 신고",
        description=(
            "대상 **위스퍼**에 대해 신고를 생성합니다. 같은 카테고리로 이미 처리 중인 신고가 있으면 사유가 병합되고 우선순위가 한 단계 올라갑니다. "
            "신고자의 평판 점수에 따라 우선순위가 보정되며, 고유 신고자 수가 임계치를 넘으면 자동 조치(flag/delete/suspend)가 실행됩니다."
        ),
        operation_id="reports_whispers_create",
        parameters=[OpenApiParameter(name="obj_id", location=OpenApiParameter.PATH, type=OpenApiTypes.UUID, description="대상 위스퍼 ID (UUID)")],
        request=ReportIn,
        responses={
            201: OpenApiResponse(response=ReportOut, description="생성(또는 병합)된 신고"),
            400: OpenApiResponse(response=ErrorOut),
            401: OpenApiResponse(response=ErrorOut),
            403: OpenApiResponse(response=ErrorOut),
            404: OpenApiResponse(response=ErrorOut),
        },
        examples=[OpenApiExample("요청 예시", value={"category": "harassment", "reason": "반복적인 욕설"}, request_only=True)],
    )
    @action(detail=False, methods=["post"], url_path=rf"whispers/{UUID_RE}")
    def whispers(self, request, obj_id=None):
        ser = ReportIn(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ReportRequest(
            whisper_id=obj_id,
            reporter_id=str(request.user.id),
            category=ser.validated_data["category"],
            reason=ser.validated_data["reason"],
            reporter_display_name=self._display_name(),
            evidence=ser.validated_data.get("evidence", ""),
        )
        report = async_to_sync(build_services().reports.create_report)(data)
        return Response(ReportOut.from_entity(report).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        tags=["Reports"],
        summary="위스퍼 신고 여부",
        operation_id="reports_whispers_mine",
        parameters=[OpenApiParameter(name="obj_id", location=OpenApiParameter.PATH, type=OpenApiTypes.UUID)],
        responses={200: OpenApiResponse(response=ReportLookupOut), 401: OpenApiResponse(response=ErrorOut)},
    )
    @action(detail=False, methods=["get"], url_path=rf"whispers/{UUID_RE}/mine")
    def whisper_mine(self, request, obj_id=None):
        lookup = async_to_sync(build_services().reports.has_user_reported_content)(request.user.id, obj_id)
        return Response(_lookup_payload(lookup))

    @extend_schema(
        tags=["Reports"],
        summary="위스퍼별 신고 통계 (모더레이터)",
        operation_id="reports_whispers_stats",
        parameters=[OpenApiParameter(name="obj_id", location=OpenApiParameter.PATH, type=OpenApiTypes.UUID)],
        responses={200: OpenApiResponse(response=TargetReportStatsOut), 403: OpenApiResponse(response=ErrorOut)},
    )
    @action(detail=False, methods=["get"], url_path=rf"whispers/{UUID_RE}/stats")
    def whisper_stats(self, request, obj_id=None):
        stats = async_to_sync(build_services().reports.get_whisper_report_stats)(obj_id)
        return Response(TargetReportStatsOut(stats).data)

    # ---------- 댓글 신고 ----------
    @extend_schema(
        tags=["Reports"],
        summary="댓글 신고",
        description="대상 **댓글**에 대해 신고를 생성합니다. 고유 신고자 수가 임계치를 넘으면 댓글이 숨김/삭제됩니다.",
        operation_id="reports_comments_create",
        parameters=[OpenApiParameter(name="obj_id", location=OpenApiParameter.PATH, type=OpenApiTypes.UUID, description="대상 댓글 ID (UUID)")],
        request=ReportIn,
        responses={
            201: OpenApiResponse(response=CommentReportOut, description="생성(또는 병합)된 신고"),
            400: OpenApiResponse(response=ErrorOut),
            401: OpenApiResponse(response=ErrorOut),
            403: OpenApiResponse(response=ErrorOut),
            404: OpenApiResponse(response=ErrorOut),
        },
        examples=[OpenApiExample("요청 예시", value={"category": "spam", "reason": "광고 댓글"}, request_only=True)],
    )
    @action(detail=False, methods=["post"], url_path=rf"comments/{UUID_RE}")
    def comments(self, request, obj_id=None):
        ser = ReportIn(data=request.data)
        ser.is_valid(raise_exception=True)
        data = CommentReportRequest(
            comment_id=obj_id,
            reporter_id=str(request.user.id),
            category=ser.validated_data["category"],
            reason=ser.validated_data["reason"],
            reporter_display_name=self._display_name(),
            evidence=ser.validated_data.get("evidence", ""),
        )
        report = async_to_sync(build_services().reports.create_comment_report)(data)
        return Response(CommentReportOut.from_entity(report).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        tags=["Reports"],
        summary="댓글 신고 여부",
        operation_id="reports_comments_mine",
        parameters=[OpenApiParameter(name="obj_id", location=OpenApiParameter.PATH, type=OpenApiTypes.UUID)],
        responses={200: OpenApiResponse(response=ReportLookupOut), 401: OpenApiResponse(response=ErrorOut)},
    )
    @action(detail=False, methods=["get"], url_path=rf"comments/{UUID_RE}/mine")
    def comment_mine(self, request, obj_id=None):
        lookup = async_to_sync(build_services().reports.has_user_reported_comment)(request.user.id, obj_id)
        return Response(_lookup_payload(lookup))

    # ---------- 모더레이터 ----------
    @extend_schema(
        tags=["Reports"],
        summary="위스퍼 신고 목록 (모더레이터)",
        operation_id="reports_list",
        parameters=[ReportQueryIn],
        responses={200: OpenApiResponse(response=ReportOut(many=True)), 400: OpenApiResponse(response=ErrorOut), 403: OpenApiResponse(response=ErrorOut)},
    )
    def list(self, request):
        q = ReportQueryIn(data=request.query_params)
        q.is_valid(raise_exception=True)
        reports = async_to_sync(build_services().reports.get_reports)(q.to_filters())
        return Response(ReportOut.from_entity(reports, many=True).data)

    @extend_schema(
        tags=["Reports"],
        summary="위스퍼 신고 상세 (모더레이터)",
        operation_id="reports_retrieve",
        responses={200: OpenApiResponse(response=ReportOut), 403: OpenApiResponse(response=ErrorOut), 404: OpenApiResponse(response=ErrorOut)},
    )
    def retrieve(self, request, pk=None):
        report = async_to_sync(build_services().reports.get_report)(pk)
        if report is None:
            raise NotFound({"detail": "Report not found."})
        return Response(ReportOut.from_entity(report).data)

    @extend_schema(
        tags=["Reports"],
        summary="위스퍼 신고 처리 (모더레이터)",
        description=(
            "warn=경고 기록, flag=위스퍼 플래그, reject=위스퍼 삭제 및 작성자 위반 기록, ban=작성자 영구 정지, "
            "dismiss=신고 기각(신고자 평판 -10). 이미 처리된 신고는 다시 처리할 수 없습니다."
        ),
        operation_id="reports_resolve",
        request=ResolutionIn,
        responses={
            200: OpenApiResponse(response=ReportOut),
            400: OpenApiResponse(response=ErrorOut),
            403: OpenApiResponse(response=ErrorOut),
            404: OpenApiResponse(response=ErrorOut),
        },
    )
    @action(detail=True, methods=["post"], url_path="resolve")
    def resolve(self, request, pk=None):
        ser = ResolutionIn(data=request.data)
        ser.is_valid(raise_exception=True)
        report = async_to_sync(build_services().reports.resolve_report)(pk, _resolution(request, ser))
        return Response(ReportOut.from_entity(report).data)

    @extend_schema(
        tags=["Reports"],
        summary="위스퍼 신고 상태 변경 (모더레이터)",
        operation_id="reports_status",
        request=ReportStatusIn,
        responses={200: OpenApiResponse(response=ReportOut), 400: OpenApiResponse(response=ErrorOut), 404: OpenApiResponse(response=ErrorOut)},
    )
    @action(detail=True, methods=["post"], url_path="status")
    def set_status(self, request, pk=None):
        ser = ReportStatusIn(data=request.data)
        ser.is_valid(raise_exception=True)
        report = async_to_sync(build_services().reports.update_report_status)(pk, ser.validated_data["status"], request.user.id)
        return Response(ReportOut.from_entity(report).data)

    @extend_schema(
        tags=["Reports"],
        summary="댓글 신고 목록 (모더레이터)",
        operation_id="reports_comments_list",
        parameters=[ReportQueryIn],
        responses={200: OpenApiResponse(response=CommentReportOut(many=True)), 403: OpenApiResponse(response=ErrorOut)},
    )
    @action(detail=False, methods=["get"], url_path="comments")
    def comment_list(self, request):
        q = ReportQueryIn(data=request.query_params)
        q.is_valid(raise_exception=True)
        reports = async_to_sync(build_services().reports.get_comment_reports)(q.to_filters())
        return Response(CommentReportOut.from_entity(reports, many=True).data)

    @extend_schema(
        tags=["Reports"],
        summary="댓글 신고 처리 (모더레이터)",
        description="hide=댓글 숨김, delete=댓글 삭제, dismiss=신고 기각(신고자 평판 -10).",
        operation_id="reports_comments_resolve",
        parameters=[OpenApiParameter(name="obj_id", location=OpenApiParameter.PATH, type=OpenApiTypes.UUID, description="댓글 신고 ID (UUID)")],
        request=CommentResolutionIn,
        responses={
            200: OpenApiResponse(response=CommentReportOut),
            400: OpenApiResponse(response=ErrorOut),
            403: OpenApiResponse(response=ErrorOut),
            404: OpenApiResponse(response=ErrorOut),
        },
    )
    @action(detail=False, methods=["post"], url_path=rf"comment-reports/{UUID_RE}/resolve")
    def comment_resolve(self, request, obj_id=None):
        ser = CommentResolutionIn(data=request.data)
        ser.is_valid(raise_exception=True)
        report = async_to_sync(build_services().reports.resolve_comment_report)(obj_id, _resolution(request, ser))
        return Response(CommentReportOut.from_entity(report).data)

    @extend_schema(
        tags=["Reports"],
        summary="신고 통계 (모더레이터)",
        operation_id="reports_stats",
        responses={
            200: OpenApiResponse(response=ReportStatsBundleOut, description="위스퍼/댓글 신고 집계"),
            403: OpenApiResponse(response=ErrorOut),
        },
    )
    @action(detail=False, methods=["get"], url_path="stats")
    def stats(self, request):
        services = build_services().reports
        whispers = async_to_sync(services.get_report_stats)()
        comments = async_to_sync(services.get_comment_report_stats)()
        return Response({"whispers": _stats_payload(whispers), "comments": _stats_payload(comments)})

    @extend_schema(
        tags=["Reports"],
        summary="사용자 신고 통계 (모더레이터)",
        description="대상 사용자가 제출한 위스퍼 신고의 카테고리/우선순위 분포와 신고 정확도(기각 외 처리 비율).",
        operation_id="reports_user_stats",
        parameters=[OpenApiParameter(name="obj_id", location=OpenApiParameter.PATH, type=OpenApiTypes.UUID, description="신고자 사용자 ID (UUID)")],
        responses={200: OpenApiResponse(response=UserReportStatsOut), 403: OpenApiResponse(response=ErrorOut)},
    )
    @action(detail=False, methods=["get"], url_path=rf"users/{UUID_RE}/stats")
    def user_stats(self, request, obj_id=None):
        stats = async_to_sync(build_services().reports.get_user_report_stats)(obj_id)
        return Response(UserReportStatsOut(stats).data)

    @extend_schema(
        tags=["Reports"],
        summary="사용자 신고 처리 이력 (모더레이터)",
        operation_id="reports_user_resolutions",
        parameters=[OpenApiParameter(name="obj_id", location=OpenApiParameter.PATH, type=OpenApiTypes.UUID, description="신고자 사용자 ID (UUID)")],
        responses={200: OpenApiResponse(response=UserResolutionHistoryOut), 403: OpenApiResponse(response=ErrorOut)},
    )
    @action(detail=False, methods=["get"], url_path=rf"users/{UUID_RE}/resolutions")
    def user_resolutions(self, request, obj_id=None):
        history = async_to_sync(build_services().reports.get_user_resolution_history)(obj_id)
        return Response(UserResolutionHistoryOut(history).data)

    @extend_schema(
        tags=["Reports"],
        summary="신고 처리 통계 (모더레이터)",
        description="처리 액션/카테고리별 건수, 평균 처리 시간(시간), 모더레이터별 처리 건수와 평균 시간.",
        operation_id="reports_resolution_stats",
        responses={200: OpenApiResponse(response=ResolutionStatsOut), 403: OpenApiResponse(response=ErrorOut)},
    )
    @action(detail=False, methods=["get"], url_path="resolutions/stats")
    def resolution_stats(self, request):
        stats = async_to_sync(build_services().reports.get_resolution_stats)()
        return Response(ResolutionStatsOut(stats).data)

    @extend_schema(
        tags=["Reports"],
        summary="에스컬레이션 통계 (모더레이터)",
        description="escalated 상태 신고의 비율과 카테고리 순위, 자동 에스컬레이션 기록 유형별 건수.",
        operation_id="reports_escalation_stats",
        responses={200: OpenApiResponse(response=EscalationStatsOut), 403: OpenApiResponse(response=ErrorOut)},
    )
    @action(detail=False, methods=["get"], url_path="escalations/stats")
    def escalation_stats(self, request):
        stats = async_to_sync(build_services().reports.get_escalation_stats)()
        return Response(EscalationStatsOut(stats).data)
