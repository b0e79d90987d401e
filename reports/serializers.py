from rest_framework import serializers

from .choices import CommentResolutionAction, ReportCategory, ReportPriority, ReportStatus, ResolutionAction
from .entities import ReportFilters


class ReportIn(serializers.Serializer):
    category = serializers.ChoiceField(choices=ReportCategory.choices)
    reason = serializers.CharField(max_length=2000)
    evidence = serializers.CharField(max_length=4000, required=False, allow_blank=True, default="")


class ReportQueryIn(serializers.Serializer):
    status = serializers.ChoiceField(choices=ReportStatus.choices, required=False)
    category = serializers.ChoiceField(choices=ReportCategory.choices, required=False)
    priority = serializers.ChoiceField(choices=ReportPriority.choices, required=False)
    date_from = serializers.DateTimeField(required=False)
    date_to = serializers.DateTimeField(required=False)
    limit = serializers.IntegerField(required=False, min_value=1, max_value=500, default=100)

    def to_filters(self) -> ReportFilters:
        return ReportFilters(**self.validated_data)


class ResolutionIn(serializers.Serializer):
    action = serializers.ChoiceField(choices=ResolutionAction.choices)
    reason = serializers.CharField(max_length=2000, required=False, allow_blank=True, default="")
    notes = serializers.CharField(max_length=4000, required=False, allow_blank=True, default="")


class CommentResolutionIn(ResolutionIn):
    action = serializers.ChoiceField(choices=CommentResolutionAction.choices)


class ReportStatusIn(serializers.Serializer):
    status = serializers.ChoiceField(choices=ReportStatus.choices)


class ReportResolutionOut(serializers.Serializer):
    action = serializers.CharField()
    reason = serializers.CharField(allow_blank=True)
    moderator_id = serializers.CharField()
    notes = serializers.CharField(allow_blank=True)


class _BaseReportOut(serializers.Serializer):
    id = serializers.CharField()
    reporter_id = serializers.CharField()
    reporter_display_name = serializers.CharField(allow_blank=True)
    reporter_reputation = serializers.IntegerField()
    category = serializers.ChoiceField(choices=ReportCategory.choices)
    priority = serializers.ChoiceField(choices=ReportPriority.choices)
    status = serializers.ChoiceField(choices=ReportStatus.choices)
    reason = serializers.CharField()
    evidence = serializers.CharField(allow_blank=True)
    reputation_weight = serializers.FloatField()
    resolution = ReportResolutionOut(allow_null=True)
    reviewed_at = serializers.DateTimeField(allow_null=True)
    reviewed_by = serializers.CharField(allow_blank=True)
    created_at = serializers.DateTimeField()
    updated_at = serializers.DateTimeField()

    @classmethod
    def from_entity(cls, report, many=False):
        return cls(report, many=many)


class ReportOut(_BaseReportOut):
    whisper_id = serializers.CharField()
    whisper_user_id = serializers.CharField()


class CommentReportOut(_BaseReportOut):
    comment_id = serializers.CharField()
    comment_user_id = serializers.CharField()
    whisper_id = serializers.CharField()


class TargetReportStatsOut(serializers.Serializer):
    total_reports = serializers.IntegerField()
    unique_reporters = serializers.IntegerField()
    by_category = serializers.DictField(child=serializers.IntegerField())
    highest_priority = serializers.ChoiceField(choices=ReportPriority.choices, allow_null=True)
    needs_review = serializers.BooleanField()


class ReportStatsOut(serializers.Serializer):
    total = serializers.IntegerField()
    by_status = serializers.DictField(child=serializers.IntegerField())
    by_priority = serializers.DictField(child=serializers.IntegerField())
    by_category = serializers.DictField(child=serializers.IntegerField())


class ReportStatsBundleOut(serializers.Serializer):
    whispers = ReportStatsOut()
    comments = ReportStatsOut()


class UserReportStatsOut(serializers.Serializer):
    total_reports = serializers.IntegerField()
    by_category = serializers.DictField(child=serializers.IntegerField())
    by_priority = serializers.DictField(child=serializers.IntegerField())
    average_reporter_reputation = serializers.FloatField()
    most_reported_category = serializers.ChoiceField(choices=ReportCategory.choices)
    report_accuracy = serializers.FloatField(help_text="조치로 이어진 신고 비율(%)")


class UserResolutionHistoryOut(serializers.Serializer):
    reports_submitted = ReportOut(many=True)
    reports_resolved = ReportOut(many=True)
    average_resolution_hours = serializers.FloatField()
    most_common_action = serializers.CharField()


class ModeratorPerformanceOut(serializers.Serializer):
    total_resolutions = serializers.IntegerField()
    average_hours = serializers.FloatField()


class ResolutionStatsOut(serializers.Serializer):
    total_resolutions = serializers.IntegerField()
    by_action = serializers.DictField(child=serializers.IntegerField())
    by_category = serializers.DictField(child=serializers.IntegerField())
    average_resolution_hours = serializers.FloatField()
    moderator_performance = serializers.DictField(child=ModeratorPerformanceOut())


class CategoryShareOut(serializers.Serializer):
    category = serializers.ChoiceField(choices=ReportCategory.choices)
    count = serializers.IntegerField()
    percentage = serializers.FloatField()


class EscalationStatsOut(serializers.Serializer):
    total_escalations = serializers.IntegerField()
    escalation_rate = serializers.FloatField(help_text="에스컬레이션 상태 신고 비율(%)")
    most_escalated_categories = CategoryShareOut(many=True)
    by_violation_type = serializers.DictField(child=serializers.IntegerField())
