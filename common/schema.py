from drf_spectacular.utils import inline_serializer
from rest_framework import serializers

# Common
ErrorOut = inline_serializer(
    name="ErrorOut",
    fields={"detail": serializers.CharField(help_text="Human readable error message.")},
)

# Reputation
ReputationStatsOut = inline_serializer(
    name="ReputationStatsOut",
    fields={
        "total_users": serializers.IntegerField(),
        "average_score": serializers.FloatField(),
        "by_level": serializers.DictField(child=serializers.IntegerField(), help_text="key=level, value=사용자 수"),
    },
)

# Suspensions
SuspensionStatusOut = inline_serializer(
    name="SuspensionStatusOut",
    fields={
        "suspended": serializers.BooleanField(),
        "can_appeal": serializers.BooleanField(help_text="영구 정지가 아닌 활성 정지가 있으면 true"),
        "suspensions": serializers.ListField(child=serializers.DictField()),
    },
)

SuspensionStatsOut = inline_serializer(
    name="SuspensionStatsOut",
    fields={
        "total": serializers.IntegerField(),
        "active": serializers.IntegerField(),
        "by_type": serializers.DictField(child=serializers.IntegerField()),
    },
)

# Appeals
AppealStatsOut = inline_serializer(
    name="AppealStatsOut",
    fields={
        "total": serializers.IntegerField(),
        "by_status": serializers.DictField(child=serializers.IntegerField()),
        "approval_rate": serializers.FloatField(help_text="검토 완료(approved+rejected) 대비 승인 비율"),
    },
)

# Reports
ReportLookupOut = inline_serializer(
    name="ReportLookupOut",
    fields={
        "has_reported": serializers.BooleanField(),
        "report_id": serializers.UUIDField(allow_null=True),
    },
)
