from rest_framework import serializers

from .choices import ReputationLevel, Severity, ViolationType


class ViolationRecordOut(serializers.Serializer):
    id = serializers.CharField()
    whisper_id = serializers.CharField()
    violation_type = serializers.ChoiceField(choices=ViolationType.choices)
    severity = serializers.ChoiceField(choices=Severity.choices)
    timestamp = serializers.DateTimeField()
    resolved = serializers.BooleanField()
    notes = serializers.CharField(allow_blank=True)


class ReputationOut(serializers.Serializer):
    user_id = serializers.CharField()
    score = serializers.IntegerField(min_value=0, max_value=100)
    level = serializers.ChoiceField(choices=ReputationLevel.choices)
    level_description = serializers.CharField()
    total_whispers = serializers.IntegerField()
    approved_whispers = serializers.IntegerField()
    flagged_whispers = serializers.IntegerField()
    rejected_whispers = serializers.IntegerField()
    last_violation = serializers.DateTimeField(allow_null=True)
    appeal_time_limit_days = serializers.IntegerField()
    violation_history = ViolationRecordOut(many=True)

    @classmethod
    def from_entity(cls, reputation):
        from . import rules

        data = {
            "user_id": reputation.user_id,
            "score": reputation.score,
            "level": reputation.level,
            "level_description": rules.level_description(reputation.level),
            "total_whispers": reputation.total_whispers,
            "approved_whispers": reputation.approved_whispers,
            "flagged_whispers": reputation.flagged_whispers,
            "rejected_whispers": reputation.rejected_whispers,
            "last_violation": reputation.last_violation,
            "appeal_time_limit_days": rules.appeal_time_limit_days(reputation.level),
            "violation_history": [vars(v) for v in reputation.violation_history],
        }
        return cls(data)


class RecentViolationsQueryIn(serializers.Serializer):
    days = serializers.IntegerField(required=False, default=7, min_value=1, max_value=365)
