from rest_framework import serializers

from .choices import AppealAction, AppealStatus


class AppealIn(serializers.Serializer):
    whisper_id = serializers.CharField(max_length=64, required=False, allow_blank=True, default="")
    violation_id = serializers.CharField(max_length=64)
    reason = serializers.CharField(max_length=2000)
    evidence = serializers.CharField(max_length=4000, required=False, allow_blank=True, default="")


class AppealReviewIn(serializers.Serializer):
    action = serializers.ChoiceField(choices=AppealAction.choices)
    reason = serializers.CharField(max_length=2000, required=False, allow_blank=True, default="")
    reputation_adjustment = serializers.IntegerField(required=False, allow_null=True, min_value=-100, max_value=100, help_text="미지정 시 승인 +5 / 거절 -5")


class AppealResolutionOut(serializers.Serializer):
    action = serializers.ChoiceField(choices=AppealAction.choices)
    reason = serializers.CharField(allow_blank=True)
    moderator_id = serializers.CharField()
    reputation_adjustment = serializers.IntegerField()


class AppealOut(serializers.Serializer):
    id = serializers.CharField()
    user_id = serializers.CharField()
    whisper_id = serializers.CharField(allow_blank=True)
    violation_id = serializers.CharField()
    reason = serializers.CharField()
    evidence = serializers.CharField(allow_blank=True)
    status = serializers.ChoiceField(choices=AppealStatus.choices)
    submitted_at = serializers.DateTimeField()
    reviewed_at = serializers.DateTimeField(allow_null=True)
    reviewed_by = serializers.CharField(allow_blank=True)
    resolution = AppealResolutionOut(allow_null=True)

    @classmethod
    def from_entity(cls, appeal, many=False):
        return cls(appeal, many=many)
