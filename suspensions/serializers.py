from datetime import timedelta

from rest_framework import serializers

from .choices import BanType, ReviewAction, SuspensionType


class SuspensionIn(serializers.Serializer):
    user_id = serializers.CharField(max_length=64)
    reason = serializers.CharField(max_length=2000)
    type = serializers.ChoiceField(choices=SuspensionType.choices)
    duration_hours = serializers.IntegerField(required=False, allow_null=True, min_value=1, help_text="temporary 에만 필요")

    def duration(self):
        hours = self.validated_data.get("duration_hours")
        return timedelta(hours=hours) if hours else None


class SuspensionReviewIn(serializers.Serializer):
    action = serializers.ChoiceField(choices=ReviewAction.choices)
    reason = serializers.CharField(max_length=2000, required=False, allow_blank=True, default="")
    duration_hours = serializers.IntegerField(required=False, allow_null=True, min_value=1, help_text="extend/reduce 에만 필요")

    def duration(self):
        hours = self.validated_data.get("duration_hours")
        return timedelta(hours=hours) if hours else None


class SuspensionOut(serializers.Serializer):
    id = serializers.CharField()
    user_id = serializers.CharField()
    reason = serializers.CharField()
    type = serializers.ChoiceField(choices=SuspensionType.choices)
    ban_type = serializers.ChoiceField(choices=BanType.choices)
    moderator_id = serializers.CharField()
    start_date = serializers.DateTimeField()
    end_date = serializers.DateTimeField()
    is_active = serializers.BooleanField()
    appealable = serializers.BooleanField()

    @classmethod
    def from_entity(cls, suspension, many=False):
        return cls(suspension, many=many)
