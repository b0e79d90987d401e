import uuid

from django.db import models
from django.utils import timezone

from .choices import BanType, SuspensionType


class Suspension(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user_id = models.CharField(max_length=64, db_index=True)
    reason = models.TextField()
    type = models.CharField(max_length=16, choices=SuspensionType.choices)
    ban_type = models.CharField(max_length=16, choices=BanType.choices, default=BanType.NONE)
    moderator_id = models.CharField(max_length=64)
    start_date = models.DateTimeField()
    end_date = models.DateTimeField(db_index=True)  # 영구 정지는 먼 미래 날짜
    is_active = models.BooleanField(default=True, db_index=True)
    duration = models.DurationField(null=True, blank=True)
    appealable = models.BooleanField(default=True)
    reviewed_by = models.CharField(max_length=64, blank=True, default="")
    reviewed_at = models.DateTimeField(null=True, blank=True)
    review_reason = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "suspensions"
        ordering = ["-created_at"]
        indexes = [models.Index(fields=["user_id", "is_active"], name="suspensions_user_active_idx")]
