import uuid

from django.db import models
from django.utils import timezone

from .choices import AppealAction, AppealStatus


class Appeal(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user_id = models.CharField(max_length=64, db_index=True)
    whisper_id = models.CharField(max_length=64, blank=True, default="")
    violation_id = models.CharField(max_length=64, db_index=True)
    reason = models.TextField()
    evidence = models.TextField(blank=True, default="")
    status = models.CharField(max_length=16, choices=AppealStatus.choices, default=AppealStatus.PENDING, db_index=True)
    submitted_at = models.DateTimeField()
    reviewed_at = models.DateTimeField(null=True, blank=True)
    reviewed_by = models.CharField(max_length=64, blank=True, default="")
    # resolution (승인/거절 시에만 채워짐)
    resolution_action = models.CharField(max_length=16, choices=AppealAction.choices, blank=True, default="")
    resolution_reason = models.TextField(blank=True, default="")
    resolution_moderator_id = models.CharField(max_length=64, blank=True, default="")
    reputation_adjustment = models.SmallIntegerField(default=0)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "appeals"
        ordering = ["-submitted_at"]
        indexes = [
            models.Index(fields=["violation_id", "status"], name="appeals_violation_status_idx"),
            models.Index(fields=["status", "submitted_at"], name="appeals_status_submitted_idx"),
        ]
