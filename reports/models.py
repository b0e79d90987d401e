import uuid

from django.db import models
from django.utils import timezone

from .choices import EscalationViolationType, ReportCategory, ReportPriority, ReportStatus


class BaseReport(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    reporter_id = models.CharField(max_length=64, db_index=True)
    reporter_display_name = models.CharField(max_length=100, blank=True, default="")
    reporter_reputation = models.PositiveSmallIntegerField(default=50)  # 신고 시점 스냅샷
    category = models.CharField(max_length=32, choices=ReportCategory.choices)
    priority = models.CharField(max_length=16, choices=ReportPriority.choices, default=ReportPriority.MEDIUM)
    status = models.CharField(max_length=16, choices=ReportStatus.choices, default=ReportStatus.PENDING, db_index=True)
    reason = models.TextField()  # 반복 신고 시 구분선과 함께 이어붙임
    evidence = models.TextField(blank=True, default="")
    reputation_weight = models.FloatField(default=1.0)
    resolution_action = models.CharField(max_length=16, blank=True, default="")
    resolution_reason = models.TextField(blank=True, default="")
    resolution_moderator_id = models.CharField(max_length=64, blank=True, default="")
    resolution_notes = models.TextField(blank=True, default="")
    reviewed_at = models.DateTimeField(null=True, blank=True)
    reviewed_by = models.CharField(max_length=64, blank=True, default="")
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        abstract = True


class Report(BaseReport):
    whisper_id = models.CharField(max_length=64, db_index=True)
    whisper_user_id = models.CharField(max_length=64, db_index=True)

    class Meta:
        db_table = "whisper_reports"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["whisper_id", "created_at"], name="reports_whisper_created_idx"),
            models.Index(fields=["reporter_id", "whisper_id"], name="reports_reporter_whisper_idx"),
        ]


class CommentReport(BaseReport):
    comment_id = models.CharField(max_length=64, db_index=True)
    comment_user_id = models.CharField(max_length=64, db_index=True)
    whisper_id = models.CharField(max_length=64, blank=True, default="")

    class Meta:
        db_table = "comment_reports"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["comment_id", "created_at"], name="creports_comment_created_idx"),
            models.Index(fields=["reporter_id", "comment_id"], name="creports_reporter_comment_idx"),
        ]


class UserViolation(models.Model):
    # 자동 에스컬레이션/모더레이터 조치 기록. 사용자 단위 에스컬레이션의 위반 횟수로 쓰인다.
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user_id = models.CharField(max_length=64, db_index=True)
    violation_type = models.CharField(max_length=32, choices=EscalationViolationType.choices)
    reason = models.TextField()
    report_count = models.PositiveIntegerField(default=0)
    whisper_id = models.CharField(max_length=64, blank=True, default="", db_index=True)
    comment_id = models.CharField(max_length=64, blank=True, default="")
    moderator_id = models.CharField(max_length=64, default="system")
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "user_violations"
        ordering = ["-created_at"]
