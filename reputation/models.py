import uuid

from django.db import models
from django.utils import timezone

from .choices import ReputationLevel, Severity, ViolationType


class UserReputation(models.Model):
    # 사용자 테이블과 느슨하게 결합(외부 ID도 수용)
    user_id = models.CharField(max_length=64, primary_key=True)
    score = models.PositiveSmallIntegerField(default=50)
    level = models.CharField(max_length=16, choices=ReputationLevel.choices, default=ReputationLevel.STANDARD, db_index=True)
    total_whispers = models.PositiveIntegerField(default=0)
    approved_whispers = models.PositiveIntegerField(default=0)
    flagged_whispers = models.PositiveIntegerField(default=0)
    rejected_whispers = models.PositiveIntegerField(default=0)
    last_violation = models.DateTimeField(null=True, blank=True, db_index=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "user_reputations"

    def __str__(self):
        return f"{self.user_id} ({self.level}:{self.score})"


class ViolationRecord(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    reputation = models.ForeignKey(UserReputation, on_delete=models.CASCADE, related_name="violations")
    whisper_id = models.CharField(max_length=64, blank=True, default="")
    violation_type = models.CharField(max_length=32, choices=ViolationType.choices)
    severity = models.CharField(max_length=16, choices=Severity.choices)
    timestamp = models.DateTimeField()
    resolved = models.BooleanField(default=False)
    notes = models.TextField(blank=True, default="")

    class Meta:
        db_table = "violation_records"
        ordering = ["timestamp"]
        indexes = [models.Index(fields=["reputation", "timestamp"], name="violations_rep_ts_idx")]
