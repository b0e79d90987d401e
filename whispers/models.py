import uuid

from django.conf import settings
from django.db import models

User = settings.AUTH_USER_MODEL


class Whisper(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    author = models.ForeignKey(User, on_delete=models.CASCADE, related_name="whispers", db_index=True)
    transcription = models.TextField(blank=True, default="")  # 오디오 자체는 외부 스토리지
    # 자동 에스컬레이션/모더레이터 삭제는 soft delete: 신고 누적과 소유자 추적을 유지
    is_deleted = models.BooleanField(default=False)
    deleted_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "whispers"
        indexes = [models.Index(fields=["author", "created_at"], name="whispers_author_created_idx")]


class Comment(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    whisper = models.ForeignKey(Whisper, on_delete=models.CASCADE, related_name="comments", db_index=True)
    author = models.ForeignKey(User, on_delete=models.CASCADE, related_name="whisper_comments", db_index=True)
    content = models.TextField()
    is_hidden = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "whisper_comments"
        indexes = [models.Index(fields=["whisper", "created_at"], name="comments_whisper_created_idx")]
