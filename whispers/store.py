"""
콘텐츠 저장소 추상화.
- 운영/로컬: Django ORM (whispers.models)
- 엔진 테스트: In-Memory

신고 엔진은 대상 콘텐츠의 소유자 확인과 자동 에스컬레이션(삭제/숨김)에만 이 인터페이스를 사용한다.
위스퍼 삭제는 soft delete 라서 삭제 뒤에도 소유자 조회와 신고 누적이 가능하다.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from typing import Dict, Optional

from asgiref.sync import sync_to_async
from django.utils import timezone

from common.ids import is_valid_uuid


@dataclass(frozen=True)
class WhisperRef:
    id: str
    user_id: str
    is_deleted: bool = False


@dataclass(frozen=True)
class CommentRef:
    id: str
    whisper_id: str
    user_id: str
    is_hidden: bool = False


# ---------- 추상 인터페이스 ----------
class BaseContentStore:
    async def get_whisper(self, whisper_id: str) -> Optional[WhisperRef]: ...
    async def delete_whisper(self, whisper_id: str) -> bool: ...
    async def get_comment(self, comment_id: str) -> Optional[CommentRef]: ...
    async def delete_comment(self, comment_id: str) -> bool: ...
    async def hide_comment(self, comment_id: str) -> bool: ...


# ---------- Django ORM 백엔드 ----------
class DjangoContentStore(BaseContentStore):
    @sync_to_async
    def get_whisper(self, whisper_id):
        from .models import Whisper

        if not is_valid_uuid(whisper_id):
            return None
        row = Whisper.objects.filter(id=whisper_id).values("id", "author_id", "is_deleted").first()
        if row is None:
            return None
        return WhisperRef(id=str(row["id"]), user_id=str(row["author_id"]), is_deleted=row["is_deleted"])

    @sync_to_async
    def delete_whisper(self, whisper_id):
        from .models import Whisper

        if not is_valid_uuid(whisper_id):
            return False
        return Whisper.objects.filter(id=whisper_id, is_deleted=False).update(is_deleted=True, deleted_at=timezone.now()) > 0

    @sync_to_async
    def get_comment(self, comment_id):
        from .models import Comment

        if not is_valid_uuid(comment_id):
            return None
        row = Comment.objects.filter(id=comment_id).values("id", "whisper_id", "author_id", "is_hidden").first()
        if row is None:
            return None
        return CommentRef(id=str(row["id"]), whisper_id=str(row["whisper_id"]), user_id=str(row["author_id"]), is_hidden=row["is_hidden"])

    @sync_to_async
    def delete_comment(self, comment_id):
        from .models import Comment

        if not is_valid_uuid(comment_id):
            return False
        deleted, _ = Comment.objects.filter(id=comment_id).delete()
        return deleted > 0

    @sync_to_async
    def hide_comment(self, comment_id):
        from .models import Comment

        if not is_valid_uuid(comment_id):
            return False
        return Comment.objects.filter(id=comment_id).update(is_hidden=True) > 0


# ---------- In-Memory 백엔드 (테스트 용) ----------
class InMemoryContentStore(BaseContentStore):
    def __init__(self):
        self.whispers: Dict[str, WhisperRef] = {}
        self.comments: Dict[str, CommentRef] = {}

    def add_whisper(self, user_id: str, whisper_id: Optional[str] = None) -> WhisperRef:
        ref = WhisperRef(id=whisper_id or str(uuid.uuid4()), user_id=str(user_id))
        self.whispers[ref.id] = ref
        return ref

    def add_comment(self, whisper_id: str, user_id: str, comment_id: Optional[str] = None) -> CommentRef:
        ref = CommentRef(id=comment_id or str(uuid.uuid4()), whisper_id=str(whisper_id), user_id=str(user_id))
        self.comments[ref.id] = ref
        return ref

    async def get_whisper(self, whisper_id):
        return self.whispers.get(str(whisper_id))

    async def delete_whisper(self, whisper_id):
        ref = self.whispers.get(str(whisper_id))
        if ref is None or ref.is_deleted:
            return False
        self.whispers[ref.id] = replace(ref, is_deleted=True)
        return True

    async def get_comment(self, comment_id):
        return self.comments.get(str(comment_id))

    async def delete_comment(self, comment_id):
        return self.comments.pop(str(comment_id), None) is not None

    async def hide_comment(self, comment_id):
        ref = self.comments.get(str(comment_id))
        if ref is None:
            return False
        self.comments[ref.id] = replace(ref, is_hidden=True)
        return True
