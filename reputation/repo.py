"""
평판 저장소 추상화.
- 운영/로컬: Django ORM (user_reputations + violation_records)
- 엔진 테스트: In-Memory

점수 변경은 반드시 ``mutate`` 를 거친다. ORM 구현은 행 잠금(select_for_update) 안에서
읽기-수정-쓰기를 수행해 동시 위반 기록 시 갱신 유실을 막는다.
"""

from __future__ import annotations

import copy
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple, TypeVar

from asgiref.sync import sync_to_async
from django.db import transaction

from . import models
from .choices import ReputationLevel, Severity, ViolationType
from .entities import UserReputation, ViolationRecord

T = TypeVar("T")
Mutator = Callable[[UserReputation], T]
Factory = Callable[[str], UserReputation]


# ---------- 추상 인터페이스 ----------
class BaseReputationRepo:
    async def get(self, user_id: str) -> Optional[UserReputation]: ...
    async def get_or_create(self, user_id: str, factory: Factory) -> UserReputation: ...
    async def save(self, reputation: UserReputation) -> UserReputation: ...
    async def mutate(self, user_id: str, fn: Mutator, factory: Factory) -> Tuple[UserReputation, T]: ...
    async def all(self) -> List[UserReputation]: ...
    async def by_level(self, level: ReputationLevel) -> List[UserReputation]: ...
    async def with_violations_since(self, since: datetime) -> List[UserReputation]: ...
    async def pending_recovery(self) -> List[str]: ...


# ---------- Django ORM 백엔드 ----------
def _to_entity(row: models.UserReputation, violations) -> UserReputation:
    return UserReputation(
        user_id=row.user_id,
        score=row.score,
        level=ReputationLevel(row.level),
        total_whispers=row.total_whispers,
        approved_whispers=row.approved_whispers,
        flagged_whispers=row.flagged_whispers,
        rejected_whispers=row.rejected_whispers,
        last_violation=row.last_violation,
        violation_history=[
            ViolationRecord(
                id=str(v.id),
                whisper_id=v.whisper_id,
                violation_type=ViolationType.coerce(v.violation_type),
                severity=Severity.coerce(v.severity),
                timestamp=v.timestamp,
                resolved=v.resolved,
                notes=v.notes,
            )
            for v in violations
        ],
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class DjangoReputationRepo(BaseReputationRepo):
    def _load(self, user_id, *, lock=False) -> Optional[UserReputation]:
        qs = models.UserReputation.objects.filter(user_id=str(user_id))
        if lock:
            qs = qs.select_for_update()
        row = qs.first()
        if row is None:
            return None
        return _to_entity(row, row.violations.order_by("timestamp"))

    def _write(self, reputation: UserReputation) -> None:
        models.UserReputation.objects.update_or_create(
            user_id=reputation.user_id,
            defaults={
                "score": reputation.score,
                "level": reputation.level,
                "total_whispers": reputation.total_whispers,
                "approved_whispers": reputation.approved_whispers,
                "flagged_whispers": reputation.flagged_whispers,
                "rejected_whispers": reputation.rejected_whispers,
                "last_violation": reputation.last_violation,
                "created_at": reputation.created_at,
                "updated_at": reputation.updated_at,
            },
        )
        existing = {str(pk): (resolved, notes) for pk, resolved, notes in models.ViolationRecord.objects.filter(reputation_id=reputation.user_id).values_list("id", "resolved", "notes")}
        new_rows = []
        for record in reputation.violation_history:
            if record.id not in existing:
                new_rows.append(
                    models.ViolationRecord(
                        id=record.id,
                        reputation_id=reputation.user_id,
                        whisper_id=record.whisper_id,
                        violation_type=record.violation_type,
                        severity=record.severity,
                        timestamp=record.timestamp,
                        resolved=record.resolved,
                        notes=record.notes,
                    )
                )
            elif existing[record.id] != (record.resolved, record.notes):
                # 이력은 append-only: 해결 여부/메모만 갱신
                models.ViolationRecord.objects.filter(id=record.id).update(resolved=record.resolved, notes=record.notes)
        if new_rows:
            models.ViolationRecord.objects.bulk_create(new_rows)

    @sync_to_async
    def get(self, user_id):
        return self._load(user_id)

    @sync_to_async
    def get_or_create(self, user_id, factory):
        with transaction.atomic():
            reputation = self._load(user_id, lock=True)
            if reputation is None:
                reputation = factory(str(user_id))
                self._write(reputation)
            return reputation

    @sync_to_async
    def save(self, reputation):
        with transaction.atomic():
            self._write(reputation)
        return reputation

    @sync_to_async
    def mutate(self, user_id, fn, factory):
        with transaction.atomic():
            reputation = self._load(user_id, lock=True) or factory(str(user_id))
            result = fn(reputation)
            self._write(reputation)
        return reputation, result

    @sync_to_async
    def all(self):
        return [_to_entity(row, row.violations.all()) for row in models.UserReputation.objects.prefetch_related("violations")]

    @sync_to_async
    def by_level(self, level):
        qs = models.UserReputation.objects.filter(level=ReputationLevel(level)).prefetch_related("violations")
        return [_to_entity(row, row.violations.all()) for row in qs]

    @sync_to_async
    def with_violations_since(self, since):
        qs = models.UserReputation.objects.filter(last_violation__gte=since).prefetch_related("violations")
        return [_to_entity(row, row.violations.all()) for row in qs]

    @sync_to_async
    def pending_recovery(self):
        qs = models.UserReputation.objects.filter(last_violation__isnull=False, score__lt=100).exclude(level=ReputationLevel.BANNED)
        return list(qs.values_list("user_id", flat=True))


# ---------- In-Memory 백엔드 (테스트 용) ----------
class InMemoryReputationRepo(BaseReputationRepo):
    def __init__(self):
        self.rows: Dict[str, UserReputation] = {}

    async def get(self, user_id):
        row = self.rows.get(str(user_id))
        return copy.deepcopy(row) if row else None

    async def get_or_create(self, user_id, factory):
        if str(user_id) not in self.rows:
            self.rows[str(user_id)] = factory(str(user_id))
        return copy.deepcopy(self.rows[str(user_id)])

    async def save(self, reputation):
        self.rows[reputation.user_id] = copy.deepcopy(reputation)
        return reputation

    async def mutate(self, user_id, fn, factory):
        reputation = copy.deepcopy(self.rows.get(str(user_id))) or factory(str(user_id))
        result = fn(reputation)
        self.rows[reputation.user_id] = copy.deepcopy(reputation)
        return reputation, result

    async def all(self):
        return [copy.deepcopy(r) for r in self.rows.values()]

    async def by_level(self, level):
        return [copy.deepcopy(r) for r in self.rows.values() if r.level == level]

    async def with_violations_since(self, since):
        return [copy.deepcopy(r) for r in self.rows.values() if r.last_violation and r.last_violation >= since]

    async def pending_recovery(self):
        return [r.user_id for r in self.rows.values() if r.last_violation is not None and r.score < 100 and r.level != ReputationLevel.BANNED]
