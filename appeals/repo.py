from __future__ import annotations

import copy
from typing import Callable, Dict, List, Optional, Tuple, TypeVar

from asgiref.sync import sync_to_async
from django.db import transaction

from common.ids import is_valid_uuid

from . import models
from .choices import AppealAction, AppealStatus
from .entities import Appeal, AppealResolution, AppealStats

T = TypeVar("T")


class BaseAppealRepo:
    async def save(self, appeal: Appeal) -> Appeal: ...
    async def get(self, appeal_id: str) -> Optional[Appeal]: ...
    async def mutate(self, appeal_id: str, fn: Callable[[Appeal], T]) -> Optional[Tuple[Appeal, T]]: ...
    async def for_user(self, user_id: str) -> List[Appeal]: ...
    async def pending(self) -> List[Appeal]: ...
    async def by_violation(self, violation_id: str) -> List[Appeal]: ...
    async def stats(self) -> AppealStats: ...


def _stats(appeals: List[Appeal]) -> AppealStats:
    by_status = {s.value: 0 for s in AppealStatus}
    for a in appeals:
        by_status[AppealStatus(a.status).value] += 1
    reviewed = by_status[AppealStatus.APPROVED] + by_status[AppealStatus.REJECTED]
    rate = round(by_status[AppealStatus.APPROVED] / reviewed, 4) if reviewed else 0.0
    return AppealStats(total=len(appeals), by_status=by_status, approval_rate=rate)


# ---------- Django ORM 백엔드 ----------
def _to_entity(row: models.Appeal) -> Appeal:
    resolution = None
    if row.resolution_action:
        resolution = AppealResolution(
            action=AppealAction(row.resolution_action),
            reason=row.resolution_reason,
            moderator_id=row.resolution_moderator_id,
            reputation_adjustment=row.reputation_adjustment,
        )
    return Appeal(
        id=str(row.id),
        user_id=row.user_id,
        whisper_id=row.whisper_id,
        violation_id=row.violation_id,
        reason=row.reason,
        evidence=row.evidence,
        status=AppealStatus(row.status),
        submitted_at=row.submitted_at,
        reviewed_at=row.reviewed_at,
        reviewed_by=row.reviewed_by,
        resolution=resolution,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class DjangoAppealRepo(BaseAppealRepo):
    def _write(self, appeal: Appeal) -> None:
        resolution = appeal.resolution
        models.Appeal.objects.update_or_create(
            id=appeal.id,
            defaults={
                "user_id": appeal.user_id,
                "whisper_id": appeal.whisper_id,
                "violation_id": appeal.violation_id,
                "reason": appeal.reason,
                "evidence": appeal.evidence or "",
                "status": appeal.status,
                "submitted_at": appeal.submitted_at,
                "reviewed_at": appeal.reviewed_at,
                "reviewed_by": appeal.reviewed_by,
                "resolution_action": resolution.action if resolution else "",
                "resolution_reason": resolution.reason if resolution else "",
                "resolution_moderator_id": resolution.moderator_id if resolution else "",
                "reputation_adjustment": resolution.reputation_adjustment if resolution else 0,
                "created_at": appeal.created_at,
                "updated_at": appeal.updated_at,
            },
        )

    @sync_to_async
    def save(self, appeal):
        self._write(appeal)
        return appeal

    @sync_to_async
    def get(self, appeal_id):
        if not is_valid_uuid(appeal_id):
            return None
        row = models.Appeal.objects.filter(id=appeal_id).first()
        return _to_entity(row) if row else None

    @sync_to_async
    def mutate(self, appeal_id, fn):
        if not is_valid_uuid(appeal_id):
            return None
        with transaction.atomic():
            row = models.Appeal.objects.select_for_update().filter(id=appeal_id).first()
            if row is None:
                return None
            appeal = _to_entity(row)
            result = fn(appeal)
            self._write(appeal)
        return appeal, result

    @sync_to_async
    def for_user(self, user_id):
        return [_to_entity(r) for r in models.Appeal.objects.filter(user_id=str(user_id))]

    @sync_to_async
    def pending(self):
        qs = models.Appeal.objects.filter(status=AppealStatus.PENDING).order_by("submitted_at")
        return [_to_entity(r) for r in qs]

    @sync_to_async
    def by_violation(self, violation_id):
        return [_to_entity(r) for r in models.Appeal.objects.filter(violation_id=str(violation_id))]

    @sync_to_async
    def stats(self):
        return _stats([_to_entity(r) for r in models.Appeal.objects.all()])


# ---------- In-Memory 백엔드 (테스트 용) ----------
class InMemoryAppealRepo(BaseAppealRepo):
    def __init__(self):
        self.rows: Dict[str, Appeal] = {}

    def _list(self, predicate, *, newest_first=True) -> List[Appeal]:
        rows = [copy.deepcopy(a) for a in self.rows.values() if predicate(a)]
        return sorted(rows, key=lambda a: a.submitted_at, reverse=newest_first)

    async def save(self, appeal):
        self.rows[appeal.id] = copy.deepcopy(appeal)
        return appeal

    async def get(self, appeal_id):
        row = self.rows.get(str(appeal_id))
        return copy.deepcopy(row) if row else None

    async def mutate(self, appeal_id, fn):
        row = self.rows.get(str(appeal_id))
        if row is None:
            return None
        appeal = copy.deepcopy(row)
        result = fn(appeal)
        self.rows[appeal.id] = copy.deepcopy(appeal)
        return appeal, result

    async def for_user(self, user_id):
        return self._list(lambda a: a.user_id == str(user_id))

    async def pending(self):
        return self._list(lambda a: a.status == AppealStatus.PENDING, newest_first=False)

    async def by_violation(self, violation_id):
        return self._list(lambda a: a.violation_id == str(violation_id))

    async def stats(self):
        return _stats(list(self.rows.values()))
