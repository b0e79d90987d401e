"""
정지 저장소 추상화.
- 운영/로컬: Django ORM
- 엔진 테스트: In-Memory

is_active 변경은 ``mutate`` 로만 한다(ORM 구현은 행 잠금).
"""

from __future__ import annotations

import copy
from dataclasses import fields
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple, TypeVar

from asgiref.sync import sync_to_async
from django.db import transaction

from common.ids import is_valid_uuid

from . import models
from .choices import BanType, SuspensionType
from .entities import Suspension, SuspensionStats

T = TypeVar("T")


class BaseSuspensionRepo:
    async def save(self, suspension: Suspension) -> Suspension: ...
    async def get(self, suspension_id: str) -> Optional[Suspension]: ...
    async def mutate(self, suspension_id: str, fn: Callable[[Suspension], T]) -> Optional[Tuple[Suspension, T]]: ...
    async def for_user(self, user_id: str) -> List[Suspension]: ...
    async def active_for_user(self, user_id: str, now: datetime) -> List[Suspension]: ...
    async def expired_active(self, now: datetime) -> List[Suspension]: ...
    async def stats(self, now: datetime) -> SuspensionStats: ...


_FIELDS = [f.name for f in fields(Suspension)]


def _to_entity(row: models.Suspension) -> Suspension:
    data = {name: getattr(row, name) for name in _FIELDS}
    data["id"] = str(row.id)
    data["type"] = SuspensionType(row.type)
    data["ban_type"] = BanType(row.ban_type)
    return Suspension(**data)


def _stats(rows: List[Suspension], now: datetime) -> SuspensionStats:
    by_type = {t.value: 0 for t in SuspensionType}
    for s in rows:
        by_type[SuspensionType(s.type).value] += 1
    return SuspensionStats(total=len(rows), active=sum(1 for s in rows if s.is_in_effect(now)), by_type=by_type)


# ---------- Django ORM 백엔드 ----------
class DjangoSuspensionRepo(BaseSuspensionRepo):
    def _write(self, suspension: Suspension) -> None:
        defaults = {name: getattr(suspension, name) for name in _FIELDS if name != "id"}
        models.Suspension.objects.update_or_create(id=suspension.id, defaults=defaults)

    @sync_to_async
    def save(self, suspension):
        self._write(suspension)
        return suspension

    @sync_to_async
    def get(self, suspension_id):
        if not is_valid_uuid(suspension_id):
            return None
        row = models.Suspension.objects.filter(id=suspension_id).first()
        return _to_entity(row) if row else None

    @sync_to_async
    def mutate(self, suspension_id, fn):
        if not is_valid_uuid(suspension_id):
            return None
        with transaction.atomic():
            row = models.Suspension.objects.select_for_update().filter(id=suspension_id).first()
            if row is None:
                return None
            suspension = _to_entity(row)
            result = fn(suspension)
            self._write(suspension)
        return suspension, result

    @sync_to_async
    def for_user(self, user_id):
        return [_to_entity(r) for r in models.Suspension.objects.filter(user_id=str(user_id))]

    @sync_to_async
    def active_for_user(self, user_id, now):
        qs = models.Suspension.objects.filter(user_id=str(user_id), is_active=True, end_date__gt=now)
        return [_to_entity(r) for r in qs]

    @sync_to_async
    def expired_active(self, now):
        qs = models.Suspension.objects.filter(is_active=True, end_date__lte=now).order_by("end_date")
        return [_to_entity(r) for r in qs]

    @sync_to_async
    def stats(self, now):
        return _stats([_to_entity(r) for r in models.Suspension.objects.all()], now)


# ---------- In-Memory 백엔드 (테스트 용) ----------
class InMemorySuspensionRepo(BaseSuspensionRepo):
    def __init__(self):
        self.rows: Dict[str, Suspension] = {}

    def _list(self, predicate) -> List[Suspension]:
        rows = [copy.deepcopy(s) for s in self.rows.values() if predicate(s)]
        return sorted(rows, key=lambda s: s.created_at or s.start_date, reverse=True)

    async def save(self, suspension):
        self.rows[suspension.id] = copy.deepcopy(suspension)
        return suspension

    async def get(self, suspension_id):
        row = self.rows.get(str(suspension_id))
        return copy.deepcopy(row) if row else None

    async def mutate(self, suspension_id, fn):
        row = self.rows.get(str(suspension_id))
        if row is None:
            return None
        suspension = copy.deepcopy(row)
        result = fn(suspension)
        self.rows[suspension.id] = copy.deepcopy(suspension)
        return suspension, result

    async def for_user(self, user_id):
        return self._list(lambda s: s.user_id == str(user_id))

    async def active_for_user(self, user_id, now):
        return self._list(lambda s: s.user_id == str(user_id) and s.is_in_effect(now))

    async def expired_active(self, now):
        return sorted(self._list(lambda s: s.is_active and s.end_date <= now), key=lambda s: s.end_date)

    async def stats(self, now):
        return _stats(list(self.rows.values()), now)
