"""
신고 저장소 추상화.
- 운영/로컬: Django ORM (whisper_reports, comment_reports, user_violations)
- 엔진 테스트: In-Memory

위스퍼 신고와 댓글 신고는 테이블만 다르고 질의 형태가 같으므로 ORM 구현은 내부 헬퍼를 공유한다.
"""

from __future__ import annotations

import copy
from collections import Counter
from dataclasses import fields
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Tuple, TypeVar

from asgiref.sync import sync_to_async
from django.db import transaction
from django.db.models import Count

from common.ids import is_valid_uuid

from . import models
from .choices import LIVE_STATUSES, EscalationViolationType, ReportCategory, ReportPriority, ReportStatus
from .entities import AnyReport, CommentReport, Report, ReportFilters, ReportResolution, ReportStats, UserViolation

T = TypeVar("T")


class BaseReportRepo:
    # whisper reports
    async def save_report(self, report: Report) -> Report: ...
    async def get_report(self, report_id: str) -> Optional[Report]: ...
    async def mutate_report(self, report_id: str, fn: Callable[[Report], T]) -> Optional[Tuple[Report, T]]: ...
    async def find_live_report(self, whisper_id: str, reporter_id: str, category) -> Optional[Report]: ...
    async def list_reports(self, filters: ReportFilters) -> List[Report]: ...
    async def unique_reporters(self, whisper_id: str, since: datetime) -> int: ...
    async def report_stats(self) -> ReportStats: ...

    # comment reports
    async def save_comment_report(self, report: CommentReport) -> CommentReport: ...
    async def get_comment_report(self, report_id: str) -> Optional[CommentReport]: ...
    async def mutate_comment_report(self, report_id: str, fn: Callable[[CommentReport], T]) -> Optional[Tuple[CommentReport, T]]: ...
    async def find_live_comment_report(self, comment_id: str, reporter_id: str, category) -> Optional[CommentReport]: ...
    async def list_comment_reports(self, filters: ReportFilters) -> List[CommentReport]: ...
    async def unique_comment_reporters(self, comment_id: str, since: datetime) -> int: ...
    async def comment_report_stats(self) -> ReportStats: ...

    # escalation records
    async def save_violation(self, violation: UserViolation) -> UserViolation: ...
    async def violations_for_user(self, user_id: str) -> List[UserViolation]: ...
    async def has_violation(self, violation_type, *, whisper_id: str = "", comment_id: str = "") -> bool: ...
    async def violation_type_counts(self) -> Dict[str, int]: ...


def count_stats(rows: Iterable[Tuple[str, str, str]]) -> ReportStats:
    """rows: (status, priority, category) triples."""
    stats = ReportStats(
        by_status={s.value: 0 for s in ReportStatus},
        by_priority={p.value: 0 for p in ReportPriority},
        by_category={c.value: 0 for c in ReportCategory},
    )
    for status, priority, category in rows:
        status, priority, category = str(status), str(priority), str(category)
        stats.total += 1
        stats.by_status[status] = stats.by_status.get(status, 0) + 1
        stats.by_priority[priority] = stats.by_priority.get(priority, 0) + 1
        stats.by_category[category] = stats.by_category.get(category, 0) + 1
    return stats


# ---------- Django ORM 백엔드 ----------
class _ReportTable:
    def __init__(self, model, entity, target_field: str):
        self.model = model
        self.entity = entity
        self.target_field = target_field
        self.names = [f.name for f in fields(entity) if f.name not in ("id", "resolution")]

    def to_entity(self, row) -> AnyReport:
        data = {name: getattr(row, name) for name in self.names}
        data.update(
            id=str(row.id),
            category=ReportCategory(row.category),
            priority=ReportPriority(row.priority),
            status=ReportStatus(row.status),
            resolution=(
                ReportResolution(action=row.resolution_action, reason=row.resolution_reason, moderator_id=row.resolution_moderator_id, notes=row.resolution_notes)
                if row.resolution_action
                else None
            ),
        )
        return self.entity(**data)

    def write(self, report: AnyReport) -> None:
        values = {name: getattr(report, name) for name in self.names}
        res = report.resolution
        values.update(
            resolution_action=res.action if res else "",
            resolution_reason=res.reason if res else "",
            resolution_moderator_id=res.moderator_id if res else "",
            resolution_notes=res.notes if res else "",
        )
        self.model.objects.update_or_create(id=report.id, defaults=values)

    def get(self, report_id):
        if not is_valid_uuid(report_id):
            return None
        row = self.model.objects.filter(id=report_id).first()
        return self.to_entity(row) if row else None

    def mutate(self, report_id, fn):
        if not is_valid_uuid(report_id):
            return None
        with transaction.atomic():
            row = self.model.objects.select_for_update().filter(id=report_id).first()
            if row is None:
                return None
            report = self.to_entity(row)
            result = fn(report)
            self.write(report)
        return report, result

    def find_live(self, target_id, reporter_id, category):
        row = (
            self.model.objects.filter(**{self.target_field: str(target_id)}, reporter_id=str(reporter_id), category=category, status__in=LIVE_STATUSES)
            .order_by("-created_at")
            .first()
        )
        return self.to_entity(row) if row else None

    def list(self, filters: ReportFilters):
        qs = self.model.objects.all()
        if filters.whisper_id:
            qs = qs.filter(whisper_id=str(filters.whisper_id))
        if filters.comment_id and self.target_field == "comment_id":
            qs = qs.filter(comment_id=str(filters.comment_id))
        if filters.reporter_id:
            qs = qs.filter(reporter_id=str(filters.reporter_id))
        if filters.status:
            qs = qs.filter(status=filters.status)
        if filters.category:
            qs = qs.filter(category=filters.category)
        if filters.priority:
            qs = qs.filter(priority=filters.priority)
        if filters.date_from:
            qs = qs.filter(created_at__gte=filters.date_from)
        if filters.date_to:
            qs = qs.filter(created_at__lte=filters.date_to)
        qs = qs.order_by("-created_at")
        if filters.limit:
            qs = qs[: filters.limit]
        return [self.to_entity(r) for r in qs]

    def unique_reporters(self, target_id, since):
        # Meta.ordering 이 DISTINCT 에 섞이지 않도록 order_by() 초기화
        qs = self.model.objects.filter(**{self.target_field: str(target_id)}, created_at__gte=since)
        return qs.order_by().values("reporter_id").distinct().count()

    def stats(self):
        return count_stats(self.model.objects.order_by().values_list("status", "priority", "category"))


def _violation_entity(row: models.UserViolation) -> UserViolation:
    return UserViolation(
        id=str(row.id),
        user_id=row.user_id,
        violation_type=EscalationViolationType(row.violation_type),
        reason=row.reason,
        report_count=row.report_count,
        whisper_id=row.whisper_id,
        comment_id=row.comment_id,
        moderator_id=row.moderator_id,
        created_at=row.created_at,
    )


class DjangoReportRepo(BaseReportRepo):
    def __init__(self):
        self.reports = _ReportTable(models.Report, Report, "whisper_id")
        self.comment_reports = _ReportTable(models.CommentReport, CommentReport, "comment_id")

    @sync_to_async
    def save_report(self, report):
        self.reports.write(report)
        return report

    @sync_to_async
    def get_report(self, report_id):
        return self.reports.get(report_id)

    @sync_to_async
    def mutate_report(self, report_id, fn):
        return self.reports.mutate(report_id, fn)

    @sync_to_async
    def find_live_report(self, whisper_id, reporter_id, category):
        return self.reports.find_live(whisper_id, reporter_id, category)

    @sync_to_async
    def list_reports(self, filters):
        return self.reports.list(filters)

    @sync_to_async
    def unique_reporters(self, whisper_id, since):
        return self.reports.unique_reporters(whisper_id, since)

    @sync_to_async
    def report_stats(self):
        return self.reports.stats()

    @sync_to_async
    def save_comment_report(self, report):
        self.comment_reports.write(report)
        return report

    @sync_to_async
    def get_comment_report(self, report_id):
        return self.comment_reports.get(report_id)

    @sync_to_async
    def mutate_comment_report(self, report_id, fn):
        return self.comment_reports.mutate(report_id, fn)

    @sync_to_async
    def find_live_comment_report(self, comment_id, reporter_id, category):
        return self.comment_reports.find_live(comment_id, reporter_id, category)

    @sync_to_async
    def list_comment_reports(self, filters):
        return self.comment_reports.list(filters)

    @sync_to_async
    def unique_comment_reporters(self, comment_id, since):
        return self.comment_reports.unique_reporters(comment_id, since)

    @sync_to_async
    def comment_report_stats(self):
        return self.comment_reports.stats()

    @sync_to_async
    def save_violation(self, violation):
        models.UserViolation.objects.create(
            id=violation.id,
            user_id=violation.user_id,
            violation_type=violation.violation_type,
            reason=violation.reason,
            report_count=violation.report_count,
            whisper_id=violation.whisper_id,
            comment_id=violation.comment_id,
            moderator_id=violation.moderator_id,
            created_at=violation.created_at,
        )
        return violation

    @sync_to_async
    def violations_for_user(self, user_id):
        return [_violation_entity(r) for r in models.UserViolation.objects.filter(user_id=str(user_id))]

    @sync_to_async
    def violation_type_counts(self):
        rows = models.UserViolation.objects.order_by().values("violation_type").annotate(n=Count("id"))
        return {row["violation_type"]: row["n"] for row in rows}

    @sync_to_async
    def has_violation(self, violation_type, *, whisper_id="", comment_id=""):
        qs = models.UserViolation.objects.filter(violation_type=violation_type)
        if whisper_id:
            qs = qs.filter(whisper_id=str(whisper_id))
        if comment_id:
            qs = qs.filter(comment_id=str(comment_id))
        return qs.exists()


# ---------- In-Memory 백엔드 (테스트 용) ----------
def _matches(report: AnyReport, filters: ReportFilters) -> bool:
    checks = (
        (filters.whisper_id, lambda: report.whisper_id == str(filters.whisper_id)),
        (filters.comment_id, lambda: getattr(report, "comment_id", None) in (None, str(filters.comment_id))),
        (filters.reporter_id, lambda: report.reporter_id == str(filters.reporter_id)),
        (filters.status, lambda: report.status == filters.status),
        (filters.category, lambda: report.category == filters.category),
        (filters.priority, lambda: report.priority == filters.priority),
        (filters.date_from, lambda: report.created_at >= filters.date_from),
        (filters.date_to, lambda: report.created_at <= filters.date_to),
    )
    return all(check() for value, check in checks if value)


class _InMemoryTable:
    def __init__(self, target_field: str):
        self.target_field = target_field
        self.rows: Dict[str, AnyReport] = {}

    def save(self, report):
        self.rows[report.id] = copy.deepcopy(report)
        return report

    def get(self, report_id):
        row = self.rows.get(str(report_id))
        return copy.deepcopy(row) if row else None

    def mutate(self, report_id, fn):
        row = self.rows.get(str(report_id))
        if row is None:
            return None
        report = copy.deepcopy(row)
        result = fn(report)
        self.rows[report.id] = copy.deepcopy(report)
        return report, result

    def find_live(self, target_id, reporter_id, category):
        rows = [
            r
            for r in self.rows.values()
            if getattr(r, self.target_field) == str(target_id) and r.reporter_id == str(reporter_id) and r.category == category and r.status in LIVE_STATUSES
        ]
        rows.sort(key=lambda r: r.created_at, reverse=True)
        return copy.deepcopy(rows[0]) if rows else None

    def list(self, filters):
        rows = sorted((r for r in self.rows.values() if _matches(r, filters)), key=lambda r: r.created_at, reverse=True)
        if filters.limit:
            rows = rows[: filters.limit]
        return [copy.deepcopy(r) for r in rows]

    def unique_reporters(self, target_id, since):
        return len({r.reporter_id for r in self.rows.values() if getattr(r, self.target_field) == str(target_id) and r.created_at >= since})

    def stats(self):
        return count_stats((r.status, r.priority, r.category) for r in self.rows.values())


class InMemoryReportRepo(BaseReportRepo):
    def __init__(self):
        self.reports = _InMemoryTable("whisper_id")
        self.comment_reports = _InMemoryTable("comment_id")
        self.violations: Dict[str, UserViolation] = {}

    async def save_report(self, report):
        return self.reports.save(report)

    async def get_report(self, report_id):
        return self.reports.get(report_id)

    async def mutate_report(self, report_id, fn):
        return self.reports.mutate(report_id, fn)

    async def find_live_report(self, whisper_id, reporter_id, category):
        return self.reports.find_live(whisper_id, reporter_id, category)

    async def list_reports(self, filters):
        return self.reports.list(filters)

    async def unique_reporters(self, whisper_id, since):
        return self.reports.unique_reporters(whisper_id, since)

    async def report_stats(self):
        return self.reports.stats()

    async def save_comment_report(self, report):
        return self.comment_reports.save(report)

    async def get_comment_report(self, report_id):
        return self.comment_reports.get(report_id)

    async def mutate_comment_report(self, report_id, fn):
        return self.comment_reports.mutate(report_id, fn)

    async def find_live_comment_report(self, comment_id, reporter_id, category):
        return self.comment_reports.find_live(comment_id, reporter_id, category)

    async def list_comment_reports(self, filters):
        return self.comment_reports.list(filters)

    async def unique_comment_reporters(self, comment_id, since):
        return self.comment_reports.unique_reporters(comment_id, since)

    async def comment_report_stats(self):
        return self.comment_reports.stats()

    async def save_violation(self, violation):
        self.violations[violation.id] = copy.deepcopy(violation)
        return violation

    async def violations_for_user(self, user_id):
        return [copy.deepcopy(v) for v in self.violations.values() if v.user_id == str(user_id)]

    async def has_violation(self, violation_type, *, whisper_id="", comment_id=""):
        return any(
            v.violation_type == violation_type and (not whisper_id or v.whisper_id == str(whisper_id)) and (not comment_id or v.comment_id == str(comment_id))
            for v in self.violations.values()
        )

    async def violation_type_counts(self):
        return dict(Counter(str(v.violation_type) for v in self.violations.values()))
