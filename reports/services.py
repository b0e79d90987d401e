import logging
import uuid
from datetime import timedelta
from typing import List, Optional

from django.utils import timezone
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from common.conf import trust_setting
from common.events import publish_event
from common.exceptions import StoreUnavailable
from common.types import Clock
from reputation.choices import ReputationLevel, Severity, ViolationType
from reputation.services import ReputationService
from suspensions.choices import SuspensionType
from suspensions.entities import SuspensionRequest
from suspensions.services import SYSTEM_MODERATOR, SuspensionService
from whispers.store import BaseContentStore

from . import analytics
from . import priority as prio
from .choices import (
    CommentResolutionAction,
    EscalationAction,
    EscalationViolationType,
    ReportCategory,
    ReportPriority,
    ReportStatus,
    ResolutionAction,
)
from .entities import (
    CommentReport,
    CommentReportRequest,
    EscalationStats,
    Report,
    ReportFilters,
    ReportLookup,
    ReportRequest,
    ReportResolution,
    ReportStats,
    ResolutionStats,
    TargetReportStats,
    UserReportStats,
    UserResolutionHistory,
    UserViolation,
)
from .repo import BaseReportRepo

logger = logging.getLogger(__name__)

ADDITIONAL_REPORT_SEPARATOR = "\n\n--- Additional Report ---\n"

PRIORITY_SEVERITY = {
    ReportPriority.LOW: Severity.LOW,
    ReportPriority.MEDIUM: Severity.MEDIUM,
    ReportPriority.HIGH: Severity.HIGH,
    ReportPriority.CRITICAL: Severity.CRITICAL,
}


def whisper_escalation_action(unique_reporters: int) -> EscalationAction:
    # 구간은 서로 겹치지 않음: [flag, delete) / [delete, suspend) / [suspend, ∞)
    if unique_reporters >= trust_setting("WHISPER_SUSPEND_THRESHOLD"):
        return EscalationAction.DELETE_AND_SUSPEND
    if unique_reporters >= trust_setting("WHISPER_DELETE_THRESHOLD"):
        return EscalationAction.DELETE
    if unique_reporters >= trust_setting("WHISPER_FLAG_THRESHOLD"):
        return EscalationAction.FLAG
    return EscalationAction.NONE


def comment_escalation_action(unique_reporters: int) -> EscalationAction:
    if unique_reporters >= trust_setting("COMMENT_DELETE_THRESHOLD"):
        return EscalationAction.DELETE
    if unique_reporters >= trust_setting("COMMENT_HIDE_THRESHOLD"):
        return EscalationAction.HIDE
    return EscalationAction.NONE


def _merge_reason(report, reason: str, evidence: str, now) -> None:
    report.reason = f"{report.reason}{ADDITIONAL_REPORT_SEPARATOR}{reason}"
    if evidence:
        report.evidence = f"{report.evidence}\n{evidence}".strip()
    report.priority = prio.escalate_priority(report.priority)
    report.updated_at = now


class ReportingService:
    def __init__(
        self,
        reports: BaseReportRepo,
        content: BaseContentStore,
        reputation: ReputationService,
        suspensions: SuspensionService,
        clock: Clock = timezone.now,
    ):
        self.reports = reports
        self.content = content
        self.reputation = reputation
        self.suspensions = suspensions
        self.clock = clock

    # ---------- 공통 ----------
    @staticmethod
    def _validate_request(category, reason: str) -> ReportCategory:
        if category not in ReportCategory.values:
            raise ValidationError({"detail": f"Invalid report category: {category}"})
        if not (reason or "").strip():
            raise ValidationError({"detail": "Reason is required."})
        return ReportCategory(category)

    async def _reporter(self, reporter_id):
        reporter = await self.reputation.get_user_reputation(reporter_id)
        if reporter.level == ReputationLevel.BANNED:
            raise PermissionDenied({"detail": "Banned users cannot submit reports."})
        return reporter

    async def _hot_write(self, coro, what: str):
        try:
            return await coro
        except (ValidationError, NotFound, PermissionDenied):
            raise
        except Exception as exc:
            logger.exception("[Reports] %s failed", what)
            raise StoreUnavailable(f"Failed to {what}: {exc}")

    async def _record_escalation(self, user_id, violation_type, reason: str, *, report_count=0, whisper_id="", comment_id="", moderator_id=SYSTEM_MODERATOR) -> UserViolation:
        violation = UserViolation(
            id=str(uuid.uuid4()),
            user_id=str(user_id),
            violation_type=violation_type,
            reason=reason,
            report_count=report_count,
            whisper_id=str(whisper_id or ""),
            comment_id=str(comment_id or ""),
            moderator_id=str(moderator_id),
            created_at=self.clock(),
        )
        await self.reports.save_violation(violation)
        publish_event("UserViolationRecorded", {"user_id": violation.user_id, "type": violation.violation_type, "whisper_id": violation.whisper_id, "comment_id": violation.comment_id})
        return violation

    # ---------- 위스퍼 신고 ----------
    async def create_report(self, data: ReportRequest) -> Report:
        category = self._validate_request(data.category, data.reason)
        reporter = await self._reporter(data.reporter_id)

        whisper = await self._hot_write(self.content.get_whisper(data.whisper_id), "look up whisper")
        if whisper is None:
            raise NotFound({"detail": "Whisper not found."})
        if whisper.user_id == str(data.reporter_id):
            raise ValidationError({"detail": "You cannot report your own whisper."})

        now = self.clock()
        reason = data.reason.strip()
        existing = await self._hot_write(self.reports.find_live_report(whisper.id, data.reporter_id, category), "look up existing report")
        if existing:
            outcome = await self._hot_write(self.reports.mutate_report(existing.id, lambda r: _merge_reason(r, reason, data.evidence, now)), "update report")
            if outcome is None:
                raise NotFound({"detail": "Report not found."})
            report = outcome[0]
            logger.info("[Reports] repeat report merged: report=%s reporter=%s priority=%s", report.id, report.reporter_id, report.priority)
        else:
            priority = prio.calculate_priority(category, reporter.score)
            report = Report(
                id=str(uuid.uuid4()),
                whisper_id=whisper.id,
                whisper_user_id=whisper.user_id,
                reporter_id=str(data.reporter_id),
                reporter_display_name=data.reporter_display_name or "",
                reporter_reputation=reporter.score,
                category=category,
                priority=priority,
                # critical 은 생성 즉시 검토 대기열로
                status=ReportStatus.UNDER_REVIEW if priority == ReportPriority.CRITICAL else ReportStatus.PENDING,
                reason=reason,
                evidence=data.evidence or "",
                reputation_weight=prio.reputation_weight(reporter.level),
                created_at=now,
                updated_at=now,
            )
            await self._hot_write(self.reports.save_report(report), "create report")
            logger.info("[Reports] created: report=%s whisper=%s category=%s priority=%s", report.id, report.whisper_id, report.category, report.priority)

        publish_event(
            "WhisperReported",
            {"report_id": report.id, "whisper_id": report.whisper_id, "reporter_id": report.reporter_id, "category": report.category, "priority": report.priority},
        )
        await self.check_automatic_escalation(report.whisper_id)
        return report

    async def check_automatic_escalation(self, whisper_id) -> EscalationAction:
        try:
            return await self._escalate_whisper(str(whisper_id))
        except Exception:
            logger.exception("[Reports] automatic escalation failed: whisper=%s", whisper_id)
            return EscalationAction.NONE

    async def _escalate_whisper(self, whisper_id: str) -> EscalationAction:
        whisper = await self.content.get_whisper(whisper_id)
        if whisper is None:
            return EscalationAction.NONE

        since = self.clock() - timedelta(days=trust_setting("ESCALATION_WINDOW_DAYS"))
        count = await self.reports.unique_reporters(whisper_id, since)
        action = whisper_escalation_action(count)
        if action == EscalationAction.NONE:
            return action

        owner_id = whisper.user_id
        if (await self.suspensions.is_user_suspended(owner_id)).suspended:
            logger.info("[Reports] escalation skipped, owner already suspended: whisper=%s owner=%s", whisper_id, owner_id)
            return EscalationAction.SKIPPED

        # 각 단계는 위스퍼당 한 번만 적용
        if action == EscalationAction.FLAG:
            if await self.reports.has_violation(EscalationViolationType.WHISPER_FLAGGED, whisper_id=whisper_id):
                return EscalationAction.NONE
            await self._record_escalation(owner_id, EscalationViolationType.WHISPER_FLAGGED, f"Whisper flagged after {count} reports", report_count=count, whisper_id=whisper_id)
        elif action == EscalationAction.DELETE:
            if whisper.is_deleted:
                return EscalationAction.NONE
            await self._delete_whisper(whisper, count)
        else:
            if await self.reports.has_violation(EscalationViolationType.TEMPORARY_BAN, whisper_id=whisper_id):
                return EscalationAction.NONE
            if not whisper.is_deleted:
                await self._delete_whisper(whisper, count)
            await self.suspensions.create(
                SuspensionRequest(
                    user_id=owner_id,
                    reason=f"Automatic suspension: whisper received {count} reports",
                    type=SuspensionType.TEMPORARY,
                    moderator_id=SYSTEM_MODERATOR,
                    duration=timedelta(hours=trust_setting("TEMPORARY_SUSPENSION_HOURS")),
                )
            )
            await self._record_escalation(owner_id, EscalationViolationType.TEMPORARY_BAN, f"Temporary ban after {count} reports", report_count=count, whisper_id=whisper_id)

        logger.info("[Reports] whisper escalated: whisper=%s owner=%s reporters=%s action=%s", whisper_id, owner_id, count, action)
        publish_event("WhisperEscalated", {"whisper_id": whisper_id, "owner_id": owner_id, "unique_reporters": count, "action": action})
        await self.check_user_level_escalation(owner_id)
        return action

    async def _delete_whisper(self, whisper, count: int) -> None:
        await self.content.delete_whisper(whisper.id)
        await self._record_escalation(whisper.user_id, EscalationViolationType.WHISPER_DELETED, f"Whisper deleted after {count} reports", report_count=count, whisper_id=whisper.id)

    async def check_user_level_escalation(self, user_id) -> bool:
        try:
            reputation = await self.reputation.get_user_reputation(user_id)
            if reputation.level != ReputationLevel.FLAGGED or reputation.score >= trust_setting("USER_ESCALATION_SCORE"):
                return False
            # 방금 whisper 단계에서 정지됐다면 중복 정지하지 않음
            if (await self.suspensions.is_user_suspended(user_id)).suspended:
                return False
            violations = await self.reports.violations_for_user(user_id)
            suspension = await self.suspensions.automatic_for(user_id, len(violations), "Repeated community reports")
            return suspension is not None
        except Exception:
            logger.exception("[Reports] user-level escalation failed: user=%s", user_id)
            return False

    # ---------- 댓글 신고 ----------
    async def create_comment_report(self, data: CommentReportRequest) -> CommentReport:
        category = self._validate_request(data.category, data.reason)
        reporter = await self._reporter(data.reporter_id)

        comment = await self._hot_write(self.content.get_comment(data.comment_id), "look up comment")
        if comment is None:
            raise NotFound({"detail": "Comment not found."})
        if comment.user_id == str(data.reporter_id):
            raise ValidationError({"detail": "You cannot report your own comment."})

        now = self.clock()
        reason = data.reason.strip()
        existing = await self._hot_write(self.reports.find_live_comment_report(comment.id, data.reporter_id, category), "look up existing report")
        if existing:
            outcome = await self._hot_write(self.reports.mutate_comment_report(existing.id, lambda r: _merge_reason(r, reason, data.evidence, now)), "update comment report")
            if outcome is None:
                raise NotFound({"detail": "Report not found."})
            report = outcome[0]
        else:
            priority = prio.calculate_priority(category, reporter.score)
            report = CommentReport(
                id=str(uuid.uuid4()),
                comment_id=comment.id,
                comment_user_id=comment.user_id,
                whisper_id=comment.whisper_id,
                reporter_id=str(data.reporter_id),
                reporter_display_name=data.reporter_display_name or "",
                reporter_reputation=reporter.score,
                category=category,
                priority=priority,
                status=ReportStatus.ESCALATED if priority == ReportPriority.CRITICAL else ReportStatus.PENDING,
                reason=reason,
                evidence=data.evidence or "",
                reputation_weight=prio.reputation_weight(reporter.level),
                created_at=now,
                updated_at=now,
            )
            await self._hot_write(self.reports.save_comment_report(report), "create comment report")

        logger.info("[Reports] comment report: report=%s comment=%s priority=%s", report.id, report.comment_id, report.priority)
        publish_event(
            "CommentReported",
            {"report_id": report.id, "comment_id": report.comment_id, "reporter_id": report.reporter_id, "category": report.category, "priority": report.priority},
        )
        await self.check_comment_automatic_escalation(report.comment_id)
        return report

    async def check_comment_automatic_escalation(self, comment_id) -> EscalationAction:
        try:
            return await self._escalate_comment(str(comment_id))
        except Exception:
            logger.exception("[Reports] comment escalation failed: comment=%s", comment_id)
            return EscalationAction.NONE

    async def _escalate_comment(self, comment_id: str) -> EscalationAction:
        comment = await self.content.get_comment(comment_id)
        if comment is None:
            return EscalationAction.NONE

        since = self.clock() - timedelta(days=trust_setting("ESCALATION_WINDOW_DAYS"))
        count = await self.reports.unique_comment_reporters(comment_id, since)
        action = comment_escalation_action(count)
        if action == EscalationAction.NONE:
            return action
        if action == EscalationAction.HIDE and comment.is_hidden:
            return EscalationAction.NONE

        owner_id = comment.user_id
        if (await self.suspensions.is_user_suspended(owner_id)).suspended:
            logger.info("[Reports] comment escalation skipped, owner already suspended: comment=%s", comment_id)
            return EscalationAction.SKIPPED

        if action == EscalationAction.HIDE:
            await self.content.hide_comment(comment_id)
            await self._record_escalation(owner_id, EscalationViolationType.COMMENT_HIDDEN, f"Comment hidden after {count} reports", report_count=count, whisper_id=comment.whisper_id, comment_id=comment_id)
        else:
            await self.content.delete_comment(comment_id)
            await self._record_escalation(owner_id, EscalationViolationType.COMMENT_DELETED, f"Comment deleted after {count} reports", report_count=count, whisper_id=comment.whisper_id, comment_id=comment_id)

        logger.info("[Reports] comment escalated: comment=%s owner=%s reporters=%s action=%s", comment_id, owner_id, count, action)
        publish_event("CommentEscalated", {"comment_id": comment_id, "owner_id": owner_id, "unique_reporters": count, "action": action})
        await self.check_user_level_escalation(owner_id)
        return action

    # ---------- 조회 ----------
    async def get_reports(self, filters: Optional[ReportFilters] = None) -> List[Report]:
        try:
            return await self.reports.list_reports(filters or ReportFilters())
        except Exception:
            logger.exception("[Reports] list failed")
            return []

    async def get_report(self, report_id) -> Optional[Report]:
        try:
            return await self.reports.get_report(str(report_id))
        except Exception:
            logger.exception("[Reports] get failed: report=%s", report_id)
            return None

    async def get_comment_reports(self, filters: Optional[ReportFilters] = None) -> List[CommentReport]:
        try:
            return await self.reports.list_comment_reports(filters or ReportFilters())
        except Exception:
            logger.exception("[Reports] comment list failed")
            return []

    async def get_comment_report(self, report_id) -> Optional[CommentReport]:
        try:
            return await self.reports.get_comment_report(str(report_id))
        except Exception:
            logger.exception("[Reports] comment get failed: report=%s", report_id)
            return None

    async def has_user_reported_content(self, reporter_id, whisper_id) -> ReportLookup:
        try:
            found = await self.reports.list_reports(ReportFilters(whisper_id=str(whisper_id), reporter_id=str(reporter_id), limit=1))
        except Exception:
            logger.exception("[Reports] lookup failed: reporter=%s whisper=%s", reporter_id, whisper_id)
            return ReportLookup(has_reported=False)
        return ReportLookup(has_reported=bool(found), existing_report=found[0] if found else None)

    async def has_user_reported_comment(self, reporter_id, comment_id) -> ReportLookup:
        try:
            found = await self.reports.list_comment_reports(ReportFilters(comment_id=str(comment_id), reporter_id=str(reporter_id), limit=1))
        except Exception:
            logger.exception("[Reports] lookup failed: reporter=%s comment=%s", reporter_id, comment_id)
            return ReportLookup(has_reported=False)
        return ReportLookup(has_reported=bool(found), existing_report=found[0] if found else None)

    # ---------- 상태 변경 ----------
    async def update_report_status(self, report_id, status, moderator_id=None) -> Report:
        return await self._update_status(self.reports.mutate_report, report_id, status, moderator_id)

    async def update_comment_report_status(self, report_id, status, moderator_id=None) -> CommentReport:
        return await self._update_status(self.reports.mutate_comment_report, report_id, status, moderator_id)

    async def _update_status(self, mutate, report_id, status, moderator_id):
        if status not in ReportStatus.values:
            raise ValidationError({"detail": f"Invalid report status: {status}"})
        now = self.clock()

        def apply(report):
            report.status = ReportStatus(status)
            report.updated_at = now
            if moderator_id:
                report.reviewed_by = str(moderator_id)
                report.reviewed_at = now

        outcome = await self._hot_write(mutate(str(report_id), apply), "update report status")
        if outcome is None:
            raise NotFound({"detail": "Report not found."})
        return outcome[0]

    @staticmethod
    def _resolver(resolution: ReportResolution, now):
        def apply(report):
            if report.status == ReportStatus.RESOLVED:
                raise ValidationError({"detail": "Report has already been resolved."})
            report.status = ReportStatus.RESOLVED
            report.resolution = resolution
            report.reviewed_at = now
            report.reviewed_by = resolution.moderator_id
            report.updated_at = now

        return apply

    async def resolve_report(self, report_id, resolution: ReportResolution) -> Report:
        if resolution.action not in ResolutionAction.values:
            raise ValidationError({"detail": f"Invalid resolution action: {resolution.action}"})
        outcome = await self._hot_write(self.reports.mutate_report(str(report_id), self._resolver(resolution, self.clock())), "resolve report")
        if outcome is None:
            raise NotFound({"detail": "Report not found."})

        report = outcome[0]
        logger.info("[Reports] resolved: report=%s action=%s by=%s", report.id, resolution.action, resolution.moderator_id)
        publish_event("ReportResolved", {"report_id": report.id, "whisper_id": report.whisper_id, "action": resolution.action, "moderator_id": resolution.moderator_id})
        try:
            await self._apply_resolution(report, ResolutionAction(resolution.action), resolution)
        except Exception:
            logger.exception("[Reports] resolution side effects failed: report=%s", report.id)
        return report

    async def _apply_resolution(self, report: Report, action: ResolutionAction, resolution: ReportResolution) -> None:
        owner_id = report.whisper_user_id
        reason = resolution.reason or f"Report {report.id}: {report.category}"
        if action == ResolutionAction.WARN:
            await self.suspensions.create(SuspensionRequest(user_id=owner_id, reason=reason, type=SuspensionType.WARNING, moderator_id=resolution.moderator_id))
        elif action == ResolutionAction.FLAG:
            await self._record_escalation(owner_id, EscalationViolationType.WHISPER_FLAGGED, reason, whisper_id=report.whisper_id, moderator_id=resolution.moderator_id)
        elif action == ResolutionAction.REJECT:
            await self.content.delete_whisper(report.whisper_id)
            await self.reputation.record_violation(owner_id, report.whisper_id, ViolationType.coerce(report.category), PRIORITY_SEVERITY[report.priority], notes=reason)
            await self._record_escalation(owner_id, EscalationViolationType.WHISPER_DELETED, reason, whisper_id=report.whisper_id, moderator_id=resolution.moderator_id)
        elif action == ResolutionAction.BAN:
            await self.suspensions.create(SuspensionRequest(user_id=owner_id, reason=reason, type=SuspensionType.PERMANENT, moderator_id=resolution.moderator_id))
            await self.reputation.ban_user(owner_id, reason)
        else:
            await self.reputation.adjust_score(report.reporter_id, trust_setting("REPORT_DISMISSAL_PENALTY"), "report dismissed")

    async def resolve_comment_report(self, report_id, resolution: ReportResolution) -> CommentReport:
        if resolution.action not in CommentResolutionAction.values:
            raise ValidationError({"detail": f"Invalid resolution action: {resolution.action}"})
        outcome = await self._hot_write(self.reports.mutate_comment_report(str(report_id), self._resolver(resolution, self.clock())), "resolve comment report")
        if outcome is None:
            raise NotFound({"detail": "Report not found."})

        report = outcome[0]
        logger.info("[Reports] comment report resolved: report=%s action=%s", report.id, resolution.action)
        publish_event("CommentReportResolved", {"report_id": report.id, "comment_id": report.comment_id, "action": resolution.action})
        try:
            action = CommentResolutionAction(resolution.action)
            reason = resolution.reason or f"Comment report {report.id}: {report.category}"
            if action == CommentResolutionAction.HIDE:
                await self.content.hide_comment(report.comment_id)
                await self._record_escalation(report.comment_user_id, EscalationViolationType.COMMENT_HIDDEN, reason, whisper_id=report.whisper_id, comment_id=report.comment_id, moderator_id=resolution.moderator_id)
            elif action == CommentResolutionAction.DELETE:
                await self.content.delete_comment(report.comment_id)
                await self._record_escalation(report.comment_user_id, EscalationViolationType.COMMENT_DELETED, reason, whisper_id=report.whisper_id, comment_id=report.comment_id, moderator_id=resolution.moderator_id)
            else:
                await self.reputation.adjust_score(report.reporter_id, trust_setting("REPORT_DISMISSAL_PENALTY"), "comment report dismissed")
        except Exception:
            logger.exception("[Reports] comment resolution side effects failed: report=%s", report.id)
        return report

    # ---------- 통계 ----------
    async def get_report_stats(self) -> ReportStats:
        try:
            return await self.reports.report_stats()
        except Exception:
            logger.exception("[Reports] stats failed")
            return ReportStats()

    async def get_comment_report_stats(self) -> ReportStats:
        try:
            return await self.reports.comment_report_stats()
        except Exception:
            logger.exception("[Reports] comment stats failed")
            return ReportStats()

    async def get_whisper_report_stats(self, whisper_id) -> TargetReportStats:
        return self._target_stats(await self.get_reports(ReportFilters(whisper_id=str(whisper_id))))

    async def get_comment_target_stats(self, comment_id) -> TargetReportStats:
        return self._target_stats(await self.get_comment_reports(ReportFilters(comment_id=str(comment_id))))

    @staticmethod
    def _target_stats(reports) -> TargetReportStats:
        if not reports:
            return TargetReportStats()
        by_category = {}
        for r in reports:
            by_category[str(r.category)] = by_category.get(str(r.category), 0) + 1
        top = prio.highest(r.priority for r in reports)
        return TargetReportStats(
            total_reports=len(reports),
            unique_reporters=len({r.reporter_id for r in reports}),
            by_category=by_category,
            highest_priority=top,
            needs_review=prio.should_escalate(top, len(reports)),
        )

    # ---------- 분석 (위스퍼 신고 기준) ----------
    async def get_user_report_stats(self, user_id) -> UserReportStats:
        return analytics.user_report_stats(await self.get_reports(ReportFilters(reporter_id=str(user_id))))

    async def get_user_resolution_history(self, user_id) -> UserResolutionHistory:
        return analytics.user_resolution_history(await self.get_reports(ReportFilters(reporter_id=str(user_id))))

    async def get_resolution_stats(self) -> ResolutionStats:
        return analytics.resolution_stats(await self.get_reports())

    async def get_escalation_stats(self) -> EscalationStats:
        try:
            counts = await self.reports.violation_type_counts()
        except Exception:
            logger.exception("[Reports] violation counts failed")
            counts = {}
        return analytics.escalation_stats(await self.get_reports(), counts)
