import datetime as dt
import uuid

import pytest
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from common.exceptions import StoreUnavailable
from reports.choices import EscalationAction, EscalationViolationType, ReportCategory, ReportPriority, ReportStatus
from reports.entities import CommentReportRequest, Report, ReportFilters, ReportRequest, ReportResolution
from reports.repo import InMemoryReportRepo
from reports.services import ADDITIONAL_REPORT_SEPARATOR, ReportingService, comment_escalation_action, whisper_escalation_action
from suspensions.choices import SuspensionType
from suspensions.entities import SuspensionRequest


def report_request(whisper, reporter="r1", category=ReportCategory.HARASSMENT, reason="rude"):
    return ReportRequest(whisper_id=whisper.id, reporter_id=reporter, category=category, reason=reason)


async def seed_reports(services, whisper, count, *, created_at=None, offset=0):
    """에스컬레이션 임계치 테스트용: 서로 다른 신고자의 신고를 저장소에 직접 넣는다."""
    created_at = created_at or services.reports.clock()
    for i in range(offset, offset + count):
        await services.reports.reports.save_report(
            Report(
                id=str(uuid.uuid4()),
                whisper_id=whisper.id,
                whisper_user_id=whisper.user_id,
                reporter_id=f"seed-{i}",
                reporter_display_name="",
                reporter_reputation=50,
                category=ReportCategory.SPAM,
                priority=ReportPriority.MEDIUM,
                status=ReportStatus.PENDING,
                reason="spam",
                created_at=created_at,
                updated_at=created_at,
            )
        )


async def violation_types(services, user_id):
    return sorted(v.violation_type for v in await services.reports.reports.violations_for_user(user_id))


class EscalationDownRepo(InMemoryReportRepo):
    """신고 저장은 되지만 에스컬레이션 집계가 실패하는 저장소"""

    async def unique_reporters(self, whisper_id, since):
        raise ConnectionError("replica down")


class WriteDownRepo(InMemoryReportRepo):
    async def save_report(self, report):
        raise ConnectionError("db down")


def reporting_with(services, repo):
    return ReportingService(repo, services.content, services.reputation, services.suspensions, clock=services.reports.clock)


class TestEscalationTiers:
    @pytest.mark.parametrize(
        "count,expected",
        [(0, EscalationAction.NONE), (4, EscalationAction.NONE), (5, EscalationAction.FLAG), (14, EscalationAction.FLAG), (15, EscalationAction.DELETE), (24, EscalationAction.DELETE), (25, EscalationAction.DELETE_AND_SUSPEND)],
    )
    def test_whisper_tiers(self, count, expected):
        assert whisper_escalation_action(count) == expected

    @pytest.mark.parametrize("count,expected", [(2, EscalationAction.NONE), (3, EscalationAction.HIDE), (4, EscalationAction.HIDE), (5, EscalationAction.DELETE)])
    def test_comment_tiers(self, count, expected):
        assert comment_escalation_action(count) == expected


@pytest.mark.asyncio
class TestCreateReport:
    async def test_creates_pending_report(self, services, clock):
        whisper = services.content.add_whisper("owner")
        report = await services.reports.create_report(report_request(whisper))

        assert report.status == ReportStatus.PENDING
        assert report.priority == ReportPriority.MEDIUM
        assert report.whisper_user_id == "owner"
        assert report.reporter_reputation == 50
        assert report.reputation_weight == 1.0
        assert report.created_at == clock.now
        assert (await services.reports.get_report(report.id)).reason == "rude"

    async def test_critical_goes_straight_to_review(self, services):
        whisper = services.content.add_whisper("owner")
        report = await services.reports.create_report(report_request(whisper, category=ReportCategory.MINOR_SAFETY))
        assert report.priority == ReportPriority.CRITICAL
        assert report.status == ReportStatus.UNDER_REVIEW

    async def test_rejections(self, services):
        whisper = services.content.add_whisper("owner")
        with pytest.raises(ValidationError):
            await services.reports.create_report(report_request(whisper, reporter="owner"))
        with pytest.raises(ValidationError):
            await services.reports.create_report(report_request(whisper, category="gossip"))
        with pytest.raises(ValidationError):
            await services.reports.create_report(report_request(whisper, reason="  "))
        with pytest.raises(NotFound):
            await services.reports.create_report(ReportRequest(whisper_id="missing", reporter_id="r1", category=ReportCategory.SPAM, reason="x"))

    async def test_banned_reporter(self, services):
        whisper = services.content.add_whisper("owner")
        await services.reputation.ban_user("r1")
        with pytest.raises(PermissionDenied):
            await services.reports.create_report(report_request(whisper))

    async def test_repeat_report_merges_and_escalates(self, services):
        whisper = services.content.add_whisper("owner")
        first = await services.reports.create_report(report_request(whisper, reason="rude"))
        second = await services.reports.create_report(report_request(whisper, reason="again"))

        assert second.id == first.id
        assert second.reason == f"rude{ADDITIONAL_REPORT_SEPARATOR}again"
        assert second.priority == ReportPriority.HIGH
        assert len(await services.reports.get_reports()) == 1

    async def test_different_category_is_new_report(self, services):
        whisper = services.content.add_whisper("owner")
        first = await services.reports.create_report(report_request(whisper))
        second = await services.reports.create_report(report_request(whisper, category=ReportCategory.SPAM))
        assert first.id != second.id

    async def test_resolved_report_is_not_merged(self, services):
        whisper = services.content.add_whisper("owner")
        first = await services.reports.create_report(report_request(whisper))
        await services.reports.resolve_report(first.id, ReportResolution(action="warn", reason="", moderator_id="mod"))
        second = await services.reports.create_report(report_request(whisper))
        assert second.id != first.id

    async def test_escalation_failure_does_not_block_report(self, services):
        svc = reporting_with(services, EscalationDownRepo())
        whisper = services.content.add_whisper("owner")
        report = await svc.create_report(report_request(whisper))

        assert report.status == ReportStatus.PENDING
        assert (await svc.get_report(report.id)).id == report.id
        assert await svc.check_automatic_escalation(whisper.id) == EscalationAction.NONE

    async def test_store_failure_on_write_raises(self, services):
        svc = reporting_with(services, WriteDownRepo())
        whisper = services.content.add_whisper("owner")
        with pytest.raises(StoreUnavailable) as exc:
            await svc.create_report(report_request(whisper))
        assert "Failed to create report" in str(exc.value.detail)
        assert await svc.get_reports() == []

    async def test_lookup(self, services):
        whisper = services.content.add_whisper("owner")
        assert (await services.reports.has_user_reported_content("r1", whisper.id)).has_reported is False
        report = await services.reports.create_report(report_request(whisper))
        lookup = await services.reports.has_user_reported_content("r1", whisper.id)
        assert lookup.has_reported is True
        assert lookup.existing_report.id == report.id


@pytest.mark.asyncio
class TestWhisperEscalation:
    async def test_flag_at_five_reporters_once(self, services):
        whisper = services.content.add_whisper("owner")
        for i in range(4):
            await services.reports.create_report(report_request(whisper, reporter=f"r{i}"))
        assert await violation_types(services, "owner") == []

        await services.reports.create_report(report_request(whisper, reporter="r4"))
        assert await violation_types(services, "owner") == [EscalationViolationType.WHISPER_FLAGGED]

        # 6번째 신고는 다시 flag 하지 않음
        await services.reports.create_report(report_request(whisper, reporter="r5"))
        assert await violation_types(services, "owner") == [EscalationViolationType.WHISPER_FLAGGED]
        assert await services.reports.check_automatic_escalation(whisper.id) == EscalationAction.NONE

        # 위스퍼 단계 조치는 작성자 평판을 건드리지 않음
        assert (await services.reputation.get_user_reputation("owner")).score == 50
        assert services.content.whispers[whisper.id].is_deleted is False

    async def test_delete_at_fifteen(self, services):
        whisper = services.content.add_whisper("owner")
        await seed_reports(services, whisper, 15)
        assert await services.reports.check_automatic_escalation(whisper.id) == EscalationAction.DELETE
        assert services.content.whispers[whisper.id].is_deleted is True
        assert await violation_types(services, "owner") == [EscalationViolationType.WHISPER_DELETED]
        assert (await services.suspensions.is_user_suspended("owner")).suspended is False

        # 이미 삭제된 위스퍼는 다시 삭제 기록을 남기지 않음
        await seed_reports(services, whisper, 1, offset=15)
        assert await services.reports.check_automatic_escalation(whisper.id) == EscalationAction.NONE
        assert await violation_types(services, "owner") == [EscalationViolationType.WHISPER_DELETED]

    async def test_delete_and_suspend_at_twenty_five(self, services, clock):
        whisper = services.content.add_whisper("owner")
        await seed_reports(services, whisper, 25)
        assert await services.reports.check_automatic_escalation(whisper.id) == EscalationAction.DELETE_AND_SUSPEND

        suspensions = await services.suspensions.get_user_suspensions("owner")
        assert len(suspensions) == 1
        assert suspensions[0].type == SuspensionType.TEMPORARY
        assert suspensions[0].end_date == clock.now + dt.timedelta(hours=24)
        assert services.content.whispers[whisper.id].is_deleted is True
        assert await violation_types(services, "owner") == [EscalationViolationType.TEMPORARY_BAN, EscalationViolationType.WHISPER_DELETED]

    async def test_every_tier_reached_through_create_report(self, services, clock):
        whisper = services.content.add_whisper("owner")
        for i in range(15):
            await services.reports.create_report(report_request(whisper, reporter=f"r{i}"))
        assert services.content.whispers[whisper.id].is_deleted is True

        # 삭제된 위스퍼도 신고는 계속 받는다
        for i in range(15, 24):
            report = await services.reports.create_report(report_request(whisper, reporter=f"r{i}"))
            assert report.whisper_user_id == "owner"
        assert await violation_types(services, "owner") == [EscalationViolationType.WHISPER_DELETED, EscalationViolationType.WHISPER_FLAGGED]
        assert (await services.suspensions.is_user_suspended("owner")).suspended is False

        await services.reports.create_report(report_request(whisper, reporter="r24"))
        status = await services.suspensions.is_user_suspended("owner")
        assert status.suspended is True
        assert [s.type for s in status.suspensions] == [SuspensionType.TEMPORARY]
        assert await violation_types(services, "owner") == [
            EscalationViolationType.TEMPORARY_BAN,
            EscalationViolationType.WHISPER_DELETED,
            EscalationViolationType.WHISPER_FLAGGED,
        ]
        assert len(await services.reports.get_reports(ReportFilters(whisper_id=whisper.id))) == 25

        # 정지가 끝난 뒤 추가 신고가 와도 같은 위스퍼로 다시 정지하지 않음
        clock.advance(hours=25)
        await services.suspensions.expiration_sweep()
        await services.reports.create_report(report_request(whisper, reporter="r25"))
        assert (await services.suspensions.is_user_suspended("owner")).suspended is False
        assert len(await services.suspensions.get_user_suspensions("owner")) == 1

    async def test_skipped_when_owner_already_suspended(self, services):
        whisper = services.content.add_whisper("owner")
        await services.suspensions.create(SuspensionRequest(user_id="owner", reason="x", type=SuspensionType.TEMPORARY, moderator_id="mod", duration=dt.timedelta(hours=1)))
        await seed_reports(services, whisper, 25)

        assert await services.reports.check_automatic_escalation(whisper.id) == EscalationAction.SKIPPED
        assert services.content.whispers[whisper.id].is_deleted is False
        assert await violation_types(services, "owner") == []

    async def test_reports_outside_window_do_not_count(self, services, clock):
        whisper = services.content.add_whisper("owner")
        await seed_reports(services, whisper, 10, created_at=clock.now - dt.timedelta(days=31))
        await seed_reports(services, whisper, 4, offset=10)
        assert await services.reports.check_automatic_escalation(whisper.id) == EscalationAction.NONE

    async def test_missing_whisper(self, services):
        assert await services.reports.check_automatic_escalation("gone") == EscalationAction.NONE

    async def test_user_level_escalation_for_low_reputation_owner(self, services):
        await services.reputation.adjust_score("owner", -25)  # 25 → flagged, 30 미만
        first = services.content.add_whisper("owner")
        second = services.content.add_whisper("owner")

        await seed_reports(services, first, 5)
        assert await services.reports.check_automatic_escalation(first.id) == EscalationAction.FLAG
        # 첫 위반은 경고 단계라 정지 없음
        assert (await services.suspensions.is_user_suspended("owner")).suspended is False

        await seed_reports(services, second, 5)
        assert await services.reports.check_automatic_escalation(second.id) == EscalationAction.FLAG
        status = await services.suspensions.is_user_suspended("owner")
        assert status.suspended is True
        assert status.suspensions[0].reason == "Automatic suspension: Repeated community reports (violation #2)"

    async def test_user_level_escalation_ignores_healthy_owner(self, services):
        assert await services.reports.check_user_level_escalation("owner") is False


@pytest.mark.asyncio
class TestCommentReports:
    async def test_hide_then_delete(self, services):
        whisper = services.content.add_whisper("author")
        comment = services.content.add_comment(whisper.id, "owner")

        def request(i):
            return CommentReportRequest(comment_id=comment.id, reporter_id=f"c{i}", category=ReportCategory.SPAM, reason="ad")

        for i in range(3):
            report = await services.reports.create_comment_report(request(i))
        assert report.whisper_id == whisper.id
        assert services.content.comments[comment.id].is_hidden is True
        assert await violation_types(services, "owner") == [EscalationViolationType.COMMENT_HIDDEN]

        await services.reports.create_comment_report(request(3))
        assert await violation_types(services, "owner") == [EscalationViolationType.COMMENT_HIDDEN]

        await services.reports.create_comment_report(request(4))
        assert comment.id not in services.content.comments
        assert await violation_types(services, "owner") == [EscalationViolationType.COMMENT_DELETED, EscalationViolationType.COMMENT_HIDDEN]

    async def test_critical_comment_report_is_escalated(self, services):
        whisper = services.content.add_whisper("author")
        comment = services.content.add_comment(whisper.id, "owner")
        report = await services.reports.create_comment_report(
            CommentReportRequest(comment_id=comment.id, reporter_id="c1", category=ReportCategory.MINOR_SAFETY, reason="unsafe")
        )
        assert report.status == ReportStatus.ESCALATED

    async def test_own_and_missing_comment(self, services):
        whisper = services.content.add_whisper("author")
        comment = services.content.add_comment(whisper.id, "owner")
        with pytest.raises(ValidationError):
            await services.reports.create_comment_report(CommentReportRequest(comment_id=comment.id, reporter_id="owner", category=ReportCategory.SPAM, reason="x"))
        with pytest.raises(NotFound):
            await services.reports.create_comment_report(CommentReportRequest(comment_id="missing", reporter_id="c1", category=ReportCategory.SPAM, reason="x"))

    async def test_resolve_comment_report(self, services):
        whisper = services.content.add_whisper("author")
        comment = services.content.add_comment(whisper.id, "owner")
        report = await services.reports.create_comment_report(CommentReportRequest(comment_id=comment.id, reporter_id="c1", category=ReportCategory.SPAM, reason="ad"))

        resolved = await services.reports.resolve_comment_report(report.id, ReportResolution(action="hide", reason="ad", moderator_id="mod"))
        assert resolved.status == ReportStatus.RESOLVED
        assert services.content.comments[comment.id].is_hidden is True

        with pytest.raises(ValidationError):
            await services.reports.resolve_comment_report(report.id, ReportResolution(action="delete", reason="", moderator_id="mod"))

    async def test_dismiss_comment_report_penalises_reporter(self, services):
        whisper = services.content.add_whisper("author")
        comment = services.content.add_comment(whisper.id, "owner")
        report = await services.reports.create_comment_report(CommentReportRequest(comment_id=comment.id, reporter_id="c1", category=ReportCategory.SPAM, reason="ad"))
        await services.reports.resolve_comment_report(report.id, ReportResolution(action="dismiss", reason="", moderator_id="mod"))
        assert (await services.reputation.get_user_reputation("c1")).score == 40
        assert comment.id in services.content.comments


@pytest.mark.asyncio
class TestResolveReport:
    async def _report(self, services, category=ReportCategory.HARASSMENT):
        whisper = services.content.add_whisper("owner")
        return whisper, await services.reports.create_report(report_request(whisper, category=category))

    async def test_warn(self, services):
        _, report = await self._report(services)
        resolved = await services.reports.resolve_report(report.id, ReportResolution(action="warn", reason="be nice", moderator_id="mod", notes="first"))
        assert resolved.status == ReportStatus.RESOLVED
        assert resolved.reviewed_by == "mod"
        assert resolved.resolution.notes == "first"
        suspensions = await services.suspensions.get_user_suspensions("owner")
        assert [s.type for s in suspensions] == [SuspensionType.WARNING]

    async def test_flag(self, services):
        _, report = await self._report(services)
        await services.reports.resolve_report(report.id, ReportResolution(action="flag", reason="", moderator_id="mod"))
        assert await violation_types(services, "owner") == [EscalationViolationType.WHISPER_FLAGGED]

    async def test_reject_deletes_and_records_violation(self, services):
        whisper, report = await self._report(services)
        await services.reports.resolve_report(report.id, ReportResolution(action="reject", reason="abusive", moderator_id="mod"))
        assert services.content.whispers[whisper.id].is_deleted is True
        rep = await services.reputation.get_user_reputation("owner")
        # harassment, medium 우선순위 → medium 위반 15점
        assert rep.score == 35
        assert rep.violation_history[0].notes == "abusive"
        assert await violation_types(services, "owner") == [EscalationViolationType.WHISPER_DELETED]

    async def test_ban(self, services):
        _, report = await self._report(services)
        await services.reports.resolve_report(report.id, ReportResolution(action="ban", reason="", moderator_id="mod"))
        status = await services.suspensions.is_user_suspended("owner")
        assert status.suspended is True and status.can_appeal is False
        assert (await services.reputation.get_user_reputation("owner")).score == 0

    async def test_dismiss_penalises_reporter(self, services):
        _, report = await self._report(services)
        await services.reports.resolve_report(report.id, ReportResolution(action="dismiss", reason="", moderator_id="mod"))
        assert (await services.reputation.get_user_reputation("r1")).score == 40

    async def test_errors(self, services):
        _, report = await self._report(services)
        with pytest.raises(ValidationError):
            await services.reports.resolve_report(report.id, ReportResolution(action="hide", reason="", moderator_id="mod"))
        with pytest.raises(NotFound):
            await services.reports.resolve_report("missing", ReportResolution(action="warn", reason="", moderator_id="mod"))
        await services.reports.resolve_report(report.id, ReportResolution(action="warn", reason="", moderator_id="mod"))
        with pytest.raises(ValidationError):
            await services.reports.resolve_report(report.id, ReportResolution(action="warn", reason="", moderator_id="mod"))

    async def test_update_status(self, services, clock):
        _, report = await self._report(services)
        updated = await services.reports.update_report_status(report.id, ReportStatus.UNDER_REVIEW, "mod")
        assert updated.status == ReportStatus.UNDER_REVIEW
        assert updated.reviewed_by == "mod"
        assert updated.reviewed_at == clock.now
        with pytest.raises(ValidationError):
            await services.reports.update_report_status(report.id, "archived")


@pytest.mark.asyncio
class TestReportStats:
    async def test_global_and_per_whisper(self, services):
        whisper = services.content.add_whisper("owner")
        await services.reports.create_report(report_request(whisper, reporter="r1"))
        await services.reports.create_report(report_request(whisper, reporter="r2", category=ReportCategory.VIOLENCE))
        await services.reports.create_report(report_request(whisper, reporter="r2", category=ReportCategory.VIOLENCE, reason="again"))

        stats = await services.reports.get_report_stats()
        assert stats.total == 2
        assert stats.by_status["pending"] == 2
        assert stats.by_category["violence"] == 1
        assert stats.by_priority["high"] == 1

        target = await services.reports.get_whisper_report_stats(whisper.id)
        assert target.total_reports == 2
        assert target.unique_reporters == 2
        assert target.highest_priority == ReportPriority.HIGH
        assert target.needs_review is False

        empty = await services.reports.get_whisper_report_stats("nothing")
        assert empty.total_reports == 0 and empty.highest_priority is None

    async def test_filters(self, services, clock):
        whisper = services.content.add_whisper("owner")
        await services.reports.create_report(report_request(whisper, reporter="r1"))
        clock.advance(hours=1)
        await services.reports.create_report(report_request(whisper, reporter="r2", category=ReportCategory.SPAM))

        assert len(await services.reports.get_reports(ReportFilters(category=ReportCategory.SPAM))) == 1
        assert len(await services.reports.get_reports(ReportFilters(date_from=clock.now))) == 1
        assert len(await services.reports.get_reports(ReportFilters(limit=1))) == 1
        assert len(await services.reports.get_reports(ReportFilters(reporter_id="r1"))) == 1


class BrokenViolationCountRepo(InMemoryReportRepo):
    async def violation_type_counts(self):
        raise ConnectionError("replica down")


@pytest.mark.asyncio
class TestReportAnalytics:
    async def _resolved_history(self, services, clock):
        """r1: harassment 3건 + violence 1건. 2시간 뒤 warn, 4시간 뒤 warn/dismiss, 1건 대기."""
        reports = []
        for owner, category in (("o1", ReportCategory.HARASSMENT), ("o2", ReportCategory.HARASSMENT), ("o3", ReportCategory.VIOLENCE), ("o4", ReportCategory.HARASSMENT)):
            whisper = services.content.add_whisper(owner)
            reports.append(await services.reports.create_report(report_request(whisper, category=category)))
        await services.reports.create_report(report_request(services.content.add_whisper("o5"), reporter="r2"))

        clock.advance(hours=2)
        await services.reports.resolve_report(reports[0].id, ReportResolution(action="warn", reason="", moderator_id="mod"))
        clock.advance(hours=2)
        await services.reports.resolve_report(reports[1].id, ReportResolution(action="warn", reason="", moderator_id="mod"))
        await services.reports.resolve_report(reports[2].id, ReportResolution(action="dismiss", reason="", moderator_id="mod2"))
        return reports

    async def test_user_report_stats(self, services, clock):
        await self._resolved_history(services, clock)

        stats = await services.reports.get_user_report_stats("r1")
        assert stats.total_reports == 4
        assert stats.by_category == {"harassment": 3, "violence": 1}
        assert stats.by_priority == {"medium": 3, "high": 1}
        # 신고 시점 평판 기준 (기각 페널티 이전)
        assert stats.average_reporter_reputation == 50.0
        assert stats.most_reported_category == ReportCategory.HARASSMENT
        assert stats.report_accuracy == 50.0

        empty = await services.reports.get_user_report_stats("nobody")
        assert empty.total_reports == 0
        assert empty.most_reported_category == ReportCategory.OTHER
        assert empty.report_accuracy == 0.0

    async def test_user_resolution_history(self, services, clock):
        reports = await self._resolved_history(services, clock)

        history = await services.reports.get_user_resolution_history("r1")
        assert len(history.reports_submitted) == 4
        assert {r.id for r in history.reports_resolved} == {r.id for r in reports[:3]}
        assert history.average_resolution_hours == 3.33
        assert history.most_common_action == "warn"

        none = await services.reports.get_user_resolution_history("r2")
        assert len(none.reports_submitted) == 1
        assert none.reports_resolved == []
        assert none.average_resolution_hours == 0.0
        assert none.most_common_action == "none"

    async def test_resolution_stats(self, services, clock):
        await self._resolved_history(services, clock)

        stats = await services.reports.get_resolution_stats()
        assert stats.total_resolutions == 3
        assert stats.by_action == {"warn": 2, "dismiss": 1}
        assert stats.by_category == {"harassment": 2, "violence": 1}
        assert stats.average_resolution_hours == 3.33
        assert stats.moderator_performance["mod"].total_resolutions == 2
        assert stats.moderator_performance["mod"].average_hours == 3.0
        assert stats.moderator_performance["mod2"].average_hours == 4.0

    async def test_escalation_stats(self, services):
        whisper = services.content.add_whisper("owner")
        a = await services.reports.create_report(report_request(whisper, reporter="r1"))
        b = await services.reports.create_report(report_request(whisper, reporter="r2", category=ReportCategory.VIOLENCE))
        c = await services.reports.create_report(report_request(whisper, reporter="r3", category=ReportCategory.VIOLENCE))
        for report in (a, b, c):
            await services.reports.update_report_status(report.id, ReportStatus.ESCALATED, "mod")

        flagged = services.content.add_whisper("owner2")
        await seed_reports(services, flagged, 5)
        assert await services.reports.check_automatic_escalation(flagged.id) == EscalationAction.FLAG

        stats = await services.reports.get_escalation_stats()
        assert stats.total_escalations == 3
        assert stats.escalation_rate == 37.5
        assert [(s.category, s.count, s.percentage) for s in stats.most_escalated_categories] == [
            (ReportCategory.VIOLENCE, 2, 66.67),
            (ReportCategory.HARASSMENT, 1, 33.33),
        ]
        assert stats.by_violation_type == {"whisper_flagged": 1}

    async def test_escalation_stats_without_violation_counts(self, services):
        svc = reporting_with(services, BrokenViolationCountRepo())
        whisper = services.content.add_whisper("owner")
        report = await svc.create_report(report_request(whisper))
        await svc.update_report_status(report.id, ReportStatus.ESCALATED, "mod")

        stats = await svc.get_escalation_stats()
        assert stats.total_escalations == 1
        assert stats.escalation_rate == 100.0
        assert stats.by_violation_type == {}
