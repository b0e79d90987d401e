import datetime as dt

import pytest
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from appeals.choices import AppealAction, AppealStatus
from appeals.repo import InMemoryAppealRepo
from appeals.services import AppealService
from reputation.choices import Severity, ViolationType


class LockedRowRepo(InMemoryAppealRepo):
    # 특정 사용자의 이의제기 행만 잠금 실패
    async def mutate(self, appeal_id, fn):
        if self.rows[str(appeal_id)].user_id == "u-bad":
            raise ConnectionError("row locked")
        return await super().mutate(appeal_id, fn)


async def violate(services, user_id="u1", vtype=ViolationType.SPAM, severity=Severity.LOW):
    rep = await services.reputation.record_violation(user_id, "w1", vtype, severity)
    return rep.violation_history[-1]


@pytest.mark.asyncio
class TestCreateAppeal:
    async def test_creates_pending(self, services, clock):
        violation = await violate(services)
        appeal = await services.appeals.create("u1", "", violation.id, "  this was a joke  ", "clip.mp3")
        assert appeal.status == AppealStatus.PENDING
        assert appeal.whisper_id == "w1"
        assert appeal.reason == "this was a joke"
        assert appeal.submitted_at == clock.now
        assert (await services.appeals.get_appeal(appeal.id)).evidence == "clip.mp3"

    async def test_reason_required(self, services):
        violation = await violate(services)
        with pytest.raises(ValidationError):
            await services.appeals.create("u1", "w1", violation.id, "   ")

    async def test_banned_user_cannot_appeal(self, services):
        violation = await violate(services)
        await services.reputation.ban_user("u1")
        with pytest.raises(PermissionDenied):
            await services.appeals.create("u1", "w1", violation.id, "please")

    async def test_unknown_violation(self, services):
        await violate(services)
        with pytest.raises(NotFound):
            await services.appeals.create("u1", "w1", "nope", "please")

    async def test_one_pending_appeal_per_violation(self, services):
        violation = await violate(services)
        await services.appeals.create("u1", "w1", violation.id, "first")
        with pytest.raises(ValidationError):
            await services.appeals.create("u1", "w1", violation.id, "second")

    async def test_resolved_violation(self, services):
        violation = await violate(services)
        await services.reputation.resolve_violation("u1", violation.id)
        with pytest.raises(ValidationError):
            await services.appeals.create("u1", "w1", violation.id, "again")

    async def test_time_limit_by_level(self, services, clock):
        # 47점(flagged) → 기한 3일
        violation = await violate(services)
        clock.advance(days=3)
        assert (await services.appeals.create("u1", "w1", violation.id, "in time")).status == AppealStatus.PENDING

        other = await violate(services, user_id="u2")
        clock.advance(days=3, minutes=1)
        with pytest.raises(ValidationError) as exc:
            await services.appeals.create("u2", "w1", other.id, "too late")
        assert "3 days" in str(exc.value.detail)

    async def test_trusted_low_severity_is_auto_approved(self, services):
        await services.reputation.adjust_score("u1", 45)
        violation = await violate(services)  # 95 - 3 = 92 (trusted)

        appeal = await services.appeals.create("u1", "w1", violation.id, "not spam")
        assert appeal.status == AppealStatus.APPROVED
        assert appeal.reviewed_by == "system"
        assert appeal.resolution.reputation_adjustment == 5

        rep = await services.reputation.get_user_reputation("u1")
        assert rep.score == 97
        assert rep.find_violation(violation.id).resolved is True


@pytest.mark.asyncio
class TestReviewAppeal:
    async def test_approve_restores_and_resolves(self, services):
        violation = await violate(services)
        appeal = await services.appeals.create("u1", "w1", violation.id, "mistake")

        reviewed = await services.appeals.review(appeal.id, AppealAction.APPROVE, "agreed", "mod")
        assert reviewed.status == AppealStatus.APPROVED
        assert reviewed.reviewed_by == "mod"
        assert reviewed.resolution.reputation_adjustment == 5

        rep = await services.reputation.get_user_reputation("u1")
        assert rep.score == 52
        assert rep.find_violation(violation.id).resolved is True

    async def test_reject_with_custom_penalty(self, services):
        violation = await violate(services)
        appeal = await services.appeals.create("u1", "w1", violation.id, "mistake")

        reviewed = await services.appeals.review(appeal.id, "reject", "no", "mod", -10)
        assert reviewed.status == AppealStatus.REJECTED
        rep = await services.reputation.get_user_reputation("u1")
        assert rep.score == 37
        assert rep.find_violation(violation.id).resolved is False

    async def test_cannot_review_twice(self, services):
        violation = await violate(services)
        appeal = await services.appeals.create("u1", "w1", violation.id, "mistake")
        await services.appeals.review(appeal.id, AppealAction.REJECT, "no", "mod")
        with pytest.raises(ValidationError):
            await services.appeals.review(appeal.id, AppealAction.APPROVE, "yes", "mod")

    async def test_adjustment_sign_must_match_action(self, services):
        violation = await violate(services)
        appeal = await services.appeals.create("u1", "w1", violation.id, "mistake")
        with pytest.raises(ValidationError):
            await services.appeals.review(appeal.id, AppealAction.APPROVE, "", "mod", -1)
        with pytest.raises(ValidationError):
            await services.appeals.review(appeal.id, AppealAction.REJECT, "", "mod", 3)
        with pytest.raises(ValidationError):
            await services.appeals.review(appeal.id, "escalate", "", "mod")
        assert (await services.appeals.get_appeal(appeal.id)).status == AppealStatus.PENDING

    async def test_unknown_appeal(self, services):
        with pytest.raises(NotFound):
            await services.appeals.review("missing", AppealAction.APPROVE, "", "mod")


@pytest.mark.asyncio
class TestAppealQueries:
    async def test_expiration_sweep_uses_level_limit(self, services, clock):
        flagged = await violate(services, user_id="u1")  # 47 → flagged (3일)
        standard = await violate(services, user_id="u2", vtype=ViolationType.OTHER, severity=Severity.LOW)
        await services.reputation.adjust_score("u2", 10)  # 45 + 10 = 55 → standard (7일)
        a1 = await services.appeals.create("u1", "w1", flagged.id, "pls")
        a2 = await services.appeals.create("u2", "w1", standard.id, "pls")

        clock.advance(days=4)
        result = await services.appeals.expiration_sweep()
        assert result.as_dict() == {"processed": 2, "changed": 1, "failed": 0}
        assert (await services.appeals.get_appeal(a1.id)).status == AppealStatus.EXPIRED
        assert (await services.appeals.get_appeal(a2.id)).status == AppealStatus.PENDING
        assert [a.id for a in await services.appeals.get_pending_appeals()] == [a2.id]

    async def test_expiration_sweep_isolates_failures(self, services, clock):
        svc = AppealService(LockedRowRepo(), services.reputation, clock=clock)
        appeals = {}
        for user_id in ("u1", "u-bad", "u2"):
            violation = await violate(services, user_id=user_id)
            appeals[user_id] = await svc.create(user_id, "w1", violation.id, "pls")

        clock.advance(days=4)
        result = await svc.expiration_sweep()
        assert result.as_dict() == {"processed": 3, "changed": 2, "failed": 1}
        assert (await svc.get_appeal(appeals["u1"].id)).status == AppealStatus.EXPIRED
        assert (await svc.get_appeal(appeals["u2"].id)).status == AppealStatus.EXPIRED
        assert [a.id for a in await svc.get_pending_appeals()] == [appeals["u-bad"].id]

    async def test_lists_and_stats(self, services, clock):
        v1 = await violate(services)
        v2 = await violate(services)
        a1 = await services.appeals.create("u1", "w1", v1.id, "one")
        clock.advance(minutes=1)
        a2 = await services.appeals.create("u1", "w1", v2.id, "two")
        await services.appeals.review(a1.id, AppealAction.APPROVE, "", "mod")

        assert [a.id for a in await services.appeals.get_user_appeals("u1")] == [a2.id, a1.id]
        assert [a.id for a in await services.appeals.get_by_violation(v2.id)] == [a2.id]

        stats = await services.appeals.get_appeal_stats()
        assert stats.total == 2
        assert stats.by_status["approved"] == 1 and stats.by_status["pending"] == 1
        assert stats.approval_rate == 1.0
