import datetime as dt

import pytest
from rest_framework.exceptions import NotFound, ValidationError

from suspensions.choices import BanType, ReviewAction, SuspensionType
from suspensions.entities import SuspensionRequest
from suspensions.repo import InMemorySuspensionRepo
from suspensions.services import PERMANENT_SUSPENSION_DURATION, SuspensionService, automatic_plan


class LockedRowRepo(InMemorySuspensionRepo):
    # 특정 사용자의 정지 행만 잠금 실패
    async def mutate(self, suspension_id, fn):
        if self.rows[str(suspension_id)].user_id == "u-bad":
            raise ConnectionError("row locked")
        return await super().mutate(suspension_id, fn)


def request(**overrides):
    data = {"user_id": "u1", "reason": "harassment", "type": SuspensionType.TEMPORARY, "moderator_id": "mod", "duration": dt.timedelta(hours=24)}
    data.update(overrides)
    return SuspensionRequest(**data)


class TestValidation:
    def test_valid_temporary(self, services):
        assert services.suspensions.validate(request()).is_valid

    def test_collects_every_error(self, services):
        check = services.suspensions.validate(request(user_id="", reason=" ", moderator_id=""))
        assert not check.is_valid
        assert check.errors == ["User ID is required", "Reason is required", "Moderator ID is required"]

    def test_temporary_needs_positive_duration(self, services):
        assert not services.suspensions.validate(request(duration=None)).is_valid
        assert not services.suspensions.validate(request(duration=dt.timedelta(0))).is_valid

    def test_permanent_rejects_duration(self, services):
        check = services.suspensions.validate(request(type=SuspensionType.PERMANENT))
        assert check.errors == ["Permanent suspensions cannot have a duration"]

    def test_unknown_type(self, services):
        assert services.suspensions.validate(request(type="forever")).errors == ["Invalid suspension type"]


class TestAutomaticPlan:
    def test_tiers(self):
        assert automatic_plan(0) is None
        assert automatic_plan(1) == (SuspensionType.WARNING, None)
        assert automatic_plan(2) == (SuspensionType.TEMPORARY, dt.timedelta(hours=24))
        assert automatic_plan(3) == (SuspensionType.TEMPORARY, dt.timedelta(days=7))
        assert automatic_plan(4) == (SuspensionType.PERMANENT, None)
        assert automatic_plan(10) == (SuspensionType.PERMANENT, None)


@pytest.mark.asyncio
class TestCreate:
    async def test_temporary(self, services, clock):
        s = await services.suspensions.create(request())
        assert s.is_active is True
        assert s.ban_type == BanType.CONTENT_VISIBLE
        assert s.start_date == clock.now
        assert s.end_date == clock.now + dt.timedelta(hours=24)
        assert s.appealable is True
        # 정지 페널티 -20
        assert (await services.reputation.get_user_reputation("u1")).score == 30

        status = await services.suspensions.is_user_suspended("u1")
        assert status.suspended is True
        assert status.can_appeal is True
        assert [x.id for x in status.suspensions] == [s.id]

    async def test_warning_is_history_only(self, services):
        s = await services.suspensions.create(request(type=SuspensionType.WARNING, duration=None))
        assert s.is_active is False
        assert s.ban_type == BanType.NONE
        assert (await services.suspensions.is_user_suspended("u1")).suspended is False
        assert (await services.reputation.get_user_reputation("u1")).score == 50
        assert len(await services.suspensions.get_user_suspensions("u1")) == 1

    async def test_permanent(self, services, clock):
        s = await services.suspensions.create(request(type=SuspensionType.PERMANENT, duration=None))
        assert s.end_date == clock.now + PERMANENT_SUSPENSION_DURATION
        assert s.ban_type == BanType.CONTENT_HIDDEN
        assert s.appealable is False
        status = await services.suspensions.is_user_suspended("u1")
        assert status.suspended is True and status.can_appeal is False

    async def test_invalid_request_raises(self, services):
        with pytest.raises(ValidationError):
            await services.suspensions.create(request(reason=""))
        assert await services.suspensions.get_user_suspensions("u1") == []

    async def test_automatic_for(self, services, clock):
        assert await services.suspensions.automatic_for("u1", 1, "reports") is None
        assert await services.suspensions.get_user_suspensions("u1") == []

        s = await services.suspensions.automatic_for("u1", 3, "reports")
        assert s.type == SuspensionType.TEMPORARY
        assert s.moderator_id == "system"
        assert s.reason == "Automatic suspension: reports (violation #3)"
        assert s.end_date == clock.now + dt.timedelta(days=7)


@pytest.mark.asyncio
class TestReview:
    async def test_extend(self, services, clock):
        s = await services.suspensions.create(request())
        out = await services.suspensions.review(s.id, ReviewAction.EXTEND, "repeat", "mod2", dt.timedelta(hours=12))
        assert out.end_date == clock.now + dt.timedelta(hours=36)
        assert out.reviewed_by == "mod2"
        assert out.review_reason == "repeat"

    async def test_reduce_past_now_deactivates(self, services, clock):
        s = await services.suspensions.create(request())
        out = await services.suspensions.review(s.id, "reduce", "", "mod2", dt.timedelta(hours=48))
        assert out.end_date == clock.now
        assert out.is_active is False
        assert (await services.suspensions.is_user_suspended("u1")).suspended is False

    async def test_remove(self, services):
        s = await services.suspensions.create(request())
        out = await services.suspensions.review(s.id, ReviewAction.REMOVE, "mistake", "mod2")
        assert out.is_active is False
        # 이미 해제된 정지는 다시 검토할 수 없음
        with pytest.raises(ValidationError):
            await services.suspensions.review(s.id, ReviewAction.REMOVE, "again", "mod2")

    async def test_make_permanent(self, services, clock):
        s = await services.suspensions.create(request())
        out = await services.suspensions.review(s.id, ReviewAction.MAKE_PERMANENT, "escalated", "mod2")
        assert out.type == SuspensionType.PERMANENT
        assert out.ban_type == BanType.CONTENT_HIDDEN
        assert out.end_date == clock.now + PERMANENT_SUSPENSION_DURATION
        assert out.appealable is False

        with pytest.raises(ValidationError):
            await services.suspensions.review(s.id, ReviewAction.EXTEND, "", "mod2", dt.timedelta(hours=1))

    async def test_errors(self, services):
        s = await services.suspensions.create(request())
        with pytest.raises(ValidationError):
            await services.suspensions.review(s.id, "pardon", "", "mod2")
        with pytest.raises(ValidationError):
            await services.suspensions.review(s.id, ReviewAction.EXTEND, "", "mod2", None)
        with pytest.raises(NotFound):
            await services.suspensions.review("missing", ReviewAction.REMOVE, "", "mod2")


@pytest.mark.asyncio
class TestExpirationSweep:
    async def test_expires_temporary_and_restores_reputation(self, services, clock):
        await services.suspensions.create(request())
        await services.suspensions.create(request(user_id="u2", type=SuspensionType.PERMANENT, duration=None))

        clock.advance(hours=23)
        assert (await services.suspensions.expiration_sweep()).changed == 0

        clock.advance(hours=2)
        result = await services.suspensions.expiration_sweep()
        assert result.as_dict() == {"processed": 1, "changed": 1, "failed": 0}
        assert (await services.suspensions.is_user_suspended("u1")).suspended is False
        assert (await services.suspensions.is_user_suspended("u2")).suspended is True
        # 30 + 10
        assert (await services.reputation.get_user_reputation("u1")).score == 40

        # 두 번째 스윕은 아무것도 하지 않음
        assert (await services.suspensions.expiration_sweep()).processed == 0

    async def test_one_failing_record_does_not_stop_the_sweep(self, services, clock):
        svc = SuspensionService(LockedRowRepo(), services.reputation, clock=clock)
        for user_id in ("u1", "u-bad", "u2"):
            await svc.create(request(user_id=user_id))

        clock.advance(hours=25)
        result = await svc.expiration_sweep()
        assert result.as_dict() == {"processed": 3, "changed": 2, "failed": 1}
        assert (await svc.is_user_suspended("u1")).suspended is False
        assert (await svc.is_user_suspended("u2")).suspended is False
        # 실패한 행은 다음 스윕 대상으로 남는다
        assert [s.user_id for s in await svc.repo.expired_active(clock())] == ["u-bad"]

    async def test_stats(self, services):
        await services.suspensions.create(request())
        await services.suspensions.create(request(type=SuspensionType.WARNING, duration=None))
        stats = await services.suspensions.get_suspension_stats()
        assert stats.total == 2
        assert stats.active == 1
        assert stats.by_type == {"warning": 1, "temporary": 1, "permanent": 0}
