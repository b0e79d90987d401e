import logging
import uuid
from datetime import timedelta
from typing import List, Optional

from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from common.conf import trust_setting
from common.events import publish_event
from common.exceptions import StoreUnavailable
from common.types import Clock, SweepResult
from reputation.services import ReputationService

from .choices import BanType, ReviewAction, SuspensionType
from .entities import Suspension, SuspensionRequest, SuspensionStats, SuspensionStatus, ValidationResult
from .repo import BaseSuspensionRepo

logger = logging.getLogger(__name__)

# 실제 만료가 아니라 "사실상 영구"를 표현하는 값. 모든 활성 검사를 end_date > now 한 가지로 통일하기 위함.
PERMANENT_SUSPENSION_DURATION = timedelta(days=365 * 100)

BAN_TYPES = {
    SuspensionType.WARNING: BanType.NONE,
    SuspensionType.TEMPORARY: BanType.CONTENT_VISIBLE,
    SuspensionType.PERMANENT: BanType.CONTENT_HIDDEN,
}

SYSTEM_MODERATOR = "system"


def ban_type_for(suspension_type) -> BanType:
    return BAN_TYPES[SuspensionType(suspension_type)]


def automatic_plan(violation_count: int):
    """(type, duration) for the n-th recorded violation, or None below the warning tier."""
    if violation_count <= 0:
        return None
    if violation_count == 1:
        return SuspensionType.WARNING, None
    if violation_count == 2:
        return SuspensionType.TEMPORARY, timedelta(hours=trust_setting("TEMPORARY_SUSPENSION_HOURS"))
    if violation_count == 3:
        return SuspensionType.TEMPORARY, timedelta(days=trust_setting("EXTENDED_SUSPENSION_DAYS"))
    return SuspensionType.PERMANENT, None


class SuspensionService:
    def __init__(self, repo: BaseSuspensionRepo, reputation: ReputationService, clock: Clock = timezone.now):
        self.repo = repo
        self.reputation = reputation
        self.clock = clock

    # ---------- 생성 ----------
    def validate(self, data: SuspensionRequest) -> ValidationResult:
        errors = []
        if not str(data.user_id or "").strip():
            errors.append("User ID is required")
        if not str(data.reason or "").strip():
            errors.append("Reason is required")
        if not str(data.moderator_id or "").strip():
            errors.append("Moderator ID is required")
        if data.type not in SuspensionType.values:
            errors.append("Invalid suspension type")
        elif data.type == SuspensionType.TEMPORARY:
            if data.duration is None or data.duration <= timedelta(0):
                errors.append("Temporary suspensions require a positive duration")
        elif data.type == SuspensionType.PERMANENT and data.duration is not None:
            errors.append("Permanent suspensions cannot have a duration")
        return ValidationResult(is_valid=not errors, errors=errors)

    def _build(self, data: SuspensionRequest) -> Suspension:
        now = self.clock()
        suspension_type = SuspensionType(data.type)
        if suspension_type == SuspensionType.TEMPORARY:
            end_date = now + data.duration
        elif suspension_type == SuspensionType.PERMANENT:
            end_date = now + PERMANENT_SUSPENSION_DURATION
        else:
            end_date = now
        return Suspension(
            id=str(uuid.uuid4()),
            user_id=str(data.user_id),
            reason=data.reason.strip(),
            type=suspension_type,
            ban_type=ban_type_for(suspension_type),
            moderator_id=str(data.moderator_id),
            start_date=now,
            end_date=end_date,
            # 경고는 이력으로만 남기고 활성 정지로 취급하지 않음
            is_active=suspension_type != SuspensionType.WARNING,
            duration=data.duration if suspension_type == SuspensionType.TEMPORARY else None,
            appealable=suspension_type != SuspensionType.PERMANENT,
            created_at=now,
            updated_at=now,
        )

    async def create(self, data: SuspensionRequest) -> Suspension:
        check = self.validate(data)
        if not check.is_valid:
            raise ValidationError({"detail": f"Invalid suspension data: {'; '.join(check.errors)}"})

        suspension = self._build(data)
        try:
            await self.repo.save(suspension)
        except Exception as exc:
            logger.exception("[Suspensions] save failed: user=%s", suspension.user_id)
            raise StoreUnavailable(f"Failed to create suspension: {exc}")

        if suspension.type != SuspensionType.WARNING:
            try:
                await self.reputation.adjust_score(suspension.user_id, trust_setting("SUSPENSION_PENALTY"), f"suspension:{suspension.type}")
            except Exception:
                logger.exception("[Suspensions] reputation penalty failed: user=%s suspension=%s", suspension.user_id, suspension.id)

        logger.info("[Suspensions] created: id=%s user=%s type=%s end=%s", suspension.id, suspension.user_id, suspension.type, suspension.end_date.isoformat())
        publish_event(
            "UserSuspended",
            {"suspension_id": suspension.id, "user_id": suspension.user_id, "type": suspension.type, "ban_type": suspension.ban_type, "end_date": suspension.end_date.isoformat()},
        )
        return suspension

    async def automatic_for(self, user_id, violation_count: int, reason: str) -> Optional[Suspension]:
        plan = automatic_plan(violation_count)
        if plan is None:
            return None
        suspension_type, duration = plan
        if suspension_type == SuspensionType.WARNING:
            logger.info("[Suspensions] automatic warning: user=%s violations=%s reason=%s", user_id, violation_count, reason)
            return None
        try:
            return await self.create(
                SuspensionRequest(
                    user_id=str(user_id),
                    reason=f"Automatic suspension: {reason} (violation #{violation_count})",
                    type=suspension_type,
                    moderator_id=SYSTEM_MODERATOR,
                    duration=duration,
                )
            )
        except Exception:
            logger.exception("[Suspensions] automatic suspension failed: user=%s violations=%s", user_id, violation_count)
            return None

    # ---------- 검토 ----------
    async def review(self, suspension_id, action, reason: str, moderator_id, new_duration: Optional[timedelta] = None) -> Suspension:
        if action not in ReviewAction.values:
            raise ValidationError({"detail": f"Invalid review action: {action}"})
        action = ReviewAction(action)
        now = self.clock()

        def apply(suspension: Suspension) -> None:
            if not suspension.is_active:
                raise ValidationError({"detail": "Suspension is no longer active."})
            if action in (ReviewAction.EXTEND, ReviewAction.REDUCE):
                if suspension.type == SuspensionType.PERMANENT:
                    raise ValidationError({"detail": "Cannot change the duration of a permanent suspension."})
                if new_duration is None or new_duration <= timedelta(0):
                    raise ValidationError({"detail": "A positive duration is required."})
                if action == ReviewAction.EXTEND:
                    suspension.end_date = suspension.end_date + new_duration
                else:
                    suspension.end_date = max(now, suspension.end_date - new_duration)
                suspension.duration = suspension.end_date - suspension.start_date
                if suspension.end_date <= now:
                    suspension.is_active = False
            elif action == ReviewAction.REMOVE:
                suspension.is_active = False
                suspension.end_date = now
            else:
                suspension.type = SuspensionType.PERMANENT
                suspension.ban_type = BanType.CONTENT_HIDDEN
                suspension.end_date = now + PERMANENT_SUSPENSION_DURATION
                suspension.duration = None
                suspension.appealable = False
            suspension.reviewed_by = str(moderator_id)
            suspension.reviewed_at = now
            suspension.review_reason = reason or ""
            suspension.updated_at = now

        try:
            outcome = await self.repo.mutate(str(suspension_id), apply)
        except ValidationError:
            raise
        except Exception as exc:
            logger.exception("[Suspensions] review failed: id=%s", suspension_id)
            raise StoreUnavailable(f"Failed to review suspension: {exc}")
        if outcome is None:
            raise NotFound({"detail": "Suspension not found."})

        suspension, _ = outcome
        logger.info("[Suspensions] reviewed: id=%s action=%s by=%s", suspension.id, action, moderator_id)
        publish_event("SuspensionReviewed", {"suspension_id": suspension.id, "user_id": suspension.user_id, "action": action, "moderator_id": str(moderator_id)})
        return suspension

    # ---------- 조회 ----------
    async def get_suspension(self, suspension_id) -> Optional[Suspension]:
        try:
            return await self.repo.get(str(suspension_id))
        except Exception:
            logger.exception("[Suspensions] get failed: id=%s", suspension_id)
            return None

    async def get_user_suspensions(self, user_id) -> List[Suspension]:
        try:
            return await self.repo.for_user(str(user_id))
        except Exception:
            logger.exception("[Suspensions] list failed: user=%s", user_id)
            return []

    async def get_user_active_suspensions(self, user_id) -> List[Suspension]:
        try:
            return await self.repo.active_for_user(str(user_id), self.clock())
        except Exception:
            logger.exception("[Suspensions] active list failed: user=%s", user_id)
            return []

    async def is_user_suspended(self, user_id) -> SuspensionStatus:
        active = await self.get_user_active_suspensions(user_id)
        return SuspensionStatus(
            suspended=bool(active),
            suspensions=active,
            can_appeal=any(s.type != SuspensionType.PERMANENT for s in active),
        )

    async def get_suspension_stats(self) -> SuspensionStats:
        try:
            return await self.repo.stats(self.clock())
        except Exception:
            logger.exception("[Suspensions] stats failed")
            return SuspensionStats()

    # ---------- 만료 스윕 ----------
    async def expiration_sweep(self) -> SweepResult:
        result = SweepResult()
        now = self.clock()
        try:
            candidates = await self.repo.expired_active(now)
        except Exception:
            logger.exception("[Suspensions] expiration sweep could not list candidates")
            return result

        def expire(suspension: Suspension) -> bool:
            # 다른 워커가 먼저 처리했으면 건너뜀
            if not suspension.is_active or suspension.end_date > now:
                return False
            suspension.is_active = False
            suspension.updated_at = now
            return True

        for candidate in candidates:
            result.processed += 1
            try:
                outcome = await self.repo.mutate(candidate.id, expire)
            except Exception:
                result.failed += 1
                logger.exception("[Suspensions] expire failed: id=%s", candidate.id)
                continue
            if outcome is None or not outcome[1]:
                continue

            result.changed += 1
            suspension = outcome[0]
            publish_event("SuspensionExpired", {"suspension_id": suspension.id, "user_id": suspension.user_id, "type": suspension.type})
            if suspension.type == SuspensionType.TEMPORARY:
                try:
                    await self.reputation.adjust_score(suspension.user_id, trust_setting("SUSPENSION_RESTORATION_BONUS"), "suspension expired")
                except Exception:
                    logger.exception("[Suspensions] restoration bonus failed: user=%s", suspension.user_id)

        logger.info("[Suspensions] expiration sweep done: %s", result.as_dict())
        return result
