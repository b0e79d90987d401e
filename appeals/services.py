import logging
import math
import uuid
from datetime import timedelta
from typing import List, Optional

from django.utils import timezone
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from common.conf import trust_setting
from common.events import publish_event
from common.exceptions import StoreUnavailable
from common.types import Clock, SweepResult
from reputation import rules
from reputation.choices import ReputationLevel, Severity
from reputation.entities import UserReputation, ViolationRecord
from reputation.services import ReputationService

from .choices import AppealAction, AppealStatus
from .entities import Appeal, AppealResolution, AppealStats
from .repo import BaseAppealRepo

logger = logging.getLogger(__name__)

SYSTEM_MODERATOR = "system"


def qualifies_for_auto_approval(reputation: UserReputation, violation: ViolationRecord) -> bool:
    # trusted 사용자의 경미한(low) 위반만 수동 검토 없이 승인
    return reputation.level == ReputationLevel.TRUSTED and violation.severity == Severity.LOW


class AppealService:
    def __init__(self, repo: BaseAppealRepo, reputation: ReputationService, clock: Clock = timezone.now):
        self.repo = repo
        self.reputation = reputation
        self.clock = clock

    # ---------- 생성 ----------
    async def create(self, user_id, whisper_id, violation_id, reason: str, evidence: Optional[str] = None) -> Appeal:
        if not (reason or "").strip():
            raise ValidationError({"detail": "Reason is required."})

        reputation = await self.reputation.get_user_reputation(user_id)
        if reputation.level == ReputationLevel.BANNED:
            raise PermissionDenied({"detail": "Banned users cannot submit appeals."})

        violation = reputation.find_violation(violation_id)
        if violation is None:
            raise NotFound({"detail": "Violation not found."})
        if violation.resolved:
            raise ValidationError({"detail": "Violation has already been resolved."})

        existing = await self.get_by_violation(violation_id)
        if any(a.status == AppealStatus.PENDING for a in existing):
            raise ValidationError({"detail": "An appeal for this violation is already pending."})

        now = self.clock()
        limit = rules.appeal_time_limit_days(reputation.level)
        elapsed_days = math.ceil((now - violation.timestamp).total_seconds() / 86400)
        if elapsed_days > limit:
            raise ValidationError({"detail": f"Appeal time limit exceeded ({limit} days)."})

        appeal = Appeal(
            id=str(uuid.uuid4()),
            user_id=str(user_id),
            whisper_id=str(whisper_id or violation.whisper_id),
            violation_id=violation.id,
            reason=reason.strip(),
            evidence=evidence or "",
            status=AppealStatus.PENDING,
            submitted_at=now,
            created_at=now,
            updated_at=now,
        )
        auto_approved = qualifies_for_auto_approval(reputation, violation)
        if auto_approved:
            appeal.status = AppealStatus.APPROVED
            appeal.reviewed_at = now
            appeal.reviewed_by = SYSTEM_MODERATOR
            appeal.resolution = AppealResolution(
                action=AppealAction.APPROVE,
                reason="Automatically approved for trusted user",
                moderator_id=SYSTEM_MODERATOR,
                reputation_adjustment=trust_setting("APPEAL_APPROVED_BONUS"),
            )

        try:
            await self.repo.save(appeal)
        except Exception as exc:
            logger.exception("[Appeals] save failed: user=%s violation=%s", user_id, violation_id)
            raise StoreUnavailable(f"Failed to submit appeal: {exc}")

        logger.info("[Appeals] submitted: id=%s user=%s violation=%s auto_approved=%s", appeal.id, appeal.user_id, appeal.violation_id, auto_approved)
        publish_event("AppealSubmitted", {"appeal_id": appeal.id, "user_id": appeal.user_id, "violation_id": appeal.violation_id, "status": appeal.status})
        if auto_approved:
            await self._apply_resolution_effects(appeal)
        return appeal

    # ---------- 검토 ----------
    async def review(self, appeal_id, action, reason: str, moderator_id, reputation_adjustment: Optional[int] = None) -> Appeal:
        if action not in AppealAction.values:
            raise ValidationError({"detail": f"Invalid review action: {action}"})
        action = AppealAction(action)

        if reputation_adjustment is None:
            reputation_adjustment = trust_setting("APPEAL_APPROVED_BONUS" if action == AppealAction.APPROVE else "APPEAL_REJECTED_PENALTY")
        if action == AppealAction.APPROVE and reputation_adjustment < 0:
            raise ValidationError({"detail": "Approval adjustment cannot be negative."})
        if action == AppealAction.REJECT and reputation_adjustment > 0:
            raise ValidationError({"detail": "Rejection adjustment cannot be positive."})

        now = self.clock()

        def apply(appeal: Appeal) -> None:
            if appeal.status != AppealStatus.PENDING:
                raise ValidationError({"detail": "Appeal has already been reviewed."})
            appeal.status = AppealStatus.APPROVED if action == AppealAction.APPROVE else AppealStatus.REJECTED
            appeal.reviewed_at = now
            appeal.reviewed_by = str(moderator_id)
            appeal.resolution = AppealResolution(action=action, reason=reason or "", moderator_id=str(moderator_id), reputation_adjustment=reputation_adjustment)
            appeal.updated_at = now

        try:
            outcome = await self.repo.mutate(str(appeal_id), apply)
        except ValidationError:
            raise
        except Exception as exc:
            logger.exception("[Appeals] review failed: id=%s", appeal_id)
            raise StoreUnavailable(f"Failed to review appeal: {exc}")
        if outcome is None:
            raise NotFound({"detail": "Appeal not found."})

        appeal, _ = outcome
        logger.info("[Appeals] reviewed: id=%s action=%s by=%s adjustment=%s", appeal.id, action, moderator_id, reputation_adjustment)
        publish_event("AppealReviewed", {"appeal_id": appeal.id, "user_id": appeal.user_id, "status": appeal.status, "moderator_id": str(moderator_id)})
        await self._apply_resolution_effects(appeal)
        return appeal

    async def _apply_resolution_effects(self, appeal: Appeal) -> None:
        resolution = appeal.resolution
        if resolution is None:
            return
        try:
            if resolution.reputation_adjustment:
                await self.reputation.adjust_score(appeal.user_id, resolution.reputation_adjustment, f"appeal:{resolution.action}")
            if resolution.action == AppealAction.APPROVE:
                await self.reputation.resolve_violation(appeal.user_id, appeal.violation_id, f"Appeal {appeal.id} approved")
        except Exception:
            logger.exception("[Appeals] resolution side effects failed: appeal=%s", appeal.id)

    # ---------- 만료 스윕 ----------
    async def expiration_sweep(self) -> SweepResult:
        result = SweepResult()
        now = self.clock()
        try:
            candidates = await self.repo.pending()
        except Exception:
            logger.exception("[Appeals] expiration sweep could not list candidates")
            return result

        def expire(appeal: Appeal) -> bool:
            if appeal.status != AppealStatus.PENDING:
                return False
            appeal.status = AppealStatus.EXPIRED
            appeal.updated_at = now
            return True

        for candidate in candidates:
            result.processed += 1
            try:
                reputation = await self.reputation.get_user_reputation(candidate.user_id)
                limit = timedelta(days=rules.appeal_time_limit_days(reputation.level))
                if now - candidate.submitted_at <= limit:
                    continue
                outcome = await self.repo.mutate(candidate.id, expire)
            except Exception:
                result.failed += 1
                logger.exception("[Appeals] expire failed: id=%s", candidate.id)
                continue
            if outcome is not None and outcome[1]:
                result.changed += 1
                publish_event("AppealExpired", {"appeal_id": candidate.id, "user_id": candidate.user_id})

        logger.info("[Appeals] expiration sweep done: %s", result.as_dict())
        return result

    # ---------- 조회 ----------
    async def get_appeal(self, appeal_id) -> Optional[Appeal]:
        try:
            return await self.repo.get(str(appeal_id))
        except Exception:
            logger.exception("[Appeals] get failed: id=%s", appeal_id)
            return None

    async def get_user_appeals(self, user_id) -> List[Appeal]:
        try:
            return await self.repo.for_user(str(user_id))
        except Exception:
            logger.exception("[Appeals] list failed: user=%s", user_id)
            return []

    async def get_pending_appeals(self) -> List[Appeal]:
        try:
            return await self.repo.pending()
        except Exception:
            logger.exception("[Appeals] pending list failed")
            return []

    async def get_by_violation(self, violation_id) -> List[Appeal]:
        try:
            return await self.repo.by_violation(str(violation_id))
        except Exception:
            logger.exception("[Appeals] lookup by violation failed: violation=%s", violation_id)
            return []

    async def get_appeal_stats(self) -> AppealStats:
        try:
            return await self.repo.stats()
        except Exception:
            logger.exception("[Appeals] stats failed")
            return AppealStats()
