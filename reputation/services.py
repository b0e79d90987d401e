import logging
from datetime import timedelta
from typing import List, Optional

from django.utils import timezone
from rest_framework.exceptions import ValidationError

from common.conf import trust_setting
from common.events import publish_event
from common.exceptions import StoreUnavailable
from common.types import Clock, SweepResult

from . import rules
from .choices import ReputationLevel
from .entities import ModerationResult, ReputationStats, UserReputation, ViolationRecord
from .repo import BaseReputationRepo

logger = logging.getLogger(__name__)


class ReputationService:
    """Score, level and recovery bookkeeping for users.

    Reads never raise: a store failure degrades to a freshly initialised
    default reputation. Writes raise ``StoreUnavailable`` so that callers on
    best-effort paths can log and move on while foreground callers surface it.
    """

    def __init__(self, repo: BaseReputationRepo, clock: Clock = timezone.now):
        self.repo = repo
        self.clock = clock

    def _default(self, user_id: str) -> UserReputation:
        return rules.default_reputation(user_id, self.clock(), trust_setting("INITIAL_SCORE"))

    async def _mutate(self, user_id, fn, action: str):
        try:
            return await self.repo.mutate(str(user_id), fn, self._default)
        except Exception as exc:
            logger.exception("[Reputation] %s failed: user=%s", action, user_id)
            raise StoreUnavailable(f"Failed to {action} for user {user_id}: {exc}")

    # ---------- 조회 ----------
    async def get_user_reputation(self, user_id) -> UserReputation:
        try:
            return await self.repo.get_or_create(str(user_id), self._default)
        except Exception:
            logger.exception("[Reputation] lookup failed, using default: user=%s", user_id)
            return self._default(str(user_id))

    async def find_violation(self, user_id, violation_id) -> Optional[ViolationRecord]:
        try:
            reputation = await self.repo.get(str(user_id))
        except Exception:
            logger.exception("[Reputation] violation lookup failed: user=%s violation=%s", user_id, violation_id)
            return None
        return reputation.find_violation(violation_id) if reputation else None

    async def apply_reputation_based_actions(self, moderation_result: ModerationResult, user_id) -> ModerationResult:
        try:
            reputation = await self.get_user_reputation(user_id)
            return rules.enrich_moderation_result(moderation_result, reputation.level)
        except Exception:
            logger.exception("[Reputation] enrichment failed: user=%s", user_id)
            return moderation_result

    async def get_reputation_stats(self) -> ReputationStats:
        try:
            return rules.reputation_stats(await self.repo.all())
        except Exception:
            logger.exception("[Reputation] stats failed")
            return ReputationStats()

    async def get_users_by_level(self, level) -> List[UserReputation]:
        if level not in ReputationLevel.values:
            raise ValidationError({"detail": f"Invalid reputation level: {level}"})
        try:
            rows = await self.repo.by_level(ReputationLevel(level))
        except Exception:
            logger.exception("[Reputation] level listing failed: level=%s", level)
            return []
        return sorted(rows, key=lambda r: (r.score, r.user_id))

    async def get_users_with_recent_violations(self, days_back: int = 7) -> List[UserReputation]:
        if days_back <= 0:
            raise ValidationError({"detail": "days_back must be positive."})
        since = self.clock() - timedelta(days=days_back)
        try:
            rows = await self.repo.with_violations_since(since)
        except Exception:
            logger.exception("[Reputation] recent violation listing failed: days_back=%s", days_back)
            return []
        # 가장 최근 위반 순
        return sorted(rows, key=lambda r: r.last_violation, reverse=True)

    # ---------- 변경 ----------
    async def record_violation(self, user_id, whisper_id, violation_type, severity, notes: str = "") -> UserReputation:
        now = self.clock()
        reputation, record = await self._mutate(
            user_id,
            lambda rep: rules.apply_violation(rep, violation_type, severity, whisper_id=whisper_id, now=now, notes=notes),
            "record violation",
        )
        logger.info("[Reputation] violation recorded: user=%s type=%s severity=%s score=%s", user_id, record.violation_type, record.severity, reputation.score)
        publish_event(
            "ViolationRecorded",
            {"user_id": str(user_id), "violation_id": record.id, "whisper_id": record.whisper_id, "score": reputation.score, "level": reputation.level},
        )
        return reputation

    async def record_successful_whisper(self, user_id) -> UserReputation:
        now = self.clock()
        reputation, _ = await self._mutate(user_id, lambda rep: rules.apply_success(rep, now), "record successful whisper")
        return reputation

    async def record_rejected_whisper(self, user_id) -> UserReputation:
        now = self.clock()
        reputation, _ = await self._mutate(user_id, lambda rep: rules.apply_rejection(rep, now), "record rejected whisper")
        return reputation

    async def adjust_score(self, user_id, delta: int, reason: str = "") -> UserReputation:
        now = self.clock()
        reputation, applied = await self._mutate(user_id, lambda rep: rules.adjust_score(rep, delta, now), "adjust score")
        logger.info("[Reputation] score adjusted: user=%s delta=%s applied=%s reason=%s", user_id, delta, applied, reason)
        return reputation

    async def ban_user(self, user_id, reason: str = "") -> UserReputation:
        now = self.clock()
        reputation, _ = await self._mutate(user_id, lambda rep: rules.apply_ban(rep, now), "ban user")
        logger.info("[Reputation] user banned: user=%s reason=%s", user_id, reason)
        publish_event("UserBanned", {"user_id": str(user_id), "reason": reason})
        return reputation

    async def reset_reputation(self, user_id) -> UserReputation:
        now = self.clock()
        initial = trust_setting("INITIAL_SCORE")
        reputation, _ = await self._mutate(user_id, lambda rep: rules.reset(rep, now, initial), "reset reputation")
        logger.info("[Reputation] reset: user=%s", user_id)
        return reputation

    async def resolve_violation(self, user_id, violation_id, notes: str = "") -> bool:
        now = self.clock()
        _, resolved = await self._mutate(user_id, lambda rep: rules.resolve_violation(rep, violation_id, now, notes), "resolve violation")
        return resolved

    # ---------- 회복 스윕 ----------
    async def process_recovery(self, user_id) -> int:
        now = self.clock()
        _, points = await self._mutate(user_id, lambda rep: rules.apply_recovery_sweep(rep, now), "process recovery")
        return points

    async def recovery_sweep(self) -> SweepResult:
        result = SweepResult()
        try:
            user_ids = await self.repo.pending_recovery()
        except Exception:
            logger.exception("[Reputation] recovery sweep could not list candidates")
            return result

        for user_id in user_ids:
            result.processed += 1
            try:
                if await self.process_recovery(user_id) > 0:
                    result.changed += 1
            except Exception:
                result.failed += 1
                logger.exception("[Reputation] recovery failed: user=%s", user_id)
        logger.info("[Reputation] recovery sweep done: %s", result.as_dict())
        return result
