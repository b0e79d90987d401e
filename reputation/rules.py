"""
평판 규칙 (순수 함수).

저장소/시계에 의존하지 않으므로 서비스, 신고 우선순위 계산, 이의제기 자격 판정에서 공통으로 사용한다.
시간이 필요한 함수는 ``now`` 를 인자로 받는다.
"""

from __future__ import annotations

import math
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Iterable, Optional

from common.exceptions import InvalidScore

from .choices import ReputationLevel, Severity, ViolationType
from .entities import ModerationResult, ReputationStats, UserReputation, ViolationRecord

MIN_SCORE = 0
MAX_SCORE = 100
DEFAULT_SCORE = 50
MAX_RECOVERY_DAYS = 365

# 높은 임계값부터 검사
LEVEL_THRESHOLDS = (
    (90, ReputationLevel.TRUSTED),
    (75, ReputationLevel.VERIFIED),
    (50, ReputationLevel.STANDARD),
    (25, ReputationLevel.FLAGGED),
)

BASE_IMPACT = {
    ViolationType.HARASSMENT: 15,
    ViolationType.HATE_SPEECH: 25,
    ViolationType.VIOLENCE: 30,
    ViolationType.SEXUAL_CONTENT: 20,
    ViolationType.DRUGS: 15,
    ViolationType.SPAM: 5,
    ViolationType.SCAM: 20,
    ViolationType.COPYRIGHT: 10,
    ViolationType.PERSONAL_INFO: 15,
    ViolationType.MINOR_SAFETY: 35,
    ViolationType.OTHER: 10,
}

SEVERITY_MULTIPLIER = {
    Severity.LOW: 0.5,
    Severity.MEDIUM: 1.0,
    Severity.HIGH: 1.5,
    Severity.CRITICAL: 2.0,
    Severity.UNKNOWN: 1.0,
}

RECOVERY_RATE = {
    ReputationLevel.TRUSTED: 2.0,
    ReputationLevel.VERIFIED: 1.5,
    ReputationLevel.STANDARD: 1.0,
    ReputationLevel.FLAGGED: 0.5,
    ReputationLevel.BANNED: 0.0,
}

APPEAL_TIME_LIMIT_DAYS = {
    ReputationLevel.TRUSTED: 30,
    ReputationLevel.VERIFIED: 14,
    ReputationLevel.STANDARD: 7,
    ReputationLevel.FLAGGED: 3,
    ReputationLevel.BANNED: 0,
}

PENALTY_MULTIPLIER = {
    ReputationLevel.TRUSTED: 0.5,
    ReputationLevel.VERIFIED: 0.75,
    ReputationLevel.STANDARD: 1.0,
    ReputationLevel.FLAGGED: 1.5,
    ReputationLevel.BANNED: 2.0,
}

AUTO_APPEAL_THRESHOLD = {
    ReputationLevel.TRUSTED: 0.3,
    ReputationLevel.VERIFIED: 0.5,
    ReputationLevel.STANDARD: 0.7,
    ReputationLevel.FLAGGED: 0.9,
    ReputationLevel.BANNED: 1.0,
}

LEVEL_DESCRIPTIONS = {
    ReputationLevel.TRUSTED: "Trusted user with excellent content history",
    ReputationLevel.VERIFIED: "Verified user with good content history",
    ReputationLevel.STANDARD: "Standard user",
    ReputationLevel.FLAGGED: "User with recent violations",
    ReputationLevel.BANNED: "User banned from posting",
}


def round_half_up(value: float) -> int:
    # 파이썬 round()는 banker's rounding이라 2.5 -> 2가 된다. 점수 계산은 0.5를 올림.
    return int(math.floor(value + 0.5))


def clamp_score(value: float) -> int:
    return max(MIN_SCORE, min(MAX_SCORE, round_half_up(value)))


def level_of(score) -> ReputationLevel:
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        raise InvalidScore(f"Score must be a number, got {score!r}")
    if math.isnan(score) or math.isinf(score) or score < 0:
        raise InvalidScore(f"Invalid reputation score: {score!r}")
    for threshold, level in LEVEL_THRESHOLDS:
        if score >= threshold:
            return level
    return ReputationLevel.BANNED


def level_description(level) -> str:
    return LEVEL_DESCRIPTIONS.get(level, "Unknown level")


def violation_impact(violation_type, severity) -> int:
    base = BASE_IMPACT[ViolationType.coerce(violation_type)]
    return round_half_up(base * SEVERITY_MULTIPLIER[Severity.coerce(severity)])


def penalty_multiplier(level) -> float:
    return PENALTY_MULTIPLIER[ReputationLevel(level)]


def aggregate_impact(result: Optional[ModerationResult], level) -> int:
    violations = (result.violations if result else None) or []
    total = sum(violation_impact(v.type, v.severity) for v in violations)
    return round_half_up(total * penalty_multiplier(level))


def recovery_rate(score) -> float:
    return RECOVERY_RATE[level_of(score)]


def days_since_last_violation(reputation: UserReputation, now: datetime) -> int:
    if reputation.last_violation is None:
        return MAX_RECOVERY_DAYS
    elapsed = (now - reputation.last_violation).total_seconds() / 86400
    return max(0, min(MAX_RECOVERY_DAYS, math.ceil(elapsed)))


def recovery_points(reputation: UserReputation, days: int) -> float:
    return min(days * recovery_rate(reputation.score), MAX_SCORE - reputation.score)


def appeal_time_limit_days(level) -> int:
    return APPEAL_TIME_LIMIT_DAYS[ReputationLevel(level)]


def auto_appeal_threshold(level) -> float:
    return AUTO_APPEAL_THRESHOLD[ReputationLevel(level)]


def is_appealable(result: Optional[ModerationResult], level) -> bool:
    level = ReputationLevel(level)
    if level == ReputationLevel.BANNED:
        return False
    violations = (result.violations if result else None) or []
    if level == ReputationLevel.FLAGGED and any(Severity.coerce(v.severity) == Severity.CRITICAL for v in violations):
        return False
    return True


def enrich_moderation_result(result: ModerationResult, level) -> ModerationResult:
    return replace(
        result,
        reputation_impact=aggregate_impact(result, level),
        appealable=is_appealable(result, level),
        appeal_time_limit=appeal_time_limit_days(level),
        penalty_multiplier=penalty_multiplier(level),
        auto_appeal_threshold=auto_appeal_threshold(level),
    )


# ---------- 상태 변경 (UserReputation 을 제자리에서 수정) ----------
def default_reputation(user_id: str, now: datetime, initial_score: int = DEFAULT_SCORE) -> UserReputation:
    score = clamp_score(initial_score)
    return UserReputation(user_id=str(user_id), score=score, level=level_of(score), created_at=now, updated_at=now)


def _set_score(reputation: UserReputation, value: float, now: datetime) -> None:
    reputation.score = clamp_score(value)
    reputation.level = level_of(reputation.score)
    reputation.updated_at = now


def apply_violation(reputation: UserReputation, violation_type, severity, *, whisper_id: str, now: datetime, notes: str = "") -> ViolationRecord:
    violation_type = ViolationType.coerce(violation_type)
    severity = Severity.coerce(severity)
    record = ViolationRecord(
        id=str(uuid.uuid4()),
        whisper_id=str(whisper_id or ""),
        violation_type=violation_type,
        severity=severity,
        timestamp=now,
        notes=notes,
    )
    reputation.violation_history.append(record)
    reputation.flagged_whispers += 1
    reputation.last_violation = now
    _set_score(reputation, reputation.score - violation_impact(violation_type, severity), now)
    return record


def apply_success(reputation: UserReputation, now: datetime) -> None:
    reputation.approved_whispers += 1
    reputation.total_whispers += 1
    _set_score(reputation, reputation.score + recovery_rate(reputation.score), now)


def apply_rejection(reputation: UserReputation, now: datetime) -> None:
    reputation.rejected_whispers += 1
    reputation.total_whispers += 1
    reputation.updated_at = now


def needs_recovery(reputation: UserReputation) -> bool:
    if reputation.last_violation is None:
        return False
    return recovery_rate(reputation.score) > 0 and reputation.score < MAX_SCORE


def apply_recovery_sweep(reputation: UserReputation, now: datetime) -> int:
    """Return the number of points granted (0 when nothing changed)."""
    if not needs_recovery(reputation):
        return 0
    before = reputation.score
    points = recovery_points(reputation, days_since_last_violation(reputation, now))
    _set_score(reputation, reputation.score + points, now)
    return reputation.score - before


def adjust_score(reputation: UserReputation, delta: float, now: datetime) -> int:
    before = reputation.score
    _set_score(reputation, reputation.score + delta, now)
    return reputation.score - before


def apply_ban(reputation: UserReputation, now: datetime) -> None:
    _set_score(reputation, MIN_SCORE, now)


def reset(reputation: UserReputation, now: datetime, initial_score: int = DEFAULT_SCORE) -> None:
    # 위반 이력은 append-only 이므로 유지
    reputation.total_whispers = 0
    reputation.approved_whispers = 0
    reputation.flagged_whispers = 0
    reputation.rejected_whispers = 0
    reputation.last_violation = None
    _set_score(reputation, initial_score, now)


def resolve_violation(reputation: UserReputation, violation_id: str, now: datetime, notes: str = "") -> bool:
    record = reputation.find_violation(violation_id)
    if record is None:
        return False
    record.resolved = True
    if notes:
        record.notes = f"{record.notes}\n{notes}".strip()
    reputation.updated_at = now
    return True


def reputation_stats(reputations: Iterable[UserReputation]) -> ReputationStats:
    by_level = {level.value: 0 for level in ReputationLevel}
    total = 0
    score_sum = 0
    for rep in reputations:
        total += 1
        score_sum += rep.score
        by_level[ReputationLevel(rep.level).value] += 1
    average = round(score_sum / total, 2) if total else 0.0
    return ReputationStats(total_users=total, average_score=average, by_level=by_level)
