"""
신고 우선순위 규칙.

우선순위는 신고 생성 시 한 번 계산된다(카테고리 + 신고자 평판 점수).
같은 신고자의 반복 신고는 기존 신고의 우선순위를 한 단계 올린다.
"""

from reputation.choices import ReputationLevel

from .choices import ReportCategory, ReportPriority

PRIORITY_ORDER = (ReportPriority.LOW, ReportPriority.MEDIUM, ReportPriority.HIGH, ReportPriority.CRITICAL)

# 신고자 점수 구간 (높은 값부터)
SCORE_BANDS = (
    (90, ReportPriority.CRITICAL),
    (75, ReportPriority.HIGH),
    (50, ReportPriority.MEDIUM),
)

SEVERE_CATEGORIES = (ReportCategory.HATE_SPEECH, ReportCategory.VIOLENCE)

HIGH_TRUST_SCORE = 90
LOW_TRUST_SCORE = 20

REPUTATION_WEIGHT = {
    ReputationLevel.TRUSTED: 2.0,
    ReputationLevel.VERIFIED: 1.5,
    ReputationLevel.STANDARD: 1.0,
    ReputationLevel.FLAGGED: 0.5,
    ReputationLevel.BANNED: 0.0,
}

# 같은 대상에 대한 신고 수가 이 값 이상이면 사람 검토 대상
REVIEW_THRESHOLDS = {
    ReportPriority.CRITICAL: 1,
    ReportPriority.HIGH: 3,
    ReportPriority.MEDIUM: 5,
    ReportPriority.LOW: 10,
}


def _rank(priority) -> int:
    return PRIORITY_ORDER.index(ReportPriority(priority))


def escalate_priority(priority) -> ReportPriority:
    return PRIORITY_ORDER[min(_rank(priority) + 1, len(PRIORITY_ORDER) - 1)]


def deescalate_priority(priority) -> ReportPriority:
    return PRIORITY_ORDER[max(_rank(priority) - 1, 0)]


def highest(priorities) -> ReportPriority:
    return max((ReportPriority(p) for p in priorities), key=_rank)


def reputation_weight(level) -> float:
    return REPUTATION_WEIGHT[ReputationLevel(level)]


def calculate_priority(category, reporter_score: int) -> ReportPriority:
    category = ReportCategory(category)
    if category == ReportCategory.MINOR_SAFETY:
        return ReportPriority.CRITICAL

    if category in SEVERE_CATEGORIES:
        priority = ReportPriority.HIGH if reporter_score >= 75 else ReportPriority.MEDIUM
    else:
        priority = ReportPriority.LOW
        for threshold, band in SCORE_BANDS:
            if reporter_score >= threshold:
                priority = band
                break

    if reporter_score >= HIGH_TRUST_SCORE:
        priority = escalate_priority(priority)
    elif reporter_score <= LOW_TRUST_SCORE:
        priority = deescalate_priority(priority)
    return priority


def should_escalate(priority, report_count: int) -> bool:
    return report_count >= REVIEW_THRESHOLDS[ReportPriority(priority)]
