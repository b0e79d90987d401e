"""
신고 분석 집계.

모두 이미 조회된 신고 목록 위에서 계산하는 순수 함수다.
시간 값은 시간(hour) 단위, 비율은 % 단위이며 소수 둘째 자리로 반올림한다.
"""

from collections import Counter
from typing import Dict, Iterable, List, Optional

from .choices import ReportCategory, ReportStatus, ResolutionAction
from .entities import (
    CategoryShare,
    EscalationStats,
    ModeratorPerformance,
    Report,
    ResolutionStats,
    UserReportStats,
    UserResolutionHistory,
)


def _percent(part: int, whole: int) -> float:
    return round(part / whole * 100, 2) if whole else 0.0


def _mean(values: List[float]) -> float:
    return round(sum(values) / len(values), 2) if values else 0.0


def _count(values: Iterable) -> Dict[str, int]:
    return dict(Counter(str(v) for v in values))


def resolution_hours(report: Report) -> Optional[float]:
    if report.reviewed_at is None or report.created_at is None:
        return None
    return (report.reviewed_at - report.created_at).total_seconds() / 3600


def _resolved(reports: Iterable[Report]) -> List[Report]:
    return [r for r in reports if r.status == ReportStatus.RESOLVED and r.resolution is not None]


def user_report_stats(reports: List[Report]) -> UserReportStats:
    if not reports:
        return UserReportStats()
    by_category = _count(r.category for r in reports)
    actionable = [r for r in _resolved(reports) if r.resolution.action != ResolutionAction.DISMISS]
    return UserReportStats(
        total_reports=len(reports),
        by_category=by_category,
        by_priority=_count(r.priority for r in reports),
        average_reporter_reputation=_mean([r.reporter_reputation for r in reports]),
        most_reported_category=ReportCategory(Counter(by_category).most_common(1)[0][0]),
        report_accuracy=_percent(len(actionable), len(reports)),
    )


def user_resolution_history(reports: List[Report]) -> UserResolutionHistory:
    resolved = _resolved(reports)
    actions = Counter(str(r.resolution.action) for r in resolved)
    return UserResolutionHistory(
        reports_submitted=reports,
        reports_resolved=resolved,
        average_resolution_hours=_mean([h for h in map(resolution_hours, resolved) if h is not None]),
        most_common_action=actions.most_common(1)[0][0] if actions else "none",
    )


def resolution_stats(reports: List[Report]) -> ResolutionStats:
    resolved = _resolved(reports)
    per_moderator: Dict[str, List[float]] = {}
    for r in resolved:
        hours = resolution_hours(r)
        if hours is not None and r.reviewed_by:
            per_moderator.setdefault(r.reviewed_by, []).append(hours)
    return ResolutionStats(
        total_resolutions=len(resolved),
        by_action=_count(r.resolution.action for r in resolved),
        by_category=_count(r.category for r in resolved),
        average_resolution_hours=_mean([h for h in map(resolution_hours, resolved) if h is not None]),
        moderator_performance={
            moderator_id: ModeratorPerformance(total_resolutions=len(times), average_hours=_mean(times)) for moderator_id, times in per_moderator.items()
        },
    )


def escalation_stats(reports: List[Report], violation_counts: Optional[Dict[str, int]] = None) -> EscalationStats:
    escalated = [r for r in reports if r.status == ReportStatus.ESCALATED]
    shares = [
        CategoryShare(category=ReportCategory(category), count=count, percentage=_percent(count, len(escalated)))
        for category, count in Counter(str(r.category) for r in escalated).most_common()
    ]
    return EscalationStats(
        total_escalations=len(escalated),
        escalation_rate=_percent(len(escalated), len(reports)),
        most_escalated_categories=shares,
        by_violation_type=dict(violation_counts or {}),
    )
