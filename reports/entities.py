from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Union

from .choices import EscalationViolationType, ReportCategory, ReportPriority, ReportStatus


@dataclass
class ReportResolution:
    action: str
    reason: str
    moderator_id: str
    notes: str = ""


@dataclass
class Report:
    id: str
    whisper_id: str
    whisper_user_id: str
    reporter_id: str
    reporter_display_name: str
    reporter_reputation: int
    category: ReportCategory
    priority: ReportPriority
    status: ReportStatus
    reason: str
    evidence: str = ""
    reputation_weight: float = 1.0
    resolution: Optional[ReportResolution] = None
    reviewed_at: Optional[datetime] = None
    reviewed_by: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class CommentReport:
    id: str
    comment_id: str
    comment_user_id: str
    whisper_id: str
    reporter_id: str
    reporter_display_name: str
    reporter_reputation: int
    category: ReportCategory
    priority: ReportPriority
    status: ReportStatus
    reason: str
    evidence: str = ""
    reputation_weight: float = 1.0
    resolution: Optional[ReportResolution] = None
    reviewed_at: Optional[datetime] = None
    reviewed_by: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


AnyReport = Union[Report, CommentReport]


@dataclass
class ReportRequest:
    whisper_id: str
    reporter_id: str
    category: ReportCategory
    reason: str
    reporter_display_name: str = ""
    evidence: str = ""


@dataclass
class CommentReportRequest:
    comment_id: str
    reporter_id: str
    category: ReportCategory
    reason: str
    reporter_display_name: str = ""
    evidence: str = ""


@dataclass
class ReportFilters:
    whisper_id: Optional[str] = None
    comment_id: Optional[str] = None
    reporter_id: Optional[str] = None
    status: Optional[ReportStatus] = None
    category: Optional[ReportCategory] = None
    priority: Optional[ReportPriority] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    limit: Optional[int] = None


@dataclass
class UserViolation:
    id: str
    user_id: str
    violation_type: EscalationViolationType
    reason: str
    report_count: int = 0
    whisper_id: str = ""
    comment_id: str = ""
    moderator_id: str = "system"
    created_at: Optional[datetime] = None


@dataclass
class ReportLookup:
    has_reported: bool
    existing_report: Optional[AnyReport] = None


@dataclass
class ReportStats:
    total: int = 0
    by_status: Dict[str, int] = field(default_factory=dict)
    by_priority: Dict[str, int] = field(default_factory=dict)
    by_category: Dict[str, int] = field(default_factory=dict)


@dataclass
class TargetReportStats:
    total_reports: int = 0
    unique_reporters: int = 0
    by_category: Dict[str, int] = field(default_factory=dict)
    highest_priority: Optional[ReportPriority] = None
    needs_review: bool = False


@dataclass
class UserReportStats:
    total_reports: int = 0
    by_category: Dict[str, int] = field(default_factory=dict)
    by_priority: Dict[str, int] = field(default_factory=dict)
    average_reporter_reputation: float = 0.0
    most_reported_category: ReportCategory = ReportCategory.OTHER
    # 조치로 이어진(기각 외 처리) 신고 비율, %
    report_accuracy: float = 0.0


@dataclass
class UserResolutionHistory:
    reports_submitted: List[Report] = field(default_factory=list)
    reports_resolved: List[Report] = field(default_factory=list)
    average_resolution_hours: float = 0.0
    most_common_action: str = "none"


@dataclass
class ModeratorPerformance:
    total_resolutions: int = 0
    average_hours: float = 0.0


@dataclass
class ResolutionStats:
    total_resolutions: int = 0
    by_action: Dict[str, int] = field(default_factory=dict)
    by_category: Dict[str, int] = field(default_factory=dict)
    average_resolution_hours: float = 0.0
    moderator_performance: Dict[str, ModeratorPerformance] = field(default_factory=dict)


@dataclass
class CategoryShare:
    category: ReportCategory
    count: int
    percentage: float


@dataclass
class EscalationStats:
    total_escalations: int = 0
    escalation_rate: float = 0.0
    most_escalated_categories: List[CategoryShare] = field(default_factory=list)
    # 자동 에스컬레이션 기록(UserViolation) 유형별 건수
    by_violation_type: Dict[str, int] = field(default_factory=dict)
