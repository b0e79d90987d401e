from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from .choices import ReputationLevel, Severity, ViolationType


@dataclass
class ViolationRecord:
    id: str
    whisper_id: str
    violation_type: ViolationType
    severity: Severity
    timestamp: datetime
    resolved: bool = False
    notes: str = ""


@dataclass
class UserReputation:
    user_id: str
    score: int
    level: ReputationLevel
    total_whispers: int = 0
    approved_whispers: int = 0
    flagged_whispers: int = 0
    rejected_whispers: int = 0
    last_violation: Optional[datetime] = None
    violation_history: List[ViolationRecord] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def find_violation(self, violation_id: str) -> Optional[ViolationRecord]:
        for record in self.violation_history:
            if record.id == str(violation_id):
                return record
        return None


@dataclass
class ModerationViolation:
    type: ViolationType
    severity: Severity
    confidence: float = 0.0
    description: str = ""
    suggested_action: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ModerationViolation":
        return cls(
            type=ViolationType.coerce(data.get("type")),
            severity=Severity.coerce(data.get("severity")),
            confidence=float(data.get("confidence") or 0.0),
            description=data.get("description") or "",
            suggested_action=data.get("suggested_action") or data.get("suggestedAction") or "",
        )


@dataclass
class ModerationResult:
    """Classifier verdict for one piece of content.

    The first four fields come from the external classifier; the remaining
    ones are filled in by ``rules.enrich_moderation_result``.
    """

    status: str
    content_rank: str = ""
    violations: List[ModerationViolation] = field(default_factory=list)
    confidence: float = 0.0
    reputation_impact: int = 0
    appealable: bool = True
    appeal_time_limit: int = 0
    penalty_multiplier: float = 1.0
    auto_appeal_threshold: float = 0.7

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ModerationResult":
        return cls(
            status=data.get("status") or "",
            content_rank=data.get("content_rank") or data.get("contentRank") or "",
            violations=[ModerationViolation.from_dict(v) for v in (data.get("violations") or [])],
            confidence=float(data.get("confidence") or 0.0),
        )


@dataclass
class ReputationStats:
    total_users: int = 0
    average_score: float = 0.0
    by_level: Dict[str, int] = field(default_factory=dict)
