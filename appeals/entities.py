from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional

from .choices import AppealAction, AppealStatus


@dataclass
class AppealResolution:
    action: AppealAction
    reason: str
    moderator_id: str
    reputation_adjustment: int = 0


@dataclass
class Appeal:
    id: str
    user_id: str
    whisper_id: str
    violation_id: str
    reason: str
    evidence: str = ""
    status: AppealStatus = AppealStatus.PENDING
    submitted_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    reviewed_by: str = ""
    resolution: Optional[AppealResolution] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class AppealStats:
    total: int = 0
    by_status: Dict[str, int] = field(default_factory=dict)
    approval_rate: float = 0.0
