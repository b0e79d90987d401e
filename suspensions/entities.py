from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from .choices import BanType, SuspensionType


@dataclass
class SuspensionRequest:
    user_id: str
    reason: str
    type: SuspensionType
    moderator_id: str
    duration: Optional[timedelta] = None


@dataclass
class Suspension:
    id: str
    user_id: str
    reason: str
    type: SuspensionType
    ban_type: BanType
    moderator_id: str
    start_date: datetime
    end_date: datetime
    is_active: bool = True
    duration: Optional[timedelta] = None
    appealable: bool = True
    reviewed_by: str = ""
    reviewed_at: Optional[datetime] = None
    review_reason: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def is_in_effect(self, now: datetime) -> bool:
        return self.is_active and self.end_date > now


@dataclass
class ValidationResult:
    is_valid: bool
    errors: List[str] = field(default_factory=list)


@dataclass
class SuspensionStatus:
    suspended: bool
    suspensions: List[Suspension] = field(default_factory=list)
    can_appeal: bool = False


@dataclass
class SuspensionStats:
    total: int = 0
    active: int = 0
    by_type: Dict[str, int] = field(default_factory=dict)
