"""
엔진 조립.

모듈 전역 싱글턴 없이 호출할 때마다 저장소와 엔진을 새로 구성한다(요청 단위).
- "django": ORM 저장소 (운영/로컬)
- "memory": In-Memory 저장소 (엔진 테스트)
"""

from dataclasses import dataclass

from django.core.exceptions import ImproperlyConfigured
from django.utils import timezone

from appeals.repo import DjangoAppealRepo, InMemoryAppealRepo
from appeals.services import AppealService
from common.conf import trust_setting
from common.types import Clock
from reports.repo import DjangoReportRepo, InMemoryReportRepo
from reports.services import ReportingService
from reputation.repo import DjangoReputationRepo, InMemoryReputationRepo
from reputation.services import ReputationService
from suspensions.repo import DjangoSuspensionRepo, InMemorySuspensionRepo
from suspensions.services import SuspensionService
from whispers.store import BaseContentStore, DjangoContentStore, InMemoryContentStore


@dataclass
class TrustServices:
    content: BaseContentStore
    reputation: ReputationService
    suspensions: SuspensionService
    appeals: AppealService
    reports: ReportingService


def build_services(backend: str = None, *, clock: Clock = timezone.now, content: BaseContentStore = None) -> TrustServices:
    backend = backend or trust_setting("STORE_BACKEND")
    if backend == "django":
        reputation_repo, suspension_repo, appeal_repo, report_repo = DjangoReputationRepo(), DjangoSuspensionRepo(), DjangoAppealRepo(), DjangoReportRepo()
        content = content or DjangoContentStore()
    elif backend == "memory":
        reputation_repo, suspension_repo, appeal_repo, report_repo = InMemoryReputationRepo(), InMemorySuspensionRepo(), InMemoryAppealRepo(), InMemoryReportRepo()
        content = content or InMemoryContentStore()
    else:
        raise ImproperlyConfigured(f"Unknown TRUST_SAFETY STORE_BACKEND: {backend!r}")

    # 의존 방향: reputation <- suspensions <- reports, reputation <- appeals
    reputation = ReputationService(reputation_repo, clock=clock)
    suspensions = SuspensionService(suspension_repo, reputation, clock=clock)
    return TrustServices(
        content=content,
        reputation=reputation,
        suspensions=suspensions,
        appeals=AppealService(appeal_repo, reputation, clock=clock),
        reports=ReportingService(report_repo, content, reputation, suspensions, clock=clock),
    )
