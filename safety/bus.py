import logging
from typing import Dict, Optional

from asgiref.sync import async_to_sync

from reputation.entities import ModerationResult

from .container import TrustServices, build_services

logger = logging.getLogger(__name__)

APPROVED = "approved"
FLAGGED = "flagged"
REJECTED = "rejected"


async def handle_moderation_result(services: TrustServices, whisper_id: str, user_id: str, result: ModerationResult) -> ModerationResult:
    enriched = await services.reputation.apply_reputation_based_actions(result, user_id)
    try:
        if result.status == APPROVED:
            await services.reputation.record_successful_whisper(user_id)
        elif result.status in (FLAGGED, REJECTED):
            for violation in result.violations:
                await services.reputation.record_violation(user_id, whisper_id, violation.type, violation.severity, notes=violation.description)
            if result.status == REJECTED:
                await services.reputation.record_rejected_whisper(user_id)
    except Exception:
        # 분류 결과 반영은 best-effort
        logger.exception("[Safety] moderation result not applied: whisper=%s user=%s", whisper_id, user_id)
    return enriched


class BusConsumer:
    # 실제 환경에선 Kafka/RabbitMQ consumer가 on_* 핸들러를 호출하도록 연결.

    @classmethod
    def on_whisper_moderated(cls, event: Dict, services: Optional[TrustServices] = None) -> Optional[ModerationResult]:
        """
        event 예시:
        {
            "type": "WhisperModerated",
            "payload": {"whisper_id": "...", "user_id": "...", "result": {"status": "flagged", "violations": [...], "confidence": 0.9}}
        }
        """
        payload = event.get("payload", {})
        user_id = payload.get("user_id")
        if not user_id:
            logger.warning("[Safety] WhisperModerated without user_id: %s", payload.get("whisper_id"))
            return None

        result = ModerationResult.from_dict(payload.get("result") or {})
        services = services or build_services()
        enriched = async_to_sync(handle_moderation_result)(services, payload.get("whisper_id") or "", str(user_id), result)
        logger.info(
            "[Safety] WhisperModerated applied: whisper=%s status=%s impact=%s appealable=%s",
            payload.get("whisper_id"),
            result.status,
            enriched.reputation_impact,
            enriched.appealable,
        )
        return enriched
