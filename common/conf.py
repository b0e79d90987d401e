from django.conf import settings

DEFAULTS = {
    "STORE_BACKEND": "django",
    "INITIAL_SCORE": 50,
    "SUSPENSION_PENALTY": -20,
    "SUSPENSION_RESTORATION_BONUS": 10,
    "REPORT_DISMISSAL_PENALTY": -10,
    "APPEAL_APPROVED_BONUS": 5,
    "APPEAL_REJECTED_PENALTY": -5,
    "ESCALATION_WINDOW_DAYS": 30,
    "WHISPER_FLAG_THRESHOLD": 5,
    "WHISPER_DELETE_THRESHOLD": 15,
    "WHISPER_SUSPEND_THRESHOLD": 25,
    "COMMENT_HIDE_THRESHOLD": 3,
    "COMMENT_DELETE_THRESHOLD": 5,
    "USER_ESCALATION_SCORE": 30,
    "TEMPORARY_SUSPENSION_HOURS": 24,
    "EXTENDED_SUSPENSION_DAYS": 7,
}


def trust_setting(name: str):
    # settings.TRUST_SAFETY 에 없는 키는 기본값으로
    overrides = getattr(settings, "TRUST_SAFETY", {}) or {}
    if name in overrides:
        return overrides[name]
    return DEFAULTS[name]
