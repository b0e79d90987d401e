from django.db import models


class ReputationLevel(models.TextChoices):
    BANNED = "banned", "Banned"
    FLAGGED = "flagged", "Flagged"
    STANDARD = "standard", "Standard"
    VERIFIED = "verified", "Verified"
    TRUSTED = "trusted", "Trusted"


class ViolationType(models.TextChoices):
    HARASSMENT = "harassment", "Harassment"
    HATE_SPEECH = "hate_speech", "Hate speech"
    VIOLENCE = "violence", "Violence"
    SEXUAL_CONTENT = "sexual_content", "Sexual content"
    DRUGS = "drugs", "Drugs"
    SPAM = "spam", "Spam"
    SCAM = "scam", "Scam"
    COPYRIGHT = "copyright", "Copyright"
    PERSONAL_INFO = "personal_info", "Personal info"
    MINOR_SAFETY = "minor_safety", "Minor safety"
    OTHER = "other", "Other"

    @classmethod
    def coerce(cls, value) -> "ViolationType":
        # 분류기가 모르는 유형을 보내면 OTHER(기본 영향도 10)로 처리
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER


class Severity(models.TextChoices):
    LOW = "low", "Low"
    MEDIUM = "medium", "Medium"
    HIGH = "high", "High"
    CRITICAL = "critical", "Critical"
    UNKNOWN = "unknown", "Unknown"

    @classmethod
    def coerce(cls, value) -> "Severity":
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN
