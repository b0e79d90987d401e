from django.db import models


class ReportCategory(models.TextChoices):
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


class ReportPriority(models.TextChoices):
    LOW = "low", "Low"
    MEDIUM = "medium", "Medium"
    HIGH = "high", "High"
    CRITICAL = "critical", "Critical"


class ReportStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    UNDER_REVIEW = "under_review", "Under review"
    RESOLVED = "resolved", "Resolved"
    ESCALATED = "escalated", "Escalated"


LIVE_STATUSES = (ReportStatus.PENDING, ReportStatus.UNDER_REVIEW, ReportStatus.ESCALATED)


class ResolutionAction(models.TextChoices):
    WARN = "warn", "Warn owner"
    FLAG = "flag", "Flag whisper"
    REJECT = "reject", "Remove whisper"
    BAN = "ban", "Ban owner"
    DISMISS = "dismiss", "Dismiss report"


class CommentResolutionAction(models.TextChoices):
    HIDE = "hide", "Hide comment"
    DELETE = "delete", "Delete comment"
    DISMISS = "dismiss", "Dismiss report"


class EscalationViolationType(models.TextChoices):
    WHISPER_FLAGGED = "whisper_flagged", "Whisper flagged"
    WHISPER_DELETED = "whisper_deleted", "Whisper deleted"
    TEMPORARY_BAN = "temporary_ban", "Temporary ban"
    COMMENT_HIDDEN = "comment_hidden", "Comment hidden"
    COMMENT_DELETED = "comment_deleted", "Comment deleted"


class EscalationAction(models.TextChoices):
    NONE = "none", "No action"
    SKIPPED = "skipped", "Skipped (owner already suspended)"
    FLAG = "flag", "Flag"
    DELETE = "delete", "Delete"
    DELETE_AND_SUSPEND = "delete_and_suspend", "Delete and suspend"
    HIDE = "hide", "Hide"
