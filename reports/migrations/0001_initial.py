import uuid

import django.utils.timezone
from django.db import migrations, models

CATEGORY_CHOICES = [
    ("harassment", "Harassment"),
    ("hate_speech", "Hate speech"),
    ("violence", "Violence"),
    ("sexual_content", "Sexual content"),
    ("drugs", "Drugs"),
    ("spam", "Spam"),
    ("scam", "Scam"),
    ("copyright", "Copyright"),
    ("personal_info", "Personal info"),
    ("minor_safety", "Minor safety"),
    ("other", "Other"),
]
PRIORITY_CHOICES = [("low", "Low"), ("medium", "Medium"), ("high", "High"), ("critical", "Critical")]
STATUS_CHOICES = [("pending", "Pending"), ("under_review", "Under review"), ("resolved", "Resolved"), ("escalated", "Escalated")]


def report_fields():
    return [
        ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
        ("reporter_id", models.CharField(db_index=True, max_length=64)),
        ("reporter_display_name", models.CharField(blank=True, default="", max_length=100)),
        ("reporter_reputation", models.PositiveSmallIntegerField(default=50)),
        ("category", models.CharField(choices=CATEGORY_CHOICES, max_length=32)),
        ("priority", models.CharField(choices=PRIORITY_CHOICES, default="medium", max_length=16)),
        ("status", models.CharField(choices=STATUS_CHOICES, db_index=True, default="pending", max_length=16)),
        ("reason", models.TextField()),
        ("evidence", models.TextField(blank=True, default="")),
        ("reputation_weight", models.FloatField(default=1.0)),
        ("resolution_action", models.CharField(blank=True, default="", max_length=16)),
        ("resolution_reason", models.TextField(blank=True, default="")),
        ("resolution_moderator_id", models.CharField(blank=True, default="", max_length=64)),
        ("resolution_notes", models.TextField(blank=True, default="")),
        ("reviewed_at", models.DateTimeField(blank=True, null=True)),
        ("reviewed_by", models.CharField(blank=True, default="", max_length=64)),
        ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
        ("updated_at", models.DateTimeField(default=django.utils.timezone.now)),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Report",
            fields=report_fields()
            + [
                ("whisper_id", models.CharField(db_index=True, max_length=64)),
                ("whisper_user_id", models.CharField(db_index=True, max_length=64)),
            ],
            options={
                "db_table": "whisper_reports",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["whisper_id", "created_at"], name="reports_whisper_created_idx"),
                    models.Index(fields=["reporter_id", "whisper_id"], name="reports_reporter_whisper_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="CommentReport",
            fields=report_fields()
            + [
                ("comment_id", models.CharField(db_index=True, max_length=64)),
                ("comment_user_id", models.CharField(db_index=True, max_length=64)),
                ("whisper_id", models.CharField(blank=True, default="", max_length=64)),
            ],
            options={
                "db_table": "comment_reports",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["comment_id", "created_at"], name="creports_comment_created_idx"),
                    models.Index(fields=["reporter_id", "comment_id"], name="creports_reporter_comment_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="UserViolation",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("user_id", models.CharField(db_index=True, max_length=64)),
                (
                    "violation_type",
                    models.CharField(
                        choices=[
                            ("whisper_flagged", "Whisper flagged"),
                            ("whisper_deleted", "Whisper deleted"),
                            ("temporary_ban", "Temporary ban"),
                            ("comment_hidden", "Comment hidden"),
                            ("comment_deleted", "Comment deleted"),
                        ],
                        max_length=32,
                    ),
                ),
                ("reason", models.TextField()),
                ("report_count", models.PositiveIntegerField(default=0)),
                ("whisper_id", models.CharField(blank=True, db_index=True, default="", max_length=64)),
                ("comment_id", models.CharField(blank=True, default="", max_length=64)),
                ("moderator_id", models.CharField(default="system", max_length=64)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                "db_table": "user_violations",
                "ordering": ["-created_at"],
            },
        ),
    ]
