import uuid

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="UserReputation",
            fields=[
                ("user_id", models.CharField(max_length=64, primary_key=True, serialize=False)),
                ("score", models.PositiveSmallIntegerField(default=50)),
                (
                    "level",
                    models.CharField(
                        choices=[("banned", "Banned"), ("flagged", "Flagged"), ("standard", "Standard"), ("verified", "Verified"), ("trusted", "Trusted")],
                        db_index=True,
                        default="standard",
                        max_length=16,
                    ),
                ),
                ("total_whispers", models.PositiveIntegerField(default=0)),
                ("approved_whispers", models.PositiveIntegerField(default=0)),
                ("flagged_whispers", models.PositiveIntegerField(default=0)),
                ("rejected_whispers", models.PositiveIntegerField(default=0)),
                ("last_violation", models.DateTimeField(blank=True, db_index=True, null=True)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                "db_table": "user_reputations",
            },
        ),
        migrations.CreateModel(
            name="ViolationRecord",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("whisper_id", models.CharField(blank=True, default="", max_length=64)),
                (
                    "violation_type",
                    models.CharField(
                        choices=[
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
                        ],
                        max_length=32,
                    ),
                ),
                (
                    "severity",
                    models.CharField(
                        choices=[("low", "Low"), ("medium", "Medium"), ("high", "High"), ("critical", "Critical"), ("unknown", "Unknown")],
                        max_length=16,
                    ),
                ),
                ("timestamp", models.DateTimeField()),
                ("resolved", models.BooleanField(default=False)),
                ("notes", models.TextField(blank=True, default="")),
                ("reputation", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="violations", to="reputation.userreputation")),
            ],
            options={
                "db_table": "violation_records",
                "ordering": ["timestamp"],
                "indexes": [models.Index(fields=["reputation", "timestamp"], name="violations_rep_ts_idx")],
            },
        ),
    ]
