import uuid

import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Appeal",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("user_id", models.CharField(db_index=True, max_length=64)),
                ("whisper_id", models.CharField(blank=True, default="", max_length=64)),
                ("violation_id", models.CharField(db_index=True, max_length=64)),
                ("reason", models.TextField()),
                ("evidence", models.TextField(blank=True, default="")),
                (
                    "status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("approved", "Approved"), ("rejected", "Rejected"), ("expired", "Expired")],
                        db_index=True,
                        default="pending",
                        max_length=16,
                    ),
                ),
                ("submitted_at", models.DateTimeField()),
                ("reviewed_at", models.DateTimeField(blank=True, null=True)),
                ("reviewed_by", models.CharField(blank=True, default="", max_length=64)),
                ("resolution_action", models.CharField(blank=True, choices=[("approve", "Approve"), ("reject", "Reject")], default="", max_length=16)),
                ("resolution_reason", models.TextField(blank=True, default="")),
                ("resolution_moderator_id", models.CharField(blank=True, default="", max_length=64)),
                ("reputation_adjustment", models.SmallIntegerField(default=0)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                "db_table": "appeals",
                "ordering": ["-submitted_at"],
                "indexes": [
                    models.Index(fields=["violation_id", "status"], name="appeals_violation_status_idx"),
                    models.Index(fields=["status", "submitted_at"], name="appeals_status_submitted_idx"),
                ],
            },
        ),
    ]
