import uuid

import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Suspension",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("user_id", models.CharField(db_index=True, max_length=64)),
                ("reason", models.TextField()),
                ("type", models.CharField(choices=[("warning", "Warning"), ("temporary", "Temporary"), ("permanent", "Permanent")], max_length=16)),
                (
                    "ban_type",
                    models.CharField(
                        choices=[("none", "None"), ("content_visible", "Content visible, posting blocked"), ("content_hidden", "Content hidden")],
                        default="none",
                        max_length=16,
                    ),
                ),
                ("moderator_id", models.CharField(max_length=64)),
                ("start_date", models.DateTimeField()),
                ("end_date", models.DateTimeField(db_index=True)),
                ("is_active", models.BooleanField(db_index=True, default=True)),
                ("duration", models.DurationField(blank=True, null=True)),
                ("appealable", models.BooleanField(default=True)),
                ("reviewed_by", models.CharField(blank=True, default="", max_length=64)),
                ("reviewed_at", models.DateTimeField(blank=True, null=True)),
                ("review_reason", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                "db_table": "suspensions",
                "ordering": ["-created_at"],
                "indexes": [models.Index(fields=["user_id", "is_active"], name="suspensions_user_active_idx")],
            },
        ),
    ]
