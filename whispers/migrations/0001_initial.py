import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Whisper",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("transcription", models.TextField(blank=True, default="")),
                ("is_deleted", models.BooleanField(default=False)),
                ("deleted_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("author", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="whispers", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "db_table": "whispers",
                "indexes": [models.Index(fields=["author", "created_at"], name="whispers_author_created_idx")],
            },
        ),
        migrations.CreateModel(
            name="Comment",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("content", models.TextField()),
                ("is_hidden", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("whisper", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="comments", to="whispers.whisper")),
                ("author", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="whisper_comments", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "db_table": "whisper_comments",
                "indexes": [models.Index(fields=["whisper", "created_at"], name="comments_whisper_created_idx")],
            },
        ),
    ]
