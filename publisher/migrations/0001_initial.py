import uuid

import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Job",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("stage", models.CharField(choices=[("compose", "Compose"), ("render", "Render"), ("publish", "Publish")], max_length=16)),
                ("payload", models.JSONField(blank=True, default=dict)),
                ("state", models.CharField(choices=[("waiting", "Waiting"), ("delayed", "Delayed"), ("active", "Active"), ("completed", "Completed"), ("failed", "Failed")], default="waiting", max_length=16)),
                ("progress", models.PositiveSmallIntegerField(default=0)),
                ("logs", models.JSONField(blank=True, default=list)),
                ("attempt", models.PositiveIntegerField(default=0)),
                ("visible_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("result", models.JSONField(blank=True, default=dict)),
                ("error", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [models.Index(fields=["stage", "state"], name="job_stage_state_idx")],
            },
        ),
    ]
