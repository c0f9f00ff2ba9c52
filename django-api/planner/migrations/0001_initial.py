import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Event",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("host_id", models.CharField(db_index=True, max_length=255)),
                ("title", models.CharField(max_length=100)),
                ("description", models.TextField(blank=True, null=True)),
                ("start_date", models.DateField()),
                ("end_date", models.DateField()),
                ("vote_deadline", models.DateTimeField()),
                ("quorum", models.PositiveSmallIntegerField()),
                (
                    "phase",
                    models.CharField(
                        choices=[
                            ("VOTE", "Vote"),
                            ("PICK_DAYS", "Pick days"),
                            ("RESULTS", "Results"),
                            ("FINALIZED", "Finalized"),
                            ("FAILED", "Failed"),
                        ],
                        default="VOTE",
                        max_length=16,
                    ),
                ),
                ("final_date", models.DateField(blank=True, null=True)),
                ("require_login_to_attend", models.BooleanField(default=False)),
                ("show_results_to_everyone", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["-created_at"], name="event_created_idx"),
                    models.Index(fields=["phase", "vote_deadline"], name="event_phase_deadline_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("start_date__lte", models.F("end_date"))),
                        name="event_window_ordered",
                    ),
                    models.CheckConstraint(condition=models.Q(("quorum__gte", 1)), name="event_quorum_positive"),
                ],
            },
        ),
        migrations.CreateModel(
            name="AttendeeName",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("label", models.CharField(max_length=50)),
                ("slug", models.CharField(max_length=50)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="attendee_names",
                        to="planner.event",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at", "slug"],
                "constraints": [
                    models.UniqueConstraint(fields=("event", "slug"), name="attendee_name_unique_slug"),
                ],
            },
        ),
        migrations.CreateModel(
            name="AttendeeSession",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("user_id", models.CharField(blank=True, max_length=255, null=True)),
                ("session_key", models.CharField(max_length=128)),
                ("display_name", models.CharField(max_length=100)),
                ("time_zone", models.CharField(default="UTC", max_length=50)),
                ("anonymous_blocks", models.BooleanField(default=True)),
                ("is_active", models.BooleanField(default=True)),
                ("has_saved_availability", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "attendee_name",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="sessions",
                        to="planner.attendeename",
                    ),
                ),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="attendee_sessions",
                        to="planner.event",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
                "indexes": [
                    models.Index(fields=["event", "is_active"], name="session_event_active_idx"),
                    models.Index(fields=["user_id", "is_active"], name="session_user_active_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("event", "session_key"), name="attendee_session_unique_key"),
                    models.UniqueConstraint(
                        condition=models.Q(("is_active", True), ("user_id__isnull", False)),
                        fields=("event", "user_id"),
                        name="attendee_session_one_active_per_user",
                    ),
                    models.UniqueConstraint(
                        condition=models.Q(("is_active", True)),
                        fields=("event", "attendee_name"),
                        name="attendee_session_one_active_per_name",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Vote",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("is_in", models.BooleanField()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "attendee_session",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="votes",
                        to="planner.attendeesession",
                    ),
                ),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="votes",
                        to="planner.event",
                    ),
                ),
            ],
            options={
                "indexes": [
                    models.Index(fields=["event", "is_in"], name="vote_event_in_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("event", "attendee_session"), name="vote_one_per_session"),
                ],
            },
        ),
        migrations.CreateModel(
            name="DayBlock",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("date", models.DateField()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "attendee_session",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="day_blocks",
                        to="planner.attendeesession",
                    ),
                ),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="day_blocks",
                        to="planner.event",
                    ),
                ),
            ],
            options={
                "ordering": ["date"],
                "indexes": [
                    models.Index(fields=["event", "date"], name="day_block_event_date_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("event", "attendee_session", "date"), name="day_block_unique_day"),
                ],
            },
        ),
    ]
