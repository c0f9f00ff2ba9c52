"""Django ORM models (persistence layer).

These models handle database concerns. Domain logic lives in domain/.
"""

import uuid

from django.db import models
from django.db.models import F, Q

from planner.domain.value_objects import Phase


class Event(models.Model):
    """Persistence model for scheduling events."""

    class PhaseChoices(models.TextChoices):
        VOTE = Phase.VOTE.value, "Vote"
        PICK_DAYS = Phase.PICK_DAYS.value, "Pick days"
        RESULTS = Phase.RESULTS.value, "Results"
        FINALIZED = Phase.FINALIZED.value, "Finalized"
        FAILED = Phase.FAILED.value, "Failed"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    host_id = models.CharField(max_length=255, db_index=True)
    title = models.CharField(max_length=100)
    description = models.TextField(blank=True, null=True)
    start_date = models.DateField()
    end_date = models.DateField()
    vote_deadline = models.DateTimeField()
    quorum = models.PositiveSmallIntegerField()
    phase = models.CharField(max_length=16, choices=PhaseChoices.choices, default=PhaseChoices.VOTE)
    final_date = models.DateField(blank=True, null=True)
    require_login_to_attend = models.BooleanField(default=False)
    show_results_to_everyone = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["-created_at"], name="event_created_idx"),
            models.Index(fields=["phase", "vote_deadline"], name="event_phase_deadline_idx"),
        ]
        constraints = [
            models.CheckConstraint(condition=Q(start_date__lte=F("end_date")), name="event_window_ordered"),
            models.CheckConstraint(condition=Q(quorum__gte=1), name="event_quorum_positive"),
        ]

    def __str__(self) -> str:
        return self.title


class AttendeeName(models.Model):
    """Persistence model for invited names."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="attendee_names")
    label = models.CharField(max_length=50)
    slug = models.CharField(max_length=50)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "slug"]
        constraints = [
            models.UniqueConstraint(fields=["event", "slug"], name="attendee_name_unique_slug"),
        ]

    def __str__(self) -> str:
        return self.label


class AttendeeSession(models.Model):
    """Persistence model for attendee sessions (never deleted, only deactivated)."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="attendee_sessions")
    attendee_name = models.ForeignKey(AttendeeName, on_delete=models.CASCADE, related_name="sessions")
    user_id = models.CharField(max_length=255, blank=True, null=True)
    session_key = models.CharField(max_length=128)
    display_name = models.CharField(max_length=100)
    time_zone = models.CharField(max_length=50, default="UTC")
    anonymous_blocks = models.BooleanField(default=True)
    is_active = models.BooleanField(default=True)
    has_saved_availability = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["event", "is_active"], name="session_event_active_idx"),
            models.Index(fields=["user_id", "is_active"], name="session_user_active_idx"),
        ]
        constraints = [
            models.UniqueConstraint(fields=["event", "session_key"], name="attendee_session_unique_key"),
            models.UniqueConstraint(
                fields=["event", "user_id"],
                condition=Q(is_active=True, user_id__isnull=False),
                name="attendee_session_one_active_per_user",
            ),
            models.UniqueConstraint(
                fields=["event", "attendee_name"],
                condition=Q(is_active=True),
                name="attendee_session_one_active_per_name",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.display_name} ({'active' if self.is_active else 'inactive'})"


class Vote(models.Model):
    """Persistence model for participation votes."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="votes")
    attendee_session = models.ForeignKey(AttendeeSession, on_delete=models.CASCADE, related_name="votes")
    is_in = models.BooleanField()
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=["event", "is_in"], name="vote_event_in_idx"),
        ]
        constraints = [
            models.UniqueConstraint(fields=["event", "attendee_session"], name="vote_one_per_session"),
        ]

    def __str__(self) -> str:
        return f"{self.attendee_session_id}: {'in' if self.is_in else 'out'}"


class DayBlock(models.Model):
    """Persistence model for vetoed days."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="day_blocks")
    attendee_session = models.ForeignKey(AttendeeSession, on_delete=models.CASCADE, related_name="day_blocks")
    date = models.DateField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["date"]
        indexes = [
            models.Index(fields=["event", "date"], name="day_block_event_date_idx"),
        ]
        constraints = [
            models.UniqueConstraint(fields=["event", "attendee_session", "date"], name="day_block_unique_day"),
        ]

    def __str__(self) -> str:
        return f"{self.attendee_session_id} blocks {self.date}"
