"""Serializers for request bodies and domain model responses."""

from rest_framework import serializers

from planner.domain import AttendeeSession
from planner.domain.availability import AvailabilityDay
from planner.services import EventResults


class EventSerializer(serializers.Serializer):
    """Serializer for the Event domain model."""

    id = serializers.CharField()
    host_id = serializers.CharField()
    title = serializers.CharField()
    description = serializers.CharField(allow_null=True)
    start_date = serializers.DateField(source="window.start")
    end_date = serializers.DateField(source="window.end")
    vote_deadline = serializers.DateTimeField()
    quorum = serializers.IntegerField(source="quorum.value")
    phase = serializers.CharField()
    final_date = serializers.DateField(allow_null=True)
    require_login_to_attend = serializers.BooleanField()
    show_results_to_everyone = serializers.BooleanField()
    created_at = serializers.DateTimeField()


class NameClaimSerializer(serializers.Serializer):
    """Serializer for an invited name and whether it is taken."""

    id = serializers.CharField(source="name.id")
    label = serializers.CharField(source="name.label")
    slug = serializers.CharField(source="name.slug")
    claimed = serializers.BooleanField()
    claimed_by_user = serializers.BooleanField()


class AttendeeSessionSerializer(serializers.Serializer):
    """Serializer for the caller's own attendee session."""

    id = serializers.CharField()
    attendee_name_id = serializers.CharField()
    display_name = serializers.CharField()
    time_zone = serializers.CharField()
    anonymous_blocks = serializers.BooleanField()
    has_saved_availability = serializers.BooleanField()
    is_logged_in = serializers.BooleanField()


class AttendeeNameInputSerializer(serializers.Serializer):
    label = serializers.CharField(max_length=50, trim_whitespace=True)
    slug = serializers.CharField(max_length=50)


class EventCreateSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=100)
    description = serializers.CharField(max_length=500, required=False, allow_blank=True, allow_null=True)
    start_date = serializers.CharField()
    end_date = serializers.CharField()
    vote_deadline = serializers.CharField()
    quorum = serializers.IntegerField()
    attendee_names = AttendeeNameInputSerializer(many=True)
    require_login_to_attend = serializers.BooleanField(default=False)
    show_results_to_everyone = serializers.BooleanField(default=False)


class JoinSerializer(serializers.Serializer):
    name_id = serializers.CharField(required=False)
    slug = serializers.CharField(required=False)
    display_name = serializers.CharField(max_length=100, required=False)
    time_zone = serializers.CharField(max_length=50, required=False)


class VoteSerializer(serializers.Serializer):
    is_in = serializers.BooleanField()


class BlocksSerializer(serializers.Serializer):
    dates = serializers.ListField(child=serializers.CharField(), allow_empty=True)
    anonymous = serializers.BooleanField(required=False, allow_null=True, default=None)


class PhaseSerializer(serializers.Serializer):
    phase = serializers.CharField()
    final_date = serializers.CharField(required=False, allow_null=True)


class FinalDateSerializer(serializers.Serializer):
    date = serializers.CharField()


class ShowResultsSerializer(serializers.Serializer):
    show = serializers.BooleanField()


def _day(day: AvailabilityDay | None, results: EventResults) -> dict | None:
    if day is None:
        return None
    return {
        "date": day.date.isoformat(),
        "available": day.available,
        "blocked_count": day.blocked_count,
        "blocked_by": results.blocked_names(day),
    }


def results_payload(results: EventResults) -> dict:
    """Viewer-independent part of the results response."""
    summary = results.summary
    return {
        "event_id": str(results.event.id),
        "phase": results.event.phase.value,
        "final_date": results.event.final_date.isoformat() if results.event.final_date else None,
        "total_eligible": summary.total_eligible,
        "completed_availability": summary.completed_availability,
        "not_set_yet": summary.not_set_yet,
        "earliest_all": _day(summary.earliest_all, results),
        "earliest_most": _day(summary.earliest_most, results),
        "top_dates": [_day(day, results) for day in summary.top_dates],
        "days": [_day(day, results) for day in summary.days],
    }


def session_payload(session: AttendeeSession | None) -> dict | None:
    return AttendeeSessionSerializer(session).data if session is not None else None
