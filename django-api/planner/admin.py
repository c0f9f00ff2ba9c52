from django.contrib import admin

from planner.models import AttendeeName, AttendeeSession, DayBlock, Event, Vote


class AttendeeNameInline(admin.TabularInline):
    model = AttendeeName
    extra = 1


class VoteInline(admin.TabularInline):
    model = Vote
    extra = 0
    readonly_fields = ["attendee_session", "is_in", "updated_at"]


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    list_display = ["title", "phase", "quorum", "vote_deadline", "final_date", "created_at"]
    list_filter = ["phase"]
    search_fields = ["title", "host_id"]
    inlines = [AttendeeNameInline, VoteInline]


@admin.register(AttendeeSession)
class AttendeeSessionAdmin(admin.ModelAdmin):
    list_display = ["display_name", "event", "attendee_name", "user_id", "is_active", "created_at"]
    list_filter = ["is_active", "event"]
    readonly_fields = ["session_key"]


@admin.register(DayBlock)
class DayBlockAdmin(admin.ModelAdmin):
    list_display = ["date", "attendee_session", "event"]
    list_filter = ["event"]
