from django.urls import path

from planner.handlers import (
    BlocksView,
    EventDetailView,
    EventListView,
    FinalDateView,
    JoinView,
    LeaveView,
    PhaseView,
    ResultsView,
    ShowResultsView,
    SwitchNameView,
    VoteView,
)

urlpatterns = [
    path("events", EventListView.as_view(), name="event-list"),
    path("events/<str:event_id>", EventDetailView.as_view(), name="event-detail"),
    path("events/<str:event_id>/join", JoinView.as_view(), name="event-join"),
    path("events/<str:event_id>/switch-name", SwitchNameView.as_view(), name="event-switch-name"),
    path("events/<str:event_id>/leave", LeaveView.as_view(), name="event-leave"),
    path("events/<str:event_id>/vote", VoteView.as_view(), name="event-vote"),
    path("events/<str:event_id>/blocks", BlocksView.as_view(), name="event-blocks"),
    path("events/<str:event_id>/results", ResultsView.as_view(), name="event-results"),
    path("events/<str:event_id>/phase", PhaseView.as_view(), name="event-phase"),
    path("events/<str:event_id>/final", FinalDateView.as_view(), name="event-final"),
    path("events/<str:event_id>/show-results", ShowResultsView.as_view(), name="event-show-results"),
]
