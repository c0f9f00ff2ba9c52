from planner.handlers.views import (
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

__all__ = [
    "BlocksView",
    "EventDetailView",
    "EventListView",
    "FinalDateView",
    "JoinView",
    "LeaveView",
    "PhaseView",
    "ResultsView",
    "ShowResultsView",
    "SwitchNameView",
    "VoteView",
]
