from planner.stores.interfaces import AttendeeStore, BallotStore, EventStore, PlannerStore

__all__ = ["PlannerStore", "EventStore", "AttendeeStore", "BallotStore"]
