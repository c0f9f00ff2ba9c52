"""Builds the planner services for the Django process."""

from functools import lru_cache

from planner import conf
from planner.services import Planner, build_planner
from planner.signals import SignalNotifier
from planner.stores.django_store import DjangoPlannerStore


@lru_cache(maxsize=1)
def get_planner() -> Planner:
    return build_planner(
        DjangoPlannerStore(),
        notifier=SignalNotifier(),
        retries=conf.conflict_retries(),
    )
