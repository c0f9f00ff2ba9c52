"""Planner settings with their defaults."""

from django.conf import settings


def conflict_retries() -> int:
    return int(getattr(settings, "PLANNER_CONFLICT_RETRIES", 3))


def results_cache_timeout() -> int:
    return int(getattr(settings, "PLANNER_RESULTS_CACHE_TIMEOUT", 60))


def session_cookie_prefix() -> str:
    return getattr(settings, "PLANNER_SESSION_COOKIE_PREFIX", "planner_session_")
