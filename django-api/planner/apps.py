from django.apps import AppConfig


class PlannerConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "planner"
    verbose_name = "Quorum planner"

    def ready(self):
        from planner import signals  # noqa: F401
