from django.apps import AppConfig


class CoreConfig(AppConfig):
    name = "core"
    verbose_name = "LearnWealthX"
    default_auto_field = "django.db.models.BigAutoField"

    def ready(self):
        """Connect the notification signal handlers."""
        import core.signals  # noqa: F401
