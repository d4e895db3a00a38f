from django.apps import AppConfig


class AcademicsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "academics"

    def ready(self):
        # Cache invalidation for the active quarter
        from . import signals  # noqa: F401
