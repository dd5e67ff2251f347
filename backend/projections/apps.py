from django.apps import AppConfig


class ProjectionsConfig(AppConfig):
    """Read side: cash flow log and financial statements."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "projections"
    verbose_name = "Financial Reports"
