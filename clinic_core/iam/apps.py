from django.apps import AppConfig


class IamConfig(AppConfig):
    """Login, JWT cookies and the per-request clinic session."""
    default_auto_field = "django.db.models.BigAutoField"
    name = "clinic_core.iam"
    verbose_name = "Identity and session"

    def ready(self) -> None:
        # registers the OpenAPI auth extension
        from clinic_core.iam import openapi  # noqa: F401
