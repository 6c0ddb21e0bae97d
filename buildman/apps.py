"""Django app configuration for Buildman."""

from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class BuildmanConfig(AppConfig):
    """Configuration for Buildman app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "buildman"
    verbose_name = _("Material Ledger & Costing")
