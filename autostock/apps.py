"""Django app configuration for Autostock."""

from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class AutostockConfig(AppConfig):
    """Configuration for Autostock app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "autostock"
    verbose_name = _("Vehicle Inventory")
