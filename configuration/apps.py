from django.apps import AppConfig


class ConfigurationConfig(AppConfig):
    name = "configuration"
    default_auto_field = "django.db.models.AutoField"

    def ready(self):
        from . import signals  # NOQA
