from django.apps import AppConfig


class ImporterConfig(AppConfig):
    name = "importer"
    verbose_name = "Media archive importer"
    default_auto_field = "django.db.models.AutoField"
