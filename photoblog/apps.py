from django.apps.config import AppConfig


class PhotoblogAppConfig(AppConfig):
    name = "photoblog"
    verbose_name = "Photoblog"
    default_auto_field = "django.db.models.AutoField"
