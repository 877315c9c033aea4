from django.apps import AppConfig


class SocialblogConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "socialblog"
    verbose_name = "Social blog"
