from django.apps import AppConfig


class EsportsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.esports"
