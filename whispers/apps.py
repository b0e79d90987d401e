from django.apps import AppConfig


class WhispersConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "whispers"
