from django.apps import AppConfig


class TransporteConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'transporte'
    verbose_name = 'Transporte Escolar'

    def ready(self):
        from . import models  # noqa: F401  registra os signals
