from django.apps import AppConfig


class CoreConfig(AppConfig):
    name = 'apps.core'
    verbose_name = 'Core services and observability'

    def ready(self):
        from apps.core.registry import build_registry, install_registry
        install_registry(build_registry())
