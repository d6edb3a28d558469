from django.apps import AppConfig


class AuthzConfig(AppConfig):
    name = 'apps.authz'
    verbose_name = 'Identity and psychologist directory'
