"""
Liveness and readiness probes.

- /healthz: the process answers
- /readyz: the database answers and the clinic services are built
"""
import logging

from django.conf import settings
from django.db import connection
from django.http import JsonResponse
from django.views import View

from apps.core import registry

logger = logging.getLogger(__name__)


def _version_info():
    info = {'version': getattr(settings, 'VERSION', 'unknown')}
    commit_hash = getattr(settings, 'COMMIT_HASH', None)
    if commit_hash:
        info['commit'] = commit_hash
    return info


def database_ready() -> bool:
    try:
        with connection.cursor() as cursor:
            cursor.execute('SELECT 1')
        return True
    except Exception as e:
        logger.error(
            'Database health check failed',
            extra={'event': 'health_check_failed', 'check': 'database', 'error': str(e)}
        )
        return False


class HealthzView(View):
    """Always 200 while the process serves requests; no dependency checks."""

    def get(self, request):
        return JsonResponse({'status': 'ok', **_version_info()})


class ReadyzView(View):
    """200 when every check passes, 503 otherwise."""

    def get(self, request):
        checks = {
            'database': database_ready(),
            'services': registry.is_ready(),
        }
        ready = all(checks.values())
        if not ready:
            logger.warning(
                'Readiness check failed',
                extra={'event': 'readiness_failed', 'checks': checks}
            )

        return JsonResponse(
            {'status': 'ready' if ready else 'not_ready', 'checks': checks},
            status=200 if ready else 503
        )
