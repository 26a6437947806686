"""Liveness probe: database round-trip plus a cache write/read."""
from django.core.cache import cache
from django.db import DatabaseError, connections
from django.http import JsonResponse

PROBE_KEY = 'healthz:probe'


def healthz(request):
    checks = {}
    try:
        with connections['default'].cursor() as c:
            c.execute('SELECT 1')
            row = c.fetchone()
        checks['db'] = bool(row and row[0] == 1)
    except DatabaseError as e:
        return JsonResponse({'ok': False, 'checks': {'db': False}, 'error': str(e)}, status=503)
    cache.set(PROBE_KEY, 1, 5)
    checks['cache'] = cache.get(PROBE_KEY) == 1
    return JsonResponse({'ok': all(checks.values()), 'checks': checks}, status=200 if all(checks.values()) else 503)
