import logging
import time

logger = logging.getLogger('clinical.requests')


class RequestLogMiddleware:
    """Log method, path, status and duration of every API request.

    Health checks and metrics scrapes are skipped so that they don't drown
    the log.  The measured time is also exposed as ``X-Process-Time``.
    """
    SKIP_PREFIXES = ('/healthz', '/metrics', '/static/')

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        path = request.path or ''
        if any(path.startswith(p) for p in self.SKIP_PREFIXES):
            return self.get_response(request)

        started = time.monotonic()
        response = self.get_response(request)
        duration_ms = round((time.monotonic() - started) * 1000, 1)

        user = getattr(request, 'user', None)
        user_id = user.id if user is not None and getattr(user, 'is_authenticated', False) else None
        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            '%s %s -> %s (%.1f ms)', request.method, path, response.status_code, duration_ms,
            extra={
                'method': request.method,
                'path': path,
                'status': response.status_code,
                'duration_ms': duration_ms,
                'user_id': user_id,
            },
        )
        response['X-Process-Time'] = f'{duration_ms / 1000:.3f}'
        return response
