"""
WSGI config for the carebase project.

Exposes the WSGI callable as ``application`` for plain HTTP deployments
(gunicorn, uWSGI).  WebSocket traffic needs the ASGI entrypoint in
``carebase.asgi`` instead.
"""
import os

from django.core.wsgi import get_wsgi_application  # type: ignore

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'carebase.settings')

application = get_wsgi_application()
