"""
WSGI config for the WriteDesk project.

Serves the HTTP API only; the WebSocket relay needs the ASGI entry point.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

application = get_wsgi_application()
