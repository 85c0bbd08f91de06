"""
WSGI config for the messaging service.

The REST API can be served over WSGI; real-time socket delivery requires the
ASGI application in config.asgi.

For more information on this file, see:
https://docs.djangoproject.com/en/5.2/howto/deployment/wsgi/
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

application = get_wsgi_application()
