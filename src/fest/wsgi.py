"""WSGI config for the fest project."""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "fest.settings")

application = get_wsgi_application()
