"""WSGI config for the cabin booking project.

Entry point for gunicorn or any other WSGI server. Defaults to the
development settings; deployments set DJANGO_SETTINGS_MODULE.
"""

import os
from django.core.wsgi import get_wsgi_application  # type: ignore

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.dev')

application = get_wsgi_application()
