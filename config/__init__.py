"""Top-level package for Django configuration.

Settings modules for each environment and the WSGI and ASGI entry points
of the cabin booking service.
"""

# Import the Celery application as soon as Django starts. Without this
# the shared task registry will not be populated.
from .celery import app as celery_app  # noqa: F401
