"""Development settings for the cabin booking project.

Debug on, all hosts allowed, Celery tasks run inline so no broker is
needed. Do not use these settings in production!
"""

from .base import *  # noqa: F401,F403

# Enable debug mode for development
DEBUG = True

# Allow all hosts in development
ALLOWED_HOSTS = ['*']

# Run the confirmation email task in-process
CELERY_TASK_ALWAYS_EAGER = True

LOGGING['loggers']['apps']['level'] = 'DEBUG'  # noqa: F405
