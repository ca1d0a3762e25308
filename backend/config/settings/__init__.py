"""
Settings module initialization.
Selects settings from the DJANGO_ENV environment variable (dev by default).
"""

import os

from django.core.exceptions import ImproperlyConfigured

ENVIRONMENTS = ('dev', 'prod')

env = os.environ.get('DJANGO_ENV', 'dev')

if env not in ENVIRONMENTS:
    raise ImproperlyConfigured(
        f"DJANGO_ENV must be one of {', '.join(ENVIRONMENTS)}, got '{env}'"
    )

if env == 'prod':
    from .prod import *
else:
    from .dev import *
