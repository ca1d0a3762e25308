"""
Development settings for the manufacturing planning service.
"""

from .base import *

# =============================================================================
# DEBUG
# =============================================================================
DEBUG = True

# =============================================================================
# ALLOWED HOSTS
# =============================================================================
ALLOWED_HOSTS = ['*']

# =============================================================================
# LOGGING - Development
# =============================================================================
LOGGING['root']['level'] = 'DEBUG'
for name in ('application', 'infrastructure', 'presentation'):
    LOGGING['loggers'][name]['level'] = 'DEBUG'
