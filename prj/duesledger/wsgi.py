"""
WSGI config for the duesledger project.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'duesledger.settings')

application = get_wsgi_application()
