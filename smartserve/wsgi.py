"""
WSGI config for the smartserve project.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'smartserve.settings')

application = get_wsgi_application()
