"""
Celery application for background notifications and periodic checks.
"""
import os

from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'smartserve.settings')

app = Celery('smartserve')
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks()
