"""
WMS Inventory Core — Celery Application

Workers and beat pick up task modules from every installed app; the
periodic schedule lives in settings (CELERY_BEAT_SCHEDULE) and is
synced into django-celery-beat's database scheduler.

@file config/celery.py
"""

import os

from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.development')

app = Celery('wms_inventory')

app.config_from_object('django.conf:settings', namespace='CELERY')

app.autodiscover_tasks()
