"""Celery application for the storefront.

``DJANGO_SETTINGS_MODULE`` is set before the app is built so Celery reads
its configuration from Django settings (``CELERY_`` prefix). Receipt
delivery and the pending-receipt sweep live in ``modules.notifications``.
"""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("storefront")

app.config_from_object("django.conf:settings", namespace="CELERY")

# Finds tasks.py in every installed app
app.autodiscover_tasks()
