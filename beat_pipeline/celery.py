import os
from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "beat_pipeline.settings")

celery_app = Celery("beat_pipeline")
celery_app.config_from_object("django.conf:settings", namespace="CELERY")
celery_app.autodiscover_tasks()
