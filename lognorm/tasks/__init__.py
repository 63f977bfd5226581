"""Celery task definitions for lognorm.

One task processes one source; a deployment scales out by running more
Celery workers.
"""

from lognorm.tasks.celery_app import celery_app

__all__ = ["celery_app"]
