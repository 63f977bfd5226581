"""Celery application factory for lognorm.

Configures Celery with Redis as broker and backend. Each worker process
builds the log type registry once, before it accepts tasks.
"""

import asyncio
import logging

from celery import Celery
from celery.signals import worker_process_init

from lognorm.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

# Create Celery application
celery_app = Celery(
    "lognorm",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["lognorm.tasks.processing"],
)

# Celery configuration
celery_app.conf.update(
    # Task settings
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    # Task execution settings
    task_time_limit=7200,  # 2 hours hard limit
    task_soft_time_limit=7000,  # Soft limit for cleanup
    task_acks_late=True,  # Acknowledge after task completes
    task_reject_on_worker_lost=True,  # Re-queue if worker dies
    # Result settings
    result_expires=86400,  # Results expire after 24 hours
    # Retry settings
    task_default_retry_delay=60,
    task_max_retries=3,
    # Routing
    task_default_queue="default",
    task_routes={
        "lognorm.process_source": {"queue": "default"},
    },
    # Worker settings
    worker_prefetch_multiplier=1,  # Fair task distribution
    worker_concurrency=settings.worker_concurrency,
    # Logging
    worker_hijack_root_logger=False,
    worker_log_format="[%(asctime)s: %(levelname)s/%(processName)s] %(message)s",
    worker_task_log_format="[%(asctime)s: %(levelname)s/%(processName)s][%(task_name)s(%(task_id)s)] %(message)s",
)


@worker_process_init.connect
def init_worker_process(**kwargs):
    """Build the registry before the process accepts tasks."""
    from lognorm.tasks.processing import get_worker_registry

    get_worker_registry()


@celery_app.task(bind=True, name="lognorm.health_check")
def health_check(self):
    """Health check task reporting the registry and the configured sink."""
    from lognorm.tasks.processing import get_worker_registry, sink_health

    loop = asyncio.new_event_loop()
    try:
        sink = loop.run_until_complete(sink_health())
    finally:
        loop.close()

    return {
        "status": "ok" if sink["status"] == "healthy" else "degraded",
        "worker": self.request.hostname,
        "log_types": len(get_worker_registry()),
        "sink": sink,
    }
