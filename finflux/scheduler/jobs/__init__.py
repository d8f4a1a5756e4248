"""Jobs de polling del dashboard."""

from finflux.scheduler.jobs.inventory_poll import inventory_poll_job
from finflux.scheduler.jobs.attendance_poll import attendance_poll_job

__all__ = [
    "inventory_poll_job",
    "attendance_poll_job",
]
