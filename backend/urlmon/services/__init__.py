"""Services for checking, persisting and scheduling."""
from .checker import CheckerService
from .monitoring import MonitoringService
from .repository import Repository
from .scheduler import SchedulerService

__all__ = ["CheckerService", "MonitoringService", "Repository", "SchedulerService"]
