"""Database models."""
from .user import User
from .monitored_endpoint import MonitoredEndpoint
from .monitoring_result import MonitoringResult

__all__ = ["User", "MonitoredEndpoint", "MonitoringResult"]
