"""MonitoredEndpoint model - URLs being monitored."""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from ..database import Base


class MonitoredEndpoint(Base):
    """A URL owned by a user and polled every monitoring_interval seconds."""

    __tablename__ = "monitored_endpoints"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    url = Column(String, nullable=False)
    created_date = Column(DateTime, nullable=False, default=datetime.utcnow)
    last_checked_date = Column(DateTime, nullable=True)  # NULL until the first check
    monitoring_interval = Column(Integer, nullable=False)  # seconds
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    # Relationships
    owner = relationship("User", back_populates="endpoints")
    results = relationship("MonitoringResult", back_populates="endpoint", passive_deletes=True)

    def __repr__(self) -> str:
        return f"<MonitoredEndpoint #{self.id} {self.name!r} {self.url}>"
