"""MonitoringResult model - outcome history for endpoints."""
from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from ..database import Base


class MonitoringResult(Base):
    """Outcome of one probe: either a response or a transport error."""

    __tablename__ = "monitoring_results"

    id = Column(Integer, primary_key=True, autoincrement=True)
    checked_date = Column(DateTime, nullable=False, default=datetime.utcnow)
    http_code = Column(Integer, nullable=True)
    content_type = Column(String(100), nullable=True)
    payload = Column(Text, nullable=True)
    error = Column(String(200), nullable=True)  # Transport failure description
    monitored_endpoint_id = Column(
        Integer, ForeignKey("monitored_endpoints.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # Relationships
    endpoint = relationship("MonitoredEndpoint", back_populates="results")

    def __repr__(self) -> str:
        outcome = self.http_code if self.error is None else self.error
        return f"<MonitoringResult #{self.id} endpoint={self.monitored_endpoint_id} {outcome}>"
