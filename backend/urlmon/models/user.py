"""User model - owners of monitored endpoints."""
from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship

from ..database import Base


class User(Base):
    """An API caller, identified by its access token."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False, unique=True)
    access_token = Column(String, nullable=False, unique=True, index=True)

    endpoints = relationship("MonitoredEndpoint", back_populates="owner")
