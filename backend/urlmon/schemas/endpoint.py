"""Endpoint schemas for API."""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel


class EndpointCreate(BaseModel):
    """Schema for creating a new endpoint.

    Field rules (lengths, url scheme, minimum interval) are enforced by the
    entity validator, not here.
    """
    name: str
    url: str
    monitoring_interval: int


class EndpointUpdate(BaseModel):
    """Schema for updating an endpoint. Omitted fields stay unchanged."""
    name: Optional[str] = None
    url: Optional[str] = None
    monitoring_interval: Optional[int] = None


class EndpointResponse(BaseModel):
    """Schema for endpoint in API responses."""
    id: int
    name: str
    url: str
    created_date: datetime
    last_checked_date: Optional[datetime] = None
    monitoring_interval: int
    owner_id: int

    class Config:
        from_attributes = True


class EndpointEnvelope(BaseModel):
    data: EndpointResponse


class EndpointListEnvelope(BaseModel):
    data: List[EndpointResponse]
