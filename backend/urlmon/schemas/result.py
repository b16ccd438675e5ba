"""Monitoring result schemas for API."""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel


class ResultResponse(BaseModel):
    """Individual check result record."""
    id: int
    checked_date: datetime
    http_code: Optional[int] = None
    content_type: Optional[str] = None
    payload: Optional[str] = None
    error: Optional[str] = None  # Transport failure, if any
    monitored_endpoint_id: int

    class Config:
        from_attributes = True


class ResultEnvelope(BaseModel):
    data: ResultResponse


class ResultListEnvelope(BaseModel):
    """Newest results first; an endpoint never checked has an empty list."""
    data: List[ResultResponse]
