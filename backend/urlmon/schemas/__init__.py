"""Pydantic schemas for API request/response models."""
from .endpoint import (
    EndpointCreate,
    EndpointUpdate,
    EndpointResponse,
    EndpointEnvelope,
    EndpointListEnvelope,
)
from .result import (
    ResultResponse,
    ResultEnvelope,
    ResultListEnvelope,
)

__all__ = [
    "EndpointCreate",
    "EndpointUpdate",
    "EndpointResponse",
    "EndpointEnvelope",
    "EndpointListEnvelope",
    "ResultResponse",
    "ResultEnvelope",
    "ResultListEnvelope",
]
