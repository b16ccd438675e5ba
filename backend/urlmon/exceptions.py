"""Exception hierarchy for urlmon.

Validation errors reject a save before anything is written. Contract
violations mark programming or usage errors and are never retried.
Transport failures of a probe are not exceptions at all; they are recorded
as MonitoringResult rows.
"""
from typing import Optional


class UrlmonError(Exception):
    """Base class for all urlmon errors."""


class ValidationError(UrlmonError):
    """A field is out of range or a referenced row does not exist."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class ContractViolationError(UrlmonError):
    """The caller broke a precondition of the operation."""


class EntityAlreadySavedError(ContractViolationError):
    """An entity that already has an identity was saved again."""

    def __init__(self, entity_name: str):
        super().__init__(f"cannot save {entity_name} with non-null id")
        self.entity_name = entity_name


class EndpointNotFoundError(ContractViolationError):
    """No persisted endpoint has the requested identity."""

    def __init__(self, endpoint_id):
        super().__init__(f"endpoint {endpoint_id} does not exist")
        self.endpoint_id = endpoint_id


class TaskNotFoundError(ContractViolationError):
    """No monitoring task is registered for the requested identity."""

    def __init__(self, endpoint_id):
        super().__init__(f"cannot remove task - there is no active task with id {endpoint_id}")
        self.endpoint_id = endpoint_id


class InvalidCredentialsError(UrlmonError):
    """The access token is missing or unknown."""
