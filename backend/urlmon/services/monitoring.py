"""Monitoring service - one check cycle: probe, persist, stamp."""
import logging

from ..exceptions import ContractViolationError, EndpointNotFoundError
from ..models import MonitoredEndpoint, MonitoringResult
from .checker import CheckerService
from .repository import Repository

logger = logging.getLogger(__name__)


class MonitoringService:
    """Runs a single check of an endpoint and records the outcome."""

    def __init__(self, repository: Repository, checker: CheckerService):
        self.repository = repository
        self.checker = checker

    async def check(self, endpoint: MonitoredEndpoint, log_enabled: bool = True) -> MonitoringResult:
        """Probe the endpoint once, save the result and update last_checked_date.

        Raises ContractViolationError for an unsaved endpoint and
        EndpointNotFoundError when the row is gone; no result is created in
        either case. A validation failure of the produced result propagates
        from the repository.
        """
        if endpoint.id is None:
            raise ContractViolationError("cannot check MonitoredEndpoint with null id")
        if not await self.repository.endpoint_exists(endpoint.id):
            raise EndpointNotFoundError(endpoint.id)

        if log_enabled:
            logger.info(f"Checking #{endpoint.id} | {endpoint.name} | {endpoint.url} ...")

        result = await self.checker.probe(endpoint)
        if result.error is not None and log_enabled:
            logger.info(f"There was an error while checking #{endpoint.id}: {result.error}")

        await self.repository.save_result(result)
        await self.repository.touch_last_checked(endpoint.id, result.checked_date)
        endpoint.last_checked_date = result.checked_date

        logger.debug(f"Endpoint #{endpoint.id}: http_code={result.http_code} error={result.error}")
        return result
