"""Endpoint CRUD and result API.

Every route is scoped to the caller identified by the access-token header.
An endpoint or result owned by someone else is reported exactly like one
that does not exist (404).
"""
import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException

from ..config import settings
from ..dependencies import get_current_user_id, get_repository, get_scheduler
from ..exceptions import EndpointNotFoundError, TaskNotFoundError, ValidationError
from ..models import MonitoredEndpoint
from ..schemas import (
    EndpointCreate,
    EndpointUpdate,
    EndpointResponse,
    EndpointEnvelope,
    EndpointListEnvelope,
    ResultResponse,
    ResultEnvelope,
    ResultListEnvelope,
)
from ..services.repository import Repository
from ..services.scheduler import SchedulerService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["endpoints"])


def endpoint_not_found(endpoint_id: int) -> HTTPException:
    return HTTPException(
        status_code=404, detail=f"id {endpoint_id} doesn't correspond to any of your endpoints"
    )


@router.get("/endpoints", response_model=EndpointListEnvelope)
async def list_endpoints(
    user_id: int = Depends(get_current_user_id),
    repository: Repository = Depends(get_repository),
):
    """List the caller's endpoints."""
    endpoints = await repository.list_endpoints_for_owner(user_id)
    return EndpointListEnvelope(data=[EndpointResponse.model_validate(e) for e in endpoints])


@router.get("/endpoint/{endpoint_id}/results", response_model=ResultListEnvelope)
async def list_endpoint_results(
    endpoint_id: int,
    user_id: int = Depends(get_current_user_id),
    repository: Repository = Depends(get_repository),
):
    """Newest results of one of the caller's endpoints."""
    results = await repository.list_results(endpoint_id, user_id, limit=settings.results_limit)
    if results is None:
        raise endpoint_not_found(endpoint_id)
    return ResultListEnvelope(data=[ResultResponse.model_validate(r) for r in results])


@router.get("/result/{result_id}", response_model=ResultEnvelope)
async def get_result(
    result_id: int,
    user_id: int = Depends(get_current_user_id),
    repository: Repository = Depends(get_repository),
):
    """A single result of one of the caller's endpoints."""
    result = await repository.get_result(result_id, user_id)
    if result is None:
        raise HTTPException(
            status_code=404, detail=f"id {result_id} doesn't correspond to any of your results"
        )
    return ResultEnvelope(data=ResultResponse.model_validate(result))


@router.post("/endpoint", response_model=EndpointEnvelope, status_code=201)
async def create_endpoint(
    body: EndpointCreate,
    user_id: int = Depends(get_current_user_id),
    repository: Repository = Depends(get_repository),
    scheduler: SchedulerService = Depends(get_scheduler),
):
    """Create an endpoint and start monitoring it."""
    endpoint = MonitoredEndpoint(
        name=body.name,
        url=body.url,
        created_date=datetime.utcnow(),
        monitoring_interval=body.monitoring_interval,
        owner_id=user_id,
    )
    try:
        await repository.save_endpoint(endpoint)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    await scheduler.create_task(endpoint.id, wait_for_first_check=False)

    return EndpointEnvelope(data=EndpointResponse.model_validate(endpoint))


@router.patch("/endpoint/{endpoint_id}", response_model=EndpointEnvelope)
async def update_endpoint(
    endpoint_id: int,
    body: EndpointUpdate,
    user_id: int = Depends(get_current_user_id),
    repository: Repository = Depends(get_repository),
    scheduler: SchedulerService = Depends(get_scheduler),
):
    """Update an endpoint and re-arm its task."""
    async with scheduler.lock(endpoint_id):
        try:
            endpoint = await repository.update_endpoint(
                endpoint_id, user_id, body.model_dump(exclude_unset=True)
            )
        except ValidationError as e:
            raise HTTPException(status_code=400, detail=str(e))

        if endpoint is None:
            raise endpoint_not_found(endpoint_id)

        try:
            await scheduler.replace_task(endpoint_id)
        except EndpointNotFoundError:
            raise endpoint_not_found(endpoint_id)

    return EndpointEnvelope(data=EndpointResponse.model_validate(endpoint))


@router.delete("/endpoint/{endpoint_id}", response_model=EndpointEnvelope)
async def delete_endpoint(
    endpoint_id: int,
    user_id: int = Depends(get_current_user_id),
    repository: Repository = Depends(get_repository),
    scheduler: SchedulerService = Depends(get_scheduler),
):
    """Stop monitoring an endpoint, then delete it with all of its results."""
    async with scheduler.lock(endpoint_id):
        endpoint = await repository.get_owned_endpoint(endpoint_id, user_id)
        if endpoint is None:
            raise endpoint_not_found(endpoint_id)

        # The task goes first so no check runs against a deleted row
        try:
            scheduler.remove_task(endpoint_id)
        except TaskNotFoundError:
            logger.warning(f"Endpoint #{endpoint_id} had no active task at deletion")

        await repository.delete_endpoint(endpoint_id)

    return EndpointEnvelope(data=EndpointResponse.model_validate(endpoint))
