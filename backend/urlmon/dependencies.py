"""FastAPI dependencies: shared services and access-token authentication."""
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request

from .exceptions import InvalidCredentialsError
from .services.repository import Repository
from .services.scheduler import SchedulerService


def get_repository(request: Request) -> Repository:
    return request.app.state.repository


def get_scheduler(request: Request) -> SchedulerService:
    return request.app.state.scheduler


async def resolve_user_id(repository: Repository, access_token: Optional[str]) -> int:
    """Map an access token to the id of its user."""
    if not access_token:
        raise InvalidCredentialsError("missing access-token header")

    user_id = await repository.get_user_id_by_token(access_token)
    if user_id is None:
        raise InvalidCredentialsError("invalid access token")
    return user_id


async def get_current_user_id(
    access_token: Optional[str] = Header(None),
    repository: Repository = Depends(get_repository),
) -> int:
    """Authenticate the caller from the access-token header."""
    try:
        return await resolve_user_id(repository, access_token)
    except InvalidCredentialsError as e:
        raise HTTPException(status_code=401, detail=str(e))
