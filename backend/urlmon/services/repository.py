"""Repository - persistence gateway for endpoints, results and users.

Every method opens its own short-lived session from the injected factory, so
a Repository can be shared by the scheduler and request handlers alike.
Returned ORM instances are detached records (expire_on_commit=False).
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select, update, delete, func
from sqlalchemy.ext.asyncio import async_sessionmaker

from ..exceptions import EntityAlreadySavedError
from ..models import MonitoredEndpoint, MonitoringResult, User
from .validation import validate_endpoint, validate_result

logger = logging.getLogger(__name__)

# Fields a caller may change on an existing endpoint
UPDATABLE_FIELDS = ("name", "url", "monitoring_interval")


class Repository:
    """Inserts and looks up monitored endpoints and their results."""

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    # -- existence predicates used by validation ---------------------------

    async def user_exists(self, user_id: int) -> bool:
        async with self.session_factory() as session:
            result = await session.execute(select(User.id).where(User.id == user_id))
            return result.scalar_one_or_none() is not None

    async def endpoint_exists(self, endpoint_id: int) -> bool:
        async with self.session_factory() as session:
            result = await session.execute(
                select(MonitoredEndpoint.id).where(MonitoredEndpoint.id == endpoint_id)
            )
            return result.scalar_one_or_none() is not None

    # -- inserts ------------------------------------------------------------

    async def save_endpoint(self, endpoint: MonitoredEndpoint) -> MonitoredEndpoint:
        """Validate and insert a new endpoint, assigning its id."""
        if endpoint.id is not None:
            raise EntityAlreadySavedError("MonitoredEndpoint")
        if endpoint.created_date is None:
            endpoint.created_date = datetime.utcnow()

        await validate_endpoint(endpoint, self.user_exists)

        async with self.session_factory() as session:
            session.add(endpoint)
            await session.commit()
        logger.debug(f"Saved endpoint #{endpoint.id} ({endpoint.url})")
        return endpoint

    async def save_result(self, result: MonitoringResult) -> MonitoringResult:
        """Validate and insert a new monitoring result, assigning its id."""
        if result.id is not None:
            raise EntityAlreadySavedError("MonitoringResult")
        if result.checked_date is None:
            result.checked_date = datetime.utcnow()

        await validate_result(result, self.endpoint_exists)

        async with self.session_factory() as session:
            session.add(result)
            await session.commit()
        return result

    # -- endpoint reads and writes -------------------------------------------

    async def get_endpoint(self, endpoint_id: int) -> Optional[MonitoredEndpoint]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(MonitoredEndpoint).where(MonitoredEndpoint.id == endpoint_id)
            )
            return result.scalar_one_or_none()

    async def get_owned_endpoint(self, endpoint_id: int, owner_id: int) -> Optional[MonitoredEndpoint]:
        """Endpoint by id, or None when it is absent or belongs to someone else."""
        async with self.session_factory() as session:
            result = await session.execute(
                select(MonitoredEndpoint).where(
                    MonitoredEndpoint.id == endpoint_id,
                    MonitoredEndpoint.owner_id == owner_id,
                )
            )
            return result.scalar_one_or_none()

    async def list_endpoints(self) -> List[MonitoredEndpoint]:
        async with self.session_factory() as session:
            result = await session.execute(select(MonitoredEndpoint).order_by(MonitoredEndpoint.id))
            return list(result.scalars().all())

    async def list_endpoints_for_owner(self, owner_id: int) -> List[MonitoredEndpoint]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(MonitoredEndpoint)
                .where(MonitoredEndpoint.owner_id == owner_id)
                .order_by(MonitoredEndpoint.id)
            )
            return list(result.scalars().all())

    async def update_endpoint(
        self, endpoint_id: int, owner_id: int, fields: dict
    ) -> Optional[MonitoredEndpoint]:
        """Apply a partial update to an owned endpoint.

        The merged record is validated before anything is written. Returns
        None when the endpoint is absent or not owned by owner_id.
        """
        endpoint = await self.get_owned_endpoint(endpoint_id, owner_id)
        if endpoint is None:
            return None

        changes = {k: v for k, v in fields.items() if k in UPDATABLE_FIELDS and v is not None}
        for key, value in changes.items():
            setattr(endpoint, key, value)

        await validate_endpoint(endpoint, self.user_exists)

        if changes:
            async with self.session_factory() as session:
                await session.execute(
                    update(MonitoredEndpoint)
                    .where(MonitoredEndpoint.id == endpoint_id)
                    .values(**changes)
                )
                await session.commit()
        return endpoint

    async def touch_last_checked(self, endpoint_id: int, checked_date: datetime) -> None:
        async with self.session_factory() as session:
            await session.execute(
                update(MonitoredEndpoint)
                .where(MonitoredEndpoint.id == endpoint_id)
                .values(last_checked_date=checked_date)
            )
            await session.commit()

    async def delete_endpoint(self, endpoint_id: int) -> None:
        """Delete an endpoint together with all of its results."""
        async with self.session_factory() as session:
            await session.execute(
                delete(MonitoringResult).where(MonitoringResult.monitored_endpoint_id == endpoint_id)
            )
            await session.execute(delete(MonitoredEndpoint).where(MonitoredEndpoint.id == endpoint_id))
            await session.commit()
        logger.debug(f"Deleted endpoint #{endpoint_id} and its results")

    # -- result reads ---------------------------------------------------------

    async def list_results(
        self, endpoint_id: int, owner_id: int, limit: int = 10
    ) -> Optional[List[MonitoringResult]]:
        """Newest results of an owned endpoint.

        None means the endpoint is absent or not owned; an endpoint that was
        never checked yields an empty list.
        """
        if await self.get_owned_endpoint(endpoint_id, owner_id) is None:
            return None

        async with self.session_factory() as session:
            result = await session.execute(
                select(MonitoringResult)
                .where(MonitoringResult.monitored_endpoint_id == endpoint_id)
                .order_by(MonitoringResult.checked_date.desc(), MonitoringResult.id.desc())
                .limit(limit)
            )
            return list(result.scalars().all())

    async def count_results(self, endpoint_id: int) -> int:
        async with self.session_factory() as session:
            result = await session.execute(
                select(func.count(MonitoringResult.id)).where(
                    MonitoringResult.monitored_endpoint_id == endpoint_id
                )
            )
            return result.scalar_one()

    async def get_result(self, result_id: int, owner_id: int) -> Optional[MonitoringResult]:
        """Result by id, or None when it is absent or owned by someone else."""
        async with self.session_factory() as session:
            result = await session.execute(
                select(MonitoringResult)
                .join(MonitoredEndpoint, MonitoredEndpoint.id == MonitoringResult.monitored_endpoint_id)
                .where(
                    MonitoringResult.id == result_id,
                    MonitoredEndpoint.owner_id == owner_id,
                )
            )
            return result.scalar_one_or_none()

    # -- users ----------------------------------------------------------------

    async def get_user_id_by_token(self, access_token: str) -> Optional[int]:
        async with self.session_factory() as session:
            result = await session.execute(select(User.id).where(User.access_token == access_token))
            return result.scalar_one_or_none()
