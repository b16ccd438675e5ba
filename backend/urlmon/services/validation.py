"""Validation rules for MonitoredEndpoint and MonitoringResult.

Field rules are pure. The async validate_* entry points additionally run an
existence predicate for the referenced owner or endpoint, supplied by the
repository so this module performs no I/O of its own.
"""
import mimetypes
from typing import Awaitable, Callable, Optional
from urllib.parse import urlparse

from ..exceptions import ValidationError
from ..models import MonitoredEndpoint, MonitoringResult

NAME_MIN_LENGTH = 3
NAME_MAX_LENGTH = 100
MIN_MONITORING_INTERVAL = 60  # seconds
ALLOWED_URL_SCHEMES = ("http", "https")

CONTENT_TYPE_MAX_LENGTH = 100
ERROR_MAX_LENGTH = 200

# Recognized status codes. 418-425 are deliberately absent.
VALID_HTTP_CODES = frozenset(
    [100, 101]
    + list(range(200, 207))
    + [300, 301, 302, 303, 304, 305, 307]
    + list(range(400, 418))
    + [426]
    + list(range(500, 506))
)

ExistsPredicate = Callable[[int], Awaitable[bool]]


def is_known_mime_type(content_type: str) -> bool:
    """Whether the media type (parameters ignored) maps to a known extension."""
    media_type = content_type.split(";", 1)[0].strip().lower()
    if not media_type:
        return False
    return mimetypes.guess_extension(media_type, strict=False) is not None


def check_endpoint_fields(endpoint: MonitoredEndpoint) -> None:
    """Raise ValidationError if any endpoint field breaks its rule."""
    name = endpoint.name or ""
    if len(name) < NAME_MIN_LENGTH:
        raise ValidationError(
            f"name of the endpoint must be at least {NAME_MIN_LENGTH} characters long", field="name"
        )
    if len(name) > NAME_MAX_LENGTH:
        raise ValidationError(
            f"name of the endpoint must not exceed {NAME_MAX_LENGTH} characters", field="name"
        )

    parsed = urlparse(endpoint.url or "")
    if parsed.scheme not in ALLOWED_URL_SCHEMES or not parsed.hostname:
        raise ValidationError(f"{endpoint.url!r} is not a valid http(s) url", field="url")

    interval = endpoint.monitoring_interval
    if not isinstance(interval, int) or isinstance(interval, bool):
        raise ValidationError("monitoring_interval must be an integer", field="monitoring_interval")
    if interval < MIN_MONITORING_INTERVAL:
        raise ValidationError(
            f"monitoring_interval must not be shorter than {MIN_MONITORING_INTERVAL} seconds",
            field="monitoring_interval",
        )


def check_result_fields(result: MonitoringResult) -> None:
    """Raise ValidationError for a bad result field.

    content_type and error are truncated in place rather than rejected when
    they are too long.
    """
    if result.http_code is not None and result.http_code not in VALID_HTTP_CODES:
        raise ValidationError(f"{result.http_code} is not a valid http code", field="http_code")

    if result.content_type is not None:
        if not is_known_mime_type(result.content_type):
            raise ValidationError(f"invalid content type {result.content_type!r}", field="content_type")
        if len(result.content_type) > CONTENT_TYPE_MAX_LENGTH:
            result.content_type = result.content_type[:CONTENT_TYPE_MAX_LENGTH]

    if result.error is not None and len(result.error) > ERROR_MAX_LENGTH:
        result.error = result.error[:ERROR_MAX_LENGTH]


async def validate_endpoint(endpoint: MonitoredEndpoint, owner_exists: ExistsPredicate) -> None:
    """Full endpoint validation, including the owner reference."""
    check_endpoint_fields(endpoint)
    if endpoint.owner_id is None or not await owner_exists(endpoint.owner_id):
        raise ValidationError(f"id {endpoint.owner_id} doesn't correspond to any user", field="owner_id")


async def validate_result(result: MonitoringResult, endpoint_exists: ExistsPredicate) -> None:
    """Full result validation, including the endpoint reference."""
    check_result_fields(result)
    endpoint_id: Optional[int] = result.monitored_endpoint_id
    if endpoint_id is None or not await endpoint_exists(endpoint_id):
        raise ValidationError(
            f"id {endpoint_id} doesn't correspond to any monitored endpoint",
            field="monitored_endpoint_id",
        )
