"""Single check cycle: probe, persist the result, stamp the endpoint."""
import pytest

from urlmon.exceptions import ContractViolationError, EndpointNotFoundError, ValidationError


async def test_check_creates_one_result(monitoring, repository, endpoint, user_id):
    result = await monitoring.check(endpoint)

    results = await repository.list_results(endpoint.id, user_id)
    assert [r.id for r in results] == [result.id]
    assert results[0].http_code == 200


async def test_check_updates_last_checked_date(monitoring, repository, endpoint):
    assert endpoint.last_checked_date is None

    result = await monitoring.check(endpoint, log_enabled=False)

    stored = await repository.get_endpoint(endpoint.id)
    assert stored.last_checked_date == result.checked_date
    assert endpoint.last_checked_date == result.checked_date


async def test_transport_failure_is_recorded(monitoring, repository, make_endpoint):
    endpoint = await repository.save_endpoint(make_endpoint(url="http://down.example.com"))

    result = await monitoring.check(endpoint)

    assert result.id is not None
    assert result.error.startswith("Connection error")
    assert (await repository.get_endpoint(endpoint.id)).last_checked_date is not None


async def test_check_of_unsaved_endpoint(monitoring, make_endpoint):
    with pytest.raises(ContractViolationError):
        await monitoring.check(make_endpoint())


async def test_check_of_missing_endpoint(monitoring, repository, endpoint):
    await repository.delete_endpoint(endpoint.id)

    with pytest.raises(EndpointNotFoundError):
        await monitoring.check(endpoint)

    assert await repository.count_results(endpoint.id) == 0


async def test_invalid_result_is_not_stored(monitoring, repository, make_endpoint):
    endpoint = await repository.save_endpoint(make_endpoint(url="https://broken.example.com"))

    with pytest.raises(ValidationError):
        await monitoring.check(endpoint)

    assert await repository.count_results(endpoint.id) == 0
