import pytest

from mockly.core.exceptions import ProviderError
from mockly.core.retry import NO_RETRY, RetryPolicy


class Flaky:
    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


@pytest.mark.asyncio
async def test_rate_limit_is_retried_with_backoff():
    sleep = RecordingSleep()
    operation = Flaky(ProviderError("gemini", 429), ProviderError("gemini", 429), "ok")

    assert await RetryPolicy().run(operation, sleep=sleep) == "ok"
    assert operation.calls == 3
    assert sleep.delays == [2.0, 4.0]


@pytest.mark.asyncio
async def test_gives_up_after_max_attempts():
    sleep = RecordingSleep()
    operation = Flaky(*[ProviderError("gemini", 429)] * 3)

    with pytest.raises(ProviderError):
        await RetryPolicy().run(operation, sleep=sleep)
    assert operation.calls == 3


@pytest.mark.asyncio
async def test_transport_errors_are_retried():
    operation = Flaky(ProviderError("cerebras", None, "timeout"), "ok")
    assert await RetryPolicy().run(operation, sleep=RecordingSleep()) == "ok"


@pytest.mark.asyncio
async def test_client_errors_surface_immediately():
    operation = Flaky(ProviderError("gemini", 400, "bad request"), "unreachable")

    with pytest.raises(ProviderError) as exc_info:
        await RetryPolicy().run(operation, sleep=RecordingSleep())
    assert exc_info.value.status == 400
    assert operation.calls == 1


@pytest.mark.asyncio
async def test_no_retry_policy_makes_one_attempt():
    operation = Flaky(ProviderError("gemini", 429), "unreachable")

    with pytest.raises(ProviderError):
        await NO_RETRY.run(operation, sleep=RecordingSleep())
    assert operation.calls == 1


def test_http_status_passthrough_rule():
    assert ProviderError("gemini", 402).http_status == 402
    assert ProviderError("gemini", 503).http_status == 500
    assert ProviderError("gemini", None).http_status == 500
