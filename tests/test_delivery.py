"""Tests for collector delivery and the retry schedule"""

import asyncio
import logging
from urllib.parse import parse_qs

import httpx
import pytest

from pager_relay.delivery import DeliverySender, RetryPolicy
from pager_relay.models import PagingMessage

MESSAGE = PagingMessage(address="1234567", message="TEST MESSAGE",
                        datetime=1700000000, source="test-source")


class FakeSleep:
    """Records requested delays instead of waiting"""

    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


class Collector:
    """Mock collector answering with a scripted list of status codes"""

    def __init__(self, statuses=(), fail_with=None):
        self.statuses = list(statuses)
        self.fail_with = fail_with
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        if self.fail_with is not None:
            raise self.fail_with("connection refused", request=request)
        status = self.statuses.pop(0) if self.statuses else 200
        return httpx.Response(status, text="ok")


def make_sender(collector, sleep=None, hostname="http://pagermon.local:3000/"):
    client = httpx.AsyncClient(transport=httpx.MockTransport(collector))
    return DeliverySender(hostname, "secret-key", client=client, sleep=sleep or FakeSleep())


def test_retry_policy_schedule():
    policy = RetryPolicy()
    assert [policy.delay_ms(n) for n in range(10)] == [
        1000, 2000, 4000, 8000, 16000, 32000, 64000, 128000, 256000, 512000
    ]
    assert policy.should_retry(9)
    assert not policy.should_retry(10)


def test_successful_delivery_posts_form():
    collector = Collector()
    sleep = FakeSleep()
    sender = make_sender(collector, sleep)

    assert asyncio.run(sender.deliver(MESSAGE)) is True

    assert len(collector.requests) == 1
    request = collector.requests[0]
    assert request.method == "POST"
    assert str(request.url) == "http://pagermon.local:3000/api/messages"
    assert request.headers["apikey"] == "secret-key"
    assert request.headers["content-type"] == "application/x-www-form-urlencoded"
    assert parse_qs(request.content.decode()) == {
        "address": ["1234567"],
        "message": ["TEST MESSAGE"],
        "datetime": ["1700000000"],
        "source": ["test-source"],
    }
    assert sleep.delays == []
    assert sender.stats['messages_sent'] == 1


def test_gives_up_after_ten_retries():
    collector = Collector(statuses=[500] * 20)
    sleep = FakeSleep()
    sender = make_sender(collector, sleep)

    assert asyncio.run(sender.deliver(MESSAGE)) is False

    assert [int(d * 1000) for d in sleep.delays] == [
        1000, 2000, 4000, 8000, 16000, 32000, 64000, 128000, 256000, 512000
    ]
    # One initial attempt plus ten retries, no eleventh retry
    assert len(collector.requests) == 11
    assert sender.stats['messages_failed'] == 1
    assert sender.stats['retries_scheduled'] == 10


def test_transport_errors_are_retried():
    collector = Collector(fail_with=httpx.ConnectError)
    sleep = FakeSleep()
    sender = make_sender(collector, sleep)

    assert asyncio.run(sender.deliver(MESSAGE)) is False
    assert len(sleep.delays) == 10
    assert len(collector.requests) == 11


def test_success_after_failures_stops_retrying():
    collector = Collector(statuses=[503, 404, 201])
    sleep = FakeSleep()
    sender = make_sender(collector, sleep)

    assert asyncio.run(sender.deliver(MESSAGE)) is True
    assert sleep.delays == [1.0, 2.0]
    assert len(collector.requests) == 3


@pytest.mark.parametrize("status", [301, 400, 401, 500])
def test_non_success_status_is_failure(status):
    collector = Collector(statuses=[status, 200])
    sender = make_sender(collector)
    assert asyncio.run(sender.deliver(MESSAGE)) is True
    assert len(collector.requests) == 2


def test_send_does_not_block():
    collector = Collector(statuses=[500, 500])

    async def scenario():
        release = asyncio.Event()

        async def slow_sleep(seconds):
            await release.wait()

        sender = make_sender(collector, slow_sleep)
        sender.send(MESSAGE)
        sender.send(MESSAGE)
        await asyncio.sleep(0.01)
        # Both messages are waiting on their first retry, neither blocked send()
        assert sender.in_flight == 2
        release.set()
        await sender.drain()
        assert sender.in_flight == 0
        return sender.stats

    stats = asyncio.run(scenario())
    assert stats['messages_sent'] == 2
    assert len(collector.requests) == 4


def test_aclose_cancels_pending_retries():
    collector = Collector(statuses=[500] * 5)

    async def scenario():
        sender = make_sender(collector, asyncio.sleep)
        task = sender.send(MESSAGE)
        await asyncio.sleep(0.01)
        await sender.aclose()
        return task

    task = asyncio.run(scenario())
    assert task.cancelled()
    assert len(collector.requests) == 1


def test_hostname_without_trailing_slash():
    sender = make_sender(Collector(), hostname="https://pagermon.example")
    assert sender.url == "https://pagermon.example/api/messages"


def test_drain_logs_tasks_that_die(caplog):
    def broken(request):
        raise RuntimeError("collector handler crashed")

    async def scenario():
        sender = make_sender(broken)
        sender.send(MESSAGE)
        with caplog.at_level(logging.ERROR, logger="pager_relay.delivery"):
            await sender.drain()
        return sender.stats

    stats = asyncio.run(scenario())
    assert stats['messages_failed'] == 1
    assert stats['in_flight'] == 0
    errors = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert len(errors) == 1
    assert "collector handler crashed" in errors[0].getMessage()
