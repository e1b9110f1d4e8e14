import asyncio
import json
import logging
from datetime import date
from typing import Callable, List

import httpx
import pytest

from hcdn_billit.adapters.billit_client import BillitClient
from hcdn_billit.classification import classify
from hcdn_billit.models.bill import Bill
from hcdn_billit.models.publish_models import PublishResult, PublishStatus
from hcdn_billit.models.raw_bill import RawBill
from hcdn_billit.orchestration.publish_queue import PublishQueue

BASE_URL = "http://billit.test"
UID = "1234-D-2014"


def _make_bill(uid: str = UID) -> Bill:
    """Helper to create a classified bill ready to publish."""
    raw = RawBill.model_validate({
        "file": uid,
        "type": "PROYECTO DE LEY",
        "source": "Diputados",
        "creationTime": "2014-05-10",
        "summary": "REGIMEN DE PROMOCION DEL SOFTWARE LIBRE",
    })
    return classify(raw, today=date(2014, 6, 1))


def _run_queue(
    handler: Callable,
    bills: List[Bill],
    pool_size: int = 2,
    **client_kwargs
) -> List[PublishResult]:
    """Publish bills through a mocked billit and collect the results."""
    results: List[PublishResult] = []

    async def scenario() -> None:
        client = BillitClient(BASE_URL, transport=httpx.MockTransport(handler), **client_kwargs)
        queue = PublishQueue(client, pool_size=pool_size)
        for bill in bills:
            queue.enqueue(bill, results.append)
        await queue.close()
        await client.close()

    asyncio.run(scenario())
    return results


def test_existing_bill_is_updated() -> None:
    requests: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.method == "GET":
            return httpx.Response(200, json={"uid": UID})
        return httpx.Response(302, headers={"Location": f"{BASE_URL}/bills/{UID}"})

    results = _run_queue(handler, [_make_bill()])

    assert [(r.method, r.url.path) for r in requests] == [
        ("GET", f"/bills/{UID}.json"),
        ("PUT", f"/bills/{UID}"),
    ]
    assert requests[0].url.params["fields"] == "uid"
    assert json.loads(requests[1].content)["uid"] == UID
    assert results[0].status is PublishStatus.UPDATED
    assert results[0].method == "PUT"


def test_unknown_bill_is_created() -> None:
    requests: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.method == "GET":
            return httpx.Response(404)
        return httpx.Response(302)

    results = _run_queue(handler, [_make_bill()])

    assert [(r.method, r.url.path) for r in requests] == [
        ("GET", f"/bills/{UID}.json"),
        ("POST", "/bills"),
    ]
    body = json.loads(requests[1].content)
    assert body["stage"] == "Ingresado"
    assert body["title"] == "REGIMEN DE PROMOCION DEL SOFTWARE LIBRE"
    assert results[0].status is PublishStatus.CREATED


def test_connection_failure_drops_bill() -> None:
    requests: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        raise httpx.ConnectError("Connection refused", request=request)

    results = _run_queue(handler, [_make_bill()])

    assert [r.method for r in requests] == ["GET"]
    assert len(results) == 1
    assert results[0].status is PublishStatus.CONNECTION_ERROR
    assert results[0].method is None


def test_server_error_on_existence_check_drops_bill() -> None:
    requests: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(500, text="Internal Server Error")

    results = _run_queue(handler, [_make_bill()])

    assert [r.method for r in requests] == ["GET"]
    assert results[0].status is PublishStatus.SERVER_ERROR
    assert results[0].status_code == 500


def test_write_without_redirect_is_logged_and_not_retried(caplog) -> None:
    requests: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.method == "GET":
            return httpx.Response(404)
        return httpx.Response(422, text="title can't be blank")

    results = _run_queue(handler, [_make_bill()])

    assert [r.method for r in requests] == ["GET", "POST"]
    assert results[0].status is PublishStatus.UNEXPECTED_STATUS
    assert results[0].status_code == 422
    assert "title can't be blank" in caplog.text


def test_failures_do_not_stop_the_queue() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.startswith("/bills/BAD"):
            raise httpx.ConnectError("Connection reset", request=request)
        if request.method == "GET":
            return httpx.Response(404)
        return httpx.Response(302)

    bills = [_make_bill("BAD-1"), _make_bill("1-D-2014"), _make_bill("BAD-2"), _make_bill("2-D-2014")]
    results = _run_queue(handler, bills, pool_size=1)

    assert [r.uid for r in results] == ["BAD-1", "1-D-2014", "BAD-2", "2-D-2014"]
    assert [r.status for r in results] == [
        PublishStatus.CONNECTION_ERROR,
        PublishStatus.CREATED,
        PublishStatus.CONNECTION_ERROR,
        PublishStatus.CREATED,
    ]


def test_pool_size_bounds_in_flight_requests() -> None:
    in_flight = 0
    max_in_flight = 0

    async def handler(request: httpx.Request) -> httpx.Response:
        nonlocal in_flight, max_in_flight
        in_flight += 1
        max_in_flight = max(max_in_flight, in_flight)
        await asyncio.sleep(0.01)
        in_flight -= 1
        if request.method == "GET":
            return httpx.Response(404)
        return httpx.Response(302)

    bills = [_make_bill(f"{n}-D-2014") for n in range(6)]
    results = _run_queue(handler, bills, pool_size=2)

    assert len(results) == 6
    assert max_in_flight == 2


def test_same_uid_is_published_twice() -> None:
    methods: List[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        methods.append(request.method)
        if request.method == "GET":
            return httpx.Response(404)
        return httpx.Response(302)

    results = _run_queue(handler, [_make_bill(), _make_bill()], pool_size=1)

    assert methods == ["GET", "POST", "GET", "POST"]
    assert len(results) == 2


def test_enqueue_returns_before_publishing() -> None:
    requests: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.method == "GET":
            return httpx.Response(200)
        return httpx.Response(302)

    async def scenario() -> None:
        client = BillitClient(BASE_URL, transport=httpx.MockTransport(handler))
        queue = PublishQueue(client)
        queue.enqueue(_make_bill())

        assert requests == []
        assert queue.metrics.enqueued == 1

        await queue.close()
        await client.close()

        assert queue.metrics.published == 1

    asyncio.run(scenario())
    assert len(requests) == 2


def test_failing_callback_does_not_break_worker(caplog) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(404)
        return httpx.Response(302)

    def broken_callback(result: PublishResult) -> None:
        raise RuntimeError("boom")

    async def scenario() -> PublishQueue:
        client = BillitClient(BASE_URL, transport=httpx.MockTransport(handler))
        queue = PublishQueue(client, pool_size=1)
        queue.enqueue(_make_bill("1-D-2014"), broken_callback)
        queue.enqueue(_make_bill("2-D-2014"))
        await queue.close()
        await client.close()
        return queue

    queue = asyncio.run(scenario())

    assert queue.metrics.published == 2
    assert "Publish callback failed" in caplog.text


def test_retry_enabled_recovers_from_server_error() -> None:
    methods: List[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        methods.append(request.method)
        if request.method == "GET":
            if methods.count("GET") == 1:
                return httpx.Response(503)
            return httpx.Response(200)
        return httpx.Response(302)

    results = _run_queue(
        handler,
        [_make_bill()],
        retry_enabled=True,
        max_retries=3,
        base_delay=0.0,
    )

    assert methods == ["GET", "GET", "PUT"]
    assert results[0].status is PublishStatus.UPDATED


def test_retry_enabled_gives_up_after_max_retries(caplog) -> None:
    caplog.set_level(logging.WARNING)
    methods: List[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        methods.append(request.method)
        raise httpx.ConnectError("Connection refused", request=request)

    results = _run_queue(
        handler,
        [_make_bill()],
        retry_enabled=True,
        max_retries=3,
        base_delay=0.0,
    )

    assert methods == ["GET", "GET", "GET"]
    assert results[0].status is PublishStatus.CONNECTION_ERROR


def test_enqueue_outside_event_loop_leaves_queue_unstarted() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404) if request.method == "GET" else httpx.Response(302)

    client = BillitClient(BASE_URL, transport=httpx.MockTransport(handler))
    queue = PublishQueue(client, pool_size=2)

    with pytest.raises(RuntimeError):
        queue.enqueue(_make_bill())

    assert queue.pending == 0
    assert queue.metrics.enqueued == 0

    results: List[PublishResult] = []

    async def scenario() -> None:
        queue.enqueue(_make_bill(), results.append)
        await queue.close()
        await client.close()

    asyncio.run(scenario())

    assert [result.status for result in results] == [PublishStatus.CREATED]
