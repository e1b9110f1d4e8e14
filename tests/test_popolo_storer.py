import asyncio
import json
from datetime import date
from typing import List

import httpx

from hcdn_billit.adapters.billit_client import BillitClient
from hcdn_billit.config import PublishConfig, Settings, StoreConfig
from hcdn_billit.models.publish_models import PublishStatus
from hcdn_billit.orchestration.popolo_storer import PopoloStorer

BASE_URL = "http://billit.test"


def _raw_bill(file: str = "0042-D-2014", **overrides) -> dict:
    """Helper returning a raw bill mapping as the scraper emits it."""
    data = {
        "file": file,
        "type": "PROYECTO DE RESOLUCION",
        "source": "Diputados",
        "creationTime": "2014-05-10",
        "summary": "PEDIDO DE INFORMES AL PODER EJECUTIVO",
        "lawNumber": None,
        "committees": ["ASUNTOS CONSTITUCIONALES"],
        "subscribers": [{"name": "PEREZ, JUAN", "party": "FPV", "province": "BUENOS AIRES"}],
        "dictums": [],
        "procedures": [
            {"source": "Diputados", "topic": "CONSIDERACION Y APROBACION", "result": "APROBADO",
             "date": "2014-05-28"},
        ],
    }
    data.update(overrides)
    return data


def _handler(bodies: List[dict]):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(404)
        bodies.append(json.loads(request.content))
        return httpx.Response(302)
    return handler


def test_store_invokes_callback_once_queued() -> None:
    bodies: List[dict] = []
    calls: List[int] = []

    async def scenario() -> None:
        client = BillitClient(BASE_URL, transport=httpx.MockTransport(_handler(bodies)))
        async with PopoloStorer(client, pool_size=1, today=date(2014, 6, 1)) as storer:
            storer.store("0042-D-2014", _raw_bill(), None, lambda: calls.append(len(bodies)))

            # Callback ran before billit was contacted
            assert calls == [0]

    asyncio.run(scenario())

    assert len(bodies) == 1
    assert bodies[0]["uid"] == "0042-D-2014"
    assert bodies[0]["project_type"] == "RESOLUCION"
    assert bodies[0]["stage"] == "Aprobado o sancionado"


def test_invalid_raw_bill_is_logged_and_acknowledged(caplog) -> None:
    bodies: List[dict] = []
    calls: List[str] = []

    async def scenario() -> PopoloStorer:
        client = BillitClient(BASE_URL, transport=httpx.MockTransport(_handler(bodies)))
        async with PopoloStorer(client, today=date(2014, 6, 1)) as storer:
            storer.store("broken", {"summary": "SIN EXPEDIENTE"}, None, lambda: calls.append("done"))
        return storer

    storer = asyncio.run(scenario())

    assert calls == ["done"]
    assert bodies == []
    assert storer.metrics.enqueued == 0
    assert "Invalid raw bill broken" in caplog.text


def test_storer_publishes_every_bill() -> None:
    bodies: List[dict] = []
    raw_bills = [_raw_bill(f"{n:04d}-D-2014") for n in range(5)]

    async def scenario() -> PopoloStorer:
        config = Settings(
            store=StoreConfig(base_url=f"{BASE_URL}/"),
            publish=PublishConfig(pool_size=3),
        )
        storer = PopoloStorer.from_settings(
            config,
            today=date(2014, 6, 1),
            transport=httpx.MockTransport(_handler(bodies)),
        )
        for raw in raw_bills:
            storer.store(raw["file"], raw, None, lambda: None)
        await storer.close()
        return storer

    storer = asyncio.run(scenario())

    assert storer.queue.pool_size == 3
    assert sorted(body["uid"] for body in bodies) == [raw["file"] for raw in raw_bills]
    assert storer.metrics.published == 5
    assert storer.metrics.by_status == {PublishStatus.CREATED: 5}


def test_store_outside_event_loop_drops_bill_and_acknowledges(caplog) -> None:
    bodies: List[dict] = []
    calls: List[int] = []
    client = BillitClient(BASE_URL, transport=httpx.MockTransport(_handler(bodies)))
    storer = PopoloStorer(client, pool_size=1, today=date(2014, 6, 1))

    storer.store("0001-D-2014", _raw_bill("0001-D-2014"), None, lambda: calls.append(1))

    assert calls == [1]
    assert storer.metrics.enqueued == 0
    assert storer.queue.pending == 0
    assert "Could not queue bill 0001-D-2014" in caplog.text

    # The queue still starts normally once a loop is running
    async def scenario() -> None:
        storer.store("0002-D-2014", _raw_bill("0002-D-2014"), None, lambda: calls.append(2))
        await storer.close()

    asyncio.run(scenario())

    assert calls == [1, 2]
    assert [body["uid"] for body in bodies] == ["0002-D-2014"]
    assert storer.metrics.published == 1
