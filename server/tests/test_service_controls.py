from __future__ import annotations

from datetime import datetime

import httpx
import pytest
from fastapi.testclient import TestClient

from abex_transport.catalog.nhtsa import VehicleCatalog
import abex_transport.main as main_module


@pytest.fixture
def client():
    with TestClient(main_module.app) as test_client:
        yield test_client


def _install_catalog(monkeypatch, handler) -> list[httpx.Request]:
    seen: list[httpx.Request] = []

    def recording_handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    catalog = VehicleCatalog(
        "https://vpic.example.test/api/",
        httpx.AsyncClient(transport=httpx.MockTransport(recording_handler)),
    )
    monkeypatch.setattr(main_module.app.state, "vehicle_catalog", catalog, raising=False)
    return seen


def test_health(client: TestClient):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "abex-transport"}


def test_request_id_is_echoed_in_response_header(client: TestClient):
    response = client.get("/", headers={"X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"


def test_request_id_generated_when_missing(client: TestClient):
    response = client.options("/submitQuoteRequest")

    assert response.headers["X-Request-ID"]


def test_vehicle_models_lookup(client: TestClient, monkeypatch):
    seen = _install_catalog(
        monkeypatch,
        lambda request: httpx.Response(
            200,
            json={
                "Count": 2,
                "Results": [
                    {"Make_ID": 474, "Make_Name": "HONDA", "Model_ID": 1861, "Model_Name": "Accord"},
                    {"Make_ID": 474, "Make_Name": "HONDA", "Model_ID": 1863, "Model_Name": "Civic"},
                ],
            },
        ),
    )

    response = client.get("/vehicles/models", params={"make": "Honda", "year": "2020"})

    assert response.status_code == 200
    assert [model["model_name"] for model in response.json()["models"]] == ["Accord", "Civic"]
    assert seen[0].url.path == "/api/vehicles/GetModelsForMakeYear/make/Honda/modelyear/2020"
    assert seen[0].url.params["format"] == "json"


def test_vehicle_models_lookup_failure_yields_empty_list(client: TestClient, monkeypatch):
    _install_catalog(monkeypatch, lambda request: httpx.Response(500, text="down"))

    response = client.get("/vehicles/models", params={"make": "Honda", "year": "2020"})

    assert response.status_code == 200
    assert response.json() == {"models": []}


@pytest.mark.parametrize(
    "params",
    [
        {"make": "", "year": "2020"},
        {"make": "Honda", "year": "twenty"},
        {"make": "Honda", "year": "1980"},
        {"make": "Honda", "year": str(datetime.now().year + 1)},
    ],
)
def test_vehicle_models_lookup_validates_query(client: TestClient, monkeypatch, params: dict):
    seen = _install_catalog(monkeypatch, lambda request: httpx.Response(200, json={"Results": []}))

    response = client.get("/vehicles/models", params=params)

    assert response.status_code == 400
    assert seen == []


@pytest.mark.parametrize(
    "payload",
    [
        ["x"],
        {"Results": None},
        {"Results": ["Accord", {"Model_Name": "Civic", "Model_ID": 1863}, {"Model_Name": "Pilot", "Model_ID": "n/a"}]},
    ],
)
def test_vehicle_models_lookup_tolerates_unexpected_payloads(client: TestClient, monkeypatch, payload):
    _install_catalog(monkeypatch, lambda request: httpx.Response(200, json=payload))

    response = client.get("/vehicles/models", params={"make": "Honda", "year": "2020"})

    assert response.status_code == 200
    names = [model["model_name"] for model in response.json()["models"]]
    assert names == (["Civic"] if isinstance(payload, dict) and payload["Results"] else [])
