from typing import Iterator, List

import pytest
from fastapi.testclient import TestClient

from app.main import create_app
from datastore.device_snapshot import DeviceSnapshotFile
from models.readings import DeviceIdentity, Measurement
from services.decoder import encode_frame
from services.device import BME280Device, build_default_adapter
from storage.readout_store import ReadoutStore

BRIDGE_ID = 2


@pytest.fixture
def adapter(tmp_path) -> BME280Device:
    identity = DeviceIdentity(id="7", type="BME280", interface="RF24", name="garden")
    store = ReadoutStore(
        device=identity,
        root_path=tmp_path / "data",
        snapshot_file=DeviceSnapshotFile(root_path=tmp_path / "devices"),
    )
    return BME280Device(store=store, rf24_bridge_id=BRIDGE_ID)


@pytest.fixture
def api_client(adapter: BME280Device, monkeypatch) -> Iterator[TestClient]:
    def build_test_adapter() -> BME280Device:
        return adapter

    build_test_adapter.cache_clear = lambda: None  # type: ignore[attr-defined]

    monkeypatch.setattr("app.main.build_default_adapter", build_test_adapter)
    monkeypatch.setattr("app.api.build_default_adapter", build_test_adapter)

    app = create_app()
    with TestClient(app) as client:
        yield client


def _frame(counter: int, temperature: float = 21.5) -> List[int]:
    measurement = Measurement(temperature=temperature, pressure=1013.25, humidity=45.5, voltage=3.25)
    return list(encode_frame(counter, measurement))


def _envelope(counter: int, temperature: float = 21.5) -> dict:
    return {
        "type": "dataReceived",
        "srcId": BRIDGE_ID,
        "pipeIndex": 1,
        "data": _frame(counter, temperature),
    }


def test_healthcheck(api_client: TestClient) -> None:
    response = api_client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "buffered": 0}


def test_device_message_returns_push_new_data(api_client: TestClient) -> None:
    response = api_client.post("/messages/device", json=_envelope(1))

    assert response.status_code == 200
    payload = response.json()
    assert payload["type"] == "pushNewData"
    assert set(payload.keys()) == {"type", "lastConnected", "data"}
    assert payload["data"]["temperature"] == 21.5
    assert payload["data"]["voltage"] == 3.25
    assert payload["data"]["time"] == payload["lastConnected"]


def test_short_frame_returns_bad_request(api_client: TestClient) -> None:
    envelope = _envelope(1)
    envelope["data"] = envelope["data"][:10]

    response = api_client.post("/messages/device", json=envelope)

    assert response.status_code == 400
    assert "at least 11" in response.json()["detail"]


def test_foreign_source_returns_bad_request(api_client: TestClient) -> None:
    envelope = _envelope(1)
    envelope["srcId"] = BRIDGE_ID + 1

    response = api_client.post("/messages/device", json=envelope)

    assert response.status_code == 400


def test_out_of_range_byte_is_unprocessable(api_client: TestClient) -> None:
    envelope = _envelope(1)
    envelope["data"][2] = 300

    response = api_client.post("/messages/device", json=envelope)

    assert response.status_code == 422


def test_pull_data_buffer_on_empty_buffer_conflicts(api_client: TestClient) -> None:
    response = api_client.post("/messages/gui", json={"type": "pullDataBuffer", "srcId": 5})

    assert response.status_code == 409
    assert response.json()["detail"] == "Readout buffer is empty."


def test_pull_data_buffer_after_ingestion(api_client: TestClient) -> None:
    for counter, temperature in ((1, 20.0), (2, 21.0)):
        assert api_client.post("/messages/device", json=_envelope(counter, temperature)).status_code == 200

    response = api_client.post("/messages/gui", json={"type": "pullDataBuffer", "srcId": 5})

    assert response.status_code == 200
    payload = response.json()
    assert payload["desId"] == 5
    assert payload["type"] == "pushDataBuffer"
    assert payload["data"]["temperature"] == [2000, 2100]
    assert payload["data"]["pressure"] == [1013, 1013]
    assert payload["data"]["humidity"] == [4550, 4550]
    assert len(payload["data"]["time"]) == 2


def test_unknown_gui_message_returns_bad_request(api_client: TestClient) -> None:
    response = api_client.post("/messages/gui", json={"type": "reboot"})

    assert response.status_code == 400


def test_set_parameter_and_get_device(api_client: TestClient) -> None:
    response = api_client.post(
        "/messages/gui",
        json={"type": "setParameter", "srcId": 5, "parameter": {"name": "attic"}},
    )
    assert response.status_code == 200
    assert response.json()["device"]["name"] == "attic"

    device = api_client.get("/device").json()["device"]
    assert device["name"] == "attic"
    assert device["type"] == "BME280"


def test_lifespan_reloads_and_clears_cache(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("HUB_DATA_ROOT", str(tmp_path / "data"))
    monkeypatch.setenv("HUB_DEVICES_ROOT", str(tmp_path / "devices"))

    from datastore.device_snapshot import build_default_snapshot_file
    from settings import get_settings
    from storage.readout_store import build_default_store

    for cache in (get_settings, build_default_snapshot_file, build_default_store, build_default_adapter):
        cache.cache_clear()

    try:
        app = create_app()
        with TestClient(app) as client:
            adapter_during = build_default_adapter()
            assert client.get("/health").json()["buffered"] == 0
            assert adapter_during.store.root_path == tmp_path / "data"

        assert build_default_adapter() is not adapter_during
    finally:
        for cache in (get_settings, build_default_snapshot_file, build_default_store, build_default_adapter):
            cache.cache_clear()
