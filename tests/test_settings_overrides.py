from __future__ import annotations

from pathlib import Path
from typing import Iterable

from datastore.device_snapshot import build_default_snapshot_file
from services.device import build_default_adapter
from settings import get_settings
from storage.readout_store import build_default_store


def _clear_caches(caches: Iterable) -> None:
    for cache in caches:
        cache.cache_clear()


def test_environment_overrides_apply(monkeypatch, tmp_path) -> None:
    data_root = tmp_path / "data"
    devices_root = tmp_path / "devices"

    monkeypatch.setenv("HUB_DEVICE_ID", "12")
    monkeypatch.setenv("HUB_DEVICE_NAME", "cellar")
    monkeypatch.setenv("HUB_DATA_ROOT", str(data_root))
    monkeypatch.setenv("HUB_DEVICES_ROOT", str(devices_root))
    monkeypatch.setenv("HUB_WINDOW_SECONDS", "3600")
    monkeypatch.setenv("HUB_CHART_BINS", "50")
    monkeypatch.setenv("HUB_RF24_BRIDGE_ID", "4")

    caches = (
        get_settings,
        build_default_snapshot_file,
        build_default_store,
        build_default_adapter,
    )
    _clear_caches(caches)

    try:
        adapter = build_default_adapter()
        assert adapter.identity.id == "12"
        assert adapter.identity.name == "cellar"
        assert adapter.store.root_path == data_root
        assert adapter.store.snapshot_file is not None
        assert adapter.store.snapshot_file.root_path == devices_root
        assert adapter.store.window.total_seconds() == 3600
        assert adapter.downsampler.budget == 50
        assert adapter.rf24_bridge_id == 4
    finally:
        _clear_caches(caches)


def test_invalid_values_fall_back_to_defaults(monkeypatch) -> None:
    monkeypatch.setenv("HUB_WINDOW_SECONDS", "soon")
    monkeypatch.setenv("HUB_CHART_BINS", "0")
    monkeypatch.setenv("HUB_DATA_ROOT", "   ")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    get_settings.cache_clear()

    try:
        settings = get_settings()
        assert settings.window_seconds == 43200
        assert settings.chart_bins == 200
        assert settings.data_root is None
        assert settings.log_level == "DEBUG"
        assert Path(settings.devices_root or "").name == "devices"
    finally:
        get_settings.cache_clear()
