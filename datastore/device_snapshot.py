from __future__ import annotations
import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

from settings import get_settings

logger = logging.getLogger(__name__)


class DeviceSnapshotFile:
    """Latest-state projection of each device, one JSON file per device id."""

    def __init__(self, root_path: Optional[Path] = None) -> None:
        self.root_path = root_path

    def path_for(self, device_id: str) -> Optional[Path]:
        if not self.root_path:
            return None
        return self.root_path / f"{device_id}.json"

    def write(self, device: Dict[str, Any]) -> bool:
        """Overwrite the snapshot of ``device``; False when the write failed."""
        path = self.path_for(str(device["id"]))
        if path is None:
            return True

        payload = {"device": device}
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(payload, indent=3))
        except OSError as exc:
            logger.error(
                "Failed to write device snapshot",
                extra={"device_id": device["id"], "path": str(path), "reason": str(exc)},
            )
            return False
        return True

    def read(self, device_id: str) -> Optional[Dict[str, Any]]:
        path = self.path_for(device_id)
        if path is None or not path.exists():
            return None

        try:
            data = json.loads(path.read_text() or "{}")
        except (OSError, json.JSONDecodeError) as exc:
            logger.error(
                "Failed to read device snapshot",
                extra={"device_id": device_id, "path": str(path), "reason": str(exc)},
            )
            return None
        return data.get("device")


@lru_cache
def build_default_snapshot_file(root_path: Optional[str] = None) -> DeviceSnapshotFile:
    settings = get_settings()
    devices_root = settings.devices_root if root_path is None else root_path
    return DeviceSnapshotFile(root_path=Path(devices_root) if devices_root else None)
