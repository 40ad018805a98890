# data.py
import json
import logging
from pathlib import Path
from typing import Mapping

from service import ServiceStatus

logger = logging.getLogger(__name__)

def snapshot_to_dict(snapshot: Mapping[str, ServiceStatus]) -> dict:
    """Converts a status snapshot into JSON-ready data, keyed by service name."""
    return {name: status.to_dict() for name, status in sorted(snapshot.items())}

def save_status_snapshot(snapshot: Mapping[str, ServiceStatus], json_file: Path) -> None:
    """Saves a status snapshot to the JSON file.

    Args:
        snapshot (Mapping[str, ServiceStatus]): Statuses keyed by service name.
        json_file (Path): Path to the JSON file.
    """
    try:
        json_file.parent.mkdir(parents=True, exist_ok=True)
        with json_file.open("w", encoding="utf-8") as file:
            json.dump(snapshot_to_dict(snapshot), file, indent=4)
    except OSError as err:
        logger.error("File system error while saving status snapshot: %s", err)
