"""Persist snapshots as JSON records and read them back."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Sequence, Union

from .errors import LogParseError, LogWriteError
from .schema import DISPLAY_ORDER, fields_for_version
from .system_state import DriveInfo, NetworkStatus, Snapshot

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

SIMPLE_LOG_FILE = "system_log.json"
HISTORY_LOG_FILE = "system_logs.json"


def snapshot_to_record(snapshot: Snapshot) -> Dict[str, Any]:
    """Serialize ``snapshot`` with keys in model order."""
    values: Dict[str, Any] = {
        "machine_name": snapshot.machine_name,
        "os_version": snapshot.os_version,
        "user_domain": snapshot.user_domain,
        "user_name": snapshot.user_name,
        "system_directory": snapshot.system_directory,
        "processor_count": snapshot.processor_count,
        "uptime_minutes": snapshot.uptime_minutes,
        "storage": [
            {"name": drive.name, "total_gb": drive.total_gb, "free_gb": drive.free_gb}
            for drive in snapshot.storage
        ],
        "gpus": list(snapshot.gpus),
        "network_status": snapshot.network_status.value,
    }
    carried = fields_for_version(snapshot.schema_version)
    record: Dict[str, Any] = {
        "schema_version": snapshot.schema_version,
        "timestamp": snapshot.timestamp.isoformat(),
    }
    record.update((name, values[name]) for name in DISPLAY_ORDER if name in carried)
    record["runtime_version"] = snapshot.runtime_version
    return record


def snapshot_from_record(record: Any) -> Snapshot:
    """Rebuild a snapshot from a stored record.

    Records without ``schema_version`` are treated as version 1. Fields the
    record's version does not carry are left empty; the diff engine skips them.
    """
    if not isinstance(record, dict):
        raise LogParseError(f"expected a JSON object, got {type(record).__name__}")
    for key in ("storage", "gpus"):
        if not isinstance(record.get(key), list):
            raise LogParseError(f"{key} must be a JSON array")
    try:
        version = int(record.get("schema_version", 1))
        carried = fields_for_version(version)
        return Snapshot(
            timestamp=datetime.fromisoformat(record["timestamp"]),
            machine_name=str(record["machine_name"]),
            os_version=str(record["os_version"]),
            user_domain=str(record["user_domain"]),
            user_name=str(record["user_name"]),
            system_directory=str(record["system_directory"]) if "system_directory" in carried else "",
            processor_count=int(record["processor_count"]),
            uptime_minutes=float(record["uptime_minutes"]),
            storage=tuple(
                DriveInfo(
                    name=str(drive["name"]),
                    total_gb=float(drive["total_gb"]),
                    free_gb=float(drive["free_gb"]),
                )
                for drive in record["storage"]
            ),
            gpus=tuple(str(gpu) for gpu in record["gpus"]),
            network_status=NetworkStatus(record["network_status"]),
            runtime_version=str(record.get("runtime_version", "")),
            schema_version=version,
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise LogParseError(f"malformed snapshot record: {exc}") from exc


class LogStore(ABC):
    """Base class for a JSON snapshot log at ``path``."""

    def __init__(self, path: PathLike) -> None:
        self.path = Path(path)

    def load_history(self) -> List[Snapshot]:
        """Return stored snapshots oldest first.

        A missing file is an empty history. So is an unreadable or malformed
        one, after logging a warning.
        """
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            records = data if isinstance(data, list) else [data]
            return [snapshot_from_record(record) for record in records]
        except (OSError, ValueError, RecursionError, LogParseError) as exc:
            logger.warning("Ignoring unreadable log %s: %s", self.path, exc)
            return []

    @abstractmethod
    def append(self, history: Sequence[Snapshot], snapshot: Snapshot) -> None:
        """Persist ``snapshot`` after ``history``, rewriting the whole file."""

    def _write(self, payload: Any) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, ensure_ascii=False)
        except OSError as exc:
            raise LogWriteError(f"cannot write {self.path}: {exc}") from exc


class HistoryLogStore(LogStore):
    """Keeps every saved snapshot as a JSON array."""

    def append(self, history: Sequence[Snapshot], snapshot: Snapshot) -> None:
        records = [snapshot_to_record(entry) for entry in history]
        records.append(snapshot_to_record(snapshot))
        self._write(records)
        logger.debug("Wrote %d snapshot(s) to %s", len(records), self.path)


class LatestLogStore(LogStore):
    """Keeps only the most recent snapshot as a single JSON object."""

    def append(self, history: Sequence[Snapshot], snapshot: Snapshot) -> None:
        self._write(snapshot_to_record(snapshot))
        logger.debug("Wrote latest snapshot to %s", self.path)


def store_for_mode(mode: str, log_dir: PathLike = ".") -> LogStore:
    """Pick the persistence policy and file name for a run mode."""
    if mode == "simple":
        return LatestLogStore(Path(log_dir) / SIMPLE_LOG_FILE)
    if mode == "advanced":
        return HistoryLogStore(Path(log_dir) / HISTORY_LOG_FILE)
    raise ValueError(f"unknown mode: {mode}")


def load_history(path: PathLike) -> List[Snapshot]:
    return HistoryLogStore(path).load_history()


def append(path: PathLike, history: Sequence[Snapshot], snapshot: Snapshot) -> None:
    HistoryLogStore(path).append(history, snapshot)
