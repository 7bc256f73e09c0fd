"""Snapshot data model and the builder that assembles it from host probe facts."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
import logging
from typing import Callable, Optional, Tuple, TypeVar

from .errors import ProbeError
from .probe import HostProbe

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 2

UNKNOWN = "Unknown"
UNKNOWN_GPU = "Unknown GPU"
NOT_PRESENT = "Not Present"

BYTES_PER_GB = 1024**3
MS_PER_MINUTE = 60000

T = TypeVar("T")


class NetworkStatus(str, Enum):
    CONNECTED = "Connected"
    DISCONNECTED = "Disconnected"
    UNKNOWN = "Unknown"


@dataclass(frozen=True)
class DriveInfo:
    name: str
    total_gb: float
    free_gb: float


@dataclass(frozen=True)
class Snapshot:
    timestamp: datetime
    machine_name: str
    os_version: str
    user_domain: str
    user_name: str
    system_directory: str
    processor_count: int
    uptime_minutes: float
    storage: Tuple[DriveInfo, ...] = ()
    gpus: Tuple[str, ...] = ()
    network_status: NetworkStatus = NetworkStatus.UNKNOWN
    runtime_version: str = ""
    schema_version: int = SCHEMA_VERSION


def build_snapshot(
    probe: Optional[HostProbe] = None,
    clock: Callable[[], datetime] = datetime.now,
) -> Snapshot:
    """Collect every host fact once and return a fully populated snapshot.

    A probe accessor that raises ``ProbeError`` contributes its fallback value
    instead, so the builder itself never fails.
    """
    if probe is None:
        probe = HostProbe()

    machine_name = _read("machine_name", probe.machine_name, UNKNOWN)
    os_version = _read("os_version", probe.os_version, UNKNOWN)
    processor_count = _read("processor_count", probe.processor_count, 1)
    user_domain = _read("user_domain", probe.user_domain, UNKNOWN)
    user_name = _read("user_name", probe.user_name, UNKNOWN)
    system_directory = _read("system_directory", probe.system_directory, UNKNOWN)
    uptime_ms = _read("uptime_ms", probe.uptime_ms, 0.0)
    drives = _read("drives", probe.drives, [])
    gpus = _read("display_adapters", probe.display_adapters, [UNKNOWN_GPU])
    network_available = _read("network_available", probe.network_available, None)
    runtime_version = _read("runtime_version", probe.runtime_version, UNKNOWN)

    return Snapshot(
        timestamp=clock(),
        machine_name=machine_name,
        os_version=os_version,
        user_domain=user_domain,
        user_name=user_name,
        system_directory=system_directory,
        processor_count=max(int(processor_count), 1),
        uptime_minutes=round(max(uptime_ms, 0.0) / MS_PER_MINUTE, 2),
        storage=tuple(
            DriveInfo(
                name=name,
                total_gb=round(total_bytes / BYTES_PER_GB, 2),
                free_gb=round(free_bytes / BYTES_PER_GB, 2),
            )
            for name, total_bytes, free_bytes in drives
        ),
        gpus=tuple(gpus),
        network_status=_network_status(network_available),
        runtime_version=runtime_version,
    )


def _read(name: str, accessor: Callable[[], T], fallback: T) -> T:
    try:
        return accessor()
    except ProbeError as exc:
        logger.warning("Probe %s failed, using fallback %r: %s", name, fallback, exc)
        return fallback


def _network_status(available: Optional[bool]) -> NetworkStatus:
    if available is None:
        return NetworkStatus.UNKNOWN
    return NetworkStatus.CONNECTED if available else NetworkStatus.DISCONNECTED
