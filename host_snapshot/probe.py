"""Read raw host facts from the operating system."""

from __future__ import annotations

import getpass
import ipaddress
import json
import logging
import os
import platform
import socket
import subprocess
import sys
import time
from typing import Any, List, Optional, Sequence, Tuple, Union

import psutil

from .errors import ProbeError

logger = logging.getLogger(__name__)

WINDOWS_11_FIRST_BUILD = 22000

_COMMAND_TIMEOUT = 15
_WINDOWS_VERSION_KEY = r"SOFTWARE\Microsoft\Windows NT\CurrentVersion"
_LSPCI_DISPLAY_CLASSES = ("VGA compatible controller", "3D controller", "Display controller")
# Host-only adapters that are up whether or not the machine can reach a network.
_VIRTUAL_ADAPTER_PREFIXES = ("docker", "br-", "veth", "virbr", "vmnet", "vboxnet", "vethernet")


class HostProbe:
    """Accessors for the facts a snapshot is built from.

    Each accessor returns raw values (bytes, milliseconds) and raises
    ``ProbeError`` when the fact is unavailable on this host.
    """

    def machine_name(self) -> str:
        name = platform.node()
        if not name:
            raise ProbeError("host name is not set")
        return name

    def os_version(self) -> str:
        if sys.platform == "win32":
            build = windows_build_number()
            if build >= WINDOWS_11_FIRST_BUILD:
                return f"Windows 11 (Build {build})"
        description = platform.platform()
        if not description:
            raise ProbeError("OS description is not available")
        return description

    def runtime_version(self) -> str:
        version = platform.python_version()
        if not version:
            raise ProbeError("interpreter version is not available")
        return version

    def processor_count(self) -> int:
        count = psutil.cpu_count(logical=True)
        if not count:
            raise ProbeError("logical processor count is not available")
        return count

    def user_domain(self) -> str:
        domain = os.environ.get("USERDOMAIN")
        if domain:
            return domain
        fqdn = socket.getfqdn()
        if "." in fqdn:
            return fqdn.split(".", 1)[1]
        return self.machine_name()

    def user_name(self) -> str:
        try:
            return getpass.getuser()
        except (KeyError, OSError) as exc:
            raise ProbeError("current user name is not available") from exc

    def system_directory(self) -> str:
        if sys.platform == "win32":
            root = os.environ.get("SystemRoot") or os.environ.get("windir")
            if not root:
                raise ProbeError("SystemRoot is not set")
            return os.path.join(root, "System32")
        return "/usr/bin"

    def uptime_ms(self) -> float:
        try:
            boot_time = psutil.boot_time()
        except (psutil.Error, OSError) as exc:
            raise ProbeError("boot time is not available") from exc
        return (time.time() - boot_time) * 1000

    def drives(self) -> List[Tuple[str, int, int]]:
        try:
            partitions = psutil.disk_partitions(all=False)
        except (psutil.Error, OSError) as exc:
            raise ProbeError("cannot enumerate disk partitions") from exc

        drives: List[Tuple[str, int, int]] = []
        for partition in partitions:
            try:
                usage = psutil.disk_usage(partition.mountpoint)
            except (PermissionError, OSError):
                # Not ready: empty card reader, unmounted optical drive
                logger.debug("Skipping volume %s", partition.mountpoint)
                continue
            drives.append((partition.mountpoint, usage.total, usage.free))
        return drives

    def display_adapters(self) -> List[str]:
        if sys.platform == "win32":
            return _windows_display_adapters()
        if sys.platform == "darwin":
            return _macos_display_adapters()
        return _lspci_display_adapters()

    def network_available(self) -> bool:
        try:
            stats = psutil.net_if_stats()
            addresses = psutil.net_if_addrs()
        except (psutil.Error, OSError) as exc:
            raise ProbeError("cannot read network interface state") from exc
        return any(
            iface.isup
            for name, iface in stats.items()
            if not _is_loopback(name, addresses.get(name, [])) and not _is_virtual(name)
        )


def windows_build_number() -> int:
    """Return the Windows ``CurrentBuild`` registry value, or 0 if unreadable."""
    try:
        import winreg

        with winreg.OpenKey(winreg.HKEY_LOCAL_MACHINE, _WINDOWS_VERSION_KEY) as key:
            value, _ = winreg.QueryValueEx(key, "CurrentBuild")
        return int(value)
    except (ImportError, OSError, ValueError) as exc:
        logger.debug("Windows build number lookup failed: %s", exc)
        return 0


def _is_loopback(name: str, addresses: Sequence[Any] = ()) -> bool:
    lowered = name.lower()
    if lowered == "lo" or lowered.startswith("lo0") or "loopback" in lowered:
        return True
    ips = [_ip(addr.address) for addr in addresses if addr.family in (socket.AF_INET, socket.AF_INET6)]
    ips = [ip for ip in ips if ip is not None]
    return bool(ips) and all(ip.is_loopback for ip in ips)


def _is_virtual(name: str) -> bool:
    return name.lower().startswith(_VIRTUAL_ADAPTER_PREFIXES)


def _ip(address: str) -> Optional[Union[ipaddress.IPv4Address, ipaddress.IPv6Address]]:
    try:
        return ipaddress.ip_address(address.split("%", 1)[0])
    except ValueError:
        return None


def _run(command: List[str]) -> str:
    try:
        result = subprocess.run(
            command,
            capture_output=True,
            text=True,
            timeout=_COMMAND_TIMEOUT,
            check=True,
        )
    except (OSError, subprocess.SubprocessError) as exc:
        raise ProbeError(f"{command[0]} failed: {exc}") from exc
    return result.stdout


def _windows_display_adapters() -> List[str]:
    output = _run(
        [
            "powershell",
            "-NoProfile",
            "-Command",
            "Get-CimInstance Win32_VideoController | Select-Object -ExpandProperty Name",
        ]
    )
    return [line.strip() for line in output.splitlines() if line.strip()]


def _macos_display_adapters() -> List[str]:
    output = _run(["system_profiler", "SPDisplaysDataType", "-json"])
    try:
        displays = json.loads(output).get("SPDisplaysDataType", [])
    except (ValueError, AttributeError, RecursionError) as exc:
        raise ProbeError("unexpected system_profiler output") from exc
    if not isinstance(displays, list) or not all(isinstance(entry, dict) for entry in displays):
        raise ProbeError("unexpected SPDisplaysDataType layout")
    adapters: List[str] = []
    for entry in displays:
        name = entry.get("sppci_model") or entry.get("_name")
        if name:
            adapters.append(str(name))
    return adapters


def _lspci_display_adapters() -> List[str]:
    output = _run(["lspci"])
    adapters: List[str] = []
    for line in output.splitlines():
        # 00:02.0 VGA compatible controller: Intel Corporation UHD Graphics 620
        _, _, description = line.partition(" ")
        device_class, sep, name = description.partition(": ")
        if sep and device_class.strip() in _LSPCI_DISPLAY_CLASSES:
            adapters.append(name.strip())
    return adapters
