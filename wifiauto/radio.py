"""
RadioControl on NetworkManager for wifiauto.

Drives the Wi-Fi radio through ``nmcli``. Each call spawns one short-lived
process; failures surface as RadioControlError.
"""

from __future__ import annotations

import asyncio
from typing import List, Optional, Sequence, Tuple

from .constants import NMCLI_TIMEOUT_S
from .exceptions import RadioControlError
from .log import LogComponent, get_logger
from .types import AssociationState, Attachment, NetworkTransport

logger = get_logger(LogComponent.RADIO)

_TRANSPORTS = {
    "wifi": NetworkTransport.WIFI,
    "ethernet": NetworkTransport.ETHERNET,
    "gsm": NetworkTransport.CELLULAR,
    "cdma": NetworkTransport.CELLULAR,
}


def _split_terse(line: str) -> List[str]:
    """Split one line of ``nmcli -t`` output; ``\\:`` is a literal colon."""
    fields, current, escaped = [], [], False
    for ch in line:
        if escaped:
            current.append(ch)
            escaped = False
        elif ch == "\\":
            escaped = True
        elif ch == ":":
            fields.append("".join(current))
            current = []
        else:
            current.append(ch)
    fields.append("".join(current))
    return fields


def parse_device_status(output: str) -> List[Tuple[str, str, str]]:
    """Parse ``nmcli -t -f DEVICE,TYPE,STATE device`` into (device, type, state)."""
    devices = []
    for line in output.splitlines():
        if not line.strip():
            continue
        parts = _split_terse(line)
        if len(parts) < 3:
            continue
        devices.append((parts[0].strip(), parts[1].strip(), parts[2].strip()))
    return devices


def attachment_from_devices(
    devices: Sequence[Tuple[str, str, str]], interface: Optional[str] = None
) -> Attachment:
    """
    Reduce device states to the attachment that matters for the monitor.

    The radio's own device wins when it is connected or connecting; otherwise
    the first connected device of another transport is reported.
    """
    for device, dev_type, state in devices:
        if dev_type != "wifi" or (interface and device != interface):
            continue
        if state == "connected":
            return Attachment(NetworkTransport.WIFI, AssociationState.COMPLETED, device)
        if state.startswith("connecting"):
            return Attachment(NetworkTransport.WIFI, AssociationState.ASSOCIATING, device)

    for device, dev_type, state in devices:
        if dev_type in ("wifi", "loopback", "bridge") or state != "connected":
            continue
        transport = _TRANSPORTS.get(dev_type, NetworkTransport.OTHER)
        return Attachment(transport, AssociationState.COMPLETED, device)

    return Attachment(NetworkTransport.NONE, AssociationState.DISCONNECTED)


class NMCLIRadio:
    """Interact with NetworkManager via nmcli commands."""

    def __init__(
        self,
        interface: Optional[str] = None,
        executable: str = "nmcli",
        timeout: float = NMCLI_TIMEOUT_S,
    ) -> None:
        self._interface = interface
        self._executable = executable
        self._timeout = timeout

    async def _run(self, *args: str) -> str:
        cmd = [self._executable, *args]
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as exc:
            raise RadioControlError(
                "nmcli command unavailable", command=" ".join(cmd)
            ) from exc
        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=self._timeout
            )
        except asyncio.TimeoutError as exc:
            process.kill()
            await process.wait()
            raise RadioControlError(
                "nmcli command timed out", command=" ".join(cmd)
            ) from exc
        if process.returncode != 0:
            reason = (stderr or stdout).decode("utf-8", errors="replace").strip()
            raise RadioControlError(
                "nmcli command failed", command=" ".join(cmd), reason=reason
            )
        return stdout.decode("utf-8", errors="replace")

    async def is_enabled(self) -> bool:
        output = await self._run("-t", "radio", "wifi")
        return output.strip() == "enabled"

    async def set_enabled(self, enabled: bool) -> None:
        logger.debug(f"Switching Wi-Fi radio {'on' if enabled else 'off'}")
        await self._run("radio", "wifi", "on" if enabled else "off")

    async def current_attachment(self) -> Attachment:
        output = await self._run("-t", "-f", "DEVICE,TYPE,STATE", "device")
        return attachment_from_devices(parse_device_status(output), self._interface)
