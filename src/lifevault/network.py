from __future__ import annotations

import logging
import socket

from .errors import StorageError

logger = logging.getLogger(__name__)

# Any routable address works; connect() on a UDP socket sends nothing
_PROBE_ADDR = ("10.255.255.255", 1)


def get_local_ip() -> str:
    """Return this machine's LAN address for multiplayer discovery.

    Asks the OS which interface would route outward, falling back to the
    hostname lookup when there is no route (e.g. offline machines).
    """
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
            s.connect(_PROBE_ADDR)
            return s.getsockname()[0]
    except OSError as exc:
        logger.debug("Routing probe failed, falling back to hostname lookup: %s", exc)
    try:
        return socket.gethostbyname(socket.gethostname())
    except OSError as exc:
        raise StorageError(f"Failed to get local IP: {exc}", operation="get local ip") from exc
