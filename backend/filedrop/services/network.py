"""Local network address discovery for the /api/info endpoint."""
import ipaddress
import logging
import socket

logger = logging.getLogger(__name__)

UNKNOWN_IP = "unknown"


def _usable(address: str) -> bool:
    try:
        ip = ipaddress.ip_address(address)
    except ValueError:
        return False
    return ip.version == 4 and not ip.is_loopback and not ip.is_unspecified


def get_local_ip() -> str:
    """First non-loopback IPv4 address of this host, or "unknown"."""
    # connect() on a UDP socket sends nothing; it only selects the outbound interface.
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
            s.connect(("10.255.255.255", 1))
            address = s.getsockname()[0]
        if _usable(address):
            return address
    except OSError as e:
        logger.debug(f"Route lookup for local IP failed: {e}")

    try:
        infos = socket.getaddrinfo(socket.gethostname(), None, socket.AF_INET)
    except OSError as e:
        logger.debug(f"Hostname lookup for local IP failed: {e}")
        return UNKNOWN_IP

    for info in infos:
        address = info[4][0]
        if _usable(address):
            return address
    return UNKNOWN_IP
