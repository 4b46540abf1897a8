"""Outbound URL validation against SSRF.

Checks run in order and stop at the first violation:

1. the scheme must be ``https``;
2. the host must not be a known cloud metadata endpoint;
3. the host, whether a literal address or a resolved name, must not fall into a
   private, loopback or link-local range.

DNS failures are not violations: the subsequent request is left to fail on its own.
"""

import asyncio
import ipaddress
import socket
from typing import Iterable, List, Optional, Tuple
from urllib.parse import urlsplit

from ..exceptions import SecurityError
from ..logger import get_logger

logger = get_logger(__name__)

ALLOWED_SCHEMES = frozenset({"https"})

BLOCKED_METADATA_HOSTS = (
    "169.254.169.254",  # AWS, Azure, GCP
    "metadata.google.internal",
    "100.100.100.200",  # Alibaba Cloud
    "fd00:ec2::254",  # AWS IPv6
    "metadata",
    "metadata.azure.com",
)

BLOCKED_NETWORKS = tuple(
    ipaddress.ip_network(cidr)
    for cidr in (
        "10.0.0.0/8",
        "172.16.0.0/12",
        "192.168.0.0/16",
        "127.0.0.0/8",
        "169.254.0.0/16",
        "::1/128",
        "fc00::/7",
        "fe80::/10",
    )
)

_DEFAULT_PORTS = {"https": 443, "http": 80}

IPAddress = ipaddress.IPv4Address | ipaddress.IPv6Address

METADATA_ADDRESSES = frozenset(
    ipaddress.ip_address(host) for host in ("169.254.169.254", "100.100.100.200", "fd00:ec2::254")
)


def _split(url: str):
    try:
        parts = urlsplit(url.strip())
        # Accessing .port validates it and raises ValueError when out of range.
        parts.port
    except ValueError as exc:
        raise SecurityError(f"Malformed URL: {url!r}") from exc
    return parts


def is_blocked_address(address: IPAddress) -> bool:
    """Return True when the address is a metadata endpoint or falls into a blocked range."""
    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped is not None:
        address = address.ipv4_mapped
    if address in METADATA_ADDRESSES:
        return True
    return any(address.version == network.version and address in network for network in BLOCKED_NETWORKS)


def _parse_ip(host: str) -> Optional[IPAddress]:
    try:
        return ipaddress.ip_address(host.split("%", 1)[0])
    except ValueError:
        return None


def _check_metadata_host(host: str) -> None:
    literal = _parse_ip(host)
    for blocked in BLOCKED_METADATA_HOSTS:
        blocked_ip = _parse_ip(blocked)
        if literal is not None and blocked_ip is not None:
            if literal == blocked_ip:
                raise SecurityError(f"Blocked cloud metadata endpoint: {host}")
        elif host == blocked or host.endswith("." + blocked):
            raise SecurityError(f"Blocked cloud metadata endpoint: {host}")


async def _resolve(host: str) -> List[str]:
    loop = asyncio.get_running_loop()
    infos: Iterable[Tuple] = await loop.getaddrinfo(host, None, type=socket.SOCK_STREAM)
    return sorted({info[4][0] for info in infos})


async def _check_private_address(host: str) -> None:
    literal = _parse_ip(host)
    if literal is not None:
        if is_blocked_address(literal):
            raise SecurityError(f"Private IP addresses are not allowed: {host}")
        return

    try:
        addresses = await _resolve(host)
    except (socket.gaierror, OSError, UnicodeError) as exc:
        logger.debug("DNS resolution failed for %s (%s); leaving it to the request", host, exc)
        return

    for raw in addresses:
        resolved = _parse_ip(raw)
        if resolved is not None and is_blocked_address(resolved):
            raise SecurityError(f"Private IP addresses are not allowed: {host} resolves to {raw}")


async def validate_secure_url(url: str) -> None:
    """Validate a URL for outbound fetching.

    Args:
        url: The URL to check.

    Raises:
        SecurityError: If the scheme, host or resolved address violates policy.
    """
    parts = _split(url)
    scheme = parts.scheme.lower()
    if scheme not in ALLOWED_SCHEMES:
        if scheme:
            raise SecurityError(f"Blocked URL scheme: {scheme}: (only HTTPS URLs are allowed)")
        raise SecurityError("Only HTTPS URLs are allowed")

    host = (parts.hostname or "").lower()
    if not host:
        raise SecurityError(f"URL has no host: {url!r}")

    _check_metadata_host(host)
    await _check_private_address(host)


def _origin(url: str) -> Tuple[str, str, Optional[int]]:
    parts = _split(url)
    scheme = parts.scheme.lower()
    return scheme, (parts.hostname or "").lower(), parts.port or _DEFAULT_PORTS.get(scheme)


async def validate_redirect_url(original_url: str, redirect_url: str) -> None:
    """Validate a redirect target.

    The target must pass :func:`validate_secure_url` and share the origin
    (scheme, host, port) of the URL that issued the redirect.

    Raises:
        SecurityError: If the target is unsafe or cross-origin.
    """
    await validate_secure_url(redirect_url)

    source, target = _origin(original_url), _origin(redirect_url)
    if source != target:
        raise SecurityError(f"Cross-origin redirect blocked: {source[1]} -> {target[1]}")
