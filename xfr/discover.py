"""LAN discovery of xfr servers using mDNS service queries."""

from __future__ import annotations

import asyncio
import ipaddress
import logging
import socket
import struct
import time
from dataclasses import dataclass

import dns.exception
import dns.message
import dns.name
import dns.rdatatype

logger = logging.getLogger(__name__)

SERVICE_TYPE = "_xfr._tcp.local."
MDNS_GROUP = "224.0.0.251"
MDNS_PORT = 5353

_SERVICE_NAME = dns.name.from_text(SERVICE_TYPE)
_CLASS_IN = 1
_CLASS_MASK = 0x7FFF  # strips the mDNS cache-flush bit
_TYPE_A = 1
_TYPE_PTR = 12
_TYPE_TXT = 16
_TYPE_AAAA = 28
_TYPE_SRV = 33
_FLAG_QR = 0x8000
_POLL_INTERVAL = 0.1
_MAX_DATAGRAM = 9000

IPAddress = ipaddress.IPv4Address | ipaddress.IPv6Address


class DiscoverError(ValueError):
    """Raised when an mDNS packet cannot be decoded."""


@dataclass
class DiscoveredServer:
    """A server found on the local network."""

    ip: IPAddress
    port: int
    hostname: str | None = None
    version: str | None = None

    def __post_init__(self) -> None:
        self.ip = ipaddress.ip_address(self.ip)

    def __str__(self) -> str:
        text = f"{self.ip}:{self.port}"
        if self.hostname is not None:
            text += f" ({self.hostname})"
        if self.version is not None:
            text += f" xfr/{self.version}"
        return text


def build_query() -> bytes:
    """Return the wire form of a PTR query for the xfr service type."""
    query = dns.message.make_query(_SERVICE_NAME, dns.rdatatype.PTR)
    query.id = 0
    query.flags = 0
    return query.to_wire()


def _read_name(data: bytes, offset: int) -> tuple[dns.name.Name, int]:
    try:
        name, used = dns.name.from_wire(data, offset)
    except (dns.exception.DNSException, IndexError) as exc:
        raise DiscoverError(f"Malformed name at offset {offset}: {exc}") from exc
    return name, offset + used


def _unpack(fmt: str, data: bytes, offset: int) -> tuple[int, ...]:
    try:
        return struct.unpack_from(fmt, data, offset)
    except struct.error as exc:
        raise DiscoverError(f"Truncated packet at offset {offset}") from exc


def _parse_txt(rdata: bytes) -> dict[str, str]:
    properties: dict[str, str] = {}
    position = 0
    while position < len(rdata):
        length = rdata[position]
        chunk = rdata[position + 1 : position + 1 + length]
        position += 1 + length
        if not chunk:
            continue
        key, _, value = chunk.decode("utf-8", errors="replace").partition("=")
        properties.setdefault(key.lower(), value)
    return properties


def parse_response(data: bytes, source_ip: object = None) -> list[DiscoveredServer]:
    """Extract the xfr servers advertised in an mDNS response.

    When a response names a host without giving its address, ``source_ip``
    (the sender of the packet) is used instead.
    """
    _, flags, qdcount, ancount, nscount, arcount = _unpack("!6H", data, 0)
    if not flags & _FLAG_QR:
        return []

    offset = 12
    for _ in range(qdcount):
        _, offset = _read_name(data, offset)
        offset += 4
        if offset > len(data):
            raise DiscoverError("Truncated question section")

    instances: dict[dns.name.Name, None] = {}
    services: dict[dns.name.Name, tuple[int, dns.name.Name]] = {}
    texts: dict[dns.name.Name, dict[str, str]] = {}
    addresses: dict[dns.name.Name, list[IPAddress]] = {}

    for _ in range(ancount + nscount + arcount):
        owner, offset = _read_name(data, offset)
        rtype, rclass, _ttl, rdlength = _unpack("!HHIH", data, offset)
        start = offset + 10
        end = start + rdlength
        if end > len(data):
            raise DiscoverError("Truncated resource record")
        offset = end
        if rclass & _CLASS_MASK != _CLASS_IN:
            continue
        rdata = data[start:end]
        if rtype == _TYPE_PTR and owner == _SERVICE_NAME:
            target, _ = _read_name(data, start)
            instances.setdefault(target, None)
        elif rtype == _TYPE_SRV:
            if rdlength < 7:
                raise DiscoverError("Truncated SRV record")
            _priority, _weight, port = _unpack("!HHH", data, start)
            target, _ = _read_name(data, start + 6)
            services[owner] = (port, target)
            if owner.is_subdomain(_SERVICE_NAME) and owner != _SERVICE_NAME:
                instances.setdefault(owner, None)
        elif rtype == _TYPE_TXT:
            texts[owner] = _parse_txt(rdata)
        elif rtype == _TYPE_A and rdlength == 4:
            addresses.setdefault(owner, []).append(ipaddress.IPv4Address(rdata))
        elif rtype == _TYPE_AAAA and rdlength == 16:
            addresses.setdefault(owner, []).append(ipaddress.IPv6Address(rdata))

    fallback = [ipaddress.ip_address(source_ip)] if source_ip is not None else []
    servers: list[DiscoveredServer] = []
    seen: set[IPAddress] = set()
    for instance in instances:
        if instance not in services:
            continue
        port, target = services[instance]
        version = texts.get(instance, {}).get("version")
        for ip in addresses.get(target) or fallback:
            if ip in seen:
                continue
            seen.add(ip)
            servers.append(
                DiscoveredServer(ip=ip, port=port, hostname=target.to_text(), version=version)
            )
    return servers


def _discover_blocking(timeout: float) -> list[DiscoveredServer]:
    servers: list[DiscoveredServer] = []
    deadline = time.monotonic() + timeout
    logger.info("Searching for xfr servers...")
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, 255)
        sock.bind(("", 0))
        sock.sendto(build_query(), (MDNS_GROUP, MDNS_PORT))
        while (remaining := deadline - time.monotonic()) > 0:
            sock.settimeout(min(remaining, _POLL_INTERVAL))
            try:
                data, sender = sock.recvfrom(_MAX_DATAGRAM)
            except TimeoutError:
                continue
            try:
                found = parse_response(data, sender[0])
            except DiscoverError as exc:
                logger.debug("Ignoring malformed mDNS packet from %s: %s", sender[0], exc)
                continue
            for server in found:
                if any(existing.ip == server.ip for existing in servers):
                    continue
                logger.info(
                    "Found server: %s:%s (%s)",
                    server.ip,
                    server.port,
                    server.hostname or "unknown",
                )
                servers.append(server)
    return servers


async def discover(timeout: float) -> list[DiscoveredServer]:
    """Search the local network for xfr servers for ``timeout`` seconds."""
    if timeout < 0:
        raise ValueError(f"timeout must be non-negative, got {timeout}")
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, _discover_blocking, timeout)