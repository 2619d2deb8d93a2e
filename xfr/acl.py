"""IP-based access control lists: allow and deny rules for addresses and subnets."""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Union

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]
Network = Union[ipaddress.IPv4Interface, ipaddress.IPv6Interface]

_NETWORK_TYPES = (ipaddress.IPv4Network, ipaddress.IPv6Network)
_INTERFACE_TYPES = (ipaddress.IPv4Interface, ipaddress.IPv6Interface)
_ADDRESS_TYPES = (ipaddress.IPv4Address, ipaddress.IPv6Address)


class AclError(ValueError):
    """Raised for malformed ACL rules or rule files."""


def parse_network(value: object) -> Network:
    """Parse a network in CIDR notation (a bare address is a single-host network)."""
    if isinstance(value, _INTERFACE_TYPES):
        return value
    if isinstance(value, _NETWORK_TYPES):
        return ipaddress.ip_interface(value.with_prefixlen)
    if isinstance(value, _ADDRESS_TYPES):
        return ipaddress.ip_interface(value)
    try:
        return ipaddress.ip_interface(str(value))
    except ValueError as exc:
        raise AclError(f"Invalid network {value!r}: {exc}") from exc


def _to_address(ip: object) -> IPAddress:
    if isinstance(ip, _ADDRESS_TYPES):
        return ip
    try:
        return ipaddress.ip_address(str(ip))
    except ValueError as exc:
        raise AclError(f"Invalid IP address {ip!r}: {exc}") from exc


def _normalize_ip(ip: IPAddress) -> IPAddress:
    """Map IPv4-mapped IPv6 addresses (::ffff:a.b.c.d) to plain IPv4."""
    if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped is not None:
        return ip.ipv4_mapped
    return ip


def _contains(network: Network, ip: IPAddress) -> bool:
    return network.version == ip.version and ip in network.network


class Acl:
    """Access control list for IP filtering.

    Deny rules are checked first. If any allow rules exist, addresses that
    match none of them are rejected.
    """

    def __init__(
        self,
        allow: Iterable[object] | None = None,
        deny: Iterable[object] | None = None,
    ) -> None:
        self._allow: list[Network] = [parse_network(n) for n in allow or ()]
        self._deny: list[Network] = [parse_network(n) for n in deny or ()]

    def __repr__(self) -> str:
        allow = [str(n) for n in self._allow]
        deny = [str(n) for n in self._deny]
        return f"Acl(allow={allow!r}, deny={deny!r})"

    @property
    def allow_rules(self) -> tuple[Network, ...]:
        return tuple(self._allow)

    @property
    def deny_rules(self) -> tuple[Network, ...]:
        return tuple(self._deny)

    @classmethod
    def from_rules(cls, allow: Iterable[str], deny: Iterable[str]) -> "Acl":
        """Build an ACL from lists of allow and deny networks."""
        return cls(allow=list(allow), deny=list(deny))

    @classmethod
    def from_file(cls, path: str | Path) -> "Acl":
        """Load rules from a file of ``allow <cidr>`` / ``deny <cidr>`` lines.

        Blank lines and lines starting with ``#`` are ignored.
        """
        content = Path(path).read_text(encoding="utf-8")
        acl = cls()
        for raw in content.splitlines():
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            parts = line.split()
            if len(parts) != 2:
                raise AclError(f"Invalid ACL line: {line}")
            directive, network_text = parts
            network = parse_network(network_text)
            match directive.lower():
                case "allow":
                    acl._allow.append(network)
                case "deny":
                    acl._deny.append(network)
                case _:
                    raise AclError(f"Unknown ACL directive: {directive}")
        return acl

    def allow(self, network: object) -> None:
        """Add an allow rule."""
        self._allow.append(parse_network(network))

    def deny(self, network: object) -> None:
        """Add a deny rule."""
        self._deny.append(parse_network(network))

    def is_allowed(self, ip: object) -> bool:
        """Return whether the address passes the rules."""
        address = _normalize_ip(_to_address(ip))
        if any(_contains(n, address) for n in self._deny):
            return False
        if not self._allow:
            return True
        return any(_contains(n, address) for n in self._allow)

    def is_configured(self) -> bool:
        """Return whether any rules are present."""
        return bool(self._allow or self._deny)

    def matched_rule(self, ip: object) -> str | None:
        """Describe the first rule matching the address, deny rules first."""
        address = _to_address(ip)
        for network in self._deny:
            if _contains(network, address):
                return f"deny {network}"
        for network in self._allow:
            if _contains(network, address):
                return f"allow {network}"
        return None


@dataclass
class AclConfig:
    """ACL settings gathered from the command line and configuration."""

    allow: list[str] = field(default_factory=list)
    deny: list[str] = field(default_factory=list)
    file: str | Path | None = None

    def build(self) -> Acl:
        """Build an ACL: rules from the file first, then the listed rules."""
        acl = Acl.from_file(self.file) if self.file is not None else Acl()
        for network in self.allow:
            acl.allow(network)
        for network in self.deny:
            acl.deny(network)
        return acl