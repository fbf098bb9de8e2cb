"""Host name resolution used by the client's DNS cache.

A resolver returns a literal address for a host name, or the host name
unchanged when it could not be resolved.
"""

from __future__ import annotations

import logging
import socket
from typing import TYPE_CHECKING, Protocol

import dns.exception
import dns.resolver

if TYPE_CHECKING:
    from .config import ClientConfig

LOGGER = logging.getLogger(__name__)

RESOLVER_KINDS = frozenset({"system", "dns"})


class Resolver(Protocol):
    def resolve(self, host: str) -> str:
        ...


class SystemResolver:
    """Resolve through the operating system (hosts file, NSS, DNS)."""

    def resolve(self, host: str) -> str:
        try:
            return socket.gethostbyname(host)
        except (socket.gaierror, UnicodeError) as exc:
            LOGGER.debug("System resolution failed for %s: %s", host, exc)
            return host


class DnsResolver:
    """Resolve A records directly with dnspython."""

    def __init__(self, lifetime: float = 3.0) -> None:
        self._resolver = dns.resolver.Resolver()
        self._resolver.lifetime = lifetime

    def resolve(self, host: str) -> str:
        try:
            answers = self._resolver.resolve(host, "A")
        except dns.exception.DNSException as exc:
            LOGGER.debug("DNS resolution failed for %s: %s", host, exc)
            return host
        for answer in answers:
            return str(answer).strip()
        return host


def build_resolver(config: "ClientConfig") -> Resolver:
    if config.resolver == "dns":
        return DnsResolver(lifetime=config.dns_lifetime)
    return SystemResolver()


__all__ = ["DnsResolver", "RESOLVER_KINDS", "Resolver", "SystemResolver", "build_resolver"]
