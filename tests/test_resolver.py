"""Tests for host name resolvers."""

from __future__ import annotations

import socket

import dns.exception
import dns.resolver
import pytest

from minihttp import resolver as resolver_module
from minihttp.config import ClientConfig
from minihttp.resolver import DnsResolver, SystemResolver, build_resolver


class _StubDnsResolver:
    answers: list[str] = ["198.51.100.7"]
    error: Exception | None = None

    def __init__(self):
        self.lifetime = None
        self.queries: list[tuple[str, str]] = []

    def resolve(self, host, rdtype):
        self.queries.append((host, rdtype))
        if self.error is not None:
            raise self.error
        return list(self.answers)


@pytest.fixture
def stub_dns(monkeypatch):
    monkeypatch.setattr(dns.resolver, "Resolver", _StubDnsResolver)
    monkeypatch.setattr(_StubDnsResolver, "error", None)
    return _StubDnsResolver


def test_system_resolver_returns_address(monkeypatch):
    monkeypatch.setattr(socket, "gethostbyname", lambda host: "192.0.2.1")

    assert SystemResolver().resolve("example.com") == "192.0.2.1"


def test_system_resolver_returns_host_on_failure(monkeypatch):
    def _fail(host):
        raise socket.gaierror(-2, "Name or service not known")

    monkeypatch.setattr(socket, "gethostbyname", _fail)

    assert SystemResolver().resolve("nowhere.invalid") == "nowhere.invalid"


def test_dns_resolver_uses_first_a_record(stub_dns):
    resolver = DnsResolver(lifetime=1.5)

    assert resolver.resolve("example.com") == "198.51.100.7"
    assert resolver._resolver.lifetime == 1.5
    assert resolver._resolver.queries == [("example.com", "A")]


def test_dns_resolver_returns_host_on_dns_errors(stub_dns, monkeypatch):
    monkeypatch.setattr(stub_dns, "error", dns.exception.Timeout())

    assert DnsResolver().resolve("slow.example") == "slow.example"


def test_dns_resolver_returns_host_without_answers(stub_dns, monkeypatch):
    monkeypatch.setattr(stub_dns, "answers", [])

    assert DnsResolver().resolve("empty.example") == "empty.example"


def test_build_resolver_follows_configuration(stub_dns):
    assert isinstance(build_resolver(ClientConfig()), SystemResolver)

    built = build_resolver(ClientConfig(resolver="dns", dns_lifetime=0.5))
    assert isinstance(built, DnsResolver)
    assert built._resolver.lifetime == 0.5


def test_resolver_kinds_match_configuration():
    assert resolver_module.RESOLVER_KINDS == {"system", "dns"}
