"""HTTP client executing :class:`~minihttp.request.Request` objects.

One :meth:`Client.send_request` call goes through the same steps every time:
reset the per-call errors and warnings, look up the host in the DNS cache,
assemble the transport options (body length, user agent, timeout, cookies),
call the transport, build the :class:`~minihttp.response.Response` and store
the cookies it sets.

Network failures without an HTTP status are recorded in :attr:`Client.errors`
and produce a degraded response (status 0); structural problems raise.
"""

from __future__ import annotations

import ipaddress
import json
import logging
import re
import time
from typing import Any, Optional, Union

from .config import ClientConfig
from .exceptions import ClientException, InvalidArgument, TransportError
from .logging_utils import PRIVATE, PlaceholderAdapter, mask_secrets, redact_header_lines
from .metrics import (
    record_cookies_stored,
    record_dns_lookup,
    record_request_completed,
    record_request_failed,
    record_request_sent,
)
from .request import Request
from .resolver import Resolver, build_resolver
from .response import Response
from .streams import MemoryStream
from .transport import RequestsTransport, Transport
from .uri import Uri

SET_COOKIE_PREFIX = "set-cookie: "
COOKIE_SEPARATOR = "; "
FULL_PAYLOAD_LIMIT = 1000
PAYLOAD_PREVIEW_BYTES = 100
WARNING_STATUS = 300
HOST_LETTER = re.compile(r"[a-z]", re.IGNORECASE)


def _plural(count: int, suffix: str = "s") -> str:
    return "" if count == 1 else suffix


def public_url(uri: Uri) -> str:
    """URL safe for logs: password in user info and ``pass*``/``pw*`` values hidden."""

    user, separator, _ = uri.get_user_info().partition(":")
    if separator:
        uri = uri.with_user_info(user, PRIVATE)
    return mask_secrets(str(uri).strip())


def _printable(options: dict[str, Any]) -> dict[str, Any]:
    printable = dict(options)
    printable["header"] = redact_header_lines(printable.get("header") or [])
    content = printable.get("content")
    if isinstance(content, (bytes, bytearray)):
        printable["content"] = bytes(content).decode("utf-8", errors="replace")
    return printable


class Client:
    """Send requests while keeping a cookie jar and a DNS cache.

    A client is meant for one thread at a time: the cookie jar, the DNS cache
    and the per-call error and warning lists are plain instance state.
    """

    def __init__(
        self,
        logger: Optional[Union[logging.Logger, logging.LoggerAdapter]] = None,
        *,
        transport: Optional[Transport] = None,
        resolver: Optional[Resolver] = None,
        config: Optional[ClientConfig] = None,
    ) -> None:
        self.config = config or ClientConfig()
        self._logger = (
            PlaceholderAdapter(logger, self.config.log_context) if logger is not None else None
        )
        self._transport: Transport = transport or RequestsTransport(default_timeout=self.config.timeout)
        self._resolver: Resolver = resolver or build_resolver(self.config)
        self._cookies: dict[str, str] = {}
        self._dns_cache: dict[str, str] = {}
        self._errors: list[str] = []
        self._warnings: list[str] = []
        self._request_count = 0
        self._last_url = ""
        self._closed = False
        if self._logger is not None:
            self._logger.info("Web client created")

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # Read-only state

    @property
    def cookies(self) -> dict[str, str]:
        return dict(self._cookies)

    @property
    def dns_cache(self) -> dict[str, str]:
        return dict(self._dns_cache)

    @property
    def errors(self) -> list[str]:
        return list(self._errors)

    @property
    def warnings(self) -> list[str]:
        return list(self._warnings)

    @property
    def request_count(self) -> int:
        return self._request_count

    @property
    def last_url(self) -> str:
        return self._last_url

    # Bookkeeping

    def _error(self, message: str, *, exc_info: bool = False) -> None:
        self._errors.append(message)
        if self._logger is not None:
            self._logger.error("{detail}", extra={"detail": message}, exc_info=exc_info)

    def _warn(self, message: str) -> None:
        self._warnings.append(message)
        if self._logger is not None:
            self._logger.warning("{detail}", extra={"detail": message})

    def reset_dns_cache(self) -> int:
        """Forget every cached address and return how many were dropped."""

        count = len(self._dns_cache)
        if not count:
            return 0
        if self._logger is not None:
            self._logger.debug(
                "Clean up {count} IP address{suffix} from DNS cache",
                extra={"count": count, "suffix": _plural(count, "es")},
            )
        self._dns_cache.clear()
        return count

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.reset_dns_cache()
        if self._logger is not None:
            requests_done = self._request_count
            cookies_used = len(self._cookies)
            self._logger.info(
                "Web client did {requests} request{rs} and used {cookies} cookie{cs}",
                extra={
                    "requests": requests_done,
                    "rs": _plural(requests_done),
                    "cookies": cookies_used,
                    "cs": _plural(cookies_used),
                },
            )

    # Request execution

    def _lookup(self, host: str) -> None:
        if not host or not HOST_LETTER.search(host):
            return
        try:
            ipaddress.ip_address(host)
        except ValueError:
            pass
        else:
            return
        if host in self._dns_cache:
            record_dns_lookup(hit=True)
            return
        record_dns_lookup(hit=False)
        if self._logger is not None:
            self._logger.debug("Look up for '{host}' IP address...", extra={"host": host})
        address = self._resolver.resolve(host)
        if address == host:
            raise ClientException(f"Cannot resolve '{host}' to a numerical IP address")
        self._dns_cache[host] = address
        if self._logger is not None:
            self._logger.debug(
                "Found numerical IP address for '{host}': '{address}'",
                extra={"host": host, "address": address},
            )

    def _assemble(self, request: Request) -> tuple[Request, dict[str, Any]]:
        outgoing = request
        body = request.get_body()
        size = body.get_size()
        if size and body.is_readable():
            outgoing = outgoing.with_header("Content-length", size)
        if self.config.user_agent and not outgoing.has_header("User-Agent"):
            outgoing = outgoing.with_header("User-Agent", self.config.user_agent)

        options = outgoing.get_context_options()
        if options.get("timeout") is None:
            options["timeout"] = self.config.timeout

        if self._cookies:
            cookie_value = COOKIE_SEPARATOR.join(f"{key}={value}" for key, value in self._cookies.items())
            cookie_length = len(cookie_value.encode("utf-8"))
            if cookie_length >= self.config.max_cookie_length:
                self._warn(f"Cookie length is: {cookie_length}")
            options["header"] = [*options["header"], f"Cookie: {cookie_value}"]
        return outgoing, options

    def _store_cookies(self, response: Response) -> int:
        stored = 0
        for line in response.get_headers():
            if not line.lower().startswith(SET_COOKIE_PREFIX):
                continue
            couple = line[len(SET_COOKIE_PREFIX):].split(COOKIE_SEPARATOR, 1)[0]
            key, separator, value = couple.partition("=")
            if not separator:
                self._warn(f"Did not find '=' in cookie value: {couple}")
                continue
            self._cookies[key] = value
            stored += 1
        return stored

    def _error_report(self, request: Request, outgoing: Request, response: Response) -> str:
        report = f"{request}\n {chr(10).join(self._errors)}".rstrip()
        report += "\n Request headers were: " + json.dumps(
            redact_header_lines(outgoing.get_headers()), indent=4
        )
        report += "\n Response headers were: " + json.dumps(
            redact_header_lines(response.get_headers()), indent=4
        )
        body = outgoing.get_body()
        size = body.get_size()
        if size is None:
            size = 1_000_000
        if size and body.is_readable():
            payload = bytes(body).decode("utf-8", errors="replace")
            if size < FULL_PAYLOAD_LIMIT:
                report += f"\n\nPayload ({size} B) was: {payload}"
            else:
                report += f"\n\nPayload ({size} B) starts with: {payload[:PAYLOAD_PREVIEW_BYTES]}"
        return mask_secrets(report)

    def send_request(self, request: Request) -> Response:
        """Execute ``request`` and return the response.

        :raises ClientException: when the host does not resolve, or when the
            transport fails with an HTTP status code (100-599).
        """

        if not isinstance(request, Request):
            raise InvalidArgument(f"Invalid request: {request!r}")
        self._errors = []
        self._warnings = []

        uri = request.get_uri()
        self._lookup(uri.get_host().rstrip())
        url = str(uri).strip()

        outgoing, options = self._assemble(request)

        if self._logger is not None:
            self._logger.debug("Request (public) URL: {url}", extra={"url": public_url(uri)})
            self._logger.debug(
                "Request (public) options: {options}",
                extra={"options": mask_secrets(json.dumps(_printable(options), indent=4, default=str))},
            )

        self._request_count += 1
        self._last_url = url
        record_request_sent(url)

        start = time.perf_counter()
        try:
            result = self._transport.send(url, options)
        except TransportError as exc:
            request.set_duration((time.perf_counter() - start) * 1000)
            reason = str(exc)
            record_request_failed(url, reason)
            if exc.code is not None and 100 <= exc.code < 600:
                raise ClientException(reason, code=exc.code) from exc
            self._error(reason, exc_info=self.config.debug)
            return Response.degraded(reason=reason)
        elapsed = time.perf_counter() - start
        request.set_duration(elapsed * 1000)

        body = result.body
        if body is None:
            self._warn("Request returned body: false")
            body = b""

        if result.header_lines:
            response = Response(result.header_lines, MemoryStream(body))
        else:
            self._error("Request failed, no response headers")
            response = Response.degraded(body)

        status = response.get_status_code()
        if status >= WARNING_STATUS:
            self._warn(f"HTTP response status: {status} {response.get_reason_phrase()}".rstrip())

        stored = self._store_cookies(response)

        if self._logger is not None and self._errors:
            self._logger.error(
                "{detail}", extra={"detail": self._error_report(request, outgoing, response)}
            )

        record_request_completed(url, elapsed, status)
        record_cookies_stored(stored)
        return response


__all__ = ["Client", "public_url"]
