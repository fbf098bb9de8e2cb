"""Tests for the requests-backed transport."""

from __future__ import annotations

from unittest import mock

import pytest
import requests
import responses
from requests import Response as RequestsResponse
from requests.structures import CaseInsensitiveDict

from conftest import CountingResolver
from minihttp.client import Client
from minihttp.exceptions import TransportError
from minihttp.request import Request
from minihttp.transport import RequestsTransport, headers_from_lines, raw_header_lines
from minihttp.uri import Uri


class _RawHeaders:
    """Stand-in for urllib3's header dict, one item per received value."""

    def __init__(self, pairs):
        self._pairs = pairs

    def iteritems(self):
        return iter(self._pairs)


class _RawResponse:
    def __init__(self, pairs, version=11):
        self.headers = _RawHeaders(pairs)
        self.version = version


def _build_response(status=200, reason="OK", headers=None, raw=None) -> RequestsResponse:
    response = RequestsResponse()
    response.status_code = status
    response.reason = reason
    response._content = b"body"  # type: ignore[attr-defined]
    response.headers = CaseInsensitiveDict(headers or {})
    response.raw = raw
    return response


def test_headers_from_lines_folds_duplicates():
    headers = headers_from_lines(["Accept: a", "accept: b", "bogus", "X-Value: a: b"])

    assert headers == {"Accept": "a, b", "X-Value": "a: b"}


def test_headers_from_lines_joins_cookie_lines_as_a_cookie_list():
    headers = headers_from_lines(["Cookie: lang=fr", "cookie: sid=abc", "Accept: a", "Accept: b"])

    assert headers == {"Cookie": "lang=fr; sid=abc", "Accept": "a, b"}


def test_raw_header_lines_keep_repeated_headers_apart():
    raw = _RawResponse([("Set-Cookie", "a=1"), ("Set-Cookie", "b=2"), ("Content-Type", "text/plain")])
    lines = raw_header_lines(_build_response(raw=raw))

    assert lines == [
        "HTTP/1.1 200 OK",
        "Set-Cookie: a=1",
        "Set-Cookie: b=2",
        "Content-Type: text/plain",
    ]


def test_raw_header_lines_fall_back_to_parsed_headers():
    response = _build_response(status=404, reason="Not Found", headers={"X-A": "1"})

    assert raw_header_lines(response) == ["HTTP/1.1 404 Not Found", "X-A: 1"]


def test_status_line_uses_raw_protocol_version():
    response = _build_response(raw=_RawResponse([], version=10))

    assert raw_header_lines(response)[0] == "HTTP/1.0 200 OK"


@responses.activate
def test_send_performs_exchange():
    responses.add(
        responses.POST,
        "http://example.test/submit",
        body="created",
        status=201,
        headers={"X-Test": "yes"},
    )

    result = RequestsTransport().send(
        "http://example.test/submit",
        {"method": "POST", "header": ["Accept: text/plain", "X-Trace: 1"], "content": b"a=1", "timeout": 2},
    )

    assert result.header_lines[0].startswith("HTTP/")
    assert " 201 " in result.header_lines[0]
    assert "X-Test: yes" in result.header_lines
    assert result.body == b"created"
    sent = responses.calls[0].request
    assert sent.headers["Accept"] == "text/plain"
    assert sent.headers["X-Trace"] == "1"
    assert sent.body == b"a=1"


@responses.activate
def test_send_does_not_follow_redirects():
    responses.add(
        responses.GET,
        "http://example.test/old",
        status=302,
        headers={"Location": "http://example.test/new"},
    )

    result = RequestsTransport().send("http://example.test/old", {"method": "GET"})

    assert " 302 " in result.header_lines[0]
    assert "Location: http://example.test/new" in result.header_lines
    assert len(responses.calls) == 1


@responses.activate
def test_connection_errors_become_transport_errors():
    responses.add(
        responses.GET,
        "http://example.test/down",
        body=requests.exceptions.ConnectionError("connection refused"),
    )

    with pytest.raises(TransportError) as excinfo:
        RequestsTransport().send("http://example.test/down", {})

    assert excinfo.value.code is None
    assert isinstance(excinfo.value.__cause__, requests.exceptions.ConnectionError)


def test_http_errors_carry_their_status_code():
    failing = _build_response(status=503, reason="Service Unavailable")
    session = mock.Mock()
    session.request.side_effect = requests.exceptions.HTTPError("unavailable", response=failing)

    with pytest.raises(TransportError) as excinfo:
        RequestsTransport(session).send("http://example.test/", {})

    assert excinfo.value.code == 503


def test_session_receives_default_timeout():
    session = mock.Mock()
    session.request.return_value = _build_response()

    result = RequestsTransport(session, default_timeout=7.5).send("http://example.test/", {"method": "HEAD"})

    session.request.assert_called_once_with(
        "HEAD",
        "http://example.test/",
        headers={},
        data=None,
        timeout=7.5,
        allow_redirects=False,
    )
    assert result.header_lines == ["HTTP/1.1 200 OK"]
    assert result.body == b"body"


@responses.activate
def test_client_merges_jar_with_caller_cookie_on_the_wire():
    responses.add(
        responses.GET,
        "http://example.test/",
        body="ok",
        status=200,
        headers={"Set-Cookie": "sid=abc; Path=/"},
    )
    client = Client(transport=RequestsTransport(), resolver=CountingResolver())

    client.send_request(Request(Uri("http://example.test/")))
    client.send_request(Request(Uri("http://example.test/"), {"header": ["Cookie: lang=fr"]}))

    assert responses.calls[1].request.headers["Cookie"] == "lang=fr; sid=abc"
