import logging
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from minihttp.client import Client  # noqa: E402
from minihttp.transport import TransportResult  # noqa: E402

OK_LINES = ["HTTP/1.1 200 OK", "Content-Type: text/plain"]


class FakeTransport:
    """Transport returning queued results (or raising queued exceptions)."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls: list[tuple[str, dict]] = []

    def queue(self, outcome) -> None:
        self.outcomes.append(outcome)

    def send(self, url, options):
        self.calls.append((url, dict(options)))
        outcome = self.outcomes.pop(0) if self.outcomes else TransportResult(list(OK_LINES), b"")
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class CountingResolver:
    def __init__(self, answers=None, default="192.0.2.10"):
        self.answers = dict(answers or {})
        self.default = default
        self.calls: list[str] = []

    def resolve(self, host: str) -> str:
        self.calls.append(host)
        return self.answers.get(host, self.default)


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def resolver() -> CountingResolver:
    return CountingResolver()


@pytest.fixture
def client(transport, resolver) -> Client:
    return Client(transport=transport, resolver=resolver)


@pytest.fixture
def test_logger(caplog) -> logging.Logger:
    caplog.set_level(logging.DEBUG)
    return logging.getLogger("minihttp.tests")


@pytest.fixture
def restore_root_logging():
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
