import asyncio

import pytest

from core.catalog import build_registry
from core.config import ServerConfig
from core.dispatcher import Dispatcher
from core.registry import ToolContext


class FakeOrchestrator:
    """Stands in for ExternalCallOrchestrator in handler tests.

    Records every call and either returns `response` or raises `error`.
    """

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    async def call(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response


class FakeResponse:
    def __init__(self, status=200, reason="OK", body=b"{}"):
        self.status = status
        self.reason = reason
        self._body = body

    async def read(self):
        return self._body


class _Request:
    def __init__(self, session, delay, response):
        self.session = session
        self.delay = delay
        self.response = response

    async def __aenter__(self):
        try:
            await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.session.cancelled = True
            raise
        return self.response

    async def __aexit__(self, *exc_info):
        return False


class FakeSession:
    """aiohttp.ClientSession look-alike whose requests stall for `delay` seconds."""

    def __init__(self, delay=0.0, response=None):
        self.delay = delay
        self.response = response or FakeResponse()
        self.cancelled = False
        self.closed = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        self.closed = True
        return False

    def request(self, method, url, **kwargs):
        return _Request(self, self.delay, self.response)


@pytest.fixture
def config() -> ServerConfig:
    return ServerConfig(hf_token="hf_test_token")


@pytest.fixture
def make_dispatcher(config):
    def factory(http=None, registry=None, cfg=None):
        return Dispatcher(
            registry or build_registry(),
            ToolContext(config=cfg or config, http=http or FakeOrchestrator()),
        )

    return factory
