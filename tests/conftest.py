import pytest
import responses

from estyped.client import SearchClient
from estyped.config import Settings
from estyped.transport import RequestsTransport
from tests.tools import HOST

UNITTEST_INDEX = "estyped_unittest_index"


@pytest.fixture()
def settings() -> Settings:
    return Settings(host=HOST, enable_keyed_cache=True, keyed_cache_index_name="estyped_unittest_cache")


@pytest.fixture()
def server():
    """Mock search server: register the expected requests with server.add(...)"""
    with responses.RequestsMock() as rsps:
        yield rsps


@pytest.fixture()
def client(settings, server):
    with SearchClient(RequestsTransport.from_settings(settings), settings=settings) as client:
        yield client


@pytest.fixture()
def index_name():
    return UNITTEST_INDEX
