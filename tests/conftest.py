import itertools
from typing import Callable, Generator

import httpx
import pytest
from fastapi.testclient import TestClient

from baropay.config import Settings
from baropay.main import create_app
from baropay.mocks.payment_processor import create_confirm_handler
from baropay.services.order_service import OrderIssuer, OrderVerifier
from baropay.services.order_store import OrderStore
from baropay.services.signature_service import Signer

TOSS_SECRET_KEY = "test_sk_unit"
SIGNING_SECRET = "test_order_signing_secret"
START_MS = 1_760_000_000_000
TTL_MS = 30 * 60 * 1000
MAX_AMOUNT = 500000


# Automatic marking by folder
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)


class FakeClock:
    """Epoch-millisecond clock that only moves when told to."""

    def __init__(self, start: int = START_MS):
        self.current = start

    def __call__(self) -> int:
        return self.current

    def advance(self, ms: int) -> None:
        self.current += ms


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def nonce_source() -> Callable[[], str]:
    counter = itertools.count(1)
    return lambda: f"{next(counter):016x}"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        toss_secret_key=TOSS_SECRET_KEY,
        order_signing_secret=SIGNING_SECRET,
        max_amount=MAX_AMOUNT,
        order_ttl_ms=TTL_MS,
    )


@pytest.fixture
def signer() -> Signer:
    return Signer(SIGNING_SECRET)


@pytest.fixture
def store(clock) -> OrderStore:
    return OrderStore(ttl_ms=TTL_MS, clock=clock)


@pytest.fixture
def issuer(store, signer, nonce_source) -> OrderIssuer:
    return OrderIssuer(store, signer, max_amount=MAX_AMOUNT, nonce_source=nonce_source)


@pytest.fixture
def verifier(store, signer) -> OrderVerifier:
    return OrderVerifier(store, signer)


@pytest.fixture
def toss_requests() -> list:
    """Requests seen by the mock Toss transport."""
    return []


@pytest.fixture
def toss_transport(toss_requests) -> httpx.MockTransport:
    confirm = create_confirm_handler(TOSS_SECRET_KEY)

    def handler(request: httpx.Request) -> httpx.Response:
        toss_requests.append(request)
        return confirm(request)

    return httpx.MockTransport(handler)


@pytest.fixture
def app(settings, toss_transport, clock, nonce_source):
    return create_app(settings, transport=toss_transport, clock=clock, nonce_source=nonce_source)


@pytest.fixture
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c
