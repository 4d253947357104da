import os
import sys
import tempfile
from datetime import datetime, timedelta, timezone

import pytest

backend_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if backend_root not in sys.path:
    sys.path.insert(0, backend_root)

# Settings are cached on first import, so point them at a scratch directory first.
_scratch = tempfile.mkdtemp(prefix="sandbox-payments-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_scratch, 'test.db')}"
os.environ["LOG_DIR"] = os.path.join(_scratch, "logs")
os.environ["ENVIRONMENT"] = "test"
os.environ["EXPOSE_OTP_HINT"] = "true"


class FakeClock:
    """Injectable time source; advance() moves it forward."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def engine(clock):
    from app.services.payment_engine import PaymentSessionEngine

    return PaymentSessionEngine(ttl_seconds=300, default_currency="INR", clock=clock)


@pytest.fixture
def client(engine):
    from fastapi.testclient import TestClient

    from app.main import app
    from app.services.payment_engine import get_payment_engine
    from app.utils.rate_limiter import limiter

    limiter.reset()
    app.dependency_overrides[get_payment_engine] = lambda: engine
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    limiter.reset()


@pytest.fixture
def customer_headers():
    return {"x-customer-email": "a@b.com", "x-customer-name": "Asha Rao"}


@pytest.fixture
def card_payload():
    return {
        "amount": 500,
        "method": "Card",
        "card_number": "4111 1111 1111 1111",
        "card_holder": "Asha Rao",
        "expiry": "12/29",
        "cvv": "123",
    }
