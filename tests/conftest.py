from typing import Generator

import pytest
from starlette.testclient import TestClient

from energy_trade_hub.api import create_app
from energy_trade_hub.payments import InMemoryPaymentGateway
from energy_trade_hub.registry import LedgerState
from energy_trade_hub.trading import LifecycleEngine

ADMIN = "deployer"
PROVIDER = "solar-farm"
CONSUMER = "utility-co"
OUTSIDER = "stranger"


@pytest.fixture()
def payment_gateway() -> InMemoryPaymentGateway:
    return InMemoryPaymentGateway()


@pytest.fixture()
def ledger_state() -> LedgerState:
    return LedgerState(admin=ADMIN)


@pytest.fixture()
def engine(
    ledger_state: LedgerState, payment_gateway: InMemoryPaymentGateway
) -> LifecycleEngine:
    """Engine with a bootstrap admin, one provider and one registered consumer"""
    engine = LifecycleEngine(ledger_state, payment_gateway)
    engine.add_provider(PROVIDER, ADMIN)
    engine.register_as_consumer(CONSUMER)
    return engine


@pytest.fixture()
def certificate_kwargs() -> dict:
    return {
        "amount": 100,
        "price_per_unit": 45,
        "start_date": 100,
        "end_date": 200,
        "source_type": "solar",
        "delivery_point": "NL-North-01",
        "terms_hash": "0x9f2c",
        "metadata_ref": "ipfs://bafy-terms",
    }


@pytest.fixture()
def fake_certificate(engine: LifecycleEngine, certificate_kwargs: dict) -> int:
    return engine.create_token(PROVIDER, **certificate_kwargs)


@pytest.fixture()
def fake_listed_certificate(engine: LifecycleEngine, fake_certificate: int) -> int:
    engine.list_token_for_sale(fake_certificate, 50, PROVIDER)
    return fake_certificate


@pytest.fixture()
def api_client(engine: LifecycleEngine) -> Generator[TestClient, None, None]:
    """API Client for testing routes"""
    with TestClient(create_app(engine)) as client:
        yield client
