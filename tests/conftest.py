from datetime import datetime
from decimal import Decimal

import pytest

from powerrent.models.client import Client
from powerrent.services.balance_service import BalanceService
from powerrent.services.client_service import ClientService
from powerrent.services.ledger_service import LedgerService
from powerrent.services.quote_service import QuoteService
from powerrent.services.workflow_service import PaymentWorkflow
from powerrent.storage.repo import MemoryStore

NOW = datetime(2024, 5, 15, 10, 30)


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def ledger(store) -> LedgerService:
    return LedgerService(store)


@pytest.fixture
def clients(store) -> ClientService:
    return ClientService(store)


@pytest.fixture
def quotes(store) -> QuoteService:
    return QuoteService(store)


@pytest.fixture
def workflow(store) -> PaymentWorkflow:
    return PaymentWorkflow(store)


@pytest.fixture
def balances(store) -> BalanceService:
    return BalanceService(store)


@pytest.fixture
def client(clients) -> Client:
    return clients.add_client(Client(company_name="Constructora del Norte", email="compras@norte.mx"))


def payment_data(**overrides):
    data = {
        "tipo": "ingreso",
        "categoria": "Renta de Generadores",
        "concepto": "Renta generador 50kVA",
        "monto": Decimal("1000"),
        "fecha": NOW,
        "metodoPago": "efectivo",
        "referencia": "F-001",
    }
    data.update(overrides)
    return data


@pytest.fixture
def make_payment():
    return payment_data
