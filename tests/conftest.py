"""Pytest fixtures for testing"""

import pytest
from datetime import date
from decimal import Decimal
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from fatura_gateway.api.dependencies import get_today
from fatura_gateway.api.main import create_app
from fatura_gateway.domain.models import Card, Purchase, Installment
from fatura_gateway.infrastructure.database.models import Base, CardRow, PurchaseRow
from fatura_gateway.infrastructure.database.session import get_db


# Test database
TEST_DATABASE_URL = "sqlite:///./test_faturas.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Reference "today" for API tests
TODAY = date(2025, 10, 15)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database and a fixed today"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_today] = lambda: TODAY
    return TestClient(app)


@pytest.fixture
def card() -> Card:
    """Card closing on the 10th, due on the 20th, R$ 5000 limit"""
    return Card(id="card-1", limit=Decimal("5000"), closing_day=10, due_day=20, name="Nubank")


def make_purchase(purchase_id: str, on: date, value: str, card_id: str | None = "card-1", **kwargs) -> Purchase:
    return Purchase(id=purchase_id, card_id=card_id, value=Decimal(value), date=on, **kwargs)


def make_installment(
    installment_id: str,
    due: date,
    value: str,
    card_id: str | None = "card-1",
    number: int = 1,
    total: int = 3,
    **kwargs,
) -> Installment:
    return Installment(
        id=installment_id,
        card_id=card_id,
        value=Decimal(value),
        number=number,
        total=total,
        due_date=due,
        **kwargs,
    )


@pytest.fixture
def card_row(db: Session) -> CardRow:
    """Persisted card with the June 2025 purchases of the reference scenario"""
    row = CardRow(
        nome="Nubank",
        bandeira="Mastercard",
        limite=Decimal("5000.00"),
        fechamento=10,
        vencimento=20,
        cor="#1e3a5f",
    )
    db.add(row)
    db.flush()
    db.add_all(
        [
            PurchaseRow(cartao_id=row.id, descricao="Mercado", valor=Decimal("200.00"), data=date(2025, 6, 9)),
            PurchaseRow(cartao_id=row.id, descricao="Farmácia", valor=Decimal("300.00"), data=date(2025, 6, 10)),
        ]
    )
    db.commit()
    return row
