"""Integration tests for API endpoints"""

import uuid
from datetime import date
from decimal import Decimal
from fastapi.testclient import TestClient
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from fatura_gateway.infrastructure.database.models import (
    CardRow,
    InstallmentRow,
    PaidInvoiceRow,
    PurchaseRow,
    RecurringPurchaseRow,
)
from fatura_gateway.infrastructure.database.repositories import (
    InstallmentRepository,
    PaidInvoiceRepository,
    PurchaseRepository,
)


def invoice_summary(statement: dict) -> list[tuple[str, bool, Decimal]]:
    return [(inv["key"], inv["paid"], Decimal(inv["total"])) for inv in statement["invoices"]]


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "fatura_statement_recompute_seconds" in response.text


def test_request_id_is_propagated(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


def test_get_statement(client: TestClient, card_row: CardRow):
    """Test GET /v1/cards/{card_id}/statement for the reference scenario"""
    response = client.get(f"/v1/cards/{card_row.id}/statement")

    assert response.status_code == 200
    data = response.json()
    assert data["card"]["id"] == str(card_row.id)
    assert invoice_summary(data) == [
        ("2025-06", False, Decimal("200")),
        ("2025-07", False, Decimal("300")),
    ]
    june = data["invoices"][0]
    assert june["closing_date"] == "2025-06-10"
    assert june["due_date"] == "2025-07-20"
    assert Decimal(data["available_credit"]) == Decimal("4500")
    assert Decimal(data["used_credit"]) == Decimal("500")


def test_list_statements(client: TestClient, card_row: CardRow, db: Session):
    other = CardRow(nome="Inter", limite=Decimal("1000.00"), fechamento=5, vencimento=12)
    db.add(other)
    db.commit()

    response = client.get("/v1/cards")

    assert response.status_code == 200
    statements = {s["card"]["name"]: s for s in response.json()["statements"]}
    assert set(statements) == {"Nubank", "Inter"}
    assert statements["Inter"]["invoices"] == []
    assert Decimal(statements["Inter"]["available_credit"]) == Decimal("1000")


def test_statement_invalid_card_id(client: TestClient):
    response = client.get("/v1/cards/not-a-uuid/statement")
    assert response.status_code == 400


def test_statement_card_not_found(client: TestClient):
    response = client.get(f"/v1/cards/{uuid.uuid4()}/statement")
    assert response.status_code == 404


def test_mark_invoice_paid(client: TestClient, card_row: CardRow):
    """Paid invoices move to the end of the list"""
    response = client.put(
        f"/v1/cards/{card_row.id}/invoices/2025/6/payment",
        json={"total_paid": "200.00", "paid_date": "2025-07-18"},
    )

    assert response.status_code == 200
    data = response.json()
    assert invoice_summary(data) == [
        ("2025-07", False, Decimal("300")),
        ("2025-06", True, Decimal("200")),
    ]
    assert data["invoices"][1]["paid_date"] == "2025-07-18"


def test_mark_invoice_paid_twice_upserts(client: TestClient, card_row: CardRow, db: Session):
    url = f"/v1/cards/{card_row.id}/invoices/2025/6/payment"
    client.put(url, json={"total_paid": "150.00", "paid_date": "2025-07-10"})
    client.put(url, json={"total_paid": "200.00", "paid_date": "2025-07-18"})

    rows = db.query(PaidInvoiceRow).filter(PaidInvoiceRow.cartao_id == card_row.id).all()
    assert len(rows) == 1
    assert Decimal(rows[0].total_pago) == Decimal("200")
    assert rows[0].data_pagamento == date(2025, 7, 18)


def test_early_closing_and_unmark_redistribute_purchases(client: TestClient, card_row: CardRow):
    """Paying June on Jun 5 pushes the Jun 9 purchase into July; undoing it brings it back"""
    url = f"/v1/cards/{card_row.id}/invoices/2025/6/payment"

    marked = client.put(url, json={"total_paid": "0", "paid_date": "2025-06-05"})
    assert marked.status_code == 200
    assert invoice_summary(marked.json()) == [("2025-07", False, Decimal("500"))]

    unmarked = client.delete(url)
    assert unmarked.status_code == 200
    assert invoice_summary(unmarked.json()) == [
        ("2025-06", False, Decimal("200")),
        ("2025-07", False, Decimal("300")),
    ]


def test_unmark_invoice_not_paid(client: TestClient, card_row: CardRow):
    response = client.delete(f"/v1/cards/{card_row.id}/invoices/2025/6/payment")
    assert response.status_code == 404


def test_mark_invoice_paid_validation(client: TestClient, card_row: CardRow):
    bad_month = client.put(f"/v1/cards/{card_row.id}/invoices/2025/13/payment", json={"total_paid": "1"})
    assert bad_month.status_code == 422

    negative = client.put(f"/v1/cards/{card_row.id}/invoices/2025/6/payment", json={"total_paid": "-1"})
    assert negative.status_code == 422

    unknown = client.put(f"/v1/cards/{uuid.uuid4()}/invoices/2025/6/payment", json={"total_paid": "1"})
    assert unknown.status_code == 404


def test_create_financed_purchase(client: TestClient, card_row: CardRow, db: Session):
    """Test POST /v1/cards/{card_id}/purchases with 3 installments"""
    response = client.post(
        f"/v1/cards/{card_row.id}/purchases",
        json={"description": "Geladeira", "value": "100.00", "date": "2025-06-09", "total_installments": 3},
    )

    assert response.status_code == 201
    data = response.json()
    assert data["installment_financed"] is True
    assert [inst["due_date"] for inst in data["installments"]] == ["2025-07-20", "2025-08-20", "2025-09-20"]
    assert [Decimal(inst["value"]) for inst in data["installments"]] == [
        Decimal("33.33"),
        Decimal("33.33"),
        Decimal("33.34"),
    ]

    rows = db.query(InstallmentRow).filter(InstallmentRow.cartao_id == card_row.id).all()
    assert len(rows) == 3

    statement = client.get(f"/v1/cards/{card_row.id}/statement").json()
    assert invoice_summary(statement) == [
        ("2025-06", False, Decimal("200")),
        ("2025-07", False, Decimal("333.33")),
        ("2025-08", False, Decimal("33.33")),
        ("2025-09", False, Decimal("33.34")),
    ]
    assert Decimal(statement["available_credit"]) == Decimal("4400")


def test_create_single_payment_purchase(client: TestClient, card_row: CardRow):
    response = client.post(
        f"/v1/cards/{card_row.id}/purchases",
        json={"description": "Padaria", "value": "12.50", "date": "2025-06-11"},
    )

    assert response.status_code == 201
    assert response.json()["installment_financed"] is False
    assert response.json()["installments"] == []

    statement = client.get(f"/v1/cards/{card_row.id}/statement").json()
    assert ("2025-07", False, Decimal("312.50")) in invoice_summary(statement)


def test_create_purchase_unknown_card(client: TestClient):
    response = client.post(
        f"/v1/cards/{uuid.uuid4()}/purchases",
        json={"description": "Padaria", "value": "12.50", "date": "2025-06-11"},
    )
    assert response.status_code == 404


def test_installment_payment_frees_credit(client: TestClient, card_row: CardRow, db: Session):
    installment = InstallmentRow(
        cartao_id=card_row.id,
        descricao="Notebook (1/2)",
        valor=Decimal("400.00"),
        numero_parcela=1,
        total_parcelas=2,
        data_vencimento=date(2025, 11, 20),
    )
    db.add(installment)
    db.commit()

    before = client.get(f"/v1/cards/{card_row.id}/statement").json()
    assert Decimal(before["available_credit"]) == Decimal("4100")

    paid = client.put(f"/v1/installments/{installment.id}/payment", json={})
    assert paid.status_code == 200
    assert paid.json()["paid"] is True
    assert paid.json()["paid_date"] == "2025-10-15"

    after = client.get(f"/v1/cards/{card_row.id}/statement").json()
    assert Decimal(after["available_credit"]) == Decimal("4500")
    assert "2025-11" not in [inv["key"] for inv in after["invoices"]]

    reopened = client.delete(f"/v1/installments/{installment.id}/payment")
    assert reopened.status_code == 200
    assert reopened.json()["paid"] is False
    assert reopened.json()["paid_date"] is None


def test_installment_payment_not_found(client: TestClient):
    response = client.put(f"/v1/installments/{uuid.uuid4()}/payment", json={})
    assert response.status_code == 404


def test_future_recurring_charge_not_counted(client: TestClient, card_row: CardRow, db: Session):
    """Recurring charge billed in December does not use credit in October"""
    purchase = PurchaseRow(cartao_id=card_row.id, descricao="Streaming", valor=Decimal("55.90"), data=date(2025, 10, 1))
    db.add(purchase)
    db.flush()
    db.add(RecurringPurchaseRow(compra_id=purchase.id, mes=12, ano=2025))
    db.commit()

    statement = client.get(f"/v1/cards/{card_row.id}/statement").json()

    assert Decimal(statement["available_credit"]) == Decimal("4500")
    assert ("2025-10", False, Decimal("55.90")) in invoice_summary(statement)


def failing_write(db: Session):
    """Flush a stray purchase row, then fail the way a constraint violation does"""
    db.add(PurchaseRow(descricao="Stray", valor=Decimal("1.00"), data=date(2025, 6, 1)))
    db.flush()
    raise IntegrityError("INSERT", {}, Exception("duplicate key value"))


def stray_rows(db: Session) -> int:
    return db.query(PurchaseRow).filter(PurchaseRow.descricao == "Stray").count()


def test_mark_invoice_paid_database_error(client: TestClient, card_row: CardRow, db: Session, monkeypatch):
    """Database failure while saving a payment returns 500 and rolls back"""
    monkeypatch.setattr(PaidInvoiceRepository, "save", lambda self, record: failing_write(self.db))

    response = client.put(f"/v1/cards/{card_row.id}/invoices/2025/6/payment", json={"total_paid": "200.00"})

    assert response.status_code == 500
    assert response.json()["detail"] == "Internal server error"
    assert stray_rows(db) == 0
    assert db.query(PaidInvoiceRow).count() == 0


def test_unmark_invoice_paid_database_error(client: TestClient, card_row: CardRow, db: Session, monkeypatch):
    url = f"/v1/cards/{card_row.id}/invoices/2025/6/payment"
    client.put(url, json={"total_paid": "200.00", "paid_date": "2025-07-18"})
    monkeypatch.setattr(PaidInvoiceRepository, "delete", lambda self, card_id, month, year: failing_write(self.db))

    response = client.delete(url)

    assert response.status_code == 500
    assert stray_rows(db) == 0
    assert db.query(PaidInvoiceRow).count() == 1


def test_create_purchase_database_error(client: TestClient, card_row: CardRow, db: Session, monkeypatch):
    monkeypatch.setattr(PurchaseRepository, "create_purchase", lambda self, **kwargs: failing_write(self.db))

    response = client.post(
        f"/v1/cards/{card_row.id}/purchases",
        json={"description": "Padaria", "value": "12.50", "date": "2025-06-11"},
    )

    assert response.status_code == 500
    assert stray_rows(db) == 0
    assert db.query(PurchaseRow).filter(PurchaseRow.cartao_id == card_row.id).count() == 2


def test_installment_payment_database_error(client: TestClient, db: Session, monkeypatch):
    monkeypatch.setattr(
        InstallmentRepository, "set_paid", lambda self, installment_id, paid, paid_date: failing_write(self.db)
    )

    response = client.put(f"/v1/installments/{uuid.uuid4()}/payment", json={})

    assert response.status_code == 500
    assert stray_rows(db) == 0
