"""SQLAlchemy ORM models for cards, purchases, installments and invoice payments"""

import uuid
from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


class CardRow(Base):
    """Credit card and its billing cycle"""

    __tablename__ = "cartoes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    nome = Column(Text, nullable=False)
    bandeira = Column(Text, nullable=True)
    limite = Column(Numeric(12, 2), nullable=False)
    fechamento = Column(Integer, nullable=False)
    vencimento = Column(Integer, nullable=False)
    cor = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    parcelas = relationship("InstallmentRow", back_populates="cartao", cascade="all, delete-orphan")
    faturas_pagas = relationship("PaidInvoiceRow", back_populates="cartao", cascade="all, delete-orphan")


class PurchaseRow(Base):
    """Purchase; card purchases have cartao_id set"""

    __tablename__ = "compras"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    cartao_id = Column(Uuid, ForeignKey("cartoes.id", ondelete="CASCADE"), nullable=True, index=True)
    descricao = Column(Text, nullable=False)
    valor = Column(Numeric(12, 2), nullable=False)
    data = Column(Date, nullable=False)
    categoria = Column(Text, nullable=True)
    parcelada = Column(Boolean, nullable=False, default=False)
    total_parcelas = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    parcelas = relationship("InstallmentRow", back_populates="compra")


class InstallmentRow(Base):
    """Installment of a financed purchase"""

    __tablename__ = "parcelas"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    compra_id = Column(Uuid, ForeignKey("compras.id", ondelete="CASCADE"), nullable=True)
    cartao_id = Column(Uuid, ForeignKey("cartoes.id", ondelete="CASCADE"), nullable=True, index=True)
    descricao = Column(Text, nullable=False)
    valor = Column(Numeric(12, 2), nullable=False)
    numero_parcela = Column(Integer, nullable=False)
    total_parcelas = Column(Integer, nullable=False)
    data_vencimento = Column(Date, nullable=False)
    categoria = Column(Text, nullable=True)
    paga = Column(Boolean, nullable=False, default=False)
    data_pagamento = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    cartao = relationship("CardRow", back_populates="parcelas")
    compra = relationship("PurchaseRow", back_populates="parcelas")


class PaidInvoiceRow(Base):
    """Manually confirmed invoice payment"""

    __tablename__ = "faturas_pagas"
    __table_args__ = (
        UniqueConstraint("cartao_id", "mes_referencia", "ano_referencia", name="uq_fatura_paga_periodo"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    cartao_id = Column(Uuid, ForeignKey("cartoes.id", ondelete="CASCADE"), nullable=False)
    mes_referencia = Column(Integer, nullable=False)  # 1-12
    ano_referencia = Column(Integer, nullable=False)
    data_pagamento = Column(Date, nullable=False)
    total_pago = Column(Numeric(12, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    cartao = relationship("CardRow", back_populates="faturas_pagas")


class RecurringPurchaseRow(Base):
    """Month a recurring purchase is nominally billed for"""

    __tablename__ = "compras_recorrentes_mensais"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    compra_id = Column(Uuid, ForeignKey("compras.id", ondelete="CASCADE"), nullable=False, unique=True)
    mes = Column(Integer, nullable=False)  # 1-12
    ano = Column(Integer, nullable=False)
