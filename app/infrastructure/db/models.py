"""
Database Models (SQLAlchemy ORM)
Investments are never deleted; products are soft-deleted via is_active
"""

from sqlalchemy import (
    Column, Integer, String, Numeric, DateTime,
    Boolean, ForeignKey, Text, Enum as SQLEnum, Index
)
from sqlalchemy.orm import relationship

from app.domain.models import InvestmentStatus, ProductType, RiskLevel
from app.infrastructure.db.database import Base
from app.utils.time import now_ist_naive


def _enum_column(enum_cls, name: str) -> SQLEnum:
    # Store enum values ("bond", "active"), not member names
    return SQLEnum(
        enum_cls,
        name=name,
        native_enum=False,
        length=20,
        values_callable=lambda members: [member.value for member in members],
    )


class ProductModel(Base):
    """Investment product terms"""
    __tablename__ = "investment_products"

    id = Column(String(36), primary_key=True)
    name = Column(String(255), nullable=False)
    product_type = Column(_enum_column(ProductType, "product_type"), nullable=False)
    tenure_months = Column(Integer, nullable=False)
    annual_yield = Column(Numeric(5, 2), nullable=False)
    risk_level = Column(_enum_column(RiskLevel, "risk_level"), nullable=False)
    min_investment = Column(Numeric(12, 2), nullable=False, default=1000)
    max_investment = Column(Numeric(12, 2), nullable=True)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=now_ist_naive)
    updated_at = Column(DateTime, nullable=False, default=now_ist_naive, onupdate=now_ist_naive)

    investments = relationship("InvestmentModel", back_populates="product")

    __table_args__ = (
        Index("ix_investment_products_type", "product_type"),
        Index("ix_investment_products_risk", "risk_level"),
        Index("ix_investment_products_active", "is_active"),
    )


class InvestmentModel(Base):
    """A user's investment in a product"""
    __tablename__ = "investments"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(64), nullable=False)
    product_id = Column(String(36), ForeignKey("investment_products.id"), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    invested_at = Column(DateTime, nullable=False, default=now_ist_naive)
    status = Column(
        _enum_column(InvestmentStatus, "investment_status"),
        nullable=False,
        default=InvestmentStatus.ACTIVE,
    )
    expected_return = Column(Numeric(12, 2), nullable=True)
    actual_return = Column(Numeric(12, 2), nullable=True)
    maturity_date = Column(DateTime, nullable=True)
    notes = Column(String(500), nullable=True)
    created_at = Column(DateTime, nullable=False, default=now_ist_naive)
    updated_at = Column(DateTime, nullable=False, default=now_ist_naive, onupdate=now_ist_naive)

    product = relationship("ProductModel", back_populates="investments")

    __table_args__ = (
        Index("ix_investments_user", "user_id"),
        Index("ix_investments_product", "product_id"),
        Index("ix_investments_status", "status"),
        Index("ix_investments_invested_at", "invested_at"),
    )
