"""
Domain Models - Entities
Pure domain objects with no infrastructure dependencies
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional


MAX_TENURE_MONTHS = 600
MAX_NOTES_LENGTH = 500
# Largest value the Numeric(12,2) money columns hold
MAX_AMOUNT = Decimal("9999999999.99")


class ProductType(str, Enum):
    """Kind of investment product"""
    BOND = "bond"
    FD = "fd"
    MF = "mf"
    ETF = "etf"
    OTHER = "other"


class RiskLevel(str, Enum):
    """Risk level of a product (and a user's risk appetite)"""
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"


class InvestmentStatus(str, Enum):
    """Investment lifecycle status"""
    ACTIVE = "active"
    MATURED = "matured"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not InvestmentStatus.ACTIVE


@dataclass(frozen=True)
class Product:
    """Investment product terms - Immutable"""
    id: str
    name: str
    product_type: ProductType
    tenure_months: int
    annual_yield: Decimal
    risk_level: RiskLevel
    min_investment: Decimal = Decimal("1000.00")
    max_investment: Optional[Decimal] = None
    description: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValueError("Product name cannot be empty")
        if self.tenure_months is not None and not 1 <= self.tenure_months <= MAX_TENURE_MONTHS:
            raise ValueError(f"Tenure must be between 1 and {MAX_TENURE_MONTHS} months")
        if self.annual_yield is not None and not Decimal("0") <= self.annual_yield <= Decimal("100"):
            raise ValueError("Annual yield must be between 0 and 100")
        if self.min_investment <= Decimal("0"):
            raise ValueError("Minimum investment must be positive")
        if self.max_investment is not None and self.max_investment <= self.min_investment:
            raise ValueError("Maximum investment must be greater than minimum investment")
        if max(self.min_investment, self.max_investment or Decimal("0")) > MAX_AMOUNT:
            raise ValueError(f"Investment bounds cannot exceed ₹{MAX_AMOUNT}")

    @property
    def upper_bound(self) -> Decimal:
        """Maximum accepted amount; an absent maximum is unbounded."""
        if self.max_investment is None:
            return Decimal("Infinity")
        return self.max_investment


@dataclass(frozen=True)
class InvestmentDraft:
    """Fully priced investment handed to storage for creation"""
    user_id: str
    product_id: str
    amount: Decimal
    invested_at: datetime
    expected_return: Decimal
    maturity_date: datetime
    status: InvestmentStatus = InvestmentStatus.ACTIVE
    notes: Optional[str] = None


@dataclass(frozen=True)
class Investment:
    """Persisted investment record - Immutable snapshot"""
    id: str
    user_id: str
    product_id: str
    amount: Decimal
    invested_at: datetime
    status: InvestmentStatus
    expected_return: Optional[Decimal]
    maturity_date: Optional[datetime]
    actual_return: Optional[Decimal] = None
    notes: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status == InvestmentStatus.ACTIVE


@dataclass(frozen=True)
class GainLoss:
    """Absolute and percentage gain of an investment"""
    absolute: Decimal
    percentage: Decimal


@dataclass(frozen=True)
class InvestmentValuation:
    """Investment with derived, response-time fields attached"""
    investment: Investment
    product: Product
    current_value: Decimal
    gain_loss: GainLoss
    days_to_maturity: int
