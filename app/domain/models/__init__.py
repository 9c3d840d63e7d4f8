"""
Domain Models Package
Export all domain entities
"""

from .entities import (
    # Enums
    InvestmentStatus,
    ProductType,
    RiskLevel,

    # Entities
    GainLoss,
    Investment,
    InvestmentDraft,
    InvestmentValuation,
    Product,
)
from .catalog import (
    ProductFilter,
    ProductGroupStats,
    ProductPage,
    ProductStatistics,
)
from .outcomes import (
    InconsistentSnapshotError,
    Outcome,
    Rejection,
    RejectionKind,
    RejectionReason,
)
from .portfolio import (
    AllocationBreakdown,
    AllocationBucket,
    GroupTotals,
    MaturitySchedule,
    PerformancePoint,
    PerformanceSeries,
    PortfolioSnapshot,
)

__all__ = [
    # Enums
    "InvestmentStatus",
    "ProductType",
    "RiskLevel",

    # Entities
    "GainLoss",
    "Investment",
    "InvestmentDraft",
    "InvestmentValuation",
    "Product",

    # Catalog
    "ProductFilter",
    "ProductGroupStats",
    "ProductPage",
    "ProductStatistics",

    # Outcomes
    "InconsistentSnapshotError",
    "Outcome",
    "Rejection",
    "RejectionKind",
    "RejectionReason",

    # Portfolio
    "AllocationBreakdown",
    "AllocationBucket",
    "GroupTotals",
    "MaturitySchedule",
    "PerformancePoint",
    "PerformanceSeries",
    "PortfolioSnapshot",
]
