"""
DOMAIN MODELS - OUTCOMES

Typed business-rule rejections and contract violations.
Rejections are returned, not raised.
"""

from dataclasses import dataclass
from enum import Enum
from typing import TypeVar, Union


class RejectionKind(str, Enum):
    NOT_FOUND = "not_found"
    INVALID_AMOUNT = "invalid_amount"
    INVALID_TRANSITION = "invalid_transition"


class RejectionReason(str, Enum):
    INVESTMENT_NOT_FOUND = "investment_not_found"
    PRODUCT_NOT_FOUND = "product_not_found"
    BELOW_MINIMUM = "below_minimum"
    ABOVE_MAXIMUM = "above_maximum"
    ALREADY_MATURED = "already_matured"
    ALREADY_CANCELLED = "already_cancelled"
    AMOUNT_TOO_LARGE = "amount_too_large"


_KIND_BY_REASON = {
    RejectionReason.INVESTMENT_NOT_FOUND: RejectionKind.NOT_FOUND,
    RejectionReason.PRODUCT_NOT_FOUND: RejectionKind.NOT_FOUND,
    RejectionReason.BELOW_MINIMUM: RejectionKind.INVALID_AMOUNT,
    RejectionReason.ABOVE_MAXIMUM: RejectionKind.INVALID_AMOUNT,
    RejectionReason.ALREADY_MATURED: RejectionKind.INVALID_TRANSITION,
    RejectionReason.ALREADY_CANCELLED: RejectionKind.INVALID_TRANSITION,
    RejectionReason.AMOUNT_TOO_LARGE: RejectionKind.INVALID_AMOUNT,
}


@dataclass(frozen=True)
class Rejection:
    """A business rule refused the operation"""
    reason: RejectionReason
    message: str

    @property
    def kind(self) -> RejectionKind:
        return _KIND_BY_REASON[self.reason]


class InconsistentSnapshotError(RuntimeError):
    """
    Investment/product data handed to the engine breaks referential
    integrity (missing product, missing pricing terms, missing derived
    fields). Raised loudly instead of defaulting.
    """


T = TypeVar("T")

Outcome = Union[T, Rejection]
