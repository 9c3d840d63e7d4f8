"""
RECOMMENDATION RANKER
Deterministic product ranking for a risk profile.

Used directly for recommendations and as the fallback whenever no text
generation provider is configured.
"""

from typing import Iterable, List, Union

from app.domain.models import Product, RiskLevel


class RecommendationRanker:
    """Rank active products of one risk level by descending yield."""

    def recommend(
        self,
        risk_profile: Union[RiskLevel, str],
        products: Iterable[Product],
        top_n: int
    ) -> List[Product]:
        """
        Args:
            risk_profile: Risk level to match
            products: Candidate products (any order)
            top_n: Maximum number of results

        Returns:
            At most top_n products; equal yields keep their input order
        """
        if top_n <= 0:
            return []

        risk = RiskLevel(risk_profile)
        candidates = [
            product for product in products
            if product.is_active and product.risk_level == risk
        ]
        # sorted() is stable, so ties keep first-seen order
        ranked = sorted(candidates, key=lambda product: product.annual_yield, reverse=True)
        return ranked[:top_n]
