"""
Rule-based fraud analyzer - deterministic fallback for the narrative assessor
"""

from typing import Optional

from .benchmark import MarketBenchmarkService
from .models import (
    AnalysisSource,
    FraudAnalysisResult,
    FraudPatterns,
    MarketContext,
    RiskLevel,
    ScoringPolicy,
)
from triplecheck.schemas import ListingRecord, VerificationStatus


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def price_anomaly_from_market(market: MarketContext, policy: Optional[ScoringPolicy] = None) -> float:
    """Price-anomaly sub-score derived only from the market context."""
    policy = policy or ScoringPolicy()
    if market.is_underpriced:
        return policy.underpriced_anomaly
    if market.is_overpriced:
        return policy.overpriced_anomaly
    return 0.0


class RuleBasedAnalyzer:
    """
    Deterministic fraud analysis from market context and listing status.
    Same inputs always give the same result.
    """

    DOCUMENT_INCONSISTENCY = {
        VerificationStatus.FAILED: 80.0,
        VerificationStatus.SUSPICIOUS: 60.0,
    }

    def __init__(
        self,
        benchmark_service: Optional[MarketBenchmarkService] = None,
        policy: Optional[ScoringPolicy] = None,
    ):
        self.benchmark_service = benchmark_service or MarketBenchmarkService()
        self.policy = policy or ScoringPolicy()

    def analyze(self, listing: ListingRecord, market: Optional[MarketContext] = None) -> FraudAnalysisResult:
        if market is None:
            market = self.benchmark_service.analyze_listing(listing)

        reasons = []
        score = market.baseline.fraud_risk

        if market.is_underpriced:
            score += 0.4
            reasons.append(
                f"Price is {abs(market.price_deviation) * 100:.0f}% below the expected market value"
            )
        elif market.is_overpriced:
            score += 0.2
            reasons.append(
                f"Price is {market.price_deviation * 100:.0f}% above the expected market value"
            )

        if listing.verification_status == VerificationStatus.FAILED:
            score += 0.2
            reasons.append("Document verification failed")
        elif listing.verification_status == VerificationStatus.SUSPICIOUS:
            score += 0.1
            reasons.append("Listing was previously flagged as suspicious")

        ownership_risk = 0.0
        if listing.trust_score is not None:
            ownership_risk = clamp((50 - listing.trust_score) * 2, 0, 100)
            if ownership_risk > 0:
                reasons.append(f"Low owner trust score: {listing.trust_score:.0f}")

        suspicious_score = clamp(score, 0.0, 1.0)

        if suspicious_score >= 0.7:
            risk_level = RiskLevel.HIGH
        elif suspicious_score >= 0.4:
            risk_level = RiskLevel.MEDIUM
        else:
            risk_level = RiskLevel.LOW

        return FraudAnalysisResult(
            is_suspicious=suspicious_score > 0.5,
            suspicious_score=suspicious_score,
            reasons=reasons,
            risk_level=risk_level,
            fraud_patterns=FraudPatterns(
                price_anomaly=price_anomaly_from_market(market, self.policy),
                document_inconsistency=self.DOCUMENT_INCONSISTENCY.get(listing.verification_status, 0.0),
                ownership_risk=ownership_risk,
                market_deviation=clamp(abs(market.price_deviation) * 100, 0, 100),
            ),
            source=AnalysisSource.RULES,
        )
