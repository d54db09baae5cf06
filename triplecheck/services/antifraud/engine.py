"""
Composite Risk Scorer - merges the fraud analysis and the market context
into one bounded risk score, a risk tier and a binary fraud label.
"""

from typing import Optional

from .benchmark import MarketBenchmarkService
from .models import (
    FraudAnalysisResult,
    MarketContext,
    ResolvedFraudPatterns,
    RiskAssessment,
    RiskLevel,
    ScoringPolicy,
)
from .rules import clamp, price_anomaly_from_market
from triplecheck.schemas import ListingRecord, VerificationStatus


class CompositeRiskScorer:
    """
    Deterministic scorer. All weights and thresholds come from ScoringPolicy:

        risk = 40*s + 0.2*priceAnomaly + 0.3*documentInconsistency
             + 0.25*ownershipRisk + 0.15*marketDeviation
             (+20 failed, -10 verified), clamped to [0, 100]
    """

    def __init__(
        self,
        policy: Optional[ScoringPolicy] = None,
        benchmark_service: Optional[MarketBenchmarkService] = None,
    ):
        self.policy = policy or ScoringPolicy()
        self.benchmark_service = benchmark_service or MarketBenchmarkService()

    def resolve_patterns(self, analysis: FraudAnalysisResult, market: MarketContext) -> ResolvedFraudPatterns:
        """Fill sub-scores the analyzer did not supply."""
        patterns = analysis.fraud_patterns

        price_anomaly = patterns.price_anomaly
        if price_anomaly is None:
            price_anomaly = price_anomaly_from_market(market, self.policy)

        return ResolvedFraudPatterns(
            price_anomaly=clamp(price_anomaly, 0, 100),
            document_inconsistency=clamp(patterns.document_inconsistency or 0.0, 0, 100),
            ownership_risk=clamp(patterns.ownership_risk or 0.0, 0, 100),
            market_deviation=clamp(patterns.market_deviation or 0.0, 0, 100),
        )

    def risk_score(
        self,
        suspicious_score: float,
        patterns: ResolvedFraudPatterns,
        status: Optional[VerificationStatus],
    ) -> float:
        p = self.policy
        score = (
            p.suspicion_weight * suspicious_score
            + p.price_anomaly_weight * patterns.price_anomaly
            + p.document_inconsistency_weight * patterns.document_inconsistency
            + p.ownership_risk_weight * patterns.ownership_risk
            + p.market_deviation_weight * patterns.market_deviation
        )

        if status == VerificationStatus.FAILED:
            score += p.failed_status_penalty
        elif status == VerificationStatus.VERIFIED:
            score -= p.verified_status_bonus

        return clamp(score, 0.0, 100.0)

    def is_fraud(
        self,
        listing: ListingRecord,
        analysis: FraudAnalysisResult,
        patterns: ResolvedFraudPatterns,
    ) -> bool:
        """
        Fraud label. Any strong signal is enough on its own; weaker signals
        must corroborate each other (at least min_corroborating_signals).
        """
        p = self.policy
        s = analysis.suspicious_score

        if listing.is_fraudulent:
            return True
        if s > p.strong_suspicion_threshold:
            return True
        if patterns.price_anomaly > p.strong_price_anomaly_threshold:
            return True
        if listing.verification_status == VerificationStatus.FAILED:
            return True

        signals = [
            analysis.is_suspicious and s > p.corroborating_suspicion_threshold,
            patterns.document_inconsistency > p.corroborating_pattern_threshold,
            patterns.ownership_risk > p.corroborating_pattern_threshold,
        ]
        return sum(signals) >= p.min_corroborating_signals

    def risk_tier(self, risk_score: float) -> RiskLevel:
        if risk_score >= self.policy.high_tier_threshold:
            return RiskLevel.HIGH
        if risk_score >= self.policy.medium_tier_threshold:
            return RiskLevel.MEDIUM
        return RiskLevel.LOW

    def score(
        self,
        listing: ListingRecord,
        analysis: FraudAnalysisResult,
        market: Optional[MarketContext] = None,
    ) -> RiskAssessment:
        if market is None:
            market = self.benchmark_service.analyze_listing(listing)

        suspicious_score = clamp(analysis.suspicious_score, 0.0, 1.0)
        patterns = self.resolve_patterns(analysis, market)
        risk_score = self.risk_score(suspicious_score, patterns, listing.verification_status)

        return RiskAssessment(
            risk_score=risk_score,
            suspicious_score=suspicious_score,
            risk_tier=self.risk_tier(risk_score),
            is_fraud=self.is_fraud(listing, analysis, patterns),
            fraud_patterns=patterns,
        )
