"""
Pydantic models for listing fraud analysis
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field

from triplecheck.schemas import CamelModel


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AnalysisSource(str, Enum):
    NARRATIVE = "narrative"  # parsed from the completion service
    RULES = "rules"          # deterministic fallback


class MarketBaseline(BaseModel):
    area: str
    avg_price_per_sqm: float
    price_range: Tuple[float, float]
    fraud_risk: float = Field(ge=0.0, le=1.0)


class MarketContext(CamelModel):
    expected_price: float
    actual_price: float
    price_deviation: float
    is_underpriced: bool
    is_overpriced: bool
    baseline: MarketBaseline


class FraudPatterns(CamelModel):
    """Sub-scores in [0, 100]. ``None`` means the analyzer did not supply a value."""
    price_anomaly: Optional[float] = Field(default=None, ge=0, le=100)
    document_inconsistency: Optional[float] = Field(default=None, ge=0, le=100)
    ownership_risk: Optional[float] = Field(default=None, ge=0, le=100)
    market_deviation: Optional[float] = Field(default=None, ge=0, le=100)


class FraudAnalysisResult(CamelModel):
    is_suspicious: bool = False
    suspicious_score: float = Field(default=0.0, ge=0.0, le=1.0)
    reasons: List[str] = Field(default_factory=list)
    risk_level: RiskLevel = RiskLevel.LOW
    fraud_patterns: FraudPatterns = Field(default_factory=FraudPatterns)
    source: AnalysisSource = AnalysisSource.NARRATIVE
    analyzed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ResolvedFraudPatterns(CamelModel):
    price_anomaly: float = Field(ge=0, le=100)
    document_inconsistency: float = Field(ge=0, le=100)
    ownership_risk: float = Field(ge=0, le=100)
    market_deviation: float = Field(ge=0, le=100)


class RiskAssessment(CamelModel):
    risk_score: float = Field(ge=0, le=100)
    suspicious_score: float = Field(ge=0.0, le=1.0)
    risk_tier: RiskLevel
    is_fraud: bool
    fraud_patterns: ResolvedFraudPatterns


class ScoringPolicy(BaseModel):
    """
    Constants of the composite score and the fraud-label rules.

    The values were chosen empirically for the Kenyan listing data and are
    kept configurable instead of hard-coded.
    """

    # risk score composition
    suspicion_weight: float = 40.0
    price_anomaly_weight: float = 0.2
    document_inconsistency_weight: float = 0.3
    ownership_risk_weight: float = 0.25
    market_deviation_weight: float = 0.15
    failed_status_penalty: float = 20.0
    verified_status_bonus: float = 10.0

    # price anomaly derived from market context
    underpriced_anomaly: float = 70.0
    overpriced_anomaly: float = 50.0

    # single strong signals
    strong_suspicion_threshold: float = 0.7
    strong_price_anomaly_threshold: float = 80.0

    # corroborating signals (need min_corroborating_signals of them)
    corroborating_suspicion_threshold: float = 0.5
    corroborating_pattern_threshold: float = 60.0
    min_corroborating_signals: int = 2

    # risk tiers on the composite score
    high_tier_threshold: float = 70.0
    medium_tier_threshold: float = 40.0


class FraudDetectionReport(CamelModel):
    """Analysis of one stored listing, as returned to API callers."""
    listing_id: Optional[int] = None
    analysis: FraudAnalysisResult
    market: MarketContext
    assessment: RiskAssessment
