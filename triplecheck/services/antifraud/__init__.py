"""
Listing fraud risk assessment
"""

from .benchmark import MarketBenchmarkService, analyze_market
from .engine import CompositeRiskScorer
from .features import FEATURE_COUNT, FEATURE_NAMES, extract_features
from .models import (
    AnalysisSource,
    FraudAnalysisResult,
    FraudPatterns,
    MarketBaseline,
    MarketContext,
    RiskAssessment,
    RiskLevel,
    ScoringPolicy,
)
from .narrative import NarrativeRiskAssessor, assess_fraud, parse_fraud_analysis
from .rules import RuleBasedAnalyzer

__all__ = [
    "MarketBenchmarkService",
    "analyze_market",
    "CompositeRiskScorer",
    "FEATURE_COUNT",
    "FEATURE_NAMES",
    "extract_features",
    "AnalysisSource",
    "FraudAnalysisResult",
    "FraudPatterns",
    "MarketBaseline",
    "MarketContext",
    "RiskAssessment",
    "RiskLevel",
    "ScoringPolicy",
    "NarrativeRiskAssessor",
    "assess_fraud",
    "parse_fraud_analysis",
    "RuleBasedAnalyzer",
]
