"""
Verification Status Resolution - final listing status from document
verification outcomes and the fraud analysis.
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from pydantic import Field

from triplecheck.schemas import CamelModel, DocumentVerificationResult, VerificationStatus
from triplecheck.services.antifraud.models import FraudAnalysisResult, RiskLevel

FAILED_DOCUMENT_CONFIDENCE = 0.7
VERIFIED_DOCUMENT_CONFIDENCE = 0.6


class VerificationOutcome(CamelModel):
    """Bundle verification result; also stored as the listing's aiVerificationResults."""
    listing_id: Optional[int] = None
    overall_status: VerificationStatus
    document_verifications: List[DocumentVerificationResult] = Field(default_factory=list)
    fraud_detection: FraudAnalysisResult
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    verification_id: str = Field(default_factory=lambda: str(uuid.uuid4()))


def resolve_overall_status(
    documents: Sequence[DocumentVerificationResult],
    fraud: FraudAnalysisResult,
) -> VerificationStatus:
    """
    Evaluated in priority order:

    1. any document confidently not verified   -> failed
    2. suspicious with high risk               -> suspicious
    3. all documents verified with confidence,
       and not suspicious or low risk          -> verified
    4. otherwise                               -> pending

    An empty document list satisfies step 3's "all documents" clause.
    """
    if any(not d.is_verified and d.confidence > FAILED_DOCUMENT_CONFIDENCE for d in documents):
        return VerificationStatus.FAILED

    if fraud.is_suspicious and fraud.risk_level == RiskLevel.HIGH:
        return VerificationStatus.SUSPICIOUS

    all_verified = all(d.is_verified and d.confidence > VERIFIED_DOCUMENT_CONFIDENCE for d in documents)
    if all_verified and (not fraud.is_suspicious or fraud.risk_level == RiskLevel.LOW):
        return VerificationStatus.VERIFIED

    return VerificationStatus.PENDING
