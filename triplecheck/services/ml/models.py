"""
Pydantic models for the threshold classifier
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import Field

from triplecheck.schemas import CamelModel, VerificationStatus


class DocumentScores(CamelModel):
    authenticity: float = Field(default=50.0, ge=0, le=100)
    completeness: float = Field(default=50.0, ge=0, le=100)
    consistency: float = Field(default=50.0, ge=0, le=100)


class TrainingExample(CamelModel):
    listing_id: Optional[int] = None
    features: List[float]
    fraud_label: bool
    risk_score: float = Field(ge=0, le=100)
    verification_status: VerificationStatus = VerificationStatus.PENDING
    document_scores: DocumentScores = Field(default_factory=DocumentScores)


class Thresholds(CamelModel):
    risk_score: float = 70.0
    price_deviation_factor: float = 0.3
    document_score_threshold: float = 40.0


class ClassifierModel(CamelModel):
    """Persisted threshold classifier. Serialized with camelCase keys."""
    type: str = "threshold"
    thresholds: Thresholds = Field(default_factory=Thresholds)
    feature_weights: List[float]
    training_accuracy: float = Field(ge=0.0, le=1.0)
    fraud_rate: float = Field(ge=0.0, le=1.0)
    sample_size: int = Field(ge=0)
    trained_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    version: str = "1.0.0"

    @property
    def version_key(self) -> str:
        """History key: training timestamp plus version, sorts chronologically."""
        return f"{self.trained_at.astimezone(timezone.utc).strftime('%Y%m%dT%H%M%S%fZ')}_v{self.version}"


class EvaluationMetrics(CamelModel):
    accuracy: float
    precision: float
    recall: float
    f1_score: float
    confusion_matrix: List[List[int]]  # [[TN, FP], [FN, TP]]

    @property
    def total(self) -> int:
        return sum(sum(row) for row in self.confusion_matrix)


class PredictionResult(CamelModel):
    probability: float = Field(ge=0.0, le=1.0)
    prediction: bool


class ListingPrediction(PredictionResult):
    """Prediction for a stored listing, with the feature vector it was scored on."""
    listing_id: int
    features: List[float]


class TrainingRun(CamelModel):
    """Result of one training call, kept in memory even if the save fails."""
    model: ClassifierModel
    metrics: EvaluationMetrics
    train_size: int
    test_size: int
    seed: Optional[int] = None
    saved: bool = False


class TrainingStats(CamelModel):
    total_samples: int
    fraudulent_samples: int
    normal_samples: int
    fraud_rate: float
    average_risk_score: float
    verification_status_distribution: Dict[str, int]


class ModelInfo(CamelModel):
    type: str
    version: str
    trained_at: datetime
    training_accuracy: float
    fraud_rate: float
    sample_size: int
    thresholds: Thresholds

    @classmethod
    def from_model(cls, model: ClassifierModel) -> "ModelInfo":
        return cls(
            type=model.type,
            version=model.version,
            trained_at=model.trained_at,
            training_accuracy=model.training_accuracy,
            fraud_rate=model.fraud_rate,
            sample_size=model.sample_size,
            thresholds=model.thresholds,
        )
