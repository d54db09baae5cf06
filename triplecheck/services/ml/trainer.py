"""
Threshold Classifier Trainer & Evaluator

Training is two independent steps:
1. feature weighting - produces the weight vector used at prediction time
2. threshold calibration - records fraud rate and training accuracy of
   the risk-score threshold on the training split
"""

import random
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple

from .models import ClassifierModel, EvaluationMetrics, Thresholds, TrainingExample
from triplecheck.core.config import settings
from triplecheck.core.exceptions import InsufficientDataError
from triplecheck.core.logger import logger
from triplecheck.services.antifraud.features import FEATURE_NAMES


class FeatureWeighting(ABC):
    @abstractmethod
    def weights(self, examples: Sequence[TrainingExample]) -> List[float]:
        """One weight per FEATURE_NAMES index."""
        pass


class HandCraftedWeighting(FeatureWeighting):
    """Fixed weights, independent of the training data."""

    WEIGHTS: Dict[str, float] = {
        "price": 0.3,
        "bedrooms": 0.1,
        "bathrooms": 0.1,
        "square_footage": 0.2,
        "location_tier": 0.15,
        "amenity_count": 0.05,
        "is_verified": 0.1,
    }

    def weights(self, examples: Sequence[TrainingExample]) -> List[float]:
        return [self.WEIGHTS.get(name, 0.0) for name in FEATURE_NAMES]


def split_examples(
    examples: Sequence[TrainingExample],
    seed: Optional[int] = None,
    train_split: Optional[float] = None,
) -> Tuple[List[TrainingExample], List[TrainingExample]]:
    """Shuffle with ``random.Random(seed)`` and cut at floor(train_split * n)."""
    train_split = settings.TRAIN_SPLIT if train_split is None else train_split

    shuffled = list(examples)
    random.Random(seed).shuffle(shuffled)

    cut = int(len(shuffled) * train_split)
    return shuffled[:cut], shuffled[cut:]


def calibrate_threshold_model(
    train: Sequence[TrainingExample],
    feature_weights: List[float],
    thresholds: Optional[Thresholds] = None,
    version: Optional[str] = None,
    trained_at: Optional[datetime] = None,
) -> ClassifierModel:
    thresholds = thresholds or Thresholds(risk_score=settings.FRAUD_RISK_THRESHOLD)
    total = len(train)

    fraud_count = sum(1 for e in train if e.fraud_label)
    correct = sum(1 for e in train if (e.risk_score > thresholds.risk_score) == e.fraud_label)

    return ClassifierModel(
        thresholds=thresholds,
        feature_weights=list(feature_weights),
        training_accuracy=correct / total if total else 0.0,
        fraud_rate=fraud_count / total if total else 0.0,
        sample_size=total,
        trained_at=trained_at or datetime.now(timezone.utc),
        version=version or settings.MODEL_VERSION,
    )


def _ratio(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator else 0.0


def evaluate_model(model: ClassifierModel, test: Sequence[TrainingExample]) -> EvaluationMetrics:
    """Confusion matrix [[TN, FP], [FN, TP]] and metrics on the held-out split."""
    tp = tn = fp = fn = 0

    for example in test:
        predicted = example.risk_score > model.thresholds.risk_score
        if predicted and example.fraud_label:
            tp += 1
        elif predicted:
            fp += 1
        elif example.fraud_label:
            fn += 1
        else:
            tn += 1

    precision = _ratio(tp, tp + fp)
    recall = _ratio(tp, tp + fn)

    return EvaluationMetrics(
        accuracy=_ratio(tp + tn, len(test)),
        precision=precision,
        recall=recall,
        f1_score=_ratio(2 * precision * recall, precision + recall),
        confusion_matrix=[[tn, fp], [fn, tp]],
    )


def train_model(
    examples: Sequence[TrainingExample],
    seed: Optional[int] = None,
    weighting: Optional[FeatureWeighting] = None,
    min_examples: Optional[int] = None,
    train_split: Optional[float] = None,
    version: Optional[str] = None,
) -> Tuple[ClassifierModel, EvaluationMetrics]:
    """
    Train and evaluate a threshold classifier.

    Args:
        examples: Labeled training examples
        seed: Shuffle seed; falls back to TRAINING_SEED (None = unseeded)
        weighting: Feature weighting step (HandCraftedWeighting by default)

    Raises:
        InsufficientDataError: fewer than MIN_TRAINING_EXAMPLES examples.
    """
    min_examples = settings.MIN_TRAINING_EXAMPLES if min_examples is None else min_examples
    if len(examples) < min_examples:
        raise InsufficientDataError(len(examples), min_examples)

    seed = settings.TRAINING_SEED if seed is None else seed
    weighting = weighting or HandCraftedWeighting()

    train, test = split_examples(examples, seed=seed, train_split=train_split)
    logger.info(f"🚀 Training threshold model: train={len(train)}, test={len(test)}, seed={seed}")

    model = calibrate_threshold_model(train, weighting.weights(train), version=version)
    metrics = evaluate_model(model, test)

    logger.info(
        f"✅ Model trained: accuracy={metrics.accuracy:.2%}, "
        f"precision={metrics.precision:.2%}, recall={metrics.recall:.2%}, f1={metrics.f1_score:.2%}"
    )
    return model, metrics
