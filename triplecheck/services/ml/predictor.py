"""
Prediction with a stored threshold classifier. No network calls.
"""

from typing import Optional, Sequence

from .models import ClassifierModel, PredictionResult
from .store import ModelStore
from triplecheck.core.logger import logger
from triplecheck.schemas import ListingRecord
from triplecheck.services.antifraud.features import extract_features
from triplecheck.services.antifraud.rules import clamp

NEUTRAL_PROBABILITY = 0.5
PREDICTION_THRESHOLD = 0.7


def predict(features: Sequence[float], model: Optional[ClassifierModel]) -> PredictionResult:
    """
    probability = clamp(sum(feature[i] * weight[i]) / 100, 0, 1)
    prediction  = probability > 0.7

    Without a model the result is neutral: probability 0.5, prediction False.

    Raises:
        ValueError: the feature vector does not match the model's weights.
    """
    if model is None:
        return PredictionResult(probability=NEUTRAL_PROBABILITY, prediction=False)

    if len(features) != len(model.feature_weights):
        raise ValueError(
            f"Feature vector has {len(features)} entries, model {model.version} expects {len(model.feature_weights)}"
        )

    weighted = sum(f * w for f, w in zip(features, model.feature_weights))
    probability = clamp(weighted / 100, 0.0, 1.0)
    return PredictionResult(probability=probability, prediction=probability > PREDICTION_THRESHOLD)


class FraudPredictor:
    """
    Scores listings with the current model of a ModelStore.

    The artifact is re-read whenever its file signature changes, so a model
    saved by another process (e.g. the batch trainer) is picked up.
    """

    def __init__(self, store: Optional[ModelStore] = None):
        self.store = store or ModelStore()
        self._model: Optional[ClassifierModel] = None
        self._signature = None
        self._loaded = False

    @property
    def model(self) -> Optional[ClassifierModel]:
        signature = self.store.current_signature()
        if not self._loaded or signature != self._signature:
            self._signature = signature
            self._model = self.store.load()
            self._loaded = True
            if self._model is None:
                logger.warning("⚠️ No trained model found, predictions are neutral")
            else:
                logger.info(f"📦 Loaded model {self._model.version_key}")
        return self._model

    def reload(self) -> Optional[ClassifierModel]:
        self._loaded = False
        return self.model

    def predict_features(self, features: Sequence[float]) -> PredictionResult:
        return predict(features, self.model)

    def predict_listing(self, listing: ListingRecord) -> PredictionResult:
        return predict(extract_features(listing), self.model)
