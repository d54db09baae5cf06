"""
TripleCheck fraud risk engine: listing fraud assessment and an offline
threshold classifier.
"""

from triplecheck.services.antifraud.benchmark import analyze_market
from triplecheck.services.antifraud.features import extract_features
from triplecheck.services.antifraud.narrative import assess_fraud
from triplecheck.services.ml.dataset import build_training_example
from triplecheck.services.ml.predictor import predict
from triplecheck.services.ml.store import load_model, save_model
from triplecheck.services.ml.trainer import train_model
from triplecheck.services.verification import resolve_overall_status

__all__ = [
    "extract_features",
    "analyze_market",
    "assess_fraud",
    "build_training_example",
    "train_model",
    "save_model",
    "load_model",
    "predict",
    "resolve_overall_status",
]
