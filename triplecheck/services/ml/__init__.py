"""
Threshold classifier: training data, training, persistence, prediction
"""

from .dataset import TrainingDataset, TrainingExampleBuilder, build_dataset, build_training_example, training_stats
from .models import (
    ClassifierModel,
    DocumentScores,
    EvaluationMetrics,
    ListingPrediction,
    ModelInfo,
    PredictionResult,
    Thresholds,
    TrainingExample,
    TrainingRun,
    TrainingStats,
)
from .predictor import FraudPredictor, predict
from .store import ModelStore, load_model, save_model
from .trainer import HandCraftedWeighting, calibrate_threshold_model, evaluate_model, split_examples, train_model

__all__ = [
    "TrainingDataset",
    "TrainingExampleBuilder",
    "build_dataset",
    "build_training_example",
    "training_stats",
    "ClassifierModel",
    "DocumentScores",
    "EvaluationMetrics",
    "ListingPrediction",
    "ModelInfo",
    "PredictionResult",
    "Thresholds",
    "TrainingExample",
    "TrainingRun",
    "TrainingStats",
    "FraudPredictor",
    "predict",
    "ModelStore",
    "load_model",
    "save_model",
    "HandCraftedWeighting",
    "calibrate_threshold_model",
    "evaluate_model",
    "split_examples",
    "train_model",
]
