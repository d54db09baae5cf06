"""
API tests for the ML endpoints
"""

import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, patch

from triplecheck.core.exceptions import ModelStoreError
from triplecheck.database.repository import InMemoryListingRepository
from triplecheck.schemas import ListingRecord, VerificationStatus
from triplecheck.services.antifraud import NarrativeRiskAssessor
from triplecheck.services.antifraud.benchmark import SQFT_TO_SQM
from triplecheck.services.ml import ClassifierModel, ListingPrediction, ModelStore, TrainingExampleBuilder
from triplecheck.services.model_service import FraudModelService
from triplecheck.web import create_app


def listings(count: int):
    expected = 1000 * SQFT_TO_SQM * 120_000
    return [
        ListingRecord(
            id=i,
            location="Nairobi",
            square_footage=1000,
            price=(0.4 if i % 2 else 1.0) * expected,
            verification_status=VerificationStatus.FAILED if i % 5 == 0 else VerificationStatus.PENDING,
        )
        for i in range(1, count + 1)
    ]


def make_client(tmp_path, count: int = 12):
    service = FraudModelService(
        InMemoryListingRepository(listings(count)),
        builder=TrainingExampleBuilder(assessor=NarrativeRiskAssessor(None)),
        store=ModelStore(tmp_path / "models"),
    )
    return TestClient(create_app(service)), service


class TestTrainEndpoint:
    def test_train(self, tmp_path):
        client, service = make_client(tmp_path)

        response = client.post("/api/ml/train", params={"seed": 42})

        assert response.status_code == 200
        result = response.json()["result"]
        assert result["trainingDataSize"] == 12
        assert set(result["modelMetrics"]) == {"accuracy", "precision", "recall", "f1Score", "confusionMatrix"}
        assert service.store.load() is not None

    def test_insufficient_data(self, tmp_path):
        client, service = make_client(tmp_path, count=9)

        response = client.post("/api/ml/train")

        assert response.status_code == 400
        assert "Insufficient training data" in response.json()["detail"]
        assert service.store.load() is None

    def test_persistence_failure(self, tmp_path):
        client, service = make_client(tmp_path)

        with patch.object(service.store, "save", side_effect=ModelStoreError("read-only")):
            response = client.post("/api/ml/train")

        assert response.status_code == 500
        assert service.last_run is not None


class TestModelInfoEndpoint:
    def test_not_found(self, tmp_path):
        client, _ = make_client(tmp_path)

        response = client.get("/api/ml/model-info")

        assert response.status_code == 404

    def test_after_training(self, tmp_path):
        client, _ = make_client(tmp_path)
        client.post("/api/ml/train", params={"seed": 1})

        response = client.get("/api/ml/model-info")

        assert response.status_code == 200
        result = response.json()["result"]
        assert result["type"] == "threshold"
        assert result["version"] == "1.0.0"
        assert result["thresholds"]["riskScore"] == 70
        assert "trainedAt" in result


class TestTrainingStatsEndpoint:
    def test_stats(self, tmp_path):
        client, _ = make_client(tmp_path)

        response = client.get("/api/ml/training-stats")

        assert response.status_code == 200
        result = response.json()["result"]
        assert result["totalSamples"] == 12
        assert result["verificationStatusDistribution"] == {"pending": 10, "failed": 2}
        assert "generatedAt" in result


class TestListingEndpoints:
    def test_ml_prediction_without_model(self, tmp_path):
        client, _ = make_client(tmp_path)

        response = client.get("/api/properties/2/ml-prediction")

        assert response.status_code == 200
        result = response.json()["result"]
        assert result["propertyId"] == 2
        assert result["fraudProbability"] == 0.5
        assert result["isFraudulent"] is False
        assert len(result["features"]) == 14

    def test_ml_prediction_uses_service(self, tmp_path):
        client, service = make_client(tmp_path)
        prediction = ListingPrediction(listing_id=4, features=[0.0] * 14, probability=0.9, prediction=True)

        with patch.object(service, "predict_listing", AsyncMock(return_value=prediction)) as predict_listing:
            response = client.get("/api/properties/4/ml-prediction")

        predict_listing.assert_awaited_once_with(4)
        result = response.json()["result"]
        assert result["fraudProbability"] == 0.9
        assert result["isFraudulent"] is True

    def test_ml_prediction_sees_model_saved_by_batch_job(self, tmp_path):
        client, _ = make_client(tmp_path)
        assert client.get("/api/properties/2/ml-prediction").json()["result"]["fraudProbability"] == 0.5

        weights = [0.0] * 14
        weights[0] = 1.0
        ModelStore(tmp_path / "models").save(
            ClassifierModel(feature_weights=weights, training_accuracy=0.9, fraud_rate=0.2, sample_size=10)
        )

        result = client.get("/api/properties/2/ml-prediction").json()["result"]
        assert result["fraudProbability"] == 1.0
        assert result["isFraudulent"] is True

    def test_ml_prediction_unknown_listing(self, tmp_path):
        client, _ = make_client(tmp_path)

        assert client.get("/api/properties/999/ml-prediction").status_code == 404

    def test_fraud_detection(self, tmp_path):
        client, _ = make_client(tmp_path)

        response = client.get("/api/properties/1/fraud-detection")

        assert response.status_code == 200
        result = response.json()["result"]
        assert result["market"]["isUnderpriced"] is True
        assert result["analysis"]["source"] == "rules"
        assert 0 <= result["assessment"]["riskScore"] <= 100

    def test_fraud_detection_unknown_listing(self, tmp_path):
        client, _ = make_client(tmp_path)

        assert client.get("/api/properties/999/fraud-detection").status_code == 404

    def test_verify(self, tmp_path):
        client, service = make_client(tmp_path)
        documents = [{"isVerified": False, "confidence": 0.9, "documentType": "title_deed", "issues": ["Seal mismatch"]}]

        response = client.post("/api/properties/2/verify", json=documents)

        assert response.status_code == 200
        assert response.json()["result"]["overallStatus"] == "failed"

    def test_verify_invalid_body(self, tmp_path):
        client, _ = make_client(tmp_path)

        response = client.post("/api/properties/2/verify", json=[{"isVerified": True, "confidence": 3}])

        assert response.status_code == 422

    def test_verify_unknown_listing(self, tmp_path):
        client, _ = make_client(tmp_path)

        assert client.post("/api/properties/999/verify", json=[]).status_code == 404


def test_health(tmp_path):
    client, _ = make_client(tmp_path)

    assert client.get("/health").json() == {"status": "ok"}
