"""
Unit tests for FraudModelService
"""

import asyncio

import pytest
from unittest.mock import patch

from triplecheck.core.exceptions import InsufficientDataError, ListingNotFoundError, ModelPersistenceError, ModelStoreError
from triplecheck.database.repository import InMemoryListingRepository
from triplecheck.schemas import DocumentVerificationResult, ListingRecord, VerificationStatus
from triplecheck.services.antifraud import NarrativeRiskAssessor
from triplecheck.services.antifraud.benchmark import SQFT_TO_SQM
from triplecheck.services.ml import ModelStore, TrainingExampleBuilder
from triplecheck.services.model_service import FraudModelService


def make_listings(count: int):
    expected = 1000 * SQFT_TO_SQM * 150_000
    listings = []
    for i in range(1, count + 1):
        status = VerificationStatus.FAILED if i % 4 == 0 else VerificationStatus.PENDING
        factor = 0.5 if i % 3 == 0 else 1.0
        listings.append(ListingRecord(
            id=i,
            location="Karen, Nairobi",
            square_footage=1000,
            price=factor * expected,
            bedrooms=3,
            verification_status=status,
        ))
    return listings


def make_service(tmp_path, count: int) -> FraudModelService:
    return FraudModelService(
        InMemoryListingRepository(make_listings(count)),
        builder=TrainingExampleBuilder(assessor=NarrativeRiskAssessor(None)),
        store=ModelStore(tmp_path / "models"),
    )


class TestTrain:
    """Tests for train()."""

    @pytest.mark.asyncio
    async def test_train_saves_model(self, tmp_path):
        service = make_service(tmp_path, 20)

        run = await service.train(seed=42)

        assert run.saved is True
        assert run.train_size == 16
        assert run.test_size == 4
        assert sum(sum(row) for row in run.metrics.confusion_matrix) == 4
        assert service.store.load() == run.model
        assert service.last_run is run

    @pytest.mark.asyncio
    async def test_seeded_training_is_reproducible(self, tmp_path):
        first = await make_service(tmp_path / "a", 20).train(seed=5)
        second = await make_service(tmp_path / "b", 20).train(seed=5)

        assert first.metrics == second.metrics
        assert first.model.training_accuracy == second.model.training_accuracy

    @pytest.mark.asyncio
    async def test_nine_listings_leave_store_unchanged(self, tmp_path):
        """Insufficient data: no model written, previous model kept."""
        service = make_service(tmp_path, 12)
        previous = (await service.train(seed=1)).model

        small = FraudModelService(
            InMemoryListingRepository(make_listings(9)),
            builder=TrainingExampleBuilder(assessor=NarrativeRiskAssessor(None)),
            store=service.store,
        )
        with pytest.raises(InsufficientDataError):
            await small.train(seed=1)

        assert service.store.load() == previous
        assert len(service.store.list_versions()) == 1

    @pytest.mark.asyncio
    async def test_nine_listings_without_previous_model(self, tmp_path):
        service = make_service(tmp_path, 9)

        with pytest.raises(InsufficientDataError):
            await service.train()

        assert service.store.load() is None
        assert service.last_run is None

    @pytest.mark.asyncio
    async def test_persistence_failure_keeps_run(self, tmp_path):
        service = make_service(tmp_path, 12)

        with patch.object(service.store, "save", side_effect=ModelStoreError("read-only")):
            with pytest.raises(ModelPersistenceError) as exc_info:
                await service.train(seed=3)

        run = exc_info.value.run
        assert run is service.last_run
        assert run.saved is False

        retried = await service.save_last_run()

        assert retried.saved is True
        assert service.store.load() == run.model

    @pytest.mark.asyncio
    async def test_save_without_run(self, tmp_path):
        with pytest.raises(ModelStoreError):
            await make_service(tmp_path, 12).save_last_run()

    @pytest.mark.asyncio
    async def test_concurrent_training_is_serialized(self, tmp_path):
        service = make_service(tmp_path, 12)

        runs = await asyncio.gather(service.train(seed=1), service.train(seed=2))

        assert all(run.saved for run in runs)
        assert service.store.load() == runs[1].model


class TestModelInfo:
    @pytest.mark.asyncio
    async def test_no_model(self, tmp_path):
        assert make_service(tmp_path, 12).model_info() is None

    @pytest.mark.asyncio
    async def test_after_training(self, tmp_path):
        service = make_service(tmp_path, 12)
        run = await service.train(seed=1)

        info = service.model_info()

        assert info.type == "threshold"
        assert info.version == run.model.version
        assert info.training_accuracy == run.model.training_accuracy


class TestTrainingStats:
    @pytest.mark.asyncio
    async def test_stats(self, tmp_path):
        stats = await make_service(tmp_path, 12).training_stats()

        assert stats.total_samples == 12
        assert stats.fraudulent_samples + stats.normal_samples == 12
        assert stats.verification_status_distribution == {"pending": 9, "failed": 3}


class TestListingOperations:
    """Tests for prediction, detection and verification of stored listings."""

    @pytest.mark.asyncio
    async def test_predict_returns_features(self, tmp_path):
        result = await make_service(tmp_path, 12).predict_listing(3)

        assert result.listing_id == 3
        assert len(result.features) == 14
        assert result.features[1] == 3.0
        assert result.features[3] == 1000.0

    @pytest.mark.asyncio
    async def test_predict_without_model(self, tmp_path):
        result = await make_service(tmp_path, 12).predict_listing(1)

        assert result.probability == 0.5
        assert result.prediction is False

    @pytest.mark.asyncio
    async def test_predict_after_training(self, tmp_path):
        service = make_service(tmp_path, 12)
        await service.train(seed=1)

        result = await service.predict_listing(1)

        assert result.probability == 1.0
        assert result.prediction is True

    @pytest.mark.asyncio
    async def test_unknown_listing(self, tmp_path):
        service = make_service(tmp_path, 12)

        with pytest.raises(ListingNotFoundError):
            await service.predict_listing(999)
        with pytest.raises(ListingNotFoundError):
            await service.detect_fraud(999)
        with pytest.raises(ListingNotFoundError):
            await service.verify_listing(999, [])

    @pytest.mark.asyncio
    async def test_detect_fraud(self, tmp_path):
        report = await make_service(tmp_path, 12).detect_fraud(3)

        assert report.listing_id == 3
        assert report.market.is_underpriced is True
        assert report.assessment.fraud_patterns.price_anomaly == 70

    @pytest.mark.asyncio
    async def test_verify_listing_updates_status(self, tmp_path):
        service = make_service(tmp_path, 12)
        documents = [DocumentVerificationResult(is_verified=True, confidence=0.9, document_type="title_deed")]

        outcome = await service.verify_listing(1, documents)

        assert outcome.overall_status == VerificationStatus.VERIFIED
        listing = await service.repository.get_listing(1)
        assert listing.verification_status == VerificationStatus.VERIFIED
        assert listing.ai_verification_results["overallStatus"] == "verified"
        assert listing.ai_verification_results["verificationId"] == outcome.verification_id

    @pytest.mark.asyncio
    async def test_verify_listing_failed_document(self, tmp_path):
        service = make_service(tmp_path, 12)
        documents = [DocumentVerificationResult(is_verified=False, confidence=0.9)]

        outcome = await service.verify_listing(1, documents)

        assert outcome.overall_status == VerificationStatus.FAILED
