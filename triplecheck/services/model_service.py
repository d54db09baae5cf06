"""
Fraud model service - wires the listing repository, the training pipeline,
the model store and prediction together for the API and batch jobs.
"""

import asyncio
from typing import Optional, Sequence

from triplecheck.core.exceptions import ListingNotFoundError, ModelPersistenceError, ModelStoreError
from triplecheck.core.logger import logger
from triplecheck.database.repository import ListingRepository
from triplecheck.schemas import DocumentVerificationResult, ListingRecord
from triplecheck.services.antifraud.features import extract_features
from triplecheck.services.antifraud.models import FraudDetectionReport
from triplecheck.services.ml.dataset import TrainingDataset, TrainingExampleBuilder
from triplecheck.services.ml.models import ListingPrediction, ModelInfo, TrainingRun, TrainingStats
from triplecheck.services.ml.predictor import FraudPredictor
from triplecheck.services.ml.store import ModelStore
from triplecheck.services.ml.trainer import train_model
from triplecheck.services.verification import VerificationOutcome, resolve_overall_status


class FraudModelService:
    """
    Training runs are serialized by an in-process lock: the model store has
    exactly one writer at a time.
    """

    def __init__(
        self,
        repository: ListingRepository,
        builder: Optional[TrainingExampleBuilder] = None,
        store: Optional[ModelStore] = None,
    ):
        self.repository = repository
        self.builder = builder or TrainingExampleBuilder()
        self.store = store or ModelStore()
        self.predictor = FraudPredictor(self.store)
        self.last_run: Optional[TrainingRun] = None
        self._train_lock = asyncio.Lock()

    async def _get_listing(self, listing_id: int) -> ListingRecord:
        listing = await self.repository.get_listing(listing_id)
        if listing is None:
            raise ListingNotFoundError(listing_id)
        return listing

    async def generate_training_data(self) -> TrainingDataset:
        listings = await self.repository.list_listings()
        logger.info(f"📂 Generating training data from {len(listings)} listings")
        return await self.builder.build_dataset(listings)

    async def train(self, seed: Optional[int] = None) -> TrainingRun:
        """
        Build the dataset, train, evaluate and persist a new model.

        Raises:
            InsufficientDataError: too few examples; the store is not touched.
            ModelPersistenceError: trained but not saved; the run is on ``last_run``.
        """
        async with self._train_lock:
            dataset = await self.generate_training_data()
            dataset.require_minimum()

            model, metrics = train_model(dataset.examples, seed=seed)
            run = TrainingRun(
                model=model,
                metrics=metrics,
                train_size=model.sample_size,
                test_size=metrics.total,
                seed=seed,
            )
            self.last_run = run
            self._persist(run)
            return run

    async def save_last_run(self) -> TrainingRun:
        """Retry persisting the last trained model."""
        async with self._train_lock:
            if self.last_run is None:
                raise ModelStoreError("No trained model to save")
            self._persist(self.last_run)
            return self.last_run

    def _persist(self, run: TrainingRun):
        try:
            self.store.save(run.model)
        except ModelStoreError as e:
            logger.error(f"❌ Model trained but not saved: {e}")
            raise ModelPersistenceError(f"Model trained but could not be saved: {e}", run=run) from e

        run.saved = True
        self.predictor.reload()

    def model_info(self) -> Optional[ModelInfo]:
        model = self.store.load()
        return ModelInfo.from_model(model) if model else None

    async def training_stats(self) -> TrainingStats:
        dataset = await self.generate_training_data()
        return dataset.stats()

    async def predict_listing(self, listing_id: int) -> ListingPrediction:
        listing = await self._get_listing(listing_id)
        features = extract_features(listing)
        result = self.predictor.predict_features(features)
        return ListingPrediction(
            listing_id=listing_id,
            features=features,
            probability=result.probability,
            prediction=result.prediction,
        )

    async def detect_fraud(self, listing_id: int) -> FraudDetectionReport:
        listing = await self._get_listing(listing_id)

        market = self.builder.benchmark_service.analyze_listing(listing)
        analysis = await self.builder.assessor.assess(listing, market)
        assessment = self.builder.scorer.score(listing, analysis, market)

        return FraudDetectionReport(
            listing_id=listing.id,
            analysis=analysis,
            market=market,
            assessment=assessment,
        )

    async def verify_listing(
        self,
        listing_id: int,
        documents: Sequence[DocumentVerificationResult],
    ) -> VerificationOutcome:
        """
        Resolve the overall status from document results and a fresh fraud
        analysis, then write status and outcome back to the listing.
        """
        listing = await self._get_listing(listing_id)
        fraud = await self.builder.assessor.assess(listing)

        outcome = VerificationOutcome(
            listing_id=listing_id,
            overall_status=resolve_overall_status(documents, fraud),
            document_verifications=list(documents),
            fraud_detection=fraud,
        )

        updated = await self.repository.update_verification_status(
            listing_id,
            outcome.overall_status,
            outcome.model_dump(mode="json", by_alias=True),
        )
        if updated is None:
            raise ListingNotFoundError(listing_id)

        logger.info(f"🔍 Listing {listing_id} verified: {outcome.overall_status.value}")
        return outcome

    async def close(self):
        client = self.builder.assessor.client
        if client is not None:
            await client.close()
