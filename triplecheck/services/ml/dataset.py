"""
Training Example Builder - runs feature extraction, market analysis,
fraud assessment and composite scoring per listing and collects labeled
training examples.
"""

import asyncio
from collections import Counter
from typing import Iterable, Iterator, List, Optional

from .models import TrainingExample, TrainingStats
from .payloads import document_scores_for
from triplecheck.api.completion_client import GeminiCompletionClient
from triplecheck.core.config import settings
from triplecheck.core.exceptions import InsufficientDataError, TripleCheckError
from triplecheck.core.logger import logger
from triplecheck.schemas import ListingRecord
from triplecheck.services.antifraud.benchmark import MarketBenchmarkService
from triplecheck.services.antifraud.engine import CompositeRiskScorer
from triplecheck.services.antifraud.features import extract_features
from triplecheck.services.antifraud.models import FraudAnalysisResult, MarketContext
from triplecheck.services.antifraud.narrative import NarrativeRiskAssessor


class TrainingDataset:
    """In-progress list of training examples."""

    def __init__(self, examples: Optional[Iterable[TrainingExample]] = None):
        self.examples: List[TrainingExample] = list(examples or [])

    def add(self, example: TrainingExample):
        self.examples.append(example)

    def __len__(self) -> int:
        return len(self.examples)

    def __iter__(self) -> Iterator[TrainingExample]:
        return iter(self.examples)

    def require_minimum(self, minimum: Optional[int] = None) -> "TrainingDataset":
        minimum = settings.MIN_TRAINING_EXAMPLES if minimum is None else minimum
        if len(self.examples) < minimum:
            raise InsufficientDataError(len(self.examples), minimum)
        return self

    def stats(self) -> TrainingStats:
        return training_stats(self.examples)


def training_stats(examples: Iterable[TrainingExample]) -> TrainingStats:
    examples = list(examples)
    total = len(examples)
    fraudulent = sum(1 for e in examples if e.fraud_label)
    distribution = Counter(e.verification_status.value for e in examples)

    return TrainingStats(
        total_samples=total,
        fraudulent_samples=fraudulent,
        normal_samples=total - fraudulent,
        fraud_rate=fraudulent / total if total else 0.0,
        average_risk_score=sum(e.risk_score for e in examples) / total if total else 0.0,
        verification_status_distribution=dict(distribution),
    )


class TrainingExampleBuilder:
    def __init__(
        self,
        assessor: Optional[NarrativeRiskAssessor] = None,
        scorer: Optional[CompositeRiskScorer] = None,
        benchmark_service: Optional[MarketBenchmarkService] = None,
        current_year: Optional[int] = None,
    ):
        self.benchmark_service = benchmark_service or MarketBenchmarkService()
        self.assessor = assessor or NarrativeRiskAssessor(benchmark_service=self.benchmark_service)
        self.scorer = scorer or CompositeRiskScorer(benchmark_service=self.benchmark_service)
        self.current_year = current_year

    def build_from_analysis(
        self,
        listing: ListingRecord,
        analysis: FraudAnalysisResult,
        market: Optional[MarketContext] = None,
    ) -> TrainingExample:
        """Pure part of the builder: no network call."""
        if market is None:
            market = self.benchmark_service.analyze_listing(listing)

        assessment = self.scorer.score(listing, analysis, market)

        return TrainingExample(
            listing_id=listing.id,
            features=extract_features(listing, self.current_year),
            fraud_label=assessment.is_fraud,
            risk_score=assessment.risk_score,
            verification_status=listing.verification_status,
            document_scores=document_scores_for(listing.ai_verification_results),
        )

    async def build(self, listing: ListingRecord) -> TrainingExample:
        market = self.benchmark_service.analyze_listing(listing)
        analysis = await self.assessor.assess(listing, market)
        return self.build_from_analysis(listing, analysis, market)

    async def build_dataset(self, listings: Iterable[ListingRecord]) -> TrainingDataset:
        """
        Build examples for all listings, at most NARRATIVE_CONCURRENCY at a time.
        A listing that cannot be encoded is logged and skipped.
        """
        listings = list(listings)
        semaphore = asyncio.Semaphore(self.assessor.concurrency)

        async def _one(listing: ListingRecord) -> Optional[TrainingExample]:
            async with semaphore:
                try:
                    return await self.build(listing)
                except (TripleCheckError, ValueError, TypeError) as e:
                    logger.error(f"❌ Skipping listing {listing.id}: {e}")
                    return None

        results = await asyncio.gather(*(_one(listing) for listing in listings))
        dataset = TrainingDataset(example for example in results if example is not None)

        logger.info(f"📊 Built {len(dataset)} training examples from {len(listings)} listings")
        return dataset


async def build_dataset(
    listings: Iterable[ListingRecord],
    builder: Optional[TrainingExampleBuilder] = None,
) -> TrainingDataset:
    return await (builder or TrainingExampleBuilder()).build_dataset(listings)


async def build_training_example(
    listing: ListingRecord,
    builder: Optional[TrainingExampleBuilder] = None,
) -> TrainingExample:
    """
    Labeled training example for one listing. Uses the Gemini client when
    GOOGLE_API_KEY is configured, otherwise the rule-based analyzer.
    """
    if builder is not None:
        return await builder.build(listing)

    client = GeminiCompletionClient() if settings.GOOGLE_API_KEY else None
    try:
        return await TrainingExampleBuilder(NarrativeRiskAssessor(client)).build(listing)
    finally:
        if client is not None:
            await client.close()
