#!/usr/bin/env python3
"""
Train the fraud-detection threshold model.

Listings come from a JSON export (--listings) or from the database.
"""
import argparse
import asyncio
import json
import sys
from typing import Optional

from triplecheck.api.completion_client import GeminiCompletionClient
from triplecheck.core.config import settings
from triplecheck.core.exceptions import InsufficientDataError, ModelPersistenceError
from triplecheck.core.logger import logger
from triplecheck.database.repository import InMemoryListingRepository, SqlListingRepository
from triplecheck.services.antifraud.narrative import NarrativeRiskAssessor
from triplecheck.services.ml.dataset import TrainingExampleBuilder
from triplecheck.services.ml.store import ModelStore
from triplecheck.services.model_service import FraudModelService


async def main(listings_path: Optional[str], model_dir: Optional[str], seed: Optional[int], rules_only: bool) -> int:
    logger.info("=" * 60)
    logger.info("🎯 Train fraud-detection threshold model")
    logger.info("=" * 60)

    if listings_path:
        repository = InMemoryListingRepository.from_json_file(listings_path)
    else:
        repository = SqlListingRepository()

    client = None if rules_only or not settings.GOOGLE_API_KEY else GeminiCompletionClient()
    builder = TrainingExampleBuilder(assessor=NarrativeRiskAssessor(client))
    service = FraudModelService(repository, builder=builder, store=ModelStore(model_dir))

    try:
        run = await service.train(seed=seed)
    except InsufficientDataError as e:
        logger.error(f"❌ {e}")
        return 1
    except ModelPersistenceError as e:
        logger.error(f"❌ {e}")
        return 2
    finally:
        await service.close()

    logger.info(f"📊 Train: {run.train_size}, Test: {run.test_size}")
    logger.info(f"📊 Accuracy: {run.metrics.accuracy:.2%}")
    logger.info(f"📊 F1 Score: {run.metrics.f1_score:.2%}")
    print(json.dumps(run.metrics.model_dump(by_alias=True), indent=2))
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--listings", help="JSON export of listings (default: read the database)")
    parser.add_argument("--model-dir", help=f"Model store directory (default: {settings.MODEL_STORE_DIR})")
    parser.add_argument("--seed", type=int, default=settings.TRAINING_SEED, help="Train/test shuffle seed")
    parser.add_argument("--rules-only", action="store_true", help="Skip the completion service")
    args = parser.parse_args()

    sys.exit(asyncio.run(main(args.listings, args.model_dir, args.seed, args.rules_only)))
