"""
ML API endpoints: model training, model info, training statistics and
per-listing fraud prediction, detection and verification.
"""
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from triplecheck.core.exceptions import InsufficientDataError, ListingNotFoundError, ModelPersistenceError, ModelStoreError
from triplecheck.core.logger import logger
from triplecheck.schemas import DocumentVerificationResult
from triplecheck.services.model_service import FraudModelService

router = APIRouter(prefix="/api", tags=["ml"])


def get_model_service(request: Request) -> FraudModelService:
    return request.app.state.model_service


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.post("/ml/train")
async def train(seed: Optional[int] = None, service: FraudModelService = Depends(get_model_service)):
    """
    Train a new threshold model from all stored listings.

    400 when there are fewer than MIN_TRAINING_EXAMPLES listings, 500 when
    the model was trained but could not be saved.
    """
    try:
        run = await service.train(seed=seed)
    except InsufficientDataError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ModelPersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e))

    return {
        "success": True,
        "result": {
            "trainingDataSize": run.train_size + run.test_size,
            "modelMetrics": run.metrics.model_dump(by_alias=True),
            "model": run.model.model_dump(mode="json", by_alias=True),
            "trainedAt": run.model.trained_at.isoformat(),
        },
    }


@router.get("/ml/model-info")
async def model_info(service: FraudModelService = Depends(get_model_service)):
    try:
        info = service.model_info()
    except ModelStoreError as e:
        logger.error(f"❌ Failed to read model: {e}")
        raise HTTPException(status_code=500, detail="Failed to get model information")

    if info is None:
        raise HTTPException(status_code=404, detail="No trained model found")

    return {"success": True, "result": info.model_dump(mode="json", by_alias=True)}


@router.get("/ml/training-stats")
async def training_stats(service: FraudModelService = Depends(get_model_service)):
    stats = await service.training_stats()
    result = stats.model_dump(by_alias=True)
    result["generatedAt"] = _now()
    return {"success": True, "result": result}


@router.get("/properties/{listing_id}/ml-prediction")
async def ml_prediction(listing_id: int, service: FraudModelService = Depends(get_model_service)):
    try:
        prediction = await service.predict_listing(listing_id)
    except ListingNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ModelStoreError as e:
        logger.error(f"❌ Failed to load model: {e}")
        raise HTTPException(status_code=500, detail="Fraud prediction failed")

    return {
        "success": True,
        "result": {
            "propertyId": prediction.listing_id,
            "fraudProbability": prediction.probability,
            "isFraudulent": prediction.prediction,
            "features": prediction.features,
            "predictionDate": _now(),
        },
    }


@router.get("/properties/{listing_id}/fraud-detection")
async def fraud_detection(listing_id: int, service: FraudModelService = Depends(get_model_service)):
    try:
        report = await service.detect_fraud(listing_id)
    except ListingNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return {"success": True, "result": report.model_dump(mode="json", by_alias=True)}


@router.post("/properties/{listing_id}/verify")
async def verify(
    listing_id: int,
    documents: List[DocumentVerificationResult],
    service: FraudModelService = Depends(get_model_service),
):
    """Resolve and store the overall verification status of a listing."""
    try:
        outcome = await service.verify_listing(listing_id, documents)
    except ListingNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return {"success": True, "result": outcome.model_dump(mode="json", by_alias=True)}
