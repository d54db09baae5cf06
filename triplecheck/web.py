"""
HTTP surface of the fraud risk engine.
"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from triplecheck.api import ml_routes
from triplecheck.api.completion_client import GeminiCompletionClient
from triplecheck.core.config import settings
from triplecheck.core.logger import logger
from triplecheck.database.base import init_db
from triplecheck.database.repository import SqlListingRepository
from triplecheck.services.antifraud.narrative import NarrativeRiskAssessor
from triplecheck.services.ml.dataset import TrainingExampleBuilder
from triplecheck.services.model_service import FraudModelService


def build_model_service() -> FraudModelService:
    client = GeminiCompletionClient() if settings.GOOGLE_API_KEY else None
    if client is None:
        logger.warning("⚠️ GOOGLE_API_KEY not set, fraud analysis uses rules only")

    builder = TrainingExampleBuilder(assessor=NarrativeRiskAssessor(client))
    return FraudModelService(SqlListingRepository(), builder=builder)


def create_app(service: Optional[FraudModelService] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"🚀 Starting TripleCheck fraud engine ({settings.APP_ENV})")
        if service is None:
            await init_db()
            app.state.model_service = build_model_service()

        yield

        logger.info("🛑 Stopping TripleCheck fraud engine")
        await app.state.model_service.close()

    app = FastAPI(
        title="TripleCheck Fraud Engine",
        description="Fraud risk assessment and threshold classifier for property listings",
        version=settings.MODEL_VERSION,
        lifespan=lifespan,
    )
    if service is not None:
        app.state.model_service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(ml_routes.router)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn

    uvicorn.run("triplecheck.web:app", host="0.0.0.0", port=8000)
