"""
Narrative Risk Assessor - asks a generative completion service for a fraud
analysis and falls back to the rule-based analyzer when the answer is
missing, late or unusable.
"""

import asyncio
import json
import math
import re
from typing import Any, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from .benchmark import MarketBenchmarkService
from .models import AnalysisSource, FraudAnalysisResult, FraudPatterns, MarketContext, RiskLevel
from .rules import RuleBasedAnalyzer, clamp
from triplecheck.api.completion_client import BaseCompletionClient, GeminiCompletionClient
from triplecheck.core.config import settings
from triplecheck.core.exceptions import MalformedResponseError, NarrativeServiceError
from triplecheck.core.logger import logger
from triplecheck.schemas import ListingRecord

JSON_FENCE = re.compile(r"```json[ \t]*\n?(.*?)```", re.DOTALL | re.IGNORECASE)
ANY_FENCE = re.compile(r"```(.*?)```", re.DOTALL)
LANGUAGE_TAG = re.compile(r"^[A-Za-z][\w+-]*[ \t]*$")


FRAUD_PROMPT = """You are a real estate fraud detection expert in Kenya.
Analyze this property listing and identify potential indicators of fraud.

Property data:
{listing}

Market context:
- Matched market area: {area} (average {avg_price_per_sqm:,.0f} KES per m2)
- Expected price: {expected_price:,.0f} KES
- Actual price: {actual_price:,.0f} KES
- Price deviation: {deviation:+.1%}
- Underpriced (below 70% of expected): {underpriced}
- Overpriced (above 150% of expected): {overpriced}

Look for red flags including:
1. Pricing that is significantly below or above market value
2. Vague or inconsistent property descriptions
3. Unusual location descriptions or non-existent addresses
4. Properties listed without proper identifiers or registration numbers
5. Unusual ownership history or rapid ownership changes

Format your response as JSON:
{{
  "isSuspicious": boolean,
  "suspiciousScore": number (0.0-1.0),
  "reasons": [list of specific reasons if suspicious],
  "riskLevel": "low" or "medium" or "high",
  "fraudPatterns": {{
    "priceAnomaly": number (0-100),
    "documentInconsistency": number (0-100),
    "ownershipRisk": number (0-100),
    "marketDeviation": number (0-100)
  }}
}}"""


def build_fraud_prompt(listing: ListingRecord, market: MarketContext) -> str:
    return FRAUD_PROMPT.format(
        listing=listing.model_dump_json(by_alias=True, indent=2),
        area=market.baseline.area,
        avg_price_per_sqm=market.baseline.avg_price_per_sqm,
        expected_price=market.expected_price,
        actual_price=market.actual_price,
        deviation=market.price_deviation,
        underpriced=market.is_underpriced,
        overpriced=market.is_overpriced,
    )


def _first_object_span(text: str) -> Optional[str]:
    """First balanced top-level ``{...}`` span, ignoring braces inside JSON strings."""
    start = text.find("{")
    if start < 0:
        return None

    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start:i + 1]
    return None


def extract_json_candidate(text: str) -> str:
    """
    Pick the JSON candidate out of free-form completion text.

    Order: fenced ```json block, any fenced block, first top-level {...}
    span, and finally the whole text.
    """
    match = JSON_FENCE.search(text)
    if match:
        return match.group(1).strip()

    match = ANY_FENCE.search(text)
    if match:
        body = match.group(1)
        first_line, _, rest = body.partition("\n")
        if rest and LANGUAGE_TAG.match(first_line):
            body = rest
        return body.strip()

    span = _first_object_span(text)
    if span is not None:
        return span

    return text.strip()


def _bounded(value: Optional[float], high: float) -> Optional[float]:
    if value is None:
        return None
    if math.isnan(value):
        return 0.0
    return clamp(value, 0.0, high)


class NarrativeFraudPatterns(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    price_anomaly: Optional[float] = None
    document_inconsistency: Optional[float] = None
    ownership_risk: Optional[float] = None
    market_deviation: Optional[float] = None

    @field_validator("*", mode="after")
    @classmethod
    def clamp_percent(cls, v: Optional[float]) -> Optional[float]:
        return _bounded(v, 100.0)


class NarrativeFraudPayload(BaseModel):
    """
    Schema of the JSON object expected from the completion service.
    Unknown keys are ignored; known keys are coerced or rejected.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    is_suspicious: Optional[bool] = False
    suspicious_score: Optional[float] = 0.0
    reasons: List[str] = []
    risk_level: RiskLevel = RiskLevel.LOW
    fraud_patterns: Optional[NarrativeFraudPatterns] = None

    @field_validator("suspicious_score", mode="after")
    @classmethod
    def clamp_score(cls, v: Optional[float]) -> Optional[float]:
        return _bounded(v, 1.0)

    @field_validator("reasons", mode="before")
    @classmethod
    def coerce_reasons(cls, v: Any) -> List[str]:
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        if isinstance(v, (list, tuple)):
            return [str(item) for item in v if item is not None]
        raise ValueError("reasons must be a list of strings")

    @field_validator("risk_level", mode="before")
    @classmethod
    def coerce_risk_level(cls, v: Any) -> str:
        level = str(v).strip().lower() if v is not None else ""
        if level in (RiskLevel.LOW.value, RiskLevel.MEDIUM.value, RiskLevel.HIGH.value):
            return level
        return RiskLevel.LOW.value

    def to_result(self) -> FraudAnalysisResult:
        patterns = self.fraud_patterns or NarrativeFraudPatterns()
        return FraudAnalysisResult(
            is_suspicious=bool(self.is_suspicious),
            suspicious_score=self.suspicious_score or 0.0,
            reasons=self.reasons,
            risk_level=self.risk_level,
            fraud_patterns=FraudPatterns(**patterns.model_dump()),
            source=AnalysisSource.NARRATIVE,
        )


def parse_fraud_analysis(text: str) -> FraudAnalysisResult:
    """
    Parse completion text into a FraudAnalysisResult.

    Raises:
        MalformedResponseError: no JSON object could be read or it does not fit the schema.
    """
    candidate = extract_json_candidate(text)
    try:
        data = json.loads(candidate)
    except ValueError as e:
        raise MalformedResponseError(f"Response is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise MalformedResponseError(f"Expected a JSON object, got {type(data).__name__}")

    try:
        return NarrativeFraudPayload.model_validate(data).to_result()
    except ValidationError as e:
        raise MalformedResponseError(f"Response does not match the fraud analysis schema: {e}") from e


class NarrativeRiskAssessor:
    """
    First-pass fraud analysis through a completion service.

    The service is treated as a semantic pattern detector; any error,
    timeout or unparseable answer yields the deterministic rule-based
    analysis instead, so a judgment is always returned.
    """

    def __init__(
        self,
        client: Optional[BaseCompletionClient] = None,
        benchmark_service: Optional[MarketBenchmarkService] = None,
        fallback: Optional[RuleBasedAnalyzer] = None,
        deadline_seconds: Optional[float] = None,
        concurrency: Optional[int] = None,
    ):
        self.client = client
        self.benchmark_service = benchmark_service or MarketBenchmarkService()
        self.fallback = fallback or RuleBasedAnalyzer(self.benchmark_service)
        self.deadline_seconds = settings.NARRATIVE_DEADLINE_SECONDS if deadline_seconds is None else deadline_seconds
        self.concurrency = settings.NARRATIVE_CONCURRENCY if concurrency is None else concurrency
        if self.concurrency < 1:
            raise ValueError(f"concurrency must be at least 1, got {self.concurrency}")

    async def assess(self, listing: ListingRecord, market: Optional[MarketContext] = None) -> FraudAnalysisResult:
        if market is None:
            market = self.benchmark_service.analyze_listing(listing)

        if self.client is None:
            return self.fallback.analyze(listing, market)

        prompt = build_fraud_prompt(listing, market)
        try:
            text = await asyncio.wait_for(self.client.complete(prompt), timeout=self.deadline_seconds)
            result = parse_fraud_analysis(text)
            logger.debug(f"Narrative analysis for listing {listing.id}: score={result.suspicious_score:.2f}")
            return result
        except asyncio.TimeoutError:
            logger.warning(
                f"⚠️ Narrative analysis timed out after {self.deadline_seconds}s "
                f"for listing {listing.id}, using rules"
            )
        except (NarrativeServiceError, MalformedResponseError) as e:
            logger.warning(f"⚠️ Narrative analysis failed for listing {listing.id}, using rules: {e}")
        except Exception as e:
            logger.exception(f"❌ Unexpected narrative analysis error for listing {listing.id}: {e}")

        return self.fallback.analyze(listing, market)

    async def assess_many(self, listings: Iterable[ListingRecord]) -> List[FraudAnalysisResult]:
        """Assess listings concurrently, at most ``concurrency`` service calls at a time."""
        semaphore = asyncio.Semaphore(self.concurrency)

        async def _one(listing: ListingRecord) -> FraudAnalysisResult:
            async with semaphore:
                return await self.assess(listing)

        return list(await asyncio.gather(*(_one(listing) for listing in listings)))


async def assess_fraud(
    listing: ListingRecord,
    assessor: Optional[NarrativeRiskAssessor] = None,
) -> FraudAnalysisResult:
    """
    One-off fraud assessment. Uses the Gemini client when GOOGLE_API_KEY
    is configured, otherwise the rule-based analyzer.
    """
    if assessor is not None:
        return await assessor.assess(listing)

    client = GeminiCompletionClient() if settings.GOOGLE_API_KEY else None
    try:
        return await NarrativeRiskAssessor(client).assess(listing)
    finally:
        if client is not None:
            await client.close()
