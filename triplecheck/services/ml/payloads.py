"""
Prior AI-verification payloads stored on a listing.

The listing source keeps whatever the verification step produced in
``aiVerificationResults``. Known shapes are modelled as a tagged union and
each variant maps to DocumentScores with one pure function:

    {"overallScore": 72,
     "imageAnalysis": {"authenticityScore": 80},
     "descriptionAnalysis": {"accuracyScore": 70, "coherenceScore": 65}}

    {"authenticity": 80, "completeness": 70, "consistency": 65}

    {"overallScore": 72}
"""

from typing import Annotated, Any, Dict, Optional, Union

from pydantic import Discriminator, Tag, TypeAdapter, ValidationError

from .models import DocumentScores
from triplecheck.core.logger import logger
from triplecheck.schemas import CamelModel
from triplecheck.services.antifraud.rules import clamp

NEUTRAL_OVERALL = 50.0
AUTHENTICITY_OVERALL_FACTOR = 1.2


def _scores(authenticity: float, completeness: float, consistency: float) -> DocumentScores:
    return DocumentScores(
        authenticity=clamp(authenticity, 0, 100),
        completeness=clamp(completeness, 0, 100),
        consistency=clamp(consistency, 0, 100),
    )


def _known(value: Optional[float], fallback: float) -> float:
    return fallback if value is None else value


class ImageAnalysis(CamelModel):
    authenticity_score: Optional[float] = None


class DescriptionAnalysis(CamelModel):
    accuracy_score: Optional[float] = None
    coherence_score: Optional[float] = None


class _OverallScored(CamelModel):
    overall_score: Optional[float] = None

    @property
    def overall(self) -> float:
        return _known(self.overall_score, NEUTRAL_OVERALL)

    @property
    def authenticity_from_overall(self) -> float:
        return min(100.0, AUTHENTICITY_OVERALL_FACTOR * self.overall)


class CombinedAnalysisPayload(_OverallScored):
    image_analysis: ImageAnalysis
    description_analysis: DescriptionAnalysis

    def document_scores(self) -> DocumentScores:
        return _scores(
            _known(self.image_analysis.authenticity_score, self.authenticity_from_overall),
            _known(self.description_analysis.accuracy_score, self.overall),
            _known(self.description_analysis.coherence_score, self.overall),
        )


class ImageAnalysisPayload(_OverallScored):
    image_analysis: ImageAnalysis

    def document_scores(self) -> DocumentScores:
        return _scores(
            _known(self.image_analysis.authenticity_score, self.authenticity_from_overall),
            self.overall,
            self.overall,
        )


class DescriptionAnalysisPayload(_OverallScored):
    description_analysis: DescriptionAnalysis

    def document_scores(self) -> DocumentScores:
        return _scores(
            self.authenticity_from_overall,
            _known(self.description_analysis.accuracy_score, self.overall),
            _known(self.description_analysis.coherence_score, self.overall),
        )


class LegacyOverallScoreOnly(_OverallScored):
    def document_scores(self) -> DocumentScores:
        return _scores(self.authenticity_from_overall, self.overall, self.overall)


class DirectScoresPayload(CamelModel):
    """Scores already flattened by an earlier version of the verification step."""
    authenticity: Optional[float] = None
    completeness: Optional[float] = None
    consistency: Optional[float] = None

    def document_scores(self) -> DocumentScores:
        return _scores(
            _known(self.authenticity, NEUTRAL_OVERALL),
            _known(self.completeness, NEUTRAL_OVERALL),
            _known(self.consistency, NEUTRAL_OVERALL),
        )


_MODEL_TAGS = {
    CombinedAnalysisPayload: "combined",
    ImageAnalysisPayload: "image",
    DescriptionAnalysisPayload: "description",
    DirectScoresPayload: "direct",
    LegacyOverallScoreOnly: "legacy",
}


def payload_kind(value: Any) -> Optional[str]:
    """Tag of a raw payload dict (or payload model), None for unknown shapes."""
    if not isinstance(value, dict):
        return _MODEL_TAGS.get(type(value))

    has_image = isinstance(value.get("imageAnalysis"), dict)
    has_description = isinstance(value.get("descriptionAnalysis"), dict)
    if has_image and has_description:
        return "combined"
    if has_image:
        return "image"
    if has_description:
        return "description"
    if any(key in value for key in ("authenticity", "completeness", "consistency")):
        return "direct"
    if "overallScore" in value:
        return "legacy"
    return None


VerificationPayload = Annotated[
    Union[
        Annotated[CombinedAnalysisPayload, Tag("combined")],
        Annotated[ImageAnalysisPayload, Tag("image")],
        Annotated[DescriptionAnalysisPayload, Tag("description")],
        Annotated[DirectScoresPayload, Tag("direct")],
        Annotated[LegacyOverallScoreOnly, Tag("legacy")],
    ],
    Discriminator(payload_kind),
]

_payload_adapter = TypeAdapter(VerificationPayload)


def parse_verification_payload(data: Optional[Dict[str, Any]]):
    """Parse a stored payload into its variant, or None when absent or unrecognized."""
    if not data or payload_kind(data) is None:
        return None

    try:
        return _payload_adapter.validate_python(data)
    except ValidationError as e:
        logger.warning(f"⚠️ Ignoring unreadable verification payload: {e.error_count()} errors")
        return None


def document_scores_for(data: Optional[Dict[str, Any]]) -> DocumentScores:
    """Document sub-scores of a listing; neutral 50s without a usable payload."""
    payload = parse_verification_payload(data)
    if payload is None:
        return DocumentScores()
    return payload.document_scores()
