from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class VerificationStatus(str, Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    FAILED = "failed"
    SUSPICIOUS = "suspicious"


class CamelModel(BaseModel):
    """Base for records that travel as camelCase JSON."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ListingRecord(CamelModel):
    """
    A real-estate listing as supplied by the listing source.
    Read-only for the fraud engine.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: Optional[int] = None
    owner_id: Optional[int] = None
    title: str = ""
    description: str = ""
    location: str = ""
    price: Optional[float] = None
    bedrooms: Optional[float] = None
    bathrooms: Optional[float] = None
    square_footage: Optional[float] = None
    amenities: List[str] = Field(default_factory=list)
    year_built: Optional[int] = None
    verification_status: VerificationStatus = VerificationStatus.PENDING
    ai_verification_results: Optional[Dict[str, Any]] = None
    trust_score: Optional[float] = None
    is_fraudulent: Optional[bool] = None

    @classmethod
    def from_property(cls, data: Dict[str, Any]) -> "ListingRecord":
        """
        Build a record from the listing source's property shape, where
        the physical attributes sit in a nested ``features`` object:

            {"id": 7, "ownerId": 3, "location": "Karen, Nairobi", "price": 45000000,
             "features": {"bedrooms": 4, "squareFeet": 3200, "amenities": [...]},
             "verificationStatus": "pending", "aiVerificationResults": {...}}
        """
        features = data.get("features") or {}
        status = data.get("verificationStatus") or data.get("verification_status") or "pending"
        try:
            status = VerificationStatus(str(status).lower())
        except ValueError:
            status = VerificationStatus.PENDING

        square_footage = features.get("squareFootage")
        if square_footage is None:
            square_footage = features.get("squareFeet")

        return cls(
            id=data.get("id"),
            owner_id=data.get("ownerId", data.get("owner_id")),
            title=data.get("title") or "",
            description=data.get("description") or "",
            location=data.get("location") or "",
            price=data.get("price"),
            bedrooms=features.get("bedrooms"),
            bathrooms=features.get("bathrooms"),
            square_footage=square_footage,
            amenities=features.get("amenities") or [],
            year_built=features.get("yearBuilt", data.get("yearBuilt")),
            verification_status=status,
            ai_verification_results=data.get("aiVerificationResults", data.get("ai_verification_results")),
            trust_score=data.get("trustScore", data.get("trust_score")),
            is_fraudulent=data.get("isFraudulent", data.get("is_fraudulent")),
        )


class DocumentVerificationResult(CamelModel):
    """Outcome of verifying one ownership document (title deed, ID, sale agreement...)."""
    is_verified: bool
    confidence: float = Field(ge=0.0, le=1.0)
    issues: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    document_type: str = "unknown"
    extracted_data: Dict[str, Any] = Field(default_factory=dict)
