"""
Feature extraction for the threshold classifier.

The order of FEATURE_NAMES is part of the model contract: the trainer
stores one weight per index and prediction multiplies index by index.
"""

from datetime import datetime, timezone
from typing import List, Optional

from triplecheck.schemas import ListingRecord, VerificationStatus

FeatureVector = List[float]

FEATURE_NAMES = (
    "price",
    "bedrooms",
    "bathrooms",
    "square_footage",
    "location_tier",
    "amenity_count",
    "has_swimming_pool",
    "has_garden",
    "has_security",
    "price_per_sqft",
    "property_age",
    "is_verified",
    "trust_score",
    "owner_id",
)

FEATURE_COUNT = len(FEATURE_NAMES)

# Location tiers, highest first: first matching group wins
LOCATION_TIERS = [
    (5, ("karen", "runda", "spring valley")),
    (4, ("kilimani", "westlands", "lavington")),
    (3, ("nairobi",)),
    (2, ("mombasa", "kisumu")),
]

FLAGGED_AMENITIES = ("swimming pool", "garden", "security")


def location_tier(location: Optional[str]) -> int:
    """Coarse desirability tier of a location: 5 (prime) .. 1 (other), 0 when unknown."""
    if not location:
        return 0

    location_lower = location.lower()
    for tier, areas in LOCATION_TIERS:
        if any(area in location_lower for area in areas):
            return tier
    return 1


def extract_features(listing: ListingRecord, current_year: Optional[int] = None) -> FeatureVector:
    """
    Convert a listing into a fixed-length numeric vector.

    Args:
        listing: Listing to encode
        current_year: Year used for the property age (defaults to the current UTC year)

    Returns:
        List of FEATURE_COUNT floats, never containing None.
    """
    if current_year is None:
        current_year = datetime.now(timezone.utc).year

    price = float(listing.price or 0)
    square_footage = float(listing.square_footage or 0)
    amenities = {a.strip().lower() for a in (listing.amenities or [])}

    price_per_sqft = price / square_footage if square_footage > 0 else 0.0
    property_age = float(current_year - listing.year_built) if listing.year_built else 0.0

    features = [
        price,
        float(listing.bedrooms or 0),
        float(listing.bathrooms or 0),
        square_footage,
        float(location_tier(listing.location)),
        float(len(listing.amenities or [])),
    ]
    features.extend(1.0 if name in amenities else 0.0 for name in FLAGGED_AMENITIES)
    features.extend([
        price_per_sqft,
        property_age,
        1.0 if listing.verification_status == VerificationStatus.VERIFIED else 0.0,
        float(listing.trust_score or 0),
        float(listing.owner_id or 0),
    ])
    return features
