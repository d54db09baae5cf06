"""
Market Benchmark Service
Compares listing prices against static per-area market baselines.
"""

from typing import List, Optional, Sequence

from .models import MarketBaseline, MarketContext
from triplecheck.schemas import ListingRecord

SQFT_TO_SQM = 0.09290304

UNDERPRICED_FACTOR = 0.7
OVERPRICED_FACTOR = 1.5

# Average asking price per m2 (KES). Neighbourhoods come before their city
# so that the most specific substring matches first.
MARKET_BASELINES: List[MarketBaseline] = [
    MarketBaseline(area="runda", avg_price_per_sqm=180_000, price_range=(140_000, 250_000), fraud_risk=0.05),
    MarketBaseline(area="spring valley", avg_price_per_sqm=160_000, price_range=(120_000, 230_000), fraud_risk=0.06),
    MarketBaseline(area="karen", avg_price_per_sqm=150_000, price_range=(110_000, 220_000), fraud_risk=0.06),
    MarketBaseline(area="westlands", avg_price_per_sqm=145_000, price_range=(100_000, 200_000), fraud_risk=0.08),
    MarketBaseline(area="lavington", avg_price_per_sqm=140_000, price_range=(100_000, 190_000), fraud_risk=0.07),
    MarketBaseline(area="kilimani", avg_price_per_sqm=130_000, price_range=(90_000, 180_000), fraud_risk=0.08),
    MarketBaseline(area="kileleshwa", avg_price_per_sqm=125_000, price_range=(90_000, 170_000), fraud_risk=0.08),
    MarketBaseline(area="nyali", avg_price_per_sqm=110_000, price_range=(80_000, 160_000), fraud_risk=0.10),
    MarketBaseline(area="diani", avg_price_per_sqm=95_000, price_range=(60_000, 150_000), fraud_risk=0.12),
    MarketBaseline(area="milimani", avg_price_per_sqm=70_000, price_range=(45_000, 100_000), fraud_risk=0.10),
    MarketBaseline(area="elgon view", avg_price_per_sqm=60_000, price_range=(40_000, 90_000), fraud_risk=0.11),
    MarketBaseline(area="nairobi", avg_price_per_sqm=120_000, price_range=(60_000, 200_000), fraud_risk=0.10),
    MarketBaseline(area="mombasa", avg_price_per_sqm=90_000, price_range=(50_000, 160_000), fraud_risk=0.12),
    MarketBaseline(area="nakuru", avg_price_per_sqm=65_000, price_range=(40_000, 100_000), fraud_risk=0.11),
    MarketBaseline(area="kisumu", avg_price_per_sqm=60_000, price_range=(35_000, 95_000), fraud_risk=0.12),
    MarketBaseline(area="eldoret", avg_price_per_sqm=55_000, price_range=(35_000, 85_000), fraud_risk=0.12),
]

DEFAULT_BASELINE = MarketBaseline(
    area="default",
    avg_price_per_sqm=100_000,
    price_range=(50_000, 200_000),
    fraud_risk=0.10,
)


class MarketBenchmarkService:
    """Service for comparing listing prices with market baselines."""

    def __init__(
        self,
        baselines: Optional[Sequence[MarketBaseline]] = None,
        default: MarketBaseline = DEFAULT_BASELINE,
    ):
        self.baselines = list(MARKET_BASELINES if baselines is None else baselines)
        self.default = default

    def get_benchmark(self, location: Optional[str]) -> MarketBaseline:
        """Get the market baseline for a free-text location.

        Args:
            location: Listing location (e.g. "Karen, Nairobi")

        Returns:
            First baseline whose area is a case-insensitive substring of the
            location, or the default baseline.
        """
        if location:
            location_lower = location.lower()
            for baseline in self.baselines:
                if baseline.area.lower() in location_lower:
                    return baseline
        return self.default

    def analyze_listing(self, listing: ListingRecord) -> MarketContext:
        """Full listing price analysis.

        Args:
            listing: Listing with price, floor area (sq ft) and location

        Returns:
            MarketContext with expected price and deviation flags.
        """
        baseline = self.get_benchmark(listing.location)

        area_sqm = float(listing.square_footage or 0) * SQFT_TO_SQM
        expected_price = area_sqm * baseline.avg_price_per_sqm
        actual_price = float(listing.price or 0)

        priced = actual_price > 0 and expected_price > 0
        deviation = (actual_price - expected_price) / expected_price if priced else 0.0

        return MarketContext(
            expected_price=expected_price,
            actual_price=actual_price,
            price_deviation=deviation,
            is_underpriced=priced and actual_price < UNDERPRICED_FACTOR * expected_price,
            is_overpriced=priced and actual_price > OVERPRICED_FACTOR * expected_price,
            baseline=baseline,
        )


_default_service = MarketBenchmarkService()


def analyze_market(
    listing: ListingRecord,
    baselines: Optional[Sequence[MarketBaseline]] = None,
) -> MarketContext:
    """Market context of a listing against the static baseline table (or a custom one)."""
    service = _default_service if baselines is None else MarketBenchmarkService(baselines)
    return service.analyze_listing(listing)
