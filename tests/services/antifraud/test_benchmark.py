"""
Unit tests for MarketBenchmarkService
"""

import pytest

from triplecheck.schemas import ListingRecord
from triplecheck.services.antifraud import MarketBaseline, MarketBenchmarkService, analyze_market
from triplecheck.services.antifraud.benchmark import DEFAULT_BASELINE, SQFT_TO_SQM


@pytest.fixture
def service():
    """MarketBenchmarkService with the static baseline table."""
    return MarketBenchmarkService()


def karen_listing(price_factor: float, square_footage: float = 1000) -> ListingRecord:
    expected = square_footage * SQFT_TO_SQM * 150_000
    return ListingRecord(location="Karen, Nairobi", square_footage=square_footage, price=price_factor * expected)


class TestGetBenchmark:
    """Tests for get_benchmark() method."""

    def test_neighbourhood_before_city(self, service):
        """The most specific area wins over its city."""
        assert service.get_benchmark("Karen, Nairobi").area == "karen"
        assert service.get_benchmark("WESTLANDS NAIROBI").area == "westlands"

    def test_city(self, service):
        assert service.get_benchmark("Nairobi CBD").area == "nairobi"

    def test_unknown_location_uses_default(self, service):
        result = service.get_benchmark("Timbuktu")

        assert result is DEFAULT_BASELINE
        assert result.avg_price_per_sqm == 100_000
        assert result.fraud_risk == 0.10

    def test_empty_location_uses_default(self, service):
        assert service.get_benchmark("") is DEFAULT_BASELINE
        assert service.get_benchmark(None) is DEFAULT_BASELINE

    def test_custom_table(self):
        baseline = MarketBaseline(area="thika", avg_price_per_sqm=40_000, price_range=(20_000, 60_000), fraud_risk=0.2)
        service = MarketBenchmarkService([baseline])

        assert service.get_benchmark("Thika Road") is baseline
        assert service.get_benchmark("Karen") is DEFAULT_BASELINE


class TestAnalyzeListing:
    """Tests for analyze_listing() method."""

    def test_expected_price_uses_square_metres(self, service):
        listing = ListingRecord(location="Karen", square_footage=1000, price=1)

        result = service.analyze_listing(listing)

        assert result.expected_price == pytest.approx(1000 * 0.09290304 * 150_000)
        assert result.baseline.area == "karen"

    def test_underpriced(self, service):
        """Half the expected price is underpriced."""
        result = service.analyze_listing(karen_listing(0.5))

        assert result.is_underpriced is True
        assert result.is_overpriced is False
        assert result.price_deviation == pytest.approx(-0.5)

    def test_overpriced(self, service):
        result = service.analyze_listing(karen_listing(1.6))

        assert result.is_overpriced is True
        assert result.is_underpriced is False
        assert result.price_deviation == pytest.approx(0.6)

    def test_fair_price(self, service):
        result = service.analyze_listing(karen_listing(1.0))

        assert result.is_underpriced is False
        assert result.is_overpriced is False
        assert result.price_deviation == pytest.approx(0.0)

    def test_boundaries_are_exclusive(self, service):
        """Exactly 0.7x and 1.5x raise no flag."""
        assert service.analyze_listing(karen_listing(0.7)).is_underpriced is False
        assert service.analyze_listing(karen_listing(1.5)).is_overpriced is False

    def test_missing_price(self, service):
        """Without a price there is no deviation and no flag."""
        result = service.analyze_listing(ListingRecord(location="Karen", square_footage=1000))

        assert result.actual_price == 0
        assert result.price_deviation == 0
        assert result.is_underpriced is False

    def test_missing_floor_area(self, service):
        """Without a floor area there is no expected price and no flag."""
        result = service.analyze_listing(ListingRecord(location="Karen", price=10_000_000))

        assert result.expected_price == 0
        assert result.price_deviation == 0
        assert result.is_underpriced is False
        assert result.is_overpriced is False


class TestAnalyzeMarket:
    def test_module_function(self):
        result = analyze_market(karen_listing(0.5))

        assert result.is_underpriced is True

    def test_custom_baselines(self):
        baseline = MarketBaseline(area="karen", avg_price_per_sqm=10_000, price_range=(5_000, 20_000), fraud_risk=0.1)

        result = analyze_market(karen_listing(0.5), baselines=[baseline])

        assert result.is_overpriced is True
