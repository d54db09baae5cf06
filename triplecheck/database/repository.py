"""
Listing source/sink used by the fraud engine.

The engine only reads listings and writes back the verification outcome
(``verificationStatus`` and ``aiVerificationResults``).
"""

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from sqlalchemy import select

from triplecheck.core.logger import logger
from triplecheck.database.base import AsyncSessionLocal
from triplecheck.database.models import Property
from triplecheck.schemas import ListingRecord, VerificationStatus


class ListingRepository(ABC):
    @abstractmethod
    async def list_listings(self) -> List[ListingRecord]:
        pass

    @abstractmethod
    async def get_listing(self, listing_id: int) -> Optional[ListingRecord]:
        pass

    @abstractmethod
    async def update_verification_status(
        self,
        listing_id: int,
        status: VerificationStatus,
        ai_verification_results: Optional[Dict[str, Any]] = None,
    ) -> Optional[ListingRecord]:
        """Store the outcome; returns the updated listing or None if it does not exist."""
        pass


def listing_from_row(row: Property) -> ListingRecord:
    try:
        status = VerificationStatus(row.verification_status)
    except ValueError:
        status = VerificationStatus.PENDING

    return ListingRecord(
        id=row.id,
        owner_id=row.owner_id,
        title=row.title or "",
        description=row.description or "",
        location=row.location or "",
        price=row.price,
        bedrooms=row.bedrooms,
        bathrooms=row.bathrooms,
        square_footage=row.square_footage,
        amenities=list(row.amenities or []),
        year_built=row.year_built,
        verification_status=status,
        ai_verification_results=row.ai_verification_results,
        trust_score=row.trust_score,
        is_fraudulent=row.is_fraudulent,
    )


class SqlListingRepository(ListingRepository):
    """Listings from the ``properties`` table (SQLAlchemy async)."""

    def __init__(self, session_factory=None):
        self.session_factory = session_factory or AsyncSessionLocal

    async def list_listings(self) -> List[ListingRecord]:
        async with self.session_factory() as session:
            result = await session.execute(select(Property).order_by(Property.id))
            return [listing_from_row(row) for row in result.scalars().all()]

    async def get_listing(self, listing_id: int) -> Optional[ListingRecord]:
        async with self.session_factory() as session:
            row = await session.get(Property, listing_id)
            return listing_from_row(row) if row else None

    async def update_verification_status(
        self,
        listing_id: int,
        status: VerificationStatus,
        ai_verification_results: Optional[Dict[str, Any]] = None,
    ) -> Optional[ListingRecord]:
        async with self.session_factory() as session:
            row = await session.get(Property, listing_id)
            if row is None:
                return None

            row.verification_status = status.value
            if ai_verification_results is not None:
                row.ai_verification_results = ai_verification_results
            await session.commit()
            await session.refresh(row)

            logger.info(f"✅ Property {listing_id} verification status -> {status.value}")
            return listing_from_row(row)


class InMemoryListingRepository(ListingRepository):
    """Listings held in memory, e.g. loaded from a JSON export for a batch job."""

    def __init__(self, listings: Optional[Iterable[ListingRecord]] = None):
        self._listings: Dict[int, ListingRecord] = {}
        for index, listing in enumerate(listings or [], start=1):
            if listing.id is None:
                listing = listing.model_copy(update={"id": index})
            self._listings[listing.id] = listing

    @classmethod
    def from_json_file(cls, path: Union[str, Path]) -> "InMemoryListingRepository":
        """
        Load a JSON array of listings. Items with a nested ``features``
        object use the property shape, others are read as flat records.
        """
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        if isinstance(data, dict):
            data = data.get("properties") or data.get("listings") or []

        listings = [
            ListingRecord.from_property(item) if "features" in item else ListingRecord.model_validate(item)
            for item in data
        ]
        logger.info(f"📂 Loaded {len(listings)} listings from {path}")
        return cls(listings)

    async def list_listings(self) -> List[ListingRecord]:
        return list(self._listings.values())

    async def get_listing(self, listing_id: int) -> Optional[ListingRecord]:
        return self._listings.get(listing_id)

    async def update_verification_status(
        self,
        listing_id: int,
        status: VerificationStatus,
        ai_verification_results: Optional[Dict[str, Any]] = None,
    ) -> Optional[ListingRecord]:
        listing = self._listings.get(listing_id)
        if listing is None:
            return None

        update: Dict[str, Any] = {"verification_status": status}
        if ai_verification_results is not None:
            update["ai_verification_results"] = ai_verification_results
        listing = listing.model_copy(update=update)
        self._listings[listing_id] = listing
        return listing
