import asyncio, logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Tuple
from geopy.geocoders import Nominatim
from app.config.settings import settings
from app.database.listing_repository import ListingRepository
from app.models.listing import Listing, MapPin

logger = logging.getLogger(__name__)


class Geocoder:
    """Address → (latitude, longitude) through OpenStreetMap Nominatim"""

    def __init__(self, geolocator=None, timeout: float = settings.GEOCODE_TIMEOUT, max_workers: int = 4):
        self.geolocator = geolocator or Nominatim(user_agent=settings.NOMINATIM_USER_AGENT)
        self.timeout = timeout
        # geopy is blocking
        self._executor = ThreadPoolExecutor(max_workers=max_workers)

    async def geocode(self, address: str) -> Optional[Tuple[float, float]]:
        if not address or not address.strip():
            return None

        try:
            loop = asyncio.get_running_loop()
            location = await loop.run_in_executor(
                self._executor,
                lambda: self.geolocator.geocode(address, exactly_one=True, timeout=self.timeout)
            )

            if location:
                return float(location.latitude), float(location.longitude)

            logger.info(f"No geocoding result for address: {address}")
            return None

        except Exception as e:
            logger.warning(f"Geocoding failed for '{address}': {str(e)}")
            return None


def map_pins(listings: List[Listing]) -> List[MapPin]:
    return [
        MapPin(
            id=listing.id,
            title=listing.title,
            latitude=listing.latitude,
            longitude=listing.longitude,
            rent_price=listing.rent_price,
            image=listing.images[0] if listing.images else None,
        )
        for listing in listings if listing.has_coordinates
    ]


async def backfill_coordinates(listings: List[Listing], repository: ListingRepository, geocoder: Geocoder) -> int:
    """
    Geocode every listing that has no coordinates yet and store the result.
    Best effort: a listing that cannot be resolved is skipped and stays off the map.
    Returns the number of listings updated.
    """
    updated = 0
    for listing in listings:
        if listing.has_coordinates:
            continue

        coordinates = await geocoder.geocode(listing.full_address)
        if not coordinates:
            continue

        try:
            repository.update_coordinates(listing.id, *coordinates)
            updated += 1
        except Exception as e:
            logger.warning(f"Could not store coordinates for listing {listing.id}: {str(e)}")

    if updated:
        logger.info(f"Geocoding backfill stored coordinates for {updated} listings")
    return updated
