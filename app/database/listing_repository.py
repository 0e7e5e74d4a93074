import logging
from datetime import datetime
from typing import List, Optional
from google.cloud.firestore import FieldFilter, Query
from pydantic import ValidationError
from app.database import paths
from app.models.listing import Listing, ListingCreate

logger = logging.getLogger(__name__)

# Firestore field name for every model attribute that is stored
FIELD_MAP = {
    "title": "title",
    "property_type": "propertyType",
    "bedrooms": "bedrooms",
    "bathrooms": "bathrooms",
    "floor_number": "floorNumber",
    "total_area": "totalArea",
    "description": "description",
    "address": "address",
    "city": "city",
    "country": "country",
    "postal_code": "postalCode",
    "amenities": "amenities",
    "house_rules": "houseRules",
    "rent_price": "rentPrice",
    "is_rent_inclusive": "isRentInclusive",
    "images": "images",
    "owner_id": "ownerId",
    "created_at": "createdAt",
    "latitude": "latitude",
    "longitude": "longitude",
}


def listing_to_document(data: dict) -> dict:
    return {FIELD_MAP[key]: value for key, value in data.items() if key in FIELD_MAP}


def listing_from_document(listing_id: str, data: dict) -> Listing:
    values = {key: data[field] for key, field in FIELD_MAP.items() if data.get(field) is not None}
    return Listing(id=listing_id, **values)


def listings_from_snapshots(docs) -> List[Listing]:
    """Convert query results, skipping documents that cannot be read as a listing"""
    listings = []
    for doc in docs:
        try:
            listings.append(listing_from_document(doc.id, doc.to_dict() or {}))
        except ValidationError as e:
            logger.warning(f"Skipping malformed listing {doc.id}: {e.error_count()} invalid fields")
    return listings


class ListingRepository:

    def __init__(self, db):
        self.db = db

    def create(self, owner_id: str, listing: ListingCreate, images: List[str]) -> Listing:
        doc_ref = paths.listing_document(self.db)
        data = listing.dict()
        data.update({
            "images": images,
            "owner_id": owner_id,
            "created_at": datetime.now().isoformat(),
        })
        doc_ref.set(listing_to_document(data))
        logger.info(f"Listing created with ID: {doc_ref.id} for owner {owner_id}")
        return Listing(id=doc_ref.id, **data)

    def get(self, listing_id: str) -> Optional[Listing]:
        doc = paths.listing_document(self.db, listing_id).get()
        if not doc.exists:
            return None
        found = listings_from_snapshots([doc])
        return found[0] if found else None

    def list_all(self) -> List[Listing]:
        return listings_from_snapshots(paths.listings_collection(self.db).stream())

    def list_by_owner(self, owner_id: str) -> List[Listing]:
        query = paths.listings_collection(self.db).where(filter=FieldFilter("ownerId", "==", owner_id))
        return listings_from_snapshots(query.stream())

    def list_latest(self, limit: int = 10) -> List[Listing]:
        query = paths.listings_collection(self.db).order_by("createdAt", direction=Query.DESCENDING).limit(limit)
        return listings_from_snapshots(query.stream())

    def update_coordinates(self, listing_id: str, latitude: float, longitude: float):
        paths.listing_document(self.db, listing_id).update({
            "latitude": latitude,
            "longitude": longitude,
        })

    def delete(self, listing_id: str):
        paths.listing_document(self.db, listing_id).delete()
        logger.info(f"Listing {listing_id} deleted")
