from typing import List
from app.models.listing import Listing, ListingFilter


def matches_filter(listing: Listing, filters: ListingFilter) -> bool:
    """True when the listing satisfies every active filter field"""
    if filters.min_price is not None and listing.rent_price < filters.min_price:
        return False

    if filters.max_price is not None and listing.rent_price > filters.max_price:
        return False

    if filters.property_type:
        if (listing.property_type or "").lower() != filters.property_type.strip().lower():
            return False

    if filters.location:
        needle = filters.location.strip().lower()
        haystacks = [(listing.city or "").lower(), (listing.country or "").lower()]
        if not any(needle in value for value in haystacks):
            return False

    return True


def filter_listings(listings: List[Listing], filters: ListingFilter) -> List[Listing]:
    """
    Keep the listings matching all active filters, in their original order.
    Price bounds are inclusive.
    """
    return [listing for listing in listings if matches_filter(listing, filters)]
