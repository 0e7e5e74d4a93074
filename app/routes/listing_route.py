from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, HTTPException, Query, UploadFile, status
from pydantic import ValidationError
from typing import List, Optional
import logging, random
from app.config.settings import settings
from app.database.listing_repository import ListingRepository
from app.database.user_repository import UserRepository
from app.models.listing import Listing, ListingCreate, ListingDetail, ListingFilter, MapPin, OwnerSummary
from app.models.user import UserProfile
from app.routes.firebase_auth import get_current_user
from app.services.geocode_service import Geocoder, backfill_coordinates, map_pins
from app.services.providers import get_geocoder, get_listing_repository, get_storage_bucket, get_user_repository
from app.utils.listing_filter import filter_listings
from app.utils.storage_handle import delete_files_by_url, upload_listing_images, validate_image_files

logger = logging.getLogger(__name__)
router = APIRouter()

FEATURED_POOL_SIZE = 10


# FormData for images + listing fields as JSON string
@router.post("/", response_model=Listing, status_code=status.HTTP_201_CREATED)
async def create_listing(
    listing: str = Form(...),  # JSON string
    images: List[UploadFile] = File(...),
    current_user: UserProfile = Depends(get_current_user),
    listings: ListingRepository = Depends(get_listing_repository),
    users: UserRepository = Depends(get_user_repository),
    bucket=Depends(get_storage_bucket),
):
    """Validate the listing form, upload its images, then store the listing"""
    try:
        listing_data = ListingCreate.parse_raw(listing)
        validate_image_files(images, settings.MAX_LISTING_IMAGES)

        # ownerId must point at an existing user document
        users.ensure(current_user)

        image_urls = upload_listing_images(bucket, current_user.uid, images)
        created = listings.create(current_user.uid, listing_data, image_urls)
        return created

    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error creating listing for UID {current_user.uid}: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Failed to create listing: {str(e)}")


@router.get("/", response_model=List[Listing])
def get_listings(
    min_price: Optional[str] = Query(None),
    max_price: Optional[str] = Query(None),
    property_type: Optional[str] = Query(None),
    location: Optional[str] = Query(None),
    date_range: Optional[str] = Query(None),
    listings: ListingRepository = Depends(get_listing_repository),
):
    try:
        filters = ListingFilter(
            min_price=min_price,
            max_price=max_price,
            property_type=property_type,
            location=location,
            date_range=date_range,
        )
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))

    try:
        return filter_listings(listings.list_all(), filters)
    except Exception as e:
        logger.error(f"Error fetching listings: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/featured", response_model=List[Listing])
def get_featured_listings(
    count: int = Query(default=3, ge=1, le=FEATURED_POOL_SIZE),
    listings: ListingRepository = Depends(get_listing_repository),
):
    """A random pick among the newest listings for the landing page"""
    try:
        latest = listings.list_latest(FEATURED_POOL_SIZE)
        return random.sample(latest, min(count, len(latest)))
    except Exception as e:
        logger.error(f"Error fetching featured listings: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/map", response_model=List[MapPin])
def get_map_pins(
    background_tasks: BackgroundTasks,
    listings: ListingRepository = Depends(get_listing_repository),
    geocoder: Geocoder = Depends(get_geocoder),
):
    """
    Pins for listings that already have coordinates. Listings without them
    are geocoded after the response is sent and show up on a later request.
    """
    try:
        all_listings = listings.list_all()
    except Exception as e:
        logger.error(f"Error fetching listings for map: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))

    missing = [listing for listing in all_listings if not listing.has_coordinates]
    if missing:
        background_tasks.add_task(backfill_coordinates, missing, listings, geocoder)

    return map_pins(all_listings)


@router.get("/user/{uid}", response_model=List[Listing])
def get_user_listings(uid: str, listings: ListingRepository = Depends(get_listing_repository)):
    try:
        return listings.list_by_owner(uid)
    except Exception as e:
        logger.error(f"Error fetching listings of {uid}: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/{listing_id}", response_model=ListingDetail)
def get_listing(
    listing_id: str,
    listings: ListingRepository = Depends(get_listing_repository),
    users: UserRepository = Depends(get_user_repository),
):
    try:
        listing = listings.get(listing_id)
        if not listing:
            raise HTTPException(status_code=404, detail="Listing not found")

        owner = users.get(listing.owner_id)
        if not owner:
            logger.warning(f"Owner data not found for listing {listing_id}")
            summary = OwnerSummary()
        else:
            summary = OwnerSummary(
                display_name=owner.display_name or "Unknown User",
                photo_url=owner.photo_url or "",
                email=owner.email or "Email not available",
            )

        return ListingDetail(listing=listing, owner=summary)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching listing {listing_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to load listing")


@router.delete("/{listing_id}")
def delete_listing(
    listing_id: str,
    current_user: UserProfile = Depends(get_current_user),
    listings: ListingRepository = Depends(get_listing_repository),
    bucket=Depends(get_storage_bucket),
):
    try:
        listing = listings.get(listing_id)
        if not listing:
            raise HTTPException(status_code=404, detail="Listing not found")
        if listing.owner_id != current_user.uid:
            raise HTTPException(status_code=403, detail="Only the owner can delete this listing")

        listings.delete(listing_id)

        # the listing is gone either way, orphaned blobs only cost storage
        try:
            deleted_images = delete_files_by_url(bucket, listing.images)
        except Exception as e:
            logger.error(f"Error deleting images of listing {listing_id}: {str(e)}")
            deleted_images = []

        return {
            "message": "Listing deleted successfully",
            "listing_id": listing_id,
            "deleted_images": len(deleted_images),
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error deleting listing {listing_id}: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))
