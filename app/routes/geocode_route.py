from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from typing import Optional
import httpx, logging
from app.config.settings import settings
from app.services.providers import get_http_client

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/geocode")
async def geocode(
    address: Optional[str] = Query(None),
    client: httpx.AsyncClient = Depends(get_http_client),
):
    """Forward an address lookup to the Google Geocoding API and return its JSON as is"""
    if not address:
        return JSONResponse(status_code=400, content={"error": "Address is required"})

    params = {"address": address, "key": settings.GOOGLE_MAPS_API_KEY}
    try:
        response = await client.get(settings.GOOGLE_GEOCODE_URL, params=params)
        return JSONResponse(status_code=200, content=response.json())
    except Exception as e:
        logger.error(f"Geocode proxy failed for '{address}': {str(e)}")
        return JSONResponse(status_code=500, content={"error": "Failed to fetch geocode data"})
