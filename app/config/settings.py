from pydantic_settings import BaseSettings
from typing import List, Optional

class Settings(BaseSettings):
    FIREBASE_KEY_PATH: Optional[str] = None
    FIREBASE_JSON: Optional[str] = None
    FIREBASE_STORAGE_BUCKET: Optional[str] = None

    GOOGLE_MAPS_API_KEY: str = ""
    GOOGLE_GEOCODE_URL: str = "https://maps.googleapis.com/maps/api/geocode/json"
    NOMINATIM_USER_AGENT: str = "woonruil_backend"
    GEOCODE_TIMEOUT: float = 10.0

    # express-rate-limit defaults of the web client: 100 requests / 15 minutes
    RATE_LIMIT_WINDOW_SECONDS: int = 15 * 60
    RATE_LIMIT_MAX_REQUESTS: int = 100
    RATE_LIMIT_PATH_PREFIX: str = "/api"

    MAX_LISTING_IMAGES: int = 10
    CORS_ORIGINS: List[str] = ["*"]

    class Config:
        env_file = ".env"

settings = Settings()
