import uvicorn, logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config.settings import settings
from app.utils.rate_limiter import RateLimiter, RateLimitMiddleware

from app.routes.auth_route import router as auth_route
from app.routes.listing_route import router as listing_route
from app.routes.chat_route import router as chat_route
from app.routes.geocode_route import router as geocode_route

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(),
        logging.FileHandler('app.log')
    ]
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Woonruil API",
    description="Home swap listings, browsing and per-listing chat",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

rate_limiter = RateLimiter(
    max_requests=settings.RATE_LIMIT_MAX_REQUESTS,
    window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
)
app.add_middleware(RateLimitMiddleware, limiter=rate_limiter, path_prefix=settings.RATE_LIMIT_PATH_PREFIX)

# register the routes
app.include_router(auth_route, prefix="/auth")
app.include_router(listing_route, prefix="/listing")
app.include_router(chat_route, prefix="/chat")
app.include_router(geocode_route, prefix="/api")

@app.get("/")
def root():
    return {"message": "Woonruil backend is running"}


if __name__ == "__main__" :
    uvicorn.run(app, host = "0.0.0.0", port = 9090, log_level = "info")
