"""
FastAPI dependency providers.

Routes never touch module level clients; they receive repositories and
services built from these providers, which tests replace through
app.dependency_overrides.
"""
from functools import lru_cache
from fastapi import Depends
import httpx
from app.config.settings import settings
from app.database.connection import get_db, get_bucket
from app.database.block_repository import BlockRepository
from app.database.chat_repository import ChatRepository
from app.database.listing_repository import ListingRepository
from app.database.user_repository import UserRepository
from app.services.chat_service import ChatService
from app.services.geocode_service import Geocoder


def get_storage_bucket():
    return get_bucket()

def get_user_repository(db=Depends(get_db)) -> UserRepository:
    return UserRepository(db)

def get_listing_repository(db=Depends(get_db)) -> ListingRepository:
    return ListingRepository(db)

def get_chat_repository(db=Depends(get_db)) -> ChatRepository:
    return ChatRepository(db)

def get_block_repository(db=Depends(get_db)) -> BlockRepository:
    return BlockRepository(db)

def get_chat_service(
    chats: ChatRepository = Depends(get_chat_repository),
    listings: ListingRepository = Depends(get_listing_repository),
    users: UserRepository = Depends(get_user_repository),
) -> ChatService:
    return ChatService(chats, listings, users)

@lru_cache
def get_geocoder() -> Geocoder:
    return Geocoder()

async def get_http_client():
    async with httpx.AsyncClient(timeout=settings.GEOCODE_TIMEOUT) as client:
        yield client
