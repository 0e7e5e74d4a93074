from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from firebase_admin import auth
from app.database.connection import init_firebase
from app.models.user import UserProfile
import asyncio, logging

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def profile_from_token(decoded_token: dict) -> UserProfile:
    return UserProfile(
        uid=decoded_token["uid"],
        display_name=decoded_token.get("name"),
        email=decoded_token.get("email"),
        photo_url=decoded_token.get("picture"),
    )


async def verify_token(id_token: str) -> dict:
    """Verify a Firebase ID token off the event loop and return its claims."""
    init_firebase()
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, auth.verify_id_token, id_token)


async def get_current_token(credentials: HTTPAuthorizationCredentials = Depends(security)) -> dict:
    if not credentials or not credentials.credentials:
        logger.warning("Missing or invalid authorization header")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        decoded_token = await verify_token(credentials.credentials)
        logger.info(f"Token verified for UID: {decoded_token['uid']}")
        return decoded_token
    except Exception as e:
        logger.error(f"Token verification failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )


async def get_current_user(decoded_token: dict = Depends(get_current_token)) -> UserProfile:
    return profile_from_token(decoded_token)
