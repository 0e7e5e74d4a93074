from fastapi import APIRouter, HTTPException, Depends, UploadFile, File
from firebase_admin import auth
from firebase_admin import exceptions as firebase_exceptions
from app.database.connection import init_firebase
from app.database.user_repository import UserRepository
from app.models.user import UpdateUserProfileRequest, UserCreate, UserProfile
from app.routes.firebase_auth import get_current_user
from app.services.providers import get_storage_bucket, get_user_repository
from app.utils.storage_handle import ALLOWED_IMAGE_TYPES, upload_profile_picture
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/signup")
def signup(user: UserCreate, users: UserRepository = Depends(get_user_repository)):
    try:
        init_firebase()
        # Create user in Firebase Auth
        user_record = auth.create_user(
            email=user.email,
            password=user.password,
            display_name=user.full_name
        )

        # Mirror it so other users can read the profile
        profile = users.save(UserProfile(
            uid=user_record.uid,
            display_name=user.full_name,
            email=user.email,
            photo_url=None,
        ))
        logger.info(f"User created with UID: {user_record.uid}")

        return {
            "message": "User created successfully",
            "uid": profile.uid,
        }
    except firebase_exceptions.FirebaseError as e:
        logger.error(f"Firebase error during signup: {str(e)}")
        raise HTTPException(status_code=400, detail=f"Firebase error: {str(e)}")
    except Exception as e:
        logger.error(f"Error during signup: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/sync", response_model=UserProfile)
def sync_profile(
    current_user: UserProfile = Depends(get_current_user),
    users: UserRepository = Depends(get_user_repository),
):
    """
    Called by the client after every sign-in (email or federated) to copy the
    identity provider's name, email and picture into the users collection.
    """
    try:
        existing = users.get(current_user.uid)
        profile = UserProfile(
            uid=current_user.uid,
            display_name=current_user.display_name or (existing.display_name if existing else None),
            email=current_user.email or (existing.email if existing else None),
            photo_url=current_user.photo_url or (existing.photo_url if existing else None),
        )
        return users.save(profile)
    except Exception as e:
        logger.error(f"Error syncing profile for UID {current_user.uid}: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/me", response_model=UserProfile)
def get_profile(
    current_user: UserProfile = Depends(get_current_user),
    users: UserRepository = Depends(get_user_repository),
):
    try:
        profile = users.get(current_user.uid)
        if not profile:
            logger.error(f"User {current_user.uid} not found in Firestore")
            raise HTTPException(status_code=404, detail="User not found")
        return profile
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in /me endpoint: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/users/{uid}", response_model=UserProfile)
def get_public_profile(uid: str, users: UserRepository = Depends(get_user_repository)):
    profile = users.get(uid)
    if not profile:
        raise HTTPException(status_code=404, detail="User not found")
    return profile


@router.put("/profile", response_model=UserProfile)
def update_profile(
    profile_data: UpdateUserProfileRequest,
    current_user: UserProfile = Depends(get_current_user),
    users: UserRepository = Depends(get_user_repository),
):
    """
    Update display name and photo in Firebase Auth and in the mirror.
    Messages already sent keep the name and photo they were sent with.
    """
    uid = current_user.uid
    try:
        logger.info(f"Updating profile for UID: {uid}")
        init_firebase()
        auth.update_user(uid, display_name=profile_data.display_name, photo_url=profile_data.photo_url)

        # photo_url=None leaves the Auth photo untouched, so the mirror keeps it too
        existing = users.get(uid)
        photo_url = profile_data.photo_url
        if photo_url is None:
            photo_url = (existing.photo_url if existing else None) or current_user.photo_url

        return users.save(UserProfile(
            uid=uid,
            display_name=profile_data.display_name,
            email=current_user.email or (existing.email if existing else None),
            photo_url=photo_url,
        ))
    except firebase_exceptions.FirebaseError as e:
        logger.error(f"Firebase error updating profile for UID {uid}: {str(e)}")
        raise HTTPException(status_code=400, detail=f"Failed to update profile: {str(e)}")
    except Exception as e:
        logger.error(f"Error updating profile for UID {uid}: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/profile/picture", response_model=UserProfile)
def update_profile_picture(
    picture: UploadFile = File(...),
    current_user: UserProfile = Depends(get_current_user),
    users: UserRepository = Depends(get_user_repository),
    bucket=Depends(get_storage_bucket),
):
    uid = current_user.uid
    if picture.content_type not in ALLOWED_IMAGE_TYPES:
        logger.error(f"Unsupported file type attempted for upload by UID {uid}: {picture.content_type}")
        raise HTTPException(status_code=400, detail=f"Unsupported file type: {picture.content_type}")

    try:
        photo_url = upload_profile_picture(bucket, uid, picture)
        init_firebase()
        auth.update_user(uid, photo_url=photo_url)

        existing = users.get(uid)
        profile = users.save(UserProfile(
            uid=uid,
            display_name=(existing.display_name if existing else None) or current_user.display_name,
            email=current_user.email or (existing.email if existing else None),
            photo_url=photo_url,
        ))
        logger.info(f"Profile picture updated for UID {uid}")
        return profile
    except firebase_exceptions.FirebaseError as e:
        logger.error(f"Firebase error updating picture for UID {uid}: {str(e)}")
        raise HTTPException(status_code=400, detail=f"Failed to update profile picture: {str(e)}")
    except Exception as e:
        logger.error(f"Error updating picture for UID {uid}: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))
