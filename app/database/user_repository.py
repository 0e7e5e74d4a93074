import logging
from datetime import datetime
from typing import Optional
from app.database import paths
from app.models.user import UserProfile

logger = logging.getLogger(__name__)


class UserRepository:
    """users/{uid}: copy of the identity provider's profile readable by other users"""

    def __init__(self, db):
        self.db = db

    def get(self, uid: str) -> Optional[UserProfile]:
        doc = paths.user_document(self.db, uid).get()
        if not doc.exists:
            return None

        data = doc.to_dict() or {}
        return UserProfile(
            uid=doc.id,
            display_name=data.get("displayName"),
            email=data.get("email"),
            photo_url=data.get("photoURL"),
        )

    def save(self, profile: UserProfile) -> UserProfile:
        """Overwrite the mirrored profile with the identity provider's current values"""
        paths.user_document(self.db, profile.uid).set({
            "displayName": profile.display_name,
            "email": profile.email,
            "photoURL": profile.photo_url,
            "updatedAt": datetime.now().isoformat(),
        })
        logger.info(f"Mirrored profile for UID: {profile.uid}")
        return profile

    def ensure(self, profile: UserProfile) -> UserProfile:
        """Mirror the profile only when the user has no document yet"""
        existing = self.get(profile.uid)
        if existing:
            return existing
        return self.save(profile)
