from pydantic import BaseModel, EmailStr, Field
from typing import Optional

DEFAULT_AVATAR = "/default-avatar.jpg"


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    full_name: str = Field(..., min_length=2)


class UserProfile(BaseModel):
    """Mirror of the identity provider's user record kept in Firestore"""
    uid: str
    display_name: Optional[str] = None
    email: Optional[str] = None
    photo_url: Optional[str] = None


class UpdateUserProfileRequest(BaseModel):
    display_name: str = Field(..., min_length=1)
    photo_url: Optional[str] = None
