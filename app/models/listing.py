from pydantic import BaseModel, Field, validator
from typing import List, Optional
from enum import Enum


class PropertyType(str, Enum):
    APARTMENT = "apartment"
    HOUSE = "house"
    STUDIO = "studio"
    OTHER = "other"


AMENITIES = [
    "Wi-Fi", "TV", "Kitchen", "Washer", "Free parking", "Air conditioning", "Heating",
    "Dedicated workspace", "Pool", "Hot tub", "Patio", "BBQ grill", "Fire pit",
    "Gym", "Beach access", "Ski-in/Ski-out"
]


class ListingBase(BaseModel):
    title: str = Field(..., min_length=10)
    property_type: PropertyType = PropertyType.APARTMENT
    bedrooms: int = Field(..., ge=1, le=20)
    bathrooms: int = Field(..., ge=1, le=10)
    floor_number: Optional[int] = Field(None, ge=0, le=100)
    total_area: float = Field(..., ge=1, le=10000)
    description: str = Field(..., min_length=50)
    address: str = Field(..., min_length=5)
    city: str = Field(..., min_length=2)
    country: str = Field(..., min_length=2)
    postal_code: str = Field(..., min_length=3)
    amenities: List[str] = Field(..., min_length=1)
    house_rules: Optional[str] = None
    rent_price: float = Field(..., ge=1)
    is_rent_inclusive: bool = False

    @validator("amenities")
    def unique_amenities(cls, value):
        # amenities behave as a set, first occurrence keeps its position
        seen = []
        for amenity in value:
            if amenity not in seen:
                seen.append(amenity)
        return seen

    class Config:
        use_enum_values = True


class ListingCreate(ListingBase):
    """Form payload sent as a JSON string next to the uploaded images"""
    pass


class Listing(BaseModel):
    """
    A stored listing. Form constraints are checked on ListingCreate only;
    documents written by older clients may miss fields, so reads fall back
    to defaults instead of failing.
    """
    id: str
    owner_id: str = ""
    title: str = ""
    property_type: str = ""
    bedrooms: int = 0
    bathrooms: int = 0
    floor_number: Optional[int] = None
    total_area: float = 0
    description: str = ""
    address: str = ""
    city: str = ""
    country: str = ""
    postal_code: str = ""
    amenities: List[str] = []
    house_rules: Optional[str] = None
    rent_price: float = 0
    is_rent_inclusive: bool = False
    images: List[str] = []
    created_at: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def full_address(self) -> str:
        parts = [self.address, self.city, self.postal_code, self.country]
        return ", ".join(p for p in parts if p)


class OwnerSummary(BaseModel):
    display_name: str = "Unknown User"
    photo_url: str = ""
    email: str = "Email not available"


class ListingDetail(BaseModel):
    listing: Listing
    owner: OwnerSummary


class MapPin(BaseModel):
    id: str
    title: str
    latitude: float
    longitude: float
    rent_price: float
    image: Optional[str] = None


class ListingFilter(BaseModel):
    """
    Browse filters. Every field is optional and an empty value means
    "match all". date_range is accepted for client compatibility but
    does not take part in filtering.
    """
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    property_type: Optional[str] = None
    location: Optional[str] = None
    date_range: Optional[str] = None

    @validator("min_price", "max_price", "property_type", "location", "date_range", pre=True)
    def blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value
