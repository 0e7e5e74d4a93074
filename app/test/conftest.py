import itertools
import pytest
from fastapi.testclient import TestClient

from main import app, rate_limiter
from app.database.connection import get_db
from app.database.chat_repository import ChatRepository
from app.database.listing_repository import ListingRepository
from app.database.user_repository import UserRepository
from app.models.listing import ListingCreate
from app.models.user import UserProfile
from app.routes.firebase_auth import get_current_user
from app.services.chat_service import ChatService
from app.services.providers import get_storage_bucket
from app.test.fake_firestore import FakeBucket, FakeFirestore


LONG_DESCRIPTION = (
    "Bright two room flat close to the canals, with a big kitchen and "
    "a quiet bedroom facing the courtyard."
)


def listing_form(**overrides) -> dict:
    data = {
        "title": "Canal view apartment",
        "property_type": "apartment",
        "bedrooms": 2,
        "bathrooms": 1,
        "total_area": 65,
        "description": LONG_DESCRIPTION,
        "address": "Prinsengracht 263",
        "city": "Amsterdam",
        "country": "Netherlands",
        "postal_code": "1016 GV",
        "amenities": ["Wi-Fi", "Kitchen"],
        "rent_price": 950,
        "is_rent_inclusive": True,
    }
    data.update(overrides)
    return data


@pytest.fixture
def db():
    return FakeFirestore()


@pytest.fixture
def bucket():
    return FakeBucket()


@pytest.fixture
def clock():
    counter = itertools.count(1_700_000_000_000, 1000)
    return lambda: next(counter)


@pytest.fixture
def users(db):
    repository = UserRepository(db)
    repository.save(UserProfile(uid="u1", display_name="Anna", email="anna@example.com", photo_url="https://img/anna.jpg"))
    repository.save(UserProfile(uid="u2", display_name="Bram", email="bram@example.com", photo_url=None))
    return repository


@pytest.fixture
def listings(db):
    return ListingRepository(db)


@pytest.fixture
def chats(db):
    return ChatRepository(db)


@pytest.fixture
def chat_service(chats, listings, users, clock):
    return ChatService(chats, listings, users, clock=clock)


@pytest.fixture
def owned_listing(listings, users):
    """A listing owned by u2"""
    return listings.create("u2", ListingCreate(**listing_form()), ["https://storage.googleapis.com/b/listings/u2/1.jpg"])


class AuthState:

    def __init__(self):
        self.user = None

    def login(self, uid, display_name=None, email=None, photo_url=None):
        self.user = UserProfile(uid=uid, display_name=display_name, email=email, photo_url=photo_url)
        return self.user

    def logout(self):
        self.user = None


@pytest.fixture
def auth_state():
    return AuthState()


@pytest.fixture
def client(db, bucket, auth_state):
    from fastapi import HTTPException

    def current_user():
        if auth_state.user is None:
            raise HTTPException(status_code=401, detail="Invalid authentication credentials")
        return auth_state.user

    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_storage_bucket] = lambda: bucket
    app.dependency_overrides[get_current_user] = current_user
    rate_limiter.reset()

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    rate_limiter.reset()
