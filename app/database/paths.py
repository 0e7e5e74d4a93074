"""
Single place where Firestore and Storage paths are built.

Every repository goes through these helpers so that a collection name or a
nesting level can never differ between two code paths.

    users/{uid}
    listings/{listingId}
    chats/{conversationId}
    chats/{conversationId}/messages/{messageId}
    userChats/{uid}/conversations/{conversationId}
    blockedUsers/{uid}/blocked/{blockedUid}
"""
from typing import Optional

USERS = "users"
LISTINGS = "listings"
CHATS = "chats"
MESSAGES = "messages"
USER_CHATS = "userChats"
USER_CHATS_ENTRIES = "conversations"
BLOCKED_USERS = "blockedUsers"
BLOCKED_ENTRIES = "blocked"

CONVERSATION_ID_SEPARATOR = "_"

# storage folders
LISTING_IMAGES_FOLDER = "listings"
PROFILE_PICTURES_FOLDER = "profile_pictures"


def conversation_id(user_a: str, user_b: str) -> str:
    """
    Deterministic id for the conversation between two users.
    The ids are sorted first, so conversation_id(a, b) == conversation_id(b, a).
    """
    if not user_a or not user_b:
        raise ValueError("Both participant ids are required")
    if user_a == user_b:
        raise ValueError("A conversation needs two different participants")

    return CONVERSATION_ID_SEPARATOR.join(sorted([user_a, user_b]))


def user_document(db, uid: str):
    return db.collection(USERS).document(uid)

def listings_collection(db):
    return db.collection(LISTINGS)

def listing_document(db, listing_id: Optional[str] = None):
    # no id → new document with a store generated id
    if listing_id is None:
        return db.collection(LISTINGS).document()
    return db.collection(LISTINGS).document(listing_id)

def conversation_document(db, conv_id: str):
    return db.collection(CHATS).document(conv_id)

def messages_collection(db, conv_id: str):
    return conversation_document(db, conv_id).collection(MESSAGES)

def inbox_collection(db, uid: str):
    return db.collection(USER_CHATS).document(uid).collection(USER_CHATS_ENTRIES)

def inbox_document(db, uid: str, conv_id: str):
    return inbox_collection(db, uid).document(conv_id)

def blocked_collection(db, uid: str):
    return db.collection(BLOCKED_USERS).document(uid).collection(BLOCKED_ENTRIES)

def blocked_document(db, uid: str, blocked_uid: str):
    return blocked_collection(db, uid).document(blocked_uid)


def listing_image_path(uid: str, timestamp_ms: int, index: int, filename: str) -> str:
    return f"{LISTING_IMAGES_FOLDER}/{uid}/{timestamp_ms}_{index}_{filename}"

def profile_picture_path(uid: str) -> str:
    return f"{PROFILE_PICTURES_FOLDER}/{uid}"
