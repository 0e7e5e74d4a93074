# app/models/chat.py

from pydantic import BaseModel, Field
from typing import List, Optional


class Message(BaseModel):
    id: str
    sender_id: str
    text: str
    timestamp: int  # epoch milliseconds
    sender_name: str
    sender_image: str


class Conversation(BaseModel):
    id: str
    participants: List[str]
    listing_id: Optional[str] = None
    created_at: Optional[int] = None
    updated_at: Optional[int] = None

    def other_participant(self, uid: str) -> Optional[str]:
        for participant in self.participants:
            if participant != uid:
                return participant
        return None


class InboxEntry(BaseModel):
    """Per-user summary of a conversation's latest activity"""
    conversation_id: str
    with_user: str
    last_message: str = ""
    last_sender_id: Optional[str] = None
    timestamp: int = 0
    listing_id: Optional[str] = None
    listing_title: str = "Unknown Listing"


class InboxItem(InboxEntry):
    other_user_name: str = "Unknown"
    other_user_photo: str = "/default-avatar.jpg"
    listing_image: str = "/placeholder.jpg"
    is_last_message_mine: bool = False


class OpenConversationRequest(BaseModel):
    listing_id: str


class ConversationResponse(BaseModel):
    conversation: Conversation
    created: bool


class SendMessageRequest(BaseModel):
    text: str = Field(..., max_length=5000)
