import logging, time
from typing import Callable, List, Optional, Tuple
from google.api_core.exceptions import AlreadyExists
from app.database.chat_repository import ChatRepository
from app.database.listing_repository import ListingRepository
from app.database.user_repository import UserRepository
from app.database.paths import conversation_id
from app.models.chat import Conversation, InboxEntry, InboxItem, Message
from app.models.listing import Listing
from app.models.user import DEFAULT_AVATAR, UserProfile

logger = logging.getLogger(__name__)

OPENING_MESSAGE = "Hi, I'm interested in your listing: {title}"
UNKNOWN_LISTING = "Unknown Listing"
LISTING_PLACEHOLDER_IMAGE = "/placeholder.jpg"


def now_ms() -> int:
    return int(time.time() * 1000)


class ChatService:
    """
    Two-party conversations about a listing.

    Every multi-document write (conversation + first message + inbox entries,
    message + inbox entries) is committed as one Firestore batch, so either all
    of it is visible or none of it is.
    """

    def __init__(
        self,
        chats: ChatRepository,
        listings: ListingRepository,
        users: UserRepository,
        clock: Callable[[], int] = now_ms,
    ):
        self.chats = chats
        self.listings = listings
        self.users = users
        self.clock = clock

    def _sender_snapshot(self, sender: UserProfile) -> Tuple[str, str]:
        # prefer the mirrored profile, fall back to the token claims
        profile = self.users.get(sender.uid) or sender
        name = profile.display_name or sender.display_name or "Anonymous"
        image = profile.photo_url or sender.photo_url or DEFAULT_AVATAR
        return name, image

    def _listing_title(self, listing_id: Optional[str]) -> str:
        if not listing_id:
            return UNKNOWN_LISTING
        listing = self.listings.get(listing_id)
        return listing.title if listing else UNKNOWN_LISTING

    def _stage_inbox(self, batch, conversation: Conversation, message: Message, listing_title: str):
        for uid in conversation.participants:
            self.chats.stage_inbox_entry(batch, uid, InboxEntry(
                conversation_id=conversation.id,
                with_user=conversation.other_participant(uid) or "",
                last_message=message.text,
                last_sender_id=message.sender_id,
                timestamp=message.timestamp,
                listing_id=conversation.listing_id,
                listing_title=listing_title,
            ))

    def get_participant_conversation(self, conv_id: str, uid: str) -> Conversation:
        conversation = self.chats.get_conversation(conv_id)
        if not conversation:
            raise LookupError("Conversation not found")
        if uid not in conversation.participants:
            raise PermissionError("You are not a participant in this conversation")
        return conversation

    def open_conversation(self, initiator: UserProfile, listing: Listing) -> Tuple[Conversation, bool]:
        """
        Return the conversation between the initiator and the listing owner,
        creating it with an opening message when it does not exist yet.
        The boolean is True when this call created it.
        """
        if initiator.uid == listing.owner_id:
            raise ValueError("This is your own listing. You can't chat with yourself.")

        conv_id = conversation_id(initiator.uid, listing.owner_id)
        existing = self.chats.get_conversation(conv_id)
        if existing:
            return existing, False

        timestamp = self.clock()
        conversation = Conversation(
            id=conv_id,
            participants=sorted([initiator.uid, listing.owner_id]),
            listing_id=listing.id,
            created_at=timestamp,
            updated_at=timestamp,
        )
        sender_name, sender_image = self._sender_snapshot(initiator)
        message_ref = self.chats.new_message_ref(conv_id)
        message = Message(
            id=message_ref.id,
            sender_id=initiator.uid,
            text=OPENING_MESSAGE.format(title=listing.title),
            timestamp=timestamp,
            sender_name=sender_name,
            sender_image=sender_image,
        )

        batch = self.chats.batch()
        self.chats.stage_conversation_create(batch, conversation)
        self.chats.stage_message(batch, message_ref, message)
        self._stage_inbox(batch, conversation, message, listing.title)

        try:
            batch.commit()
        except AlreadyExists:
            # someone else opened the same conversation between our read and commit
            logger.info(f"Conversation {conv_id} was created concurrently, reusing it")
            return self.chats.get_conversation(conv_id), False

        logger.info(f"Conversation {conv_id} created for listing {listing.id}")
        return conversation, True

    def send_message(self, conv_id: str, sender: UserProfile, text: str) -> Optional[Message]:
        """Append a message. Blank text is ignored and nothing is written."""
        text = (text or "").strip()
        if not text:
            return None

        conversation = self.get_participant_conversation(conv_id, sender.uid)
        sender_name, sender_image = self._sender_snapshot(sender)

        message_ref = self.chats.new_message_ref(conv_id)
        message = Message(
            id=message_ref.id,
            sender_id=sender.uid,
            text=text,
            timestamp=self.clock(),
            sender_name=sender_name,
            sender_image=sender_image,
        )

        batch = self.chats.batch()
        self.chats.stage_message(batch, message_ref, message)
        self.chats.stage_conversation_touch(batch, conv_id, message.timestamp)
        self._stage_inbox(batch, conversation, message, self._listing_title(conversation.listing_id))
        batch.commit()

        logger.info(f"Message {message.id} sent in {conv_id} by {sender.uid}")
        return message

    def get_messages(self, conv_id: str, uid: str) -> List[Message]:
        self.get_participant_conversation(conv_id, uid)
        return self.chats.list_messages(conv_id)

    def delete_conversation(self, conv_id: str, uid: str) -> int:
        conversation = self.get_participant_conversation(conv_id, uid)
        return self.chats.delete_conversation(conversation)

    def get_inbox(self, uid: str) -> List[InboxItem]:
        """Inbox entries, newest first, with the other user's profile and the listing image"""
        items = []
        for entry in self.chats.list_inbox(uid):
            other = self.users.get(entry.with_user) if entry.with_user else None
            listing = self.listings.get(entry.listing_id) if entry.listing_id else None

            items.append(InboxItem(
                **entry.dict(),
                other_user_name=(other.display_name if other and other.display_name else "Unknown"),
                other_user_photo=(other.photo_url if other and other.photo_url else DEFAULT_AVATAR),
                listing_image=(listing.images[0] if listing and listing.images else LISTING_PLACEHOLDER_IMAGE),
                is_last_message_mine=entry.last_sender_id == uid,
            ))
        return items
