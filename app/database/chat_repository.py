import logging
from typing import Callable, List, Optional
from app.database import paths
from app.models.chat import Conversation, InboxEntry, Message
from app.models.user import DEFAULT_AVATAR

logger = logging.getLogger(__name__)

# Firestore rejects batches with more than 500 writes
MAX_BATCH_WRITES = 500


def message_to_document(message: Message) -> dict:
    return {
        "senderId": message.sender_id,
        "text": message.text,
        "timestamp": message.timestamp,
        "senderName": message.sender_name,
        "senderImage": message.sender_image,
    }


def message_from_document(message_id: str, data: dict) -> Message:
    return Message(
        id=message_id,
        sender_id=data.get("senderId", ""),
        text=data.get("text", ""),
        timestamp=data.get("timestamp", 0),
        sender_name=data.get("senderName", "Anonymous"),
        sender_image=data.get("senderImage") or DEFAULT_AVATAR,
    )


def inbox_to_document(entry: InboxEntry) -> dict:
    return {
        "lastMessage": entry.last_message,
        "lastSenderId": entry.last_sender_id,
        "timestamp": entry.timestamp,
        "listingId": entry.listing_id,
        "listingTitle": entry.listing_title,
        "withUser": entry.with_user,
    }


def inbox_from_document(conv_id: str, data: dict) -> InboxEntry:
    return InboxEntry(
        conversation_id=conv_id,
        with_user=data.get("withUser", ""),
        last_message=data.get("lastMessage", ""),
        last_sender_id=data.get("lastSenderId"),
        timestamp=data.get("timestamp", 0),
        listing_id=data.get("listingId"),
        listing_title=data.get("listingTitle") or "Unknown Listing",
    )


class ChatRepository:
    """
    Conversations, their nested messages and the per-user inbox index.

    Writes that must land together are collected in a Firestore write batch
    by the caller (see ChatService) through the stage_* helpers, which only
    add operations to the batch they are given.
    """

    def __init__(self, db):
        self.db = db

    def batch(self):
        return self.db.batch()

    # ---------- reads ----------

    def get_conversation(self, conv_id: str) -> Optional[Conversation]:
        doc = paths.conversation_document(self.db, conv_id).get()
        if not doc.exists:
            return None

        data = doc.to_dict() or {}
        return Conversation(
            id=doc.id,
            participants=data.get("participants", []),
            listing_id=data.get("listingId"),
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
        )

    def list_messages(self, conv_id: str) -> List[Message]:
        query = paths.messages_collection(self.db, conv_id).order_by("timestamp")
        return [message_from_document(doc.id, doc.to_dict()) for doc in query.stream()]

    def list_inbox(self, uid: str) -> List[InboxEntry]:
        entries = [inbox_from_document(doc.id, doc.to_dict()) for doc in paths.inbox_collection(self.db, uid).stream()]
        entries.sort(key=lambda entry: entry.timestamp or 0, reverse=True)
        return entries

    def watch_messages(self, conv_id: str, on_added: Callable[[Message], None]) -> Callable[[], None]:
        """
        Call on_added for every message document the listener reports as added.
        The first snapshot reports all existing messages. Returns the function
        that detaches the listener.
        """
        def on_snapshot(col_snapshot, changes, read_time):
            for change in changes:
                if change.type.name == "ADDED":
                    on_added(message_from_document(change.document.id, change.document.to_dict()))

        watch = paths.messages_collection(self.db, conv_id).order_by("timestamp").on_snapshot(on_snapshot)
        return watch.unsubscribe

    # ---------- staged writes ----------

    def new_message_ref(self, conv_id: str):
        return paths.messages_collection(self.db, conv_id).document()

    def stage_conversation_create(self, batch, conversation: Conversation):
        # create() fails the whole batch when the conversation already exists
        batch.create(paths.conversation_document(self.db, conversation.id), {
            "participants": conversation.participants,
            "listingId": conversation.listing_id,
            "createdAt": conversation.created_at,
            "updatedAt": conversation.updated_at,
        })

    def stage_conversation_touch(self, batch, conv_id: str, timestamp: int):
        batch.update(paths.conversation_document(self.db, conv_id), {"updatedAt": timestamp})

    def stage_message(self, batch, message_ref, message: Message):
        batch.set(message_ref, message_to_document(message))

    def stage_inbox_entry(self, batch, uid: str, entry: InboxEntry):
        batch.set(paths.inbox_document(self.db, uid, entry.conversation_id), inbox_to_document(entry))

    # ---------- deletion ----------

    def delete_conversation(self, conversation: Conversation) -> int:
        """
        Delete the conversation, every message under it and the inbox entry of
        each participant. Firestore does not cascade into subcollections, so the
        messages are removed explicitly in batches.
        """
        deleted = 0
        refs = [doc.reference for doc in paths.messages_collection(self.db, conversation.id).stream()]

        for start in range(0, len(refs), MAX_BATCH_WRITES):
            batch = self.db.batch()
            for ref in refs[start:start + MAX_BATCH_WRITES]:
                batch.delete(ref)
            batch.commit()
            deleted += len(refs[start:start + MAX_BATCH_WRITES])

        batch = self.db.batch()
        for uid in conversation.participants:
            batch.delete(paths.inbox_document(self.db, uid, conversation.id))
        batch.delete(paths.conversation_document(self.db, conversation.id))
        batch.commit()

        logger.info(f"Conversation {conversation.id} deleted with {deleted} messages")
        return deleted
