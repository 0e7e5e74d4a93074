import logging, threading
from typing import Callable, List, Optional, Set
from app.database.chat_repository import ChatRepository
from app.models.chat import Message

logger = logging.getLogger(__name__)


class MessageStream:
    """
    Live view of one conversation's messages.

    load_history() reads the existing messages once. subscribe() then attaches
    a store listener and forwards only messages whose id has not been delivered
    yet, which also drops the listener's initial snapshot of old messages.
    close() detaches the listener and is safe to call more than once.
    """

    def __init__(self, repository: ChatRepository, conversation_id: str):
        self.repository = repository
        self.conversation_id = conversation_id
        self._seen: Set[str] = set()
        self._lock = threading.Lock()
        self._unsubscribe: Optional[Callable[[], None]] = None

    def load_history(self) -> List[Message]:
        messages = self.repository.list_messages(self.conversation_id)
        with self._lock:
            self._seen.update(message.id for message in messages)
        return messages

    def _is_new(self, message: Message) -> bool:
        with self._lock:
            if message.id in self._seen:
                return False
            self._seen.add(message.id)
            return True

    def subscribe(self, on_message: Callable[[Message], None]):
        if self._unsubscribe:
            raise RuntimeError("Stream is already subscribed")

        def handle(message: Message):
            if self._is_new(message):
                on_message(message)

        self._unsubscribe = self.repository.watch_messages(self.conversation_id, handle)
        logger.info(f"Subscribed to messages of {self.conversation_id}")

    def close(self):
        if self._unsubscribe:
            self._unsubscribe()
            self._unsubscribe = None
            logger.info(f"Unsubscribed from messages of {self.conversation_id}")

    @property
    def subscribed(self) -> bool:
        return self._unsubscribe is not None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
