import logging
from datetime import datetime
from typing import List
from app.database import paths

logger = logging.getLogger(__name__)


class BlockRepository:
    """blockedUsers/{uid}/blocked/{blockedUid}. Stored only, nothing reads it to filter content."""

    def __init__(self, db):
        self.db = db

    def block(self, uid: str, blocked_uid: str):
        if uid == blocked_uid:
            raise ValueError("You cannot block yourself")

        paths.blocked_document(self.db, uid, blocked_uid).set({
            "blocked": True,
            "createdAt": datetime.now().isoformat(),
        })
        logger.info(f"User {uid} blocked {blocked_uid}")

    def unblock(self, uid: str, blocked_uid: str):
        paths.blocked_document(self.db, uid, blocked_uid).delete()
        logger.info(f"User {uid} unblocked {blocked_uid}")

    def list_blocked(self, uid: str) -> List[str]:
        return [doc.id for doc in paths.blocked_collection(self.db, uid).stream()]
