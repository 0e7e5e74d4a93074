# app/routes/chat_route.py

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect, status
from fastapi.concurrency import run_in_threadpool
from typing import List
import asyncio, json, logging
from app.database.block_repository import BlockRepository
from app.database.listing_repository import ListingRepository
from app.models.chat import (
    Conversation,
    ConversationResponse,
    InboxItem,
    Message,
    OpenConversationRequest,
    SendMessageRequest,
)
from app.models.user import UserProfile
from app.routes.firebase_auth import get_current_user, profile_from_token, verify_token
from app.services.chat_service import ChatService
from app.services.message_stream import MessageStream
from app.services.providers import get_block_repository, get_chat_service, get_listing_repository

logger = logging.getLogger(__name__)
router = APIRouter()


def raise_http_error(e: Exception, action: str):
    """Map service exceptions onto HTTP errors"""
    if isinstance(e, HTTPException):
        raise e
    if isinstance(e, LookupError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, PermissionError):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    if isinstance(e, ValueError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    logger.error(f"Error {action}: {str(e)}")
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Error {action}: {str(e)}"
    )


# ==================== Conversation Routes ====================

@router.post("/conversations", response_model=ConversationResponse)
def open_conversation(
    request: OpenConversationRequest,
    current_user: UserProfile = Depends(get_current_user),
    chat_service: ChatService = Depends(get_chat_service),
    listings: ListingRepository = Depends(get_listing_repository),
):
    """
    Open the conversation with a listing's owner.
    Calling it again for the same pair returns the existing conversation.
    """
    try:
        listing = listings.get(request.listing_id)
        if not listing:
            raise HTTPException(status_code=404, detail="Listing not found")

        conversation, created = chat_service.open_conversation(current_user, listing)
        return ConversationResponse(conversation=conversation, created=created)

    except Exception as e:
        raise_http_error(e, "creating conversation")


@router.get("/conversations", response_model=List[InboxItem])
def get_user_conversations(
    current_user: UserProfile = Depends(get_current_user),
    chat_service: ChatService = Depends(get_chat_service),
):
    try:
        return chat_service.get_inbox(current_user.uid)
    except Exception as e:
        raise_http_error(e, "fetching conversations")


@router.get("/conversations/{conversation_id}", response_model=Conversation)
def get_conversation_details(
    conversation_id: str,
    current_user: UserProfile = Depends(get_current_user),
    chat_service: ChatService = Depends(get_chat_service),
):
    try:
        return chat_service.get_participant_conversation(conversation_id, current_user.uid)
    except Exception as e:
        raise_http_error(e, "fetching conversation")


@router.delete("/conversations/{conversation_id}")
def delete_conversation(
    conversation_id: str,
    current_user: UserProfile = Depends(get_current_user),
    chat_service: ChatService = Depends(get_chat_service),
):
    try:
        deleted = chat_service.delete_conversation(conversation_id, current_user.uid)
        return {
            "message": "Chat deleted successfully",
            "conversation_id": conversation_id,
            "deleted_messages": deleted,
        }
    except Exception as e:
        raise_http_error(e, "deleting conversation")


# ==================== Message Routes ====================

@router.get("/conversations/{conversation_id}/messages", response_model=List[Message])
def get_messages(
    conversation_id: str,
    current_user: UserProfile = Depends(get_current_user),
    chat_service: ChatService = Depends(get_chat_service),
):
    try:
        return chat_service.get_messages(conversation_id, current_user.uid)
    except Exception as e:
        raise_http_error(e, "fetching messages")


@router.post("/conversations/{conversation_id}/messages", response_model=Message, status_code=status.HTTP_201_CREATED)
def send_message(
    conversation_id: str,
    request: SendMessageRequest,
    current_user: UserProfile = Depends(get_current_user),
    chat_service: ChatService = Depends(get_chat_service),
):
    try:
        message = chat_service.send_message(conversation_id, current_user, request.text)
        if message is None:
            raise HTTPException(status_code=400, detail="Message text cannot be empty")
        return message
    except Exception as e:
        raise_http_error(e, "sending message")


@router.websocket("/conversations/{conversation_id}/ws")
async def stream_messages(
    websocket: WebSocket,
    conversation_id: str,
    token: str = Query(...),
    chat_service: ChatService = Depends(get_chat_service),
):
    """
    Live message feed. Sends the history once, then every new message.
    Clients post messages by sending {"text": "..."} frames.
    """
    try:
        user = profile_from_token(await verify_token(token))
        await run_in_threadpool(chat_service.get_participant_conversation, conversation_id, user.uid)
    except Exception as e:
        logger.warning(f"Rejected chat stream for {conversation_id}: {str(e)}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()

    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()
    stream = MessageStream(chat_service.chats, conversation_id)

    async def send_new_messages():
        while True:
            message = await queue.get()
            await websocket.send_json({"type": "message", "message": message.dict()})

    async def receive_messages():
        while True:
            frame = await websocket.receive_text()
            try:
                data = json.loads(frame)
                if not isinstance(data, dict):
                    raise ValueError("Frame is not a JSON object")
            except ValueError as e:
                logger.warning(f"Ignoring malformed frame on {conversation_id}: {str(e)}")
                await websocket.send_json({"type": "error", "detail": 'Expected a {"text": ...} object'})
                continue

            try:
                # Firestore calls block, keep them off the event loop
                await run_in_threadpool(chat_service.send_message, conversation_id, user, str(data.get("text") or ""))
            except Exception as e:
                logger.error(f"Error sending message over stream: {str(e)}")
                await websocket.send_json({"type": "error", "detail": "Failed to send message"})

    with stream:
        history = await run_in_threadpool(stream.load_history)
        # listener callbacks come from the Firestore SDK thread
        await run_in_threadpool(stream.subscribe, lambda message: loop.call_soon_threadsafe(queue.put_nowait, message))
        await websocket.send_json({"type": "history", "messages": [m.dict() for m in history]})

        tasks = [asyncio.ensure_future(send_new_messages()), asyncio.ensure_future(receive_messages())]
        try:
            done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                exc = task.exception()
                if exc and not isinstance(exc, WebSocketDisconnect):
                    logger.error(f"Chat stream for {conversation_id} failed: {str(exc)}")
        finally:
            for task in tasks:
                task.cancel()

    logger.info(f"Chat stream closed for {conversation_id}")


# ==================== Block Routes ====================

@router.get("/block", response_model=List[str])
def get_blocked_users(
    current_user: UserProfile = Depends(get_current_user),
    blocks: BlockRepository = Depends(get_block_repository),
):
    try:
        return blocks.list_blocked(current_user.uid)
    except Exception as e:
        raise_http_error(e, "fetching blocked users")


@router.post("/block/{user_id}")
def block_user(
    user_id: str,
    current_user: UserProfile = Depends(get_current_user),
    blocks: BlockRepository = Depends(get_block_repository),
):
    try:
        blocks.block(current_user.uid, user_id)
        return {"message": "User blocked successfully", "blocked_user_id": user_id}
    except Exception as e:
        raise_http_error(e, "blocking user")


@router.delete("/block/{user_id}")
def unblock_user(
    user_id: str,
    current_user: UserProfile = Depends(get_current_user),
    blocks: BlockRepository = Depends(get_block_repository),
):
    try:
        blocks.unblock(current_user.uid, user_id)
        return {"message": "User unblocked successfully", "blocked_user_id": user_id}
    except Exception as e:
        raise_http_error(e, "unblocking user")


# ==================== Health Check ====================

@router.get("/health")
async def chat_health_check():
    """Check if chat service is running"""
    return {
        "status": "healthy",
        "service": "chat",
        "message": "Chat service is running"
    }
