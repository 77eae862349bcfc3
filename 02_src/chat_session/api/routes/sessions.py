"""Session API routes."""

from dataclasses import asdict
from datetime import datetime

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from ...app import IApplication
from ...lifecycle import ConversationStateError
from ...models import Outcome, UploadedFile
from ...session import SessionController


class FileModel(BaseModel):
    """Attachment reference."""

    name: str
    file_id: str
    type: str = "document"
    size: int | None = None
    mime_type: str | None = None


class MessageModel(BaseModel):
    """A rendered message."""

    content: str
    is_user: bool
    timestamp: datetime
    is_streaming: bool = False
    conversation_id: str | None = None
    files: list[FileModel] = []
    message_id: str | None = None


class SessionView(BaseModel):
    """Everything a front end needs to draw a conversation screen."""

    session_id: str
    conversation_id: str | None
    title: str
    state: str
    busy: bool
    error: str | None
    visible_error: str | None
    messages: list[MessageModel]


class OutcomeResponse(BaseModel):
    """Result of a session operation."""

    status: str
    message: str
    title: str | None = None
    close: bool = False
    session: SessionView | None = None


class OpenSessionRequest(BaseModel):
    """Open a new conversation, or an existing one by id."""

    conversation_id: str | None = None
    title: str | None = None


class SubmitRequest(BaseModel):
    """User message submission."""

    text: str
    files: list[FileModel] = []


class RenameRequest(BaseModel):
    """New conversation title."""

    title: str


class StatusResponse(BaseModel):
    """Response model for status."""

    status: str


def _session_view(session_id: str, session: SessionController) -> dict:
    return {
        "session_id": session_id,
        "conversation_id": session.conversation_id,
        "title": session.title,
        "state": session.state.value,
        "busy": session.busy,
        "error": session.error,
        "visible_error": session.visible_error,
        "messages": [asdict(m) for m in session.messages],
    }


def _outcome(outcome: Outcome, session_id: str, session: SessionController | None) -> dict:
    return {
        "status": outcome.status.value,
        "message": outcome.message,
        "title": outcome.title,
        "close": outcome.close,
        "session": _session_view(session_id, session) if session else None,
    }


def create_sessions_router(app: IApplication) -> APIRouter:
    """Create sessions router."""
    router = APIRouter(prefix="/api/sessions", tags=["sessions"])

    def lookup(session_id: str) -> SessionController:
        try:
            return app.get_session(session_id)
        except KeyError:
            raise HTTPException(status_code=404, detail="Session not found")

    @router.post("", response_model=SessionView)
    async def open_session(request: OpenSessionRequest) -> dict:
        """Open a session; an existing conversation loads its history."""
        session_id, session = await app.open_session(
            conversation_id=request.conversation_id, title=request.title
        )
        return _session_view(session_id, session)

    @router.get("/{session_id}", response_model=SessionView)
    async def get_session(session_id: str) -> dict:
        """Current state of a session."""
        return _session_view(session_id, lookup(session_id))

    @router.delete("/{session_id}", response_model=StatusResponse)
    async def close_session(session_id: str) -> dict:
        """Close the screen. The conversation itself is kept."""
        lookup(session_id)
        await app.close_session(session_id)
        return {"status": "ok"}

    @router.post("/{session_id}/messages", response_model=OutcomeResponse)
    async def submit_message(session_id: str, request: SubmitRequest) -> dict:
        """Submit user text with optional attachments."""
        session = lookup(session_id)
        files = [UploadedFile(**f.model_dump()) for f in request.files]
        outcome = await session.submit(request.text, files=files)
        return _outcome(outcome, session_id, session)

    @router.post("/{session_id}/history", response_model=OutcomeResponse)
    async def load_history(session_id: str) -> dict:
        """Reload the conversation history."""
        session = lookup(session_id)
        try:
            outcome = await session.load_history()
        except ConversationStateError as e:
            raise HTTPException(status_code=409, detail=str(e))
        return _outcome(outcome, session_id, session)

    @router.patch("/{session_id}", response_model=OutcomeResponse)
    async def rename_conversation(session_id: str, request: RenameRequest) -> dict:
        """Rename the conversation."""
        session = lookup(session_id)
        try:
            outcome = await session.rename(request.title)
        except ConversationStateError as e:
            raise HTTPException(status_code=409, detail=str(e))
        return _outcome(outcome, session_id, session)

    @router.delete("/{session_id}/conversation", response_model=OutcomeResponse)
    async def delete_conversation(session_id: str) -> dict:
        """Delete the conversation. On success the session is closed."""
        session = lookup(session_id)
        try:
            outcome = await session.delete()
        except ConversationStateError as e:
            raise HTTPException(status_code=409, detail=str(e))

        if outcome.close:
            await app.close_session(session_id)
            return _outcome(outcome, session_id, None)
        return _outcome(outcome, session_id, session)

    @router.post("/{session_id}/error/dismiss", response_model=SessionView)
    async def dismiss_error(session_id: str) -> dict:
        """Clear the last error."""
        session = lookup(session_id)
        session.dismiss_error()
        return _session_view(session_id, session)

    return router
