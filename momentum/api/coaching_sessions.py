"""API endpoints for coaching sessions and their messages."""

from fastapi import APIRouter, Depends, HTTPException, Query

from momentum.core.auth_middleware import AuthContext, require_auth
from momentum.core.config import get_settings
from momentum.core.logging import get_logger
from momentum.core.schemas_coaching import MessageCreate, MessageRole, SessionCreate, SessionUpdate
from momentum.core.schemas_extraction import COACHING_SESSION_PRIORITY, SourceType
from momentum.db.coaching_sessions import (
    add_message,
    create_session,
    get_session,
    list_messages,
    list_sessions,
    session_belongs_to_user,
    update_session,
)
from momentum.db.extraction_queue import queue_source

logger = get_logger(__name__)

router = APIRouter()


def transcript(messages: list[dict]) -> str:
    """Render messages as ``role: content`` blocks separated by blank lines."""
    return "\n\n".join(f"{m['role']}: {m['content']}" for m in messages)


def _queue_session_if_ready(user_id: str, session_id: str) -> None:
    settings = get_settings()
    messages = list_messages(session_id)
    if len(messages) < settings.COACHING_EXTRACTION_MIN_MESSAGES:
        return

    queue_source(
        user_id=user_id,
        source_type=SourceType.COACHING_SESSION.value,
        source_id=session_id,
        content=transcript(messages),
        priority=COACHING_SESSION_PRIORITY,
    )


@router.get("")
async def list_coaching_sessions(
    goal_id: str | None = Query(None),
    auth: AuthContext = Depends(require_auth),
) -> dict:
    try:
        return {"sessions": list_sessions(auth.user_id, goal_id)}

    except Exception:
        logger.exception("Failed to list coaching sessions", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to fetch sessions")


@router.post("")
async def create_coaching_session(body: SessionCreate, auth: AuthContext = Depends(require_auth)) -> dict:
    try:
        session = create_session(auth.user_id, body.goal_id, body.stage.value)
        return {"session": session}

    except Exception:
        logger.exception("Failed to create coaching session", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to create session")


@router.get("/{session_id}")
async def get_coaching_session(session_id: str, auth: AuthContext = Depends(require_auth)) -> dict:
    try:
        session = get_session(auth.user_id, session_id)
        if not session:
            raise HTTPException(status_code=404, detail="Session not found")
        return {"session": session}

    except HTTPException:
        raise
    except Exception:
        logger.exception(f"Failed to get coaching session {session_id}", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to fetch session")


@router.patch("/{session_id}")
async def update_coaching_session(
    session_id: str,
    body: SessionUpdate,
    auth: AuthContext = Depends(require_auth),
) -> dict:
    """Update stage, goal_id or is_active; anything else in the body is ignored."""
    try:
        session = update_session(auth.user_id, session_id, body.model_dump(mode="json", exclude_unset=True))
        if not session:
            raise HTTPException(status_code=404, detail="Session not found")
        return {"session": session}

    except HTTPException:
        raise
    except Exception:
        logger.exception(f"Failed to update coaching session {session_id}", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to update session")


@router.post("/{session_id}/messages")
async def add_coaching_message(
    session_id: str,
    body: MessageCreate,
    auth: AuthContext = Depends(require_auth),
) -> dict:
    """
    Append a message to a session.

    Once the session is long enough its transcript is queued for note
    extraction. Queueing problems are logged and do not fail the request.

    Raises:
        HTTPException 404: If the session is not the user's
        HTTPException 400: If role or content is missing or the role is unknown
    """
    try:
        if not session_belongs_to_user(auth.user_id, session_id):
            raise HTTPException(status_code=404, detail="Session not found")

        if not body.role or not body.content:
            raise HTTPException(status_code=400, detail="Role and content are required")

        if body.role not in {r.value for r in MessageRole}:
            raise HTTPException(status_code=400, detail="Role must be user or assistant")

        message = add_message(session_id, body.role, body.content)

    except HTTPException:
        raise
    except Exception:
        logger.exception(f"Failed to add message to session {session_id}", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to add message")

    try:
        _queue_session_if_ready(auth.user_id, session_id)
    except Exception:
        logger.exception(f"Failed to queue coaching session {session_id}", extra={"user_id": auth.user_id})

    return {"message": message}
