"""API endpoints for AI coaching, writing prompts, titles and note extraction."""

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from momentum.chains.coaching import WELCOME_MESSAGE, run_coaching_turn
from momentum.chains.extract_notes_nvq import run_nvq_extraction
from momentum.chains.prompts import FALLBACK_PROMPT
from momentum.chains.providers import get_ai_provider
from momentum.chains.why_drilling import DEFAULT_QUESTION, run_why_drilling
from momentum.core.auth_middleware import AuthContext, require_auth
from momentum.core.config import get_settings
from momentum.core.logging import get_logger
from momentum.core.schemas_coaching import (
    CoachGoalRequest,
    DrillWhyRequest,
    GenerateTitleRequest,
    PromptRequest,
)
from momentum.core.schemas_extraction import DirectExtractRequest
from momentum.db.goals import list_active_goal_contexts
from momentum.db.profiles import get_learning_goals, record_prompt

logger = get_logger(__name__)

router = APIRouter()

MIN_TITLE_CONTENT_LENGTH = 10


@router.post("/coach-goal")
async def coach_goal(body: CoachGoalRequest, auth: AuthContext = Depends(require_auth)) -> dict:
    """
    Run one turn of pursuit coaching.

    Without an Anthropic key the coach greets with a canned welcome so the
    flow can be exercised locally.

    Returns:
        Dict with the coach message, captured values and the next stage
    """
    if not get_settings().ANTHROPIC_API_KEY:
        return {
            "message": WELCOME_MESSAGE,
            "goalTitle": None,
            "whyRoot": None,
            "microWin": None,
            "isComplete": False,
        }

    if body.context is None:
        raise HTTPException(status_code=400, detail="Coaching context is required")

    try:
        parsed, next_stage = await run_coaching_turn(body.context, body.userMessage, auth.user_id)
        return {
            "message": parsed.message,
            "goalTitle": parsed.goal_title,
            "whyRoot": parsed.why_root,
            "microWin": parsed.micro_win,
            "notes": parsed.notes,
            "isComplete": parsed.is_complete,
            "isUpdate": parsed.is_update,
            "updateType": parsed.update_type,
            "nextStage": next_stage.value,
        }

    except Exception as e:
        logger.exception("Goal coaching failed", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail=f"Failed to get coaching response: {e}")


@router.post("/drill-why")
async def drill_why(body: DrillWhyRequest, auth: AuthContext = Depends(require_auth)):
    """Ask the next "why" about a goal, or return its root motivation."""
    if not body.goal_title or not isinstance(body.goal_title, str):
        raise HTTPException(status_code=400, detail="goal_title is required")

    try:
        result = await run_why_drilling(body.goal_title, body.conversation, auth.user_id)
        return {
            "message": result.message,
            "is_complete": result.is_complete,
            "why_root": result.why_root,
        }

    except Exception:
        logger.exception("Why drilling failed", extra={"user_id": auth.user_id})
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to process", "message": DEFAULT_QUESTION, "is_complete": False},
        )


@router.post("/generate-title")
async def generate_title(body: GenerateTitleRequest, auth: AuthContext = Depends(require_auth)) -> dict:
    if not body.content or not isinstance(body.content, str):
        raise HTTPException(status_code=400, detail="Content is required")

    content = body.content.strip()
    if len(content) < MIN_TITLE_CONTENT_LENGTH:
        raise HTTPException(status_code=400, detail="Content too short to generate title")

    try:
        title = await get_ai_provider(auth.user_id).generate_title(content)
        return {"title": title}

    except Exception:
        logger.exception("Title generation failed", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to generate title")


@router.post("/prompt")
async def generate_prompt(body: PromptRequest, auth: AuthContext = Depends(require_auth)):
    """
    Generate a continuation prompt for the writer.

    The prompt is personalised with the profile's learning goals and the
    user's active goals. When a document id is given the prompt is recorded
    in the prompt history.
    """
    if not body.context or not isinstance(body.context, str):
        raise HTTPException(status_code=400, detail="Context is required")

    try:
        provider = get_ai_provider(auth.user_id)
        prompt = await provider.generate_prompt(
            body.context,
            learning_goals=get_learning_goals(auth.user_id),
            active_goals=list_active_goal_contexts(auth.user_id),
        )

        if body.documentId:
            record_prompt(auth.user_id, body.documentId, body.context, prompt, provider.name)

        return {"prompt": prompt}

    except Exception:
        logger.exception("Prompt generation failed", extra={"user_id": auth.user_id})
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to generate prompt", "prompt": FALLBACK_PROMPT},
        )


@router.post("/extract")
async def extract_notes(body: DirectExtractRequest, auth: AuthContext = Depends(require_auth)) -> dict:
    """
    Extract atomic notes from text with quality scoring and refinement.

    Returns:
        Dict with success, notesCreated, notes and nvqMetrics
    """
    if not body.text or not isinstance(body.text, str):
        raise HTTPException(status_code=400, detail="Text is required")

    try:
        return await run_nvq_extraction(
            user_id=auth.user_id,
            text=body.text,
            document_id=body.documentId,
            coaching_session_id=body.coachingSessionId,
        )

    except Exception:
        logger.exception("Note extraction failed", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to extract notes")
