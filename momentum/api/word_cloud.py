"""API endpoints for the word cloud and its hidden words."""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from momentum.core.auth_middleware import AuthContext, require_auth
from momentum.core.logging import get_logger
from momentum.core.word_cloud import HIDDEN_WORDS_SETTING, build_word_cloud
from momentum.db.documents import list_document_texts
from momentum.db.notes import list_note_texts
from momentum.db.user_settings import delete_setting, get_setting, set_setting

logger = get_logger(__name__)

router = APIRouter()


class HideWordRequest(BaseModel):
    word: str


def _hidden_words(user_id: str) -> list[str]:
    return list(get_setting(user_id, HIDDEN_WORDS_SETTING) or [])


@router.get("")
async def get_word_cloud(auth: AuthContext = Depends(require_auth)) -> dict:
    """
    Weighted words from the user's notes and documents.

    Returns:
        Dict with ``words`` heaviest first and the ``hiddenWords`` left out
    """
    try:
        hidden = _hidden_words(auth.user_id)
        words = build_word_cloud(
            notes=list_note_texts(auth.user_id),
            documents=list_document_texts(auth.user_id),
            hidden_words=hidden,
        )
        return {"words": words, "hiddenWords": hidden}

    except Exception:
        logger.exception("Failed to build word cloud", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to build word cloud")


@router.post("/hidden")
async def hide_word(body: HideWordRequest, auth: AuthContext = Depends(require_auth)) -> dict:
    word = body.word.strip().lower()
    if not word:
        raise HTTPException(status_code=400, detail="Word is required")

    try:
        hidden = _hidden_words(auth.user_id)
        if word not in hidden:
            hidden.append(word)
            set_setting(auth.user_id, HIDDEN_WORDS_SETTING, hidden)
        return {"hiddenWords": hidden}

    except Exception:
        logger.exception(f"Failed to hide word '{word}'", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to hide word")


@router.delete("/hidden/{word}")
async def unhide_word(word: str, auth: AuthContext = Depends(require_auth)) -> dict:
    word = word.strip().lower()

    try:
        hidden = [w for w in _hidden_words(auth.user_id) if w != word]
        set_setting(auth.user_id, HIDDEN_WORDS_SETTING, hidden)
        return {"hiddenWords": hidden}

    except Exception:
        logger.exception(f"Failed to unhide word '{word}'", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to unhide word")


@router.delete("/hidden")
async def clear_hidden_words(auth: AuthContext = Depends(require_auth)) -> dict:
    try:
        delete_setting(auth.user_id, HIDDEN_WORDS_SETTING)
        return {"hiddenWords": []}

    except Exception:
        logger.exception("Failed to clear hidden words", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to clear hidden words")
