"""API endpoints for the micro-wins of a goal."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException

from momentum.core.auth_middleware import AuthContext, require_auth
from momentum.core.logging import get_logger
from momentum.core.schemas_goals import MicroWinCreate, MicroWinDelete, MicroWinReorder, MicroWinUpdate
from momentum.db.goals import goal_belongs_to_user
from momentum.db.micro_wins import (
    count_micro_wins,
    create_micro_win,
    delete_micro_win,
    get_micro_win,
    list_micro_wins,
    promote_next_micro_win,
    reorder_micro_wins,
    update_micro_win,
)

logger = get_logger(__name__)

router = APIRouter()


def _require_goal(user_id: str, goal_id: str) -> None:
    if not goal_belongs_to_user(user_id, goal_id):
        raise HTTPException(status_code=404, detail="Goal not found")


@router.get("/{goal_id}/micro-wins")
async def list_goal_micro_wins(goal_id: str, auth: AuthContext = Depends(require_auth)) -> dict:
    try:
        _require_goal(auth.user_id, goal_id)
        return {"micro_wins": list_micro_wins(goal_id)}

    except HTTPException:
        raise
    except Exception:
        logger.exception(f"Failed to list micro-wins of goal {goal_id}", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to fetch micro-wins")


@router.post("/{goal_id}/micro-wins")
async def create_goal_micro_win(
    goal_id: str,
    body: MicroWinCreate,
    auth: AuthContext = Depends(require_auth),
) -> dict:
    """Append a micro-win after the existing ones."""
    if not body.description or not isinstance(body.description, str):
        raise HTTPException(status_code=400, detail="Description is required")

    try:
        _require_goal(auth.user_id, goal_id)
        micro_win = create_micro_win(
            goal_id=goal_id,
            description=body.description.strip(),
            is_current=body.is_current,
            position=count_micro_wins(goal_id),
        )
        return {"micro_win": micro_win}

    except HTTPException:
        raise
    except Exception:
        logger.exception(f"Failed to create micro-win for goal {goal_id}", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to create micro-win")


@router.put("/{goal_id}/micro-wins")
async def update_goal_micro_win(
    goal_id: str,
    body: MicroWinUpdate,
    auth: AuthContext = Depends(require_auth),
) -> dict:
    """
    Update a micro-win.

    ``completed_at: true`` stamps the completion time and clears
    ``is_current``; the next incomplete micro-win then becomes current.
    """
    if not body.micro_win_id:
        raise HTTPException(status_code=400, detail="micro_win_id is required")

    try:
        _require_goal(auth.user_id, goal_id)

        updates = body.model_dump(exclude_unset=True, exclude={"micro_win_id"})
        if updates.get("completed_at") is True:
            updates["completed_at"] = datetime.now(timezone.utc).isoformat()
            updates["is_current"] = False

        micro_win = update_micro_win(goal_id, body.micro_win_id, updates)

        if updates.get("completed_at") and micro_win:
            promote_next_micro_win(goal_id)

        return {"micro_win": micro_win}

    except HTTPException:
        raise
    except Exception:
        logger.exception(f"Failed to update micro-win {body.micro_win_id}", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to update micro-win")


@router.delete("/{goal_id}/micro-wins")
async def delete_goal_micro_win(
    goal_id: str,
    body: MicroWinDelete,
    auth: AuthContext = Depends(require_auth),
) -> dict:
    """Delete a micro-win, promoting the next one if it was current."""
    if not body.micro_win_id:
        raise HTTPException(status_code=400, detail="micro_win_id is required")

    try:
        _require_goal(auth.user_id, goal_id)

        micro_win = get_micro_win(goal_id, body.micro_win_id)
        if not micro_win:
            raise HTTPException(status_code=404, detail="Micro-win not found")

        delete_micro_win(goal_id, body.micro_win_id)

        if micro_win.get("is_current"):
            promote_next_micro_win(goal_id)

        return {"success": True}

    except HTTPException:
        raise
    except Exception:
        logger.exception(f"Failed to delete micro-win {body.micro_win_id}", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to delete micro-win")


@router.patch("/{goal_id}/micro-wins")
async def reorder_goal_micro_wins(
    goal_id: str,
    body: MicroWinReorder,
    auth: AuthContext = Depends(require_auth),
) -> dict:
    if not isinstance(body.ordered_ids, list):
        raise HTTPException(status_code=400, detail="ordered_ids array is required")

    try:
        _require_goal(auth.user_id, goal_id)
        reorder_micro_wins(goal_id, [str(i) for i in body.ordered_ids])
        return {"success": True}

    except HTTPException:
        raise
    except Exception:
        logger.exception(f"Failed to reorder micro-wins of goal {goal_id}", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to reorder micro-wins")
