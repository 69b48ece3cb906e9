"""API endpoints for pursuits (goals)."""

from fastapi import APIRouter, Depends, HTTPException

from momentum.core.auth_middleware import AuthContext, require_auth
from momentum.core.logging import get_logger
from momentum.core.schemas_goals import RULE_OF_THREE_ERROR, GoalCreate, GoalUpdate
from momentum.db.goals import (
    GoalLimitError,
    archive_goal,
    count_goals,
    create_goal,
    get_goal,
    list_goals,
    update_goal,
)

logger = get_logger(__name__)

router = APIRouter()


def _is_valid_momentum(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and 1 <= value <= 5


@router.get("")
async def list_user_goals(auth: AuthContext = Depends(require_auth)) -> dict:
    """
    List active and parked goals with their micro-wins.

    Returns:
        Dict with goals ordered by status then position
    """
    try:
        return {"goals": list_goals(auth.user_id)}

    except Exception:
        logger.exception("Failed to list goals", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to fetch goals")


@router.post("")
async def create_user_goal(body: GoalCreate, auth: AuthContext = Depends(require_auth)) -> dict:
    """
    Create a goal at the end of its status column.

    Raises:
        HTTPException 400: If the title is missing or the user already has 3 active goals
    """
    if not body.title or not isinstance(body.title, str):
        raise HTTPException(status_code=400, detail="Title is required")

    try:
        status = body.status.value
        goal = create_goal(
            user_id=auth.user_id,
            title=body.title.strip(),
            why_root=(body.why_root or "").strip() or None,
            status=status,
            position=count_goals(auth.user_id, status),
        )
        return {"goal": goal}

    except GoalLimitError:
        raise HTTPException(status_code=400, detail=RULE_OF_THREE_ERROR)
    except Exception:
        logger.exception("Failed to create goal", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to create goal")


@router.get("/{goal_id}")
async def get_user_goal(goal_id: str, auth: AuthContext = Depends(require_auth)) -> dict:
    try:
        goal = get_goal(auth.user_id, goal_id)
        if not goal:
            raise HTTPException(status_code=404, detail="Goal not found")
        return {"goal": goal}

    except HTTPException:
        raise
    except Exception:
        logger.exception(f"Failed to get goal {goal_id}", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to fetch goal")


@router.put("/{goal_id}")
async def update_user_goal(
    goal_id: str,
    body: GoalUpdate,
    auth: AuthContext = Depends(require_auth),
) -> dict:
    """
    Apply the fields that were sent.

    Raises:
        HTTPException 400: If momentum is not a number in [1, 5], or the
            update would give the user a 4th active goal
        HTTPException 404: If the goal does not exist
    """
    if "momentum" in body.model_fields_set and not _is_valid_momentum(body.momentum):
        raise HTTPException(status_code=400, detail="Momentum must be a number between 1 and 5")

    try:
        goal = update_goal(auth.user_id, goal_id, body.model_dump(mode="json", exclude_unset=True))
        if not goal:
            raise HTTPException(status_code=404, detail="Goal not found")
        return {"goal": goal}

    except HTTPException:
        raise
    except GoalLimitError:
        raise HTTPException(status_code=400, detail=RULE_OF_THREE_ERROR)
    except Exception:
        logger.exception(f"Failed to update goal {goal_id}", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to update goal")


@router.delete("/{goal_id}")
async def archive_user_goal(goal_id: str, auth: AuthContext = Depends(require_auth)) -> dict:
    """Archive rather than delete."""
    try:
        archive_goal(auth.user_id, goal_id)
        return {"success": True}

    except Exception:
        logger.exception(f"Failed to archive goal {goal_id}", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to archive goal")
