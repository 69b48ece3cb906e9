"""API endpoints for onboarding pursuits and the life-domain catalogue."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from momentum.core.auth_middleware import AuthContext, require_auth
from momentum.core.logging import get_logger, log_with_context
from momentum.core.pursuit_domains import DOMAINS, PREDEFINED_ITEMS, sum_domain_scores
from momentum.core.schemas_goals import BulkPursuitRequest, Completeness, GoalStatus
from momentum.db.goals import insert_goals, insert_onboarding_selections

logger = get_logger(__name__)

router = APIRouter()

DEFAULT_MOMENTUM = 3


@router.get("/domains")
async def list_domains() -> dict:
    """Domain catalogue and the predefined onboarding items."""
    return {"domains": DOMAINS, "predefined_items": PREDEFINED_ITEMS}


@router.post("/bulk")
async def create_pursuits_bulk(
    body: BulkPursuitRequest,
    auth: AuthContext = Depends(require_auth),
) -> dict:
    """
    Create parked pursuits from onboarding selections.

    Every pursuit starts parked with only its title filled in; coaching is
    how it gets activated. The selections themselves are stored afterwards,
    and a failure there does not undo the pursuits.

    Raises:
        HTTPException 400: If no selections were sent
    """
    if not body.selections:
        raise HTTPException(status_code=400, detail="At least one selection is required")

    completeness = Completeness(title=True).model_dump()

    try:
        pursuits = insert_goals(
            [
                {
                    "user_id": auth.user_id,
                    "title": selection.title.strip(),
                    "status": GoalStatus.PARKED.value,
                    "domain_scores": selection.domain_scores,
                    "completeness": completeness,
                    "momentum": DEFAULT_MOMENTUM,
                    "position": index,
                }
                for index, selection in enumerate(body.selections)
            ]
        )
    except Exception:
        logger.exception("Failed to create pursuits", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to create pursuits")

    try:
        insert_onboarding_selections(
            [
                {
                    "user_id": auth.user_id,
                    "label": selection.title.strip(),
                    "domain_scores": selection.domain_scores,
                    "is_predefined": selection.is_predefined,
                    "pursuit_id": pursuits[index]["id"] if index < len(pursuits) else None,
                }
                for index, selection in enumerate(body.selections)
            ]
        )
    except Exception:
        logger.exception("Failed to store onboarding selections", extra={"user_id": auth.user_id})

    log_with_context(
        logger,
        logging.INFO,
        f"Created {len(pursuits)} onboarding pursuits",
        user_id=auth.user_id,
        **sum_domain_scores(s.model_dump() for s in body.selections),
    )

    return {"pursuits": pursuits}
