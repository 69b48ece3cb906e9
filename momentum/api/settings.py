"""API endpoints for per-user key/value settings."""

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException

from momentum.core.auth_middleware import AuthContext, require_auth
from momentum.core.logging import get_logger
from momentum.db.user_settings import delete_setting, get_setting, set_setting

logger = get_logger(__name__)

router = APIRouter()


@router.get("/{key}")
async def read_setting(key: str, auth: AuthContext = Depends(require_auth)) -> dict:
    """Value of a setting, or ``{value: null}`` when unset."""
    try:
        return {"value": get_setting(auth.user_id, key)}

    except Exception:
        logger.exception(f"Failed to read setting '{key}'", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to fetch setting")


@router.put("/{key}")
async def write_setting(
    key: str,
    body: dict[str, Any] = Body(...),
    auth: AuthContext = Depends(require_auth),
) -> dict:
    """
    Create or replace a setting.

    Any JSON value is accepted, including null, false and empty
    collections; only a missing ``value`` key is rejected.
    """
    if "value" not in body:
        raise HTTPException(status_code=400, detail="Value is required")

    try:
        return {"value": set_setting(auth.user_id, key, body["value"])}

    except Exception:
        logger.exception(f"Failed to save setting '{key}'", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to save setting")


@router.delete("/{key}")
async def remove_setting(key: str, auth: AuthContext = Depends(require_auth)) -> dict:
    try:
        delete_setting(auth.user_id, key)
        return {"success": True}

    except Exception:
        logger.exception(f"Failed to delete setting '{key}'", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to delete setting")
