"""API router for all endpoints."""

from fastapi import APIRouter

from momentum.api import (
    ai,
    coaching_sessions,
    documents,
    extraction,
    goals,
    graph,
    micro_wins,
    pursuits,
    settings,
    word_cloud,
)

router = APIRouter()

# Pursuits and their micro-wins
router.include_router(goals.router, prefix="/goals", tags=["goals"])
router.include_router(micro_wins.router, prefix="/goals", tags=["micro_wins"])
router.include_router(pursuits.router, prefix="/pursuits", tags=["pursuits"])

# Coaching
router.include_router(coaching_sessions.router, prefix="/coaching-sessions", tags=["coaching"])
router.include_router(ai.router, prefix="/ai", tags=["ai"])

# Writing and extraction
router.include_router(documents.router, prefix="/documents", tags=["documents"])
router.include_router(extraction.router, prefix="/extraction", tags=["extraction"])

# Knowledge views
router.include_router(graph.router, prefix="/graph", tags=["graph"])
router.include_router(word_cloud.router, prefix="/word-cloud", tags=["word_cloud"])

router.include_router(settings.router, prefix="/settings", tags=["settings"])
