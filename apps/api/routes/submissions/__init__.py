"""Submission API routes."""

from __future__ import annotations

from fastapi import APIRouter

from .core import router as core_router
from .events import router as events_router

router = APIRouter()
router.include_router(core_router, prefix="/submissions", tags=["submissions"])
router.include_router(events_router, prefix="/submissions", tags=["submissions"])

__all__ = ["router"]
