"""Moderation API routers."""

from fastapi import APIRouter

from . import profanity, spam

router = APIRouter()
router.include_router(profanity.router)
router.include_router(spam.router)

__all__ = ["router"]
