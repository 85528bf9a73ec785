"""Moderation package integration helpers exposed to the application."""

from jobboard.moderation.api import router
from jobboard.moderation.domain.container import ModerationServices, build_services
from jobboard.moderation.middleware.content_filter import install as install_middleware

__all__ = ["router", "ModerationServices", "build_services", "install_middleware"]
