"""Observability package bootstrap."""

from __future__ import annotations

from fastapi import FastAPI

from jobboard.obs import logging as obs_logging
from jobboard.obs import middleware
from jobboard.settings import Settings


def init(app: FastAPI, settings: Settings) -> None:
	if not settings.obs_enabled:
		return
	obs_logging.configure_logging()
	middleware.install(app)


__all__ = ["init"]
