"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from jobboard.api import ops
from jobboard.api.errors import install_error_handlers
from jobboard.moderation import ModerationServices, build_services, install_middleware
from jobboard.moderation import router as moderation_router
from jobboard.obs import init as obs_init
from jobboard.settings import Settings
from jobboard.settings import settings as default_settings

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, services: Optional[ModerationServices] = None) -> FastAPI:
	settings = settings or default_settings
	services = services or build_services(settings)

	@asynccontextmanager
	async def lifespan(app: FastAPI):
		logger.info(
			"moderation services ready",
			extra={
				"ledger_store": services.store.name,
				"warning_threshold": services.config.escalation.warning_threshold,
				"banned_terms": len(services.config.banned_terms),
			},
		)
		try:
			yield
		finally:
			if services.redis is not None:
				await services.redis.aclose()

	app = FastAPI(title="Jobboard Moderation", lifespan=lifespan)
	app.state.moderation = services
	app.state.settings = settings
	install_error_handlers(app)
	install_middleware(app, methods=settings.moderation_write_methods)
	app.include_router(ops.router)
	app.include_router(moderation_router)
	# Added last so request context is bound before the moderation middleware runs.
	obs_init(app, settings)
	return app


app = create_app()
